# tests for clients router: list, create, get, update, archive, reset and delete
# practitioners manage their own clients, client users see only themselves

from sqlalchemy import select

from autitrack.services.tables import Client, ClientNote, DataEntry, Session, User
from tests.conftest import PASSWORD, create_client_with_user, login


class TestListClients:
    """list the practitioner's active clients"""

    async def test_list_empty(self, practitioner_client):
        resp = await practitioner_client.get("/api/clients")
        assert resp.status_code == 200
        assert resp.json() == []

    async def test_list_own_clients(self, practitioner_client, other_practitioner_client):
        await create_client_with_user(practitioner_client, "kid1", first_name="Emma")
        await create_client_with_user(practitioner_client, "kid2", first_name="Liam")
        await create_client_with_user(other_practitioner_client, "kid3", first_name="Olivia")

        resp = await practitioner_client.get("/api/clients")
        assert resp.status_code == 200
        data = resp.json()
        assert len(data) == 2
        assert {c["firstName"] for c in data} == {"Emma", "Liam"}

    async def test_list_includes_user(self, practitioner_client, managed_client):
        data = (await practitioner_client.get("/api/clients")).json()
        assert data[0]["user"]["username"] == "kid1"
        assert "password" not in data[0]["user"]

    async def test_client_user_cannot_list(self, client_user_client):
        resp = await client_user_client.get("/api/clients")
        assert resp.status_code == 403

    async def test_unauthenticated(self, client):
        resp = await client.get("/api/clients")
        assert resp.status_code == 401


class TestCreateClient:

    async def test_create_for_existing_client_user(self, practitioner_client, make_client):
        # a client-role user registers on their own first
        kid = await make_client()
        reg = await kid.post("/api/register", json={
            "username": "selfreg", "password": PASSWORD, "name": "Self Reg",
        })
        user_id = reg.json()["id"]

        resp = await practitioner_client.post("/api/clients", json={
            "userId": user_id, "firstName": "Self", "lastName": "Reg",
            "treatmentPlan": "Weekly check-in\nSensory diet",
        })
        assert resp.status_code == 201
        data = resp.json()
        assert data["userId"] == user_id
        assert data["treatmentPlan"] == ["Weekly check-in", "Sensory diet"]
        assert data["treatmentGoals"] == []
        assert data["archived"] is False

        # the client user can now see their profile
        me = await kid.get("/api/clients/me")
        assert me.status_code == 200
        assert me.json()["id"] == data["id"]

    async def test_create_requires_client_user(self, practitioner_client):
        me = (await practitioner_client.get("/api/user")).json()
        resp = await practitioner_client.post("/api/clients", json={
            "userId": me["id"], "firstName": "A", "lastName": "B",
        })
        assert resp.status_code == 400

    async def test_create_unknown_user(self, practitioner_client):
        resp = await practitioner_client.post("/api/clients", json={
            "userId": 999, "firstName": "A", "lastName": "B",
        })
        assert resp.status_code == 400

    async def test_create_twice_for_same_user(self, practitioner_client, managed_client):
        resp = await practitioner_client.post("/api/clients", json={
            "userId": managed_client["user"]["id"], "firstName": "A", "lastName": "B",
        })
        assert resp.status_code == 400

    async def test_missing_names(self, practitioner_client):
        resp = await practitioner_client.post("/api/clients", json={"userId": 1})
        assert resp.status_code == 400


class TestCreateClientWithUser:

    async def test_create_with_user(self, practitioner_client):
        data = await create_client_with_user(practitioner_client, "kid1")
        assert data["user"]["username"] == "kid1"
        assert data["user"]["role"] == "client"
        assert data["client"]["userId"] == data["user"]["id"]
        assert data["client"]["treatmentGoals"] == ["Initiate peer conversations"]

    async def test_practitioner_stays_logged_in(self, practitioner_client):
        await create_client_with_user(practitioner_client, "kid1")
        me = (await practitioner_client.get("/api/user")).json()
        assert me["username"] == "doc1"

    async def test_role_is_forced_to_client(self, practitioner_client):
        body = {
            "user": {"username": "sneaky", "password": PASSWORD, "name": "S", "role": "practitioner"},
            "firstName": "S", "lastName": "N",
        }
        resp = await practitioner_client.post("/api/clients/with-user", json=body)
        assert resp.status_code == 201
        assert resp.json()["user"]["role"] == "client"

    async def test_duplicate_username(self, practitioner_client, managed_client, database):
        body = {
            "user": {"username": "kid1", "password": PASSWORD, "name": "Dup"},
            "firstName": "Dup", "lastName": "Licate",
        }
        resp = await practitioner_client.post("/api/clients/with-user", json=body)
        assert resp.status_code == 400

        async with database.session() as session:
            clients = (await session.execute(select(Client))).scalars().all()
        assert len(clients) == 1

    async def test_new_client_can_log_in(self, practitioner_client, make_client):
        await create_client_with_user(practitioner_client, "kid1")
        ac = await make_client()
        resp = await login(ac, "kid1")
        assert resp.json()["role"] == "client"

    async def test_client_user_cannot_create(self, client_user_client):
        body = {
            "user": {"username": "x", "password": PASSWORD, "name": "X"},
            "firstName": "X", "lastName": "Y",
        }
        resp = await client_user_client.post("/api/clients/with-user", json=body)
        assert resp.status_code == 403


class TestGetClient:

    async def test_practitioner_gets_own_client(self, practitioner_client, managed_client):
        client_id = managed_client["client"]["id"]
        resp = await practitioner_client.get(f"/api/clients/{client_id}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == client_id
        assert data["firstName"] == "Emma"
        assert data["user"]["username"] == "kid1"

    async def test_other_practitioner_forbidden(self, other_practitioner_client, managed_client):
        client_id = managed_client["client"]["id"]
        resp = await other_practitioner_client.get(f"/api/clients/{client_id}")
        assert resp.status_code == 403

    async def test_missing_client_is_forbidden(self, practitioner_client):
        resp = await practitioner_client.get("/api/clients/4242")
        assert resp.status_code == 403

    async def test_client_gets_self(self, client_user_client, managed_client):
        client_id = managed_client["client"]["id"]
        resp = await client_user_client.get(f"/api/clients/{client_id}")
        assert resp.status_code == 200
        assert resp.json()["id"] == client_id

    async def test_client_cannot_get_other_client(self, practitioner_client, client_user_client):
        other = await create_client_with_user(practitioner_client, "kid2")
        resp = await client_user_client.get(f"/api/clients/{other['client']['id']}")
        assert resp.status_code == 403

    async def test_non_integer_id(self, practitioner_client):
        resp = await practitioner_client.get("/api/clients/abc")
        assert resp.status_code == 400


class TestUpdateClient:

    async def test_update(self, practitioner_client, managed_client):
        client_id = managed_client["client"]["id"]
        resp = await practitioner_client.patch(f"/api/clients/{client_id}", json={
            "diagnosis": "Updated diagnosis",
            "treatmentGoals": ["New goal"],
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["diagnosis"] == "Updated diagnosis"
        assert data["treatmentGoals"] == ["New goal"]
        # untouched fields survive
        assert data["firstName"] == "Emma"
        assert data["treatmentPlan"] == ["Social skills group weekly"]

    async def test_other_practitioner_cannot_update(self, other_practitioner_client, managed_client):
        client_id = managed_client["client"]["id"]
        resp = await other_practitioner_client.patch(f"/api/clients/{client_id}", json={"notes": "x"})
        assert resp.status_code == 403

    async def test_client_user_cannot_update_via_id(self, client_user_client, managed_client):
        client_id = managed_client["client"]["id"]
        resp = await client_user_client.patch(f"/api/clients/{client_id}", json={"notes": "x"})
        assert resp.status_code == 403


class TestClientSelfService:
    """GET/PATCH /api/clients/me"""

    async def test_get_me(self, client_user_client, managed_client):
        resp = await client_user_client.get("/api/clients/me")
        assert resp.status_code == 200
        assert resp.json()["id"] == managed_client["client"]["id"]

    async def test_patch_me(self, client_user_client):
        resp = await client_user_client.patch("/api/clients/me", json={
            "guardianPhone": "(555) 000-1111",
            "diagnosis": "ignored",
        })
        assert resp.status_code == 200
        data = resp.json()
        assert data["guardianPhone"] == "(555) 000-1111"
        assert data["diagnosis"] == "Autism Spectrum Disorder - Level 1"

    async def test_practitioner_has_no_me(self, practitioner_client):
        resp = await practitioner_client.get("/api/clients/me")
        assert resp.status_code == 403

    async def test_client_without_profile(self, client):
        await client.post("/api/register", json={
            "username": "loner", "password": PASSWORD, "name": "Loner",
        })
        resp = await client.get("/api/clients/me")
        assert resp.status_code == 403


class TestArchiveClient:

    async def test_archive_and_unarchive(self, practitioner_client, managed_client):
        client_id = managed_client["client"]["id"]

        resp = await practitioner_client.patch(f"/api/clients/{client_id}/archive")
        assert resp.status_code == 200
        assert resp.json()["archived"] is True

        assert (await practitioner_client.get("/api/clients")).json() == []
        archived = (await practitioner_client.get("/api/clients/archived")).json()
        assert [c["id"] for c in archived] == [client_id]

        resp = await practitioner_client.patch(f"/api/clients/{client_id}/unarchive")
        assert resp.status_code == 200
        assert resp.json()["archived"] is False
        assert len((await practitioner_client.get("/api/clients")).json()) == 1
        assert (await practitioner_client.get("/api/clients/archived")).json() == []

    async def test_other_practitioner_cannot_archive(self, other_practitioner_client, managed_client):
        client_id = managed_client["client"]["id"]
        resp = await other_practitioner_client.patch(f"/api/clients/{client_id}/archive")
        assert resp.status_code == 403


class TestResetPassword:

    async def test_reset_password(self, practitioner_client, managed_client, make_client):
        client_id = managed_client["client"]["id"]
        resp = await practitioner_client.patch(
            f"/api/clients/{client_id}/reset-password", json={"password": "fresh-pass"},
        )
        assert resp.status_code == 200

        ac = await make_client()
        old = await ac.post("/api/login", json={"username": "kid1", "password": PASSWORD})
        assert old.status_code == 401
        await login(ac, "kid1", "fresh-pass")

    async def test_reset_too_short(self, practitioner_client, managed_client):
        client_id = managed_client["client"]["id"]
        resp = await practitioner_client.patch(
            f"/api/clients/{client_id}/reset-password", json={"password": "123"},
        )
        assert resp.status_code == 400

    async def test_other_practitioner_cannot_reset(self, other_practitioner_client, managed_client):
        client_id = managed_client["client"]["id"]
        resp = await other_practitioner_client.patch(
            f"/api/clients/{client_id}/reset-password", json={"password": "fresh-pass"},
        )
        assert resp.status_code == 403


class TestDeleteClient:

    async def test_delete_cascades(self, practitioner_client, managed_client, database):
        client_id = managed_client["client"]["id"]
        user_id = managed_client["user"]["id"]

        await practitioner_client.post(f"/api/clients/{client_id}/data", json={"mood": "good"})
        await practitioner_client.post(f"/api/clients/{client_id}/notes", json={"title": "Intake"})
        await practitioner_client.post("/api/sessions", json={
            "clientId": client_id, "date": "2030-01-01T10:00:00Z", "status": "confirmed",
        })

        resp = await practitioner_client.delete(f"/api/clients/{client_id}")
        assert resp.status_code == 200
        assert resp.json()["message"] == "Client deleted successfully"

        async with database.session() as session:
            for model, column in (
                (DataEntry, DataEntry.client_id),
                (ClientNote, ClientNote.client_id),
                (Session, Session.client_id),
                (Client, Client.id),
            ):
                rows = (await session.execute(select(model).where(column == client_id))).scalars().all()
                assert rows == []
            assert await session.get(User, user_id) is None

    async def test_deleted_client_user_is_logged_out(self, practitioner_client, client_user_client, managed_client):
        client_id = managed_client["client"]["id"]
        await practitioner_client.delete(f"/api/clients/{client_id}")
        resp = await client_user_client.get("/api/user")
        assert resp.status_code == 401

    async def test_delete_then_get_is_forbidden(self, practitioner_client, managed_client):
        client_id = managed_client["client"]["id"]
        await practitioner_client.delete(f"/api/clients/{client_id}")
        resp = await practitioner_client.get(f"/api/clients/{client_id}")
        assert resp.status_code == 403

    async def test_other_practitioner_cannot_delete(self, other_practitioner_client, managed_client):
        client_id = managed_client["client"]["id"]
        resp = await other_practitioner_client.delete(f"/api/clients/{client_id}")
        assert resp.status_code == 403
