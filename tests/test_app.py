# tests for app-level endpoints: health check, openapi, error shapes


class TestHealth:
    """health check endpoint"""

    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "service": "autitrack-api"}


class TestOpenAPI:

    async def test_openapi_title(self, client):
        resp = await client.get("/openapi.json")
        assert resp.status_code == 200
        assert resp.json()["info"]["title"] == "AutiTrack API"

    async def test_routes_registered(self, client):
        paths = (await client.get("/openapi.json")).json()["paths"]
        for path in (
            "/api/register", "/api/login", "/api/logout", "/api/user",
            "/api/clients", "/api/clients/with-user", "/api/clients/{client_id}",
            "/api/clients/{client_id}/data", "/api/clients/{client_id}/notes",
            "/api/sessions", "/api/statistics", "/api/practitioners/me",
        ):
            assert path in paths


class TestErrorShapes:
    """validation failures are 400, unknown routes stay 404"""

    async def test_validation_error_is_400(self, client):
        resp = await client.post("/api/register", json={"username": "x"})
        assert resp.status_code == 400
        data = resp.json()
        assert data["detail"] == "Invalid data"
        assert isinstance(data["errors"], list)
        assert data["errors"]

    async def test_unknown_route(self, client):
        resp = await client.get("/api/nope")
        assert resp.status_code == 404
