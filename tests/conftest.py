# shared fixtures for backend api tests
# provides an in-memory database, memory session store, and httpx test clients

import pytest
import pytest_asyncio
from contextlib import AsyncExitStack

from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool

from autitrack.main import create_app
from autitrack.services.db import Database
from autitrack.services.session_store import MemorySessionStore
from autitrack.services.storage import Storage


PASSWORD = "secret1"
BASE_URL = "http://testserver"


# sample payloads

PRACTITIONER_PAYLOAD = {
    "username": "doc1",
    "password": PASSWORD,
    "name": "Dr. X",
    "role": "practitioner",
    "email": "doc1@clinic.test",
}

OTHER_PRACTITIONER_PAYLOAD = {
    "username": "doc2",
    "password": PASSWORD,
    "name": "Dr. Y",
    "role": "practitioner",
    "email": "doc2@clinic.test",
}


def client_payload(username: str = "kid1", first_name: str = "Emma", last_name: str = "Wilson") -> dict:
    """nested body for POST /api/clients/with-user"""
    return {
        "user": {
            "username": username,
            "password": PASSWORD,
            "name": f"{first_name} {last_name}",
            "email": f"{username}@family.test",
        },
        "firstName": first_name,
        "lastName": last_name,
        "dateOfBirth": "2015-04-12T00:00:00Z",
        "diagnosis": "Autism Spectrum Disorder - Level 1",
        "guardianName": "Sarah Wilson",
        "guardianRelation": "Mother",
        "treatmentPlan": ["Social skills group weekly"],
        "treatmentGoals": ["Initiate peer conversations"],
    }


async def create_client_with_user(ac: AsyncClient, username: str = "kid1", **names) -> dict:
    resp = await ac.post("/api/clients/with-user", json=client_payload(username, **names))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def login(ac: AsyncClient, username: str, password: str = PASSWORD):
    resp = await ac.post("/api/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp


@pytest_asyncio.fixture
async def database():
    """fresh in-memory sqlite database per test"""
    db = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.connect(create_tables=True)
    yield db
    await db.close()


@pytest_asyncio.fixture
async def storage(database):
    """storage bound to its own session, for direct storage-layer tests"""
    async with database.session() as session:
        yield Storage(session)


@pytest.fixture
def session_store():
    return MemorySessionStore()


@pytest.fixture
def app(database, session_store):
    return create_app(database=database, session_store=session_store)


@pytest_asyncio.fixture
async def make_client(app):
    """factory for independent httpx clients, each with its own cookie jar"""
    async with AsyncExitStack() as stack:
        async def _make() -> AsyncClient:
            transport = ASGITransport(app=app)
            return await stack.enter_async_context(AsyncClient(transport=transport, base_url=BASE_URL))
        yield _make


@pytest_asyncio.fixture
async def client(make_client):
    """anonymous client"""
    return await make_client()


@pytest_asyncio.fixture
async def practitioner_client(make_client):
    """client logged in as practitioner doc1 (via registration)"""
    ac = await make_client()
    resp = await ac.post("/api/register", json=PRACTITIONER_PAYLOAD)
    assert resp.status_code == 201, resp.text
    return ac


@pytest_asyncio.fixture
async def other_practitioner_client(make_client):
    """client logged in as practitioner doc2"""
    ac = await make_client()
    resp = await ac.post("/api/register", json=OTHER_PRACTITIONER_PAYLOAD)
    assert resp.status_code == 201, resp.text
    return ac


@pytest_asyncio.fixture
async def managed_client(practitioner_client):
    """a client profile (with login kid1) owned by doc1"""
    return await create_client_with_user(practitioner_client, "kid1")


@pytest_asyncio.fixture
async def client_user_client(make_client, managed_client):
    """client logged in as the client user kid1"""
    ac = await make_client()
    await login(ac, "kid1")
    return ac
