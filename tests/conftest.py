"""
Shared fixtures.

Provides:
- database: fresh schema on a temporary SQLite file for every test
- session: a database session for service-level tests
- client: httpx AsyncClient wired to the FastAPI app
- register_user: registers an account over HTTP and returns its token
"""

import os
import tempfile

# Configure the application before anything imports feastflow
_DB_DIR = tempfile.mkdtemp(prefix="feastflow-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["ENV_MODE"] = "development"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DEBUG"] = "false"

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import event

from feastflow import models  # noqa: F401
from feastflow.database import Base, async_session_maker, engine
from feastflow.main import app


@event.listens_for(engine.sync_engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite leaves foreign key enforcement off per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


_user_counter = 0


def make_user_data(role: str = None, **overrides) -> dict:
    """Generate unique registration data for test isolation."""
    global _user_counter
    _user_counter += 1
    data = {
        "email": f"user{_user_counter}@example.com",
        "password": "Str0ngP@ss!",
        "firstName": "Test",
        "lastName": f"User{_user_counter}",
    }
    if role:
        data["role"] = role
    data.update(overrides)
    return data


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture(autouse=True)
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    # Pooled connections are bound to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def session():
    async with async_session_maker() as s:
        yield s


@pytest_asyncio.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
def register_user(client):
    """
    Register an account and return ``(token, user)``.

    The session cookie set by the response is dropped so each test
    chooses explicitly how the token is sent.
    """
    async def _register(role: str = None, **overrides):
        response = await client.post("/api/auth/register", json=make_user_data(role, **overrides))
        assert response.status_code == 201, response.text
        client.cookies.clear()
        body = response.json()
        return body["token"], body["user"]

    return _register
