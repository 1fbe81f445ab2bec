"""Pytest configuration and fixtures for integration tests."""
import os
import tempfile

# Set test environment before importing the app: settings are read at import.
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret-key-for-workboard-tests")
os.environ["AUTH_COOKIE_SECURE"] = "false"
os.environ["AUTH_BCRYPT_ROUNDS"] = "4"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="workboard-tests-")
os.environ["AUTO_MIGRATE"] = "false"
os.environ.pop("SMTP_HOST", None)
os.environ.pop("REDIS_URL", None)

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from workboard.main import app
from workboard.database import get_async_session
from workboard.models import Base
from workboard.auth.config import auth_settings

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(test_engine):
    """Create test client with overridden database."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_session():
        async with async_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_async_session] = override_get_session

    # No Redis in tests; tests that check events install a fake client
    from workboard import dependencies
    dependencies.redis_client = None

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    dependencies.redis_client = None
    app.dependency_overrides.clear()


async def register_user(
    client: AsyncClient,
    email: str,
    name: str = "Test User",
    password: str = DEFAULT_PASSWORD,
) -> dict:
    """Register a user and return Bearer headers for their session.

    The cookie jar is cleared so each request states its caller explicitly.
    """
    response = await client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 200, response.text
    secret = response.cookies[auth_settings.cookie_name]
    client.cookies.clear()
    return {"Authorization": f"Bearer {secret}"}


async def create_workspace(client: AsyncClient, headers: dict, name: str = "Acme") -> dict:
    """Create a workspace as the given caller and return its JSON document."""
    response = await client.post("/api/workspaces/", data={"name": name}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def join_workspace(client: AsyncClient, headers: dict, workspace: dict) -> None:
    response = await client.post(
        f"/api/workspaces/{workspace['id']}/join",
        json={"code": workspace["inviteCode"]},
        headers=headers,
    )
    assert response.status_code == 200, response.text


@pytest_asyncio.fixture
async def owner(client: AsyncClient) -> dict:
    """Headers for a registered user who will own workspaces."""
    return await register_user(client, "owner@example.com", name="Olivia Owner")


@pytest_asyncio.fixture
async def other(client: AsyncClient) -> dict:
    """Headers for a second registered user."""
    return await register_user(client, "other@example.com", name="Oscar Other")


@pytest_asyncio.fixture
async def workspace(client: AsyncClient, owner: dict) -> dict:
    """A workspace owned by ``owner`` (with default statuses seeded)."""
    return await create_workspace(client, owner)


class FakeRedis:
    """Records xadd calls made by publish_event."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.events: list[tuple[str, dict]] = []

    async def xadd(self, stream: str, fields: dict):
        if self.fail:
            raise ConnectionError("redis unavailable")
        self.events.append((stream, fields))
        return "0-1"

    async def ping(self):
        return not self.fail
