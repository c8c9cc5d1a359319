"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool remains valid across the entire test session.
They need a PostgreSQL migrated with `alembic upgrade head` and are skipped
when the database port is not reachable.
"""

import socket
import uuid
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.engine import make_url

from config.settings import settings
from src.main import app
from src.tm_common.database import async_session_factory, unit_of_work
from src.tm_common.enums import UserRole
from src.tm_gateway.user.service import UserService

PASSWORD = "TestPass1"

_HERE = Path(__file__).parent


def _database_reachable() -> bool:
    url = make_url(settings.DATABASE_URL)
    try:
        with socket.create_connection((url.host or "localhost", url.port or 5432), timeout=1):
            return True
    except OSError:
        return False


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if _database_reachable():
        return
    skip = pytest.mark.skip(reason="PostgreSQL not reachable")
    for item in items:
        if _HERE in item.path.parents:
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _login(client: AsyncClient, username: str) -> dict[str, str]:
    resp = await client.post(
        "/api/v1/auth/login", json={"username": username, "password": PASSWORD}
    )
    token = resp.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def new_user(client: AsyncClient) -> Callable[[], Awaitable[dict[str, str]]]:
    """Factory: register a fresh user and return its Authorization headers."""

    async def _create() -> dict[str, str]:
        username = f"it_{uuid.uuid4().hex[:10]}"
        await client.post(
            "/api/v1/auth/register",
            json={"username": username, "email": f"{username}@example.com", "password": PASSWORD},
        )
        return await _login(client, username)

    return _create


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    """Admin accounts cannot self-register; create one straight in the DB."""
    username = f"ops_{uuid.uuid4().hex[:10]}"
    async with async_session_factory() as db:
        async with unit_of_work(db):
            await UserService().register(
                username, f"{username}@example.com", PASSWORD, db, role=UserRole.ADMIN
            )
    return await _login(client, username)
