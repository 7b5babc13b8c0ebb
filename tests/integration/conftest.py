"""Integration-test fixtures.

These tests need PostgreSQL at DATABASE_URL with every migration under
alembic/versions applied, and only run when BZ_INTEGRATION=1 is set.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool stays valid across the test session.
"""

import os
import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from src.main import app

ROOT_ADMIN = {
    "username": "bonz_root",
    "email": os.environ["ROOT_ADMIN_EMAIL"],
    "password": "RootPass123",
}


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.environ.get("BZ_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set BZ_INTEGRATION=1 to run against a live database")
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def register_and_login(client: AsyncClient, user: dict[str, str] | None = None) -> dict[str, str]:
    """Register (409 on reruns is fine) and return Authorization headers."""
    if user is None:
        uid = uuid.uuid4().hex[:8]
        user = {
            "username": f"bz_{uid}",
            "email": f"bz_{uid}@example.com",
            "password": "TestPass123",
        }
    await client.post("/api/v1/auth/register", json=user)
    resp = await client.post(
        "/api/v1/auth/login",
        json={"username": user["username"], "password": user["password"]},
    )
    return {"Authorization": f"Bearer {resp.json()['data']['access_token']}"}


@pytest.fixture
def login():
    """The register_and_login helper, for tests that need fresh users."""
    return register_and_login


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    return await register_and_login(client, ROOT_ADMIN)
