"""Shared test fixtures."""

import os

# Settings are read at import time; unit tests need no .env, Redis or rate limiting.
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ROOT_ADMIN_EMAIL", "root@bonz.vn")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.bz_notify.application.dispatch import drain_notifications  # noqa: E402
from src.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(autouse=True)
async def _drain_notifications() -> None:
    """Let deliveries started by a test finish inside that test's event loop."""
    yield
    await drain_notifications()

