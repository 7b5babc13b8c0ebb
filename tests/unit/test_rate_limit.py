"""Unit tests for RateLimitMiddleware with a mocked Redis."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from src.bz_gateway.middleware import rate_limit
from src.bz_gateway.middleware.rate_limit import RateLimitMiddleware, client_ip


def _redis(count: int = 1, block_ttl: int = -2) -> AsyncMock:
    redis = AsyncMock()
    redis.ttl.return_value = block_ttl
    redis.incr.return_value = count
    return redis


@pytest.fixture
def limits():
    with patch.object(rate_limit.settings, "RATE_LIMIT_ENABLED", True), \
            patch.object(rate_limit.settings, "RATE_LIMIT_PER_MINUTE", 5), \
            patch.object(rate_limit.settings, "RATE_LIMIT_BLOCK_THRESHOLD", 10), \
            patch.object(rate_limit.settings, "RATE_LIMIT_BLOCK_SECONDS", 300):
        yield


@pytest.fixture
async def limited_client(limits) -> AsyncClient:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware)

    @app.get("/ping")
    async def ping() -> dict[str, str]:
        return {"pong": "ok"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class TestCheck:
    async def test_first_request_sets_window_expiry(self, limits) -> None:
        redis = _redis(count=1)
        with patch.object(rate_limit, "get_redis", AsyncMock(return_value=redis)):
            assert await RateLimitMiddleware(MagicMock())._check("1.2.3.4") is None
        redis.expire.assert_awaited_once()
        assert redis.incr.await_args.args[0].startswith("ratelimit:1.2.3.4:")

    async def test_over_minute_limit(self, limits) -> None:
        with patch.object(rate_limit, "get_redis", AsyncMock(return_value=_redis(count=6))):
            retry_after = await RateLimitMiddleware(MagicMock())._check("1.2.3.4")
        assert retry_after is not None
        assert 1 <= retry_after <= 60

    async def test_over_block_threshold_blocks(self, limits) -> None:
        redis = _redis(count=11)
        with patch.object(rate_limit, "get_redis", AsyncMock(return_value=redis)):
            assert await RateLimitMiddleware(MagicMock())._check("1.2.3.4") == 300
        redis.set.assert_awaited_once_with("ratelimit:block:1.2.3.4", "1", ex=300)

    async def test_blocked_ip_skips_counter(self, limits) -> None:
        redis = _redis(block_ttl=120)
        with patch.object(rate_limit, "get_redis", AsyncMock(return_value=redis)):
            assert await RateLimitMiddleware(MagicMock())._check("1.2.3.4") == 120
        redis.incr.assert_not_awaited()


class TestDispatch:
    async def test_limited_request_gets_429_envelope(self, limited_client: AsyncClient) -> None:
        with patch.object(rate_limit, "get_redis", AsyncMock(return_value=_redis(count=6))):
            resp = await limited_client.get("/ping")
        assert resp.status_code == 429
        assert resp.json()["code"] == 9001
        assert int(resp.headers["Retry-After"]) > 0

    async def test_under_limit_passes(self, limited_client: AsyncClient) -> None:
        with patch.object(rate_limit, "get_redis", AsyncMock(return_value=_redis(count=2))):
            resp = await limited_client.get("/ping")
        assert resp.status_code == 200

    async def test_health_exempt(self, limited_client: AsyncClient) -> None:
        get_redis = AsyncMock()
        with patch.object(rate_limit, "get_redis", get_redis):
            resp = await limited_client.get("/health")
        assert resp.status_code == 200
        get_redis.assert_not_awaited()

    async def test_redis_outage_fails_open(self, limited_client: AsyncClient) -> None:
        redis = _redis()
        redis.ttl.side_effect = RedisConnectionError("refused")
        with patch.object(rate_limit, "get_redis", AsyncMock(return_value=redis)):
            resp = await limited_client.get("/ping")
        assert resp.status_code == 200


class TestClientIp:
    def test_forwarded_for_first_hop(self) -> None:
        request = MagicMock()
        request.headers = {"x-forwarded-for": "203.0.113.7, 10.0.0.1"}
        assert client_ip(request) == "203.0.113.7"

    def test_socket_peer(self) -> None:
        request = MagicMock()
        request.headers = {}
        request.client.host = "10.1.1.1"
        assert client_ip(request) == "10.1.1.1"
