"""Per-IP rate limiting backed by Redis.

Fixed 60-second window counted with INCR + EXPIRE under
"ratelimit:{ip}:{minute}". A client that goes past
RATE_LIMIT_BLOCK_THRESHOLD requests in one window is blocked outright for
RATE_LIMIT_BLOCK_SECONDS ("ratelimit:block:{ip}").

Redis outages fail open: requests pass and a warning is logged.
"""

import logging
import time

from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from config.settings import settings
from src.bz_common.errors import RateLimitError
from src.bz_common.redis_client import get_redis
from src.bz_common.response import error_response

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60
_EXEMPT_PATHS = frozenset({"/health", "/docs", "/openapi.json"})


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _limited(request: Request, retry_after: int) -> JSONResponse:
    exc = RateLimitError()
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
        headers={"Retry-After": str(retry_after)},
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not settings.RATE_LIMIT_ENABLED or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        ip = client_ip(request)
        try:
            retry_after = await self._check(ip)
        except RedisError as exc:
            logger.warning("Rate limiter unavailable, allowing request from %s: %s", ip, exc)
            retry_after = None

        if retry_after is not None:
            return _limited(request, retry_after)
        return await call_next(request)

    async def _check(self, ip: str) -> int | None:
        """Return seconds to wait when the request must be refused, else None."""
        redis = await get_redis()
        block_key = f"ratelimit:block:{ip}"
        ttl = await redis.ttl(block_key)
        if ttl and ttl > 0:
            return ttl

        window = int(time.time() // _WINDOW_SECONDS)
        key = f"ratelimit:{ip}:{window}"
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, _WINDOW_SECONDS)

        if count > settings.RATE_LIMIT_BLOCK_THRESHOLD:
            await redis.set(block_key, "1", ex=settings.RATE_LIMIT_BLOCK_SECONDS)
            logger.warning("Blocking %s for %ds after %d requests", ip,
                           settings.RATE_LIMIT_BLOCK_SECONDS, count)
            return settings.RATE_LIMIT_BLOCK_SECONDS
        if count > settings.RATE_LIMIT_PER_MINUTE:
            return _WINDOW_SECONDS - int(time.time()) % _WINDOW_SECONDS
        return None
