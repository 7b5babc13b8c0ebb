"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.bz_approval.api.router import router as approval_router
from src.bz_catalog.api.router import router as catalog_router
from src.bz_common.database import engine
from src.bz_common.errors import AppError
from src.bz_common.redis_client import close_redis
from src.bz_common.response import error_response
from src.bz_gateway.api.admin_router import router as admin_router
from src.bz_gateway.api.router import router as auth_router
from src.bz_gateway.middleware.rate_limit import RateLimitMiddleware
from src.bz_gateway.middleware.request_log import RequestLogMiddleware
from src.bz_notify.application.dispatch import drain_notifications
from src.bz_order.api.router import router as order_router
from src.bz_purchase.api.router import router as purchase_router
from src.bz_wallet.api.router import router as wallet_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the DB connection. Shutdown: flush queued notifications,
    then dispose DB + Redis pools.

    Redis is only needed by the rate limiter, which fails open, so it is not
    checked at startup.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    yield
    await drain_notifications(timeout=settings.NOTIFICATION_TIMEOUT_SECONDS)
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# Starlette runs the last-added middleware first: request ids exist before rate limiting
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(auth_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(wallet_router, prefix="/api/v1")
app.include_router(catalog_router, prefix="/api/v1")
app.include_router(order_router, prefix="/api/v1")
app.include_router(approval_router, prefix="/api/v1")
app.include_router(purchase_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
