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
from src.mk_common.database import async_session_factory, engine
from src.mk_common.errors import AppError
from src.mk_common.redis_client import close_redis, get_redis
from src.mk_common.response import error_response
from src.mk_gateway.api.router import router as account_router
from src.mk_gateway.middleware.request_log import RequestLogMiddleware, request_id_of
from src.mk_listing.api.router import router as listing_router
from src.mk_negotiation.api.router import listing_router as negotiation_router
from src.mk_negotiation.api.router import offer_router
from src.mk_negotiation.application.service import get_coordinator
from src.mk_negotiation.application.sweeper import AuctionSweeper

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the auction sweeper. Shutdown: reverse."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()

    sweeper = AuctionSweeper(
        get_coordinator(),
        async_session_factory,
        interval=settings.AUCTION_SWEEP_INTERVAL_SECONDS,
    )
    if settings.AUCTION_SWEEP_ENABLED:
        sweeper.start()
    yield
    await sweeper.stop()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("[%s] %s failed: %s", request.method, request.url.path, exc.message)
    resp = error_response(exc.code, exc.message)
    resp.request_id = request_id_of(request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(account_router, prefix="/api/v1")
app.include_router(listing_router, prefix="/api/v1")
app.include_router(negotiation_router, prefix="/api/v1")
app.include_router(offer_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
