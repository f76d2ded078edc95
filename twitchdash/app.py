"""FastAPI application factory"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from twitchdash.core.config import get_settings
from twitchdash.core.database import (
    DatabaseManager,
    get_database_manager,
    init_database_manager,
)
from twitchdash.core.dependencies import close_twitch_api
from twitchdash.core.logging import setup_logging
from twitchdash.routers import stats_router, twitch_router

logger = logging.getLogger(__name__)

_start_time: float = 0.0
_db_retry_task: asyncio.Task | None = None


async def _db_retry_loop(db_manager: DatabaseManager) -> None:
    """Keep trying to connect after a failed startup, backing off up to a minute."""
    delay = 5
    while not db_manager.is_connected:
        await asyncio.sleep(delay)
        try:
            await db_manager.connect()
            logger.info("Database connected (background retry)")
        except Exception as e:
            delay = min(delay * 2, 60)
            logger.warning(f"DB background retry failed: {type(e).__name__}: {e}, next in {delay}s")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown"""
    global _start_time, _db_retry_task
    _start_time = time.time()

    settings = get_settings()

    logger.info("Starting twitchdash API server")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Twitch redirect URI: {settings.twitch_redirect_uri}")

    # Requests that arrive before the pool is ready get 503 (or a redirect on the callback)
    db_manager = init_database_manager(settings.database_url)
    try:
        await asyncio.wait_for(db_manager.connect(), timeout=30)
        logger.info("Database connected")
    except TimeoutError:
        logger.warning("DB connection timed out during startup, retrying in background")
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager))
    except Exception as e:
        logger.error(
            f"DB connection failed during startup: {type(e).__name__}: {e}, retrying in background"
        )
        _db_retry_task = asyncio.create_task(_db_retry_loop(db_manager))

    yield

    logger.info("Shutting down twitchdash API server")
    if _db_retry_task:
        _db_retry_task.cancel()
    try:
        await close_twitch_api()
        await db_manager.disconnect()
        logger.info("Database disconnected")
    except Exception as e:
        logger.exception(f"Error during shutdown: {e}")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    settings = get_settings()

    setup_logging(settings)

    app = FastAPI(
        title="twitchdash API",
        description="Twitch account linking and stream statistics for the streamer dashboard",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(twitch_router.router)
    app.include_router(stats_router.router)

    @app.get("/health")
    async def health():
        """Liveness check (no DB dependency)"""
        return {
            "status": "healthy",
            "uptime_seconds": int(time.time() - _start_time),
        }

    @app.get("/status")
    async def status():
        """Readiness check, includes an actual DB round trip"""
        try:
            db_ok = await get_database_manager().check_health()
        except RuntimeError:
            db_ok = False
        return {
            "service": "twitchdash",
            "version": "1.0.0",
            "uptime_seconds": int(time.time() - _start_time),
            "db_connected": db_ok,
            "environment": settings.environment,
        }

    @app.api_route("/ping", methods=["GET", "HEAD"], response_class=PlainTextResponse)
    async def ping():
        return "pong"

    logger.info("FastAPI application configured")

    return app
