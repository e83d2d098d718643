"""
Event Ticketing API entry point.

    uvicorn ticketing.main:app --reload

Seats are reserved under a per-event lock with SELECT ... FOR UPDATE, seat
counts are pushed to WebSocket viewers after every commit, and event listings
are cached in Redis until the next inventory change.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ticketing.api.errors import register_exception_handlers
from ticketing.api.middleware import RequestLoggingMiddleware
from ticketing.api.router import api_router
from ticketing.api.routes import realtime as realtime_routes
from ticketing.core.config import get_settings
from ticketing.core.logging import get_logger, setup_logging
from ticketing.core.metrics import metrics_endpoint
from ticketing.db.session import engine
from ticketing.infrastructure.redis_client import close_redis, get_redis
from ticketing.realtime import get_registry
from ticketing.services.cache_service import get_cache_stats

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(
        "application_starting",
        version=settings.APP_VERSION,
        seat_lock=settings.SEAT_LOCK_BACKEND,
        max_tickets=settings.MAX_TICKETS_PER_BOOKING,
    )

    if await get_redis() is None:
        logger.warning("redis_unavailable", message="Event lists will not be cached")

    yield

    await close_redis()
    await engine.dispose()
    logger.info("application_shutdown", open_viewers=get_registry().connection_count)


async def _database_ok() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error("health_database_error", error=str(e))
        return False


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Browse events, book seats and follow live seat counts",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )
    application.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(application)

    application.include_router(api_router)
    application.include_router(realtime_routes.router)

    @application.get("/health", tags=["Health"])
    async def health_check():
        """Liveness plus database, cache and viewer status for load balancers."""
        database_ok = await _database_ok()
        return {
            "status": "healthy" if database_ok else "degraded",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "database": "connected" if database_ok else "error",
            "cache": await get_cache_stats(),
            "realtime_connections": get_registry().connection_count,
        }

    @application.get("/metrics", tags=["Health"], include_in_schema=False)
    async def metrics():
        return metrics_endpoint()

    @application.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "realtime": "/ws",
        }

    return application


app = create_app()
