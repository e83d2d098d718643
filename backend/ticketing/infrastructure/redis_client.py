"""
Shared asyncio Redis client for the list cache and the redis seat lock.
Returns None when Redis is disabled or unreachable so callers can degrade.
"""

from typing import Optional

import redis.asyncio as redis

from ticketing.core.config import get_settings
from ticketing.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except redis.RedisError as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        logger.info("redis_connected", url=settings.REDIS_URL)
        _redis_client = client

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
