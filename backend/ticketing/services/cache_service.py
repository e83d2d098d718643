"""
Redis caching service for event listings.

CACHING STRATEGY
================

What we cache:
  - Event listing responses (JSON-serialized), one entry per filter set
  - Cache key pattern: "events:list:{sorted filter query}"

Invalidation strategy:
  - On booking or cancellation: delete all list keys (available_seats changed)
  - On event create/update/delete: delete all list keys
  - TTL-based expiry as safety net (5 minutes)

  All list keys share the "events:list:" prefix so we can SCAN and delete them.

Why NOT cache individual events:
  - The event detail page needs the live seat count
  - Seat counts also arrive over the WebSocket, a stale detail would flicker

Cache failures are logged and treated as misses; Redis is never authoritative.
"""

import json
from typing import Optional

from redis.exceptions import RedisError

from ticketing.core.config import get_settings
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_cache_operation
from ticketing.infrastructure.redis_client import get_redis
from ticketing.schemas.event import EventFilters

logger = get_logger(__name__)
settings = get_settings()

EVENT_LIST_PREFIX = "events:list:"


def _make_event_list_key(filters: EventFilters) -> str:
    return f"{EVENT_LIST_PREFIX}{filters.cache_key()}"


async def get_cached_events(filters: EventFilters) -> Optional[list[dict]]:
    """Retrieve a cached event list response."""
    client = await get_redis()
    if not client:
        return None

    key = _make_event_list_key(filters)
    try:
        data = await client.get(key)
    except RedisError as e:
        record_cache_operation("get", "error")
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", "hit" if data is not None else "miss")
    if data:
        logger.debug("cache_hit", key=key)
        return json.loads(data)
    logger.debug("cache_miss", key=key)
    return None


async def set_cached_events(filters: EventFilters, data: list[dict]) -> None:
    """Cache an event list response with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_event_list_key(filters)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        record_cache_operation("set", "ok")
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except RedisError as e:
        record_cache_operation("set", "error")
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_event_cache() -> None:
    """
    Invalidate all cached event listings.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        keys = [key async for key in client.scan_iter(match=f"{EVENT_LIST_PREFIX}*", count=100)]
        if keys:
            await client.delete(*keys)
        record_cache_operation("invalidate", "ok")
        logger.info("cache_invalidated", keys_deleted=len(keys))
    except RedisError as e:
        record_cache_operation("invalidate", "error")
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except RedisError as e:
        return {"status": "error", "error": str(e)}
