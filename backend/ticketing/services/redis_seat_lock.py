"""
Redis-backed seat lock for deployments running several API workers.
Implements SeatLock using redis-py's Lock (SET NX PX with a token).

Failure policy:
  Unlike the list cache, the lock does not fail open. If Redis is down or the
  lock can't be taken within SEAT_LOCK_TIMEOUT the request fails as transient
  and the caller resubmits. The row lock in PostgreSQL still guards inventory,
  but we never silently drop a configured guard.
"""

from typing import Optional

from redis.asyncio.lock import Lock
from redis.exceptions import LockError, RedisError

from ticketing.core.config import get_settings
from ticketing.core.exceptions import StorageUnavailable
from ticketing.core.logging import get_logger
from ticketing.infrastructure.redis_client import get_redis
from ticketing.services.interfaces.seat_lock import SeatLock

logger = get_logger(__name__)
settings = get_settings()


class RedisSeatLock(SeatLock):
    """
    Named lock "seat-lock:{event_id}" shared through Redis.

    The lock expires after SEAT_LOCK_TIMEOUT seconds so a crashed worker
    can't wedge an event forever. Each hold gets its own redis Lock with its
    own token, and release() frees exactly that one: a holder whose lock
    expired can't release the lock a later holder has since taken.
    """

    async def acquire(self, event_id: int) -> Lock:
        client = await get_redis()
        if client is None:
            raise StorageUnavailable("Seat lock backend unavailable")

        lock = client.lock(
            f"seat-lock:{event_id}",
            timeout=settings.SEAT_LOCK_TIMEOUT,
            blocking_timeout=settings.SEAT_LOCK_TIMEOUT,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            logger.error("seat_lock_error", event_id=event_id, error=str(e))
            raise StorageUnavailable("Seat lock backend unavailable") from e

        if not acquired:
            logger.warning("seat_lock_timeout", event_id=event_id)
            raise StorageUnavailable("Event is busy, please try again")
        return lock

    async def release(self, event_id: int, handle: Optional[Lock] = None) -> None:
        if handle is None:
            raise ValueError("RedisSeatLock.release needs the handle returned by acquire")
        try:
            await handle.release()
        except LockError:
            # Expired before release; a later holder may own the key now and
            # this token no longer matches, so Redis leaves it alone.
            logger.warning("seat_lock_expired", event_id=event_id)
        except RedisError as e:
            # The key expires on its own after SEAT_LOCK_TIMEOUT
            logger.error("seat_lock_release_error", event_id=event_id, error=str(e))
