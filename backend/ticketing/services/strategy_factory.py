"""
Seat lock strategy factory.
Configures which mutual-exclusion strategy guards inventory changes.
"""

from typing import Optional

from ticketing.services.interfaces.seat_lock import SeatLock
from ticketing.services.interfaces.local_seat_lock import LocalSeatLock
from ticketing.services.redis_seat_lock import RedisSeatLock
from ticketing.core.config import get_settings


def get_seat_lock_strategy() -> SeatLock:
    """
    Build the configured seat lock.

    - local: one asyncio.Lock per event (single worker, SQLite, tests)
    - redis: shared Redis lock per event (several workers)

    Selected by the SEAT_LOCK_BACKEND env var.
    """
    strategy = get_settings().SEAT_LOCK_BACKEND

    if strategy == 'redis':
        return RedisSeatLock()
    return LocalSeatLock()


# Singleton instance
_strategy: Optional[SeatLock] = None


def get_seat_lock() -> SeatLock:
    """Get seat lock singleton."""
    global _strategy
    if _strategy is None:
        _strategy = get_seat_lock_strategy()
    return _strategy
