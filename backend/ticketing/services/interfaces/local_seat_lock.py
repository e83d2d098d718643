"""
In-process seat lock - one asyncio.Lock per event.
"""

import asyncio

from ticketing.services.interfaces.seat_lock import SeatLock


class LocalSeatLock(SeatLock):
    """
    Serializes inventory changes per event inside one process.

    Use when:
    - A single worker serves the API
    - The database ignores SELECT ... FOR UPDATE (SQLite)

    Locks are created lazily and dropped once no task holds or waits on them.
    """

    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}
        self._waiters: dict[int, int] = {}

    async def acquire(self, event_id: int) -> None:
        # One asyncio.Lock per event is its own identity; no handle needed
        lock = self._locks.setdefault(event_id, asyncio.Lock())
        self._waiters[event_id] = self._waiters.get(event_id, 0) + 1
        try:
            await lock.acquire()
        except BaseException:
            self._forget(event_id)
            raise

    async def release(self, event_id: int, handle=None) -> None:
        self._locks[event_id].release()
        self._forget(event_id)

    def _forget(self, event_id: int) -> None:
        self._waiters[event_id] -= 1
        if self._waiters[event_id] == 0:
            del self._waiters[event_id]
            del self._locks[event_id]

    def active_events(self) -> list[int]:
        return list(self._locks)
