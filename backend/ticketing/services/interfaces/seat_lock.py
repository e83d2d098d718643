"""
Seat lock strategy interface.
Allows swapping between in-process and cross-process mutual exclusion.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator


class SeatLock(ABC):
    """
    Per-event mutual exclusion around inventory changes.

    Implementations:
    - LocalSeatLock: asyncio.Lock per event, single worker process
    - RedisSeatLock: named Redis lock per event, shared by all workers

    Holding the lock for an event serializes reserve, cancel and resize on
    that event. Different events never contend.

    acquire() returns a handle identifying this particular hold; release()
    takes it back, so a holder can only ever release its own lock.
    """

    @abstractmethod
    async def acquire(self, event_id: int) -> Any:
        """Block until the lock for event_id is held. Returns the hold's handle."""

    @abstractmethod
    async def release(self, event_id: int, handle: Any = None) -> None:
        """Release the hold identified by handle."""

    @asynccontextmanager
    async def hold(self, event_id: int) -> AsyncIterator[None]:
        handle = await self.acquire(event_id)
        try:
            yield
        finally:
            await self.release(event_id, handle)
