"""
Fire-and-forget publisher used by the services after a commit.

A failed publish is logged and dropped. It never propagates to the caller,
so a committed booking is never reported as failed because of the push
channel.
"""

import enum
from typing import Optional

from ticketing.core.logging import get_logger
from ticketing.core.metrics import realtime_publish_failures
from ticketing.realtime.registry import ConnectionRegistry

logger = get_logger(__name__)


class MessageKind(str, enum.Enum):
    EVENT_CREATED = "eventCreated"
    EVENT_UPDATED = "eventUpdated"
    EVENT_DELETED = "eventDeleted"
    SEAT_UPDATE = "seatUpdate"
    BOOKING_CREATED = "bookingCreated"


class EventPublisher:
    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    async def event_created(self, event: dict) -> None:
        await self._publish(MessageKind.EVENT_CREATED, event)

    async def event_updated(self, event: dict) -> None:
        await self._publish(MessageKind.EVENT_UPDATED, event)

    async def event_deleted(self, event_id: int) -> None:
        await self._publish(MessageKind.EVENT_DELETED, {"id": event_id})

    async def seat_update(self, event_id: int, available_seats: int) -> None:
        await self._publish(
            MessageKind.SEAT_UPDATE,
            {"eventId": event_id, "availableSeats": available_seats},
            event_id=event_id,
        )

    async def booking_created(self, booking: dict) -> None:
        await self._publish(MessageKind.BOOKING_CREATED, booking)

    async def _publish(self, kind: MessageKind, data: dict, event_id: Optional[int] = None) -> None:
        try:
            delivered = await self.registry.publish(kind.value, data, event_id=event_id)
        except Exception:
            realtime_publish_failures.inc()
            logger.exception("realtime_publish_failed", kind=kind.value, event_id=event_id)
            return
        logger.debug("realtime_published", kind=kind.value, delivered=delivered)
