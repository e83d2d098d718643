"""
Booking service with concurrency-safe seat reservation.

CONCURRENCY STRATEGY: Pessimistic Locking per Event
====================================================

Problem:
  Two users try to book the last seat simultaneously.
  Both read available_seats=1, both decrement to 0, both succeed.
  Result: Overbooking.

Solution:
  Every inventory change on an event runs inside the event's seat lock and
  reads the event row with SELECT ... FOR UPDATE:

  1. Acquire the seat lock for the event (asyncio or Redis, see SeatLock)
  2. SELECT the event FOR UPDATE inside the transaction
  3. Check quantity <= available_seats
  4. INSERT the booking and decrement available_seats
  5. COMMIT, release the lock, then publish to the real-time channel

  The check and the decrement happen under the same lock, so concurrent
  requests for one event serialize and the loser sees the updated count.
  Requests for different events never wait on each other. There is no
  automatic retry: a request that finds too few seats fails with
  InsufficientInventory and the client resubmits.

  On PostgreSQL the row lock alone is enough across workers; the seat lock
  gives the same guarantee on SQLite, which ignores FOR UPDATE. The DB CHECK
  constraints (0 <= available_seats <= total_seats) are the final safety net.

Publishing happens after the commit and can't undo it. A viewer that misses
a message re-fetches on its next load.
"""

import time
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from ticketing.core.config import get_settings
from ticketing.core.exceptions import (
    AlreadyCancelled,
    Conflict,
    InsufficientInventory,
    NotFound,
    StorageUnavailable,
    ValidationFailed,
)
from ticketing.core.logging import get_logger
from ticketing.core.metrics import booking_latency, record_booking_attempt, record_cancellation
from ticketing.db.session import atomic
from ticketing.models.booking import Booking, BookingStatus
from ticketing.realtime import get_publisher
from ticketing.schemas.booking import BookingDetailResponse
from ticketing.services.cache_service import invalidate_event_cache
from ticketing.services.event_service import confirmed_seat_count, lock_event
from ticketing.services.strategy_factory import get_seat_lock

logger = get_logger(__name__)
settings = get_settings()

MAX_CODE_ATTEMPTS = 5


def generate_booking_code(prefix: str = settings.BOOKING_CODE_PREFIX) -> str:
    """<PREFIX>-<first 8 hex digits of a uuid4, uppercase>, e.g. EVT-3F9A01BC."""
    return f"{prefix}-{uuid.uuid4().hex[:8].upper()}"


def _validate_request(name: str, email: str, mobile: str, quantity: int) -> None:
    missing = [
        field
        for field, value in (("name", name), ("email", email), ("mobile", mobile))
        if not value or not str(value).strip()
    ]
    if missing:
        raise ValidationFailed(f"Missing required fields: {', '.join(missing)}")

    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationFailed("Quantity must be a positive integer")

    if quantity > settings.MAX_TICKETS_PER_BOOKING:
        raise ValidationFailed(
            f"At most {settings.MAX_TICKETS_PER_BOOKING} tickets can be booked at once"
        )


async def _unused_booking_code(db: AsyncSession) -> str:
    for _ in range(MAX_CODE_ATTEMPTS):
        code = generate_booking_code()
        taken = await db.scalar(select(Booking.id).where(Booking.booking_code == code))
        if taken is None:
            return code
        logger.warning("booking_code_collision", code=code)
    raise Conflict("Could not allocate a booking code, please try again")


async def reserve_seats(
    db: AsyncSession,
    event_id: int,
    name: str,
    email: str,
    mobile: str,
    quantity: int,
) -> Booking:
    """
    Reserve quantity seats on an event and write the confirmed booking.

    Raises ValidationFailed before touching the database, NotFound for an
    unknown event, InsufficientInventory when fewer seats remain, and
    StorageUnavailable when the database or lock backend fails.
    """
    _validate_request(name, email, mobile, quantity)

    started = time.perf_counter()
    try:
        async with get_seat_lock().hold(event_id):
            async with atomic(db):
                event = await lock_event(db, event_id)

                if quantity > event.available_seats:
                    logger.warning(
                        "booking_rejected",
                        event_id=event_id,
                        requested=quantity,
                        available=event.available_seats,
                    )
                    raise InsufficientInventory(event.available_seats)

                booking = Booking(
                    event=event,
                    name=name.strip(),
                    email=email.strip(),
                    mobile=mobile.strip(),
                    quantity=quantity,
                    total_amount=Decimal(event.price) * quantity,
                    booking_code=await _unused_booking_code(db),
                    status=BookingStatus.CONFIRMED.value,
                )
                db.add(booking)
                event.available_seats -= quantity
    except (NotFound, InsufficientInventory, Conflict):
        record_booking_attempt("rejected")
        raise
    except StorageUnavailable:
        record_booking_attempt("error")
        raise
    finally:
        booking_latency.observe(time.perf_counter() - started)

    record_booking_attempt("success")
    logger.info(
        "booking_created",
        booking_id=booking.id,
        booking_code=booking.booking_code,
        event_id=event_id,
        seats=quantity,
        available=event.available_seats,
    )

    # Viewers re-fetch the list when a push arrives, so drop it first
    await invalidate_event_cache()
    publisher = get_publisher()
    await publisher.seat_update(event_id, event.available_seats)
    await publisher.booking_created(BookingDetailResponse.from_booking(booking).model_dump(mode="json"))
    return booking


async def cancel_booking(db: AsyncSession, booking_id: int) -> None:
    """
    Cancel a confirmed booking and release its seats back to the event.

    Cancelling twice is an error (AlreadyCancelled), not a no-op. Seats are
    restored as total_seats - confirmed seats after the cancellation, which
    equals available + quantity unless the event was shrunk below its sales.
    """
    try:
        # Short read to find the event; committed before waiting on its lock
        async with atomic(db):
            event_id = await db.scalar(select(Booking.event_id).where(Booking.id == booking_id))
            if event_id is None:
                raise NotFound(f"Booking {booking_id} not found")

        async with get_seat_lock().hold(event_id):
            async with atomic(db):
                booking = await db.scalar(
                    select(Booking)
                    .where(Booking.id == booking_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
                if booking.is_cancelled:
                    logger.warning("cancel_rejected", booking_id=booking_id, reason="already_cancelled")
                    raise AlreadyCancelled(booking_id)

                event = await lock_event(db, event_id)
                booking.status = BookingStatus.CANCELLED.value
                await db.flush()

                booked = await confirmed_seat_count(db, event_id)
                event.available_seats = max(0, event.total_seats - booked)
    except (NotFound, AlreadyCancelled):
        record_cancellation("rejected")
        raise
    except StorageUnavailable:
        record_cancellation("error")
        raise

    record_cancellation("success")
    logger.info(
        "booking_cancelled",
        booking_id=booking_id,
        event_id=event_id,
        seats_restored=booking.quantity,
        available=event.available_seats,
    )
    await invalidate_event_cache()
    await get_publisher().seat_update(event_id, event.available_seats)


async def get_booking_by_code(db: AsyncSession, booking_code: str) -> Booking:
    """Exact, case-sensitive lookup on the public booking code."""
    booking = await db.scalar(
        select(Booking)
        .options(joinedload(Booking.event))
        .where(Booking.booking_code == booking_code)
    )
    if not booking:
        raise NotFound("Booking not found")
    return booking


async def list_bookings(db: AsyncSession) -> list[Booking]:
    """All bookings with their event, newest first."""
    result = await db.execute(
        select(Booking)
        .options(joinedload(Booking.event))
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def list_event_bookings(db: AsyncSession, event_id: int) -> list[Booking]:
    """Confirmed bookings for one event, newest first."""
    result = await db.execute(
        select(Booking)
        .where(
            Booking.event_id == event_id,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())
