"""
Event service handling the inventory read surface and admin CRUD.

Resizing an event changes seat inventory, so updates take the same per-event
seat lock and row lock as reservations do.
"""

from datetime import datetime, time, timedelta, timezone

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.config import get_settings
from ticketing.core.exceptions import Conflict, NotFound
from ticketing.core.logging import get_logger
from ticketing.db.session import atomic
from ticketing.models.booking import Booking, BookingStatus
from ticketing.models.event import Event
from ticketing.realtime import get_publisher
from ticketing.schemas.event import EventCreate, EventFilters, EventResponse, EventUpdate
from ticketing.services.cache_service import invalidate_event_cache
from ticketing.services.strategy_factory import get_seat_lock

logger = get_logger(__name__)
settings = get_settings()


def _event_payload(event: Event) -> dict:
    return EventResponse.model_validate(event).model_dump(mode="json")


async def confirmed_seat_count(db: AsyncSession, event_id: int) -> int:
    """Sum of quantities over the event's confirmed bookings."""
    total = await db.scalar(
        select(func.coalesce(func.sum(Booking.quantity), 0)).where(
            Booking.event_id == event_id,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
    )
    return int(total)


async def lock_event(db: AsyncSession, event_id: int) -> Event:
    """Read the event row with a write lock held until the transaction ends."""
    event = await db.scalar(
        select(Event)
        .where(Event.id == event_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    if not event:
        raise NotFound(f"Event {event_id} not found")
    return event


async def create_event(db: AsyncSession, event_data: EventCreate) -> Event:
    """Create a new event with full seat availability."""
    seats = event_data.total_seats or settings.DEFAULT_TOTAL_SEATS
    event = Event(
        title=event_data.title,
        description=event_data.description,
        location=event_data.location,
        date=event_data.date,
        total_seats=seats,
        available_seats=seats,  # All seats available initially
        price=event_data.price,
        image_url=event_data.image_url,
    )
    async with atomic(db):
        db.add(event)

    logger.info("event_created", event_id=event.id, title=event.title, seats=seats)
    await invalidate_event_cache()
    await get_publisher().event_created(_event_payload(event))
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    event = await db.get(Event, event_id)
    if not event:
        raise NotFound(f"Event {event_id} not found")
    return event


async def list_events(db: AsyncSession, filters: EventFilters) -> list[Event]:
    """
    List events ordered by date ascending.

    search matches title or description, location is a substring match,
    date selects one calendar day (UTC) and start_date/end_date bound the
    range inclusively. Every filter is optional.
    """
    query = select(Event)

    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.where(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))

    if filters.location:
        query = query.where(Event.location.ilike(f"%{filters.location}%"))

    if filters.date:
        day_start = datetime.combine(filters.date, time.min, tzinfo=timezone.utc)
        query = query.where(Event.date >= day_start, Event.date < day_start + timedelta(days=1))

    if filters.start_date:
        query = query.where(Event.date >= filters.start_date)

    if filters.end_date:
        query = query.where(Event.date <= filters.end_date)

    # Uses ix_events_date
    result = await db.execute(query.order_by(Event.date.asc(), Event.id.asc()))
    return list(result.scalars().all())


async def update_event(db: AsyncSession, event_id: int, event_data: EventUpdate) -> Event:
    """
    Apply a partial update. Omitted (or null) fields keep their value.

    When total_seats changes, available_seats is recomputed from the ledger:
    max(0, new_total - confirmed seats). Shrinking below what's already sold
    leaves the event sold out rather than negative.
    """
    changes = event_data.model_dump(exclude_none=True)
    new_total = changes.pop("total_seats", None)

    async with get_seat_lock().hold(event_id):
        async with atomic(db):
            event = await lock_event(db, event_id)
            for field, value in changes.items():
                setattr(event, field, value)

            if new_total is not None and new_total != event.total_seats:
                booked = await confirmed_seat_count(db, event_id)
                event.total_seats = new_total
                event.available_seats = max(0, new_total - booked)
                logger.info(
                    "event_resized",
                    event_id=event_id,
                    total_seats=new_total,
                    booked=booked,
                    available=event.available_seats,
                )

    logger.info("event_updated", event_id=event_id, fields=sorted(event_data.model_fields_set))
    await invalidate_event_cache()
    await get_publisher().event_updated(_event_payload(event))
    return event


async def delete_event(db: AsyncSession, event_id: int) -> None:
    """
    Delete an event that has never been booked.

    Bookings are never deleted, so an event referenced by any booking
    (confirmed or cancelled) is kept to avoid orphaning the ledger.
    """
    async with get_seat_lock().hold(event_id):
        async with atomic(db):
            event = await lock_event(db, event_id)
            booking_count = await db.scalar(
                select(func.count()).select_from(Booking).where(Booking.event_id == event_id)
            )
            if booking_count:
                logger.warning("event_delete_refused", event_id=event_id, bookings=booking_count)
                raise Conflict(
                    f"Event {event_id} has {booking_count} booking(s) and cannot be deleted"
                )
            await db.delete(event)

    logger.info("event_deleted", event_id=event_id)
    await invalidate_event_cache()
    await get_publisher().event_deleted(event_id)
