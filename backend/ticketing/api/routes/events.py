"""
Event endpoints with Redis caching on list operations.
Create/update/delete are admin operations and are not authenticated.
"""

from datetime import date as date_type, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.db.session import get_db
from ticketing.schemas.event import (
    EventCreate,
    EventDeleteResponse,
    EventFilters,
    EventResponse,
    EventUpdate,
)
from ticketing.services.event_service import (
    create_event,
    delete_event,
    get_event,
    list_events,
    update_event,
)
from ticketing.services.cache_service import get_cached_events, set_cached_events
from ticketing.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/", response_model=list[EventResponse])
async def list_events_endpoint(
    search: Optional[str] = Query(None, description="Substring of title or description"),
    location: Optional[str] = Query(None, description="Substring of location"),
    date: Optional[date_type] = Query(None, description="Exact calendar day"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    List events ordered by date ascending.
    Results are cached in Redis per filter set for 5 minutes and invalidated
    on every event change, booking or cancellation.
    """
    filters = EventFilters(
        search=search,
        location=location,
        date=date,
        start_date=start_date,
        end_date=end_date,
    )

    cached = await get_cached_events(filters)
    if cached is not None:
        logger.info("events_list_cache_hit", filters=filters.cache_key())
        return cached

    events = await list_events(db, filters)
    response_data = [EventResponse.model_validate(e).model_dump(mode="json") for e in events]
    await set_cached_events(filters, response_data)
    return response_data


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Get a single event by ID. Not cached (needs real-time seat counts)."""
    return await get_event(db, event_id)


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(event_data: EventCreate, db: AsyncSession = Depends(get_db)):
    """Create a new event. total_seats defaults to 100, price to 0."""
    event = await create_event(db, event_data)
    return event


@router.put("/{event_id}", response_model=EventResponse)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Partially update an event. Changing total_seats recomputes available_seats."""
    event = await update_event(db, event_id, event_data)
    return event


@router.delete("/{event_id}", response_model=EventDeleteResponse)
async def delete_event_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Delete an event. Refused with 409 once the event has any booking."""
    await delete_event(db, event_id)
    return EventDeleteResponse(message="Event deleted successfully", id=event_id)
