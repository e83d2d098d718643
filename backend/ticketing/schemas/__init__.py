from ticketing.schemas.event import EventCreate, EventUpdate, EventResponse, EventFilters
from ticketing.schemas.booking import (
    BookingCreate,
    BookingResponse,
    BookingDetailResponse,
    BookingCancelResponse,
)

__all__ = [
    "EventCreate", "EventUpdate", "EventResponse", "EventFilters",
    "BookingCreate", "BookingResponse", "BookingDetailResponse", "BookingCancelResponse",
]
