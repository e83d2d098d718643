"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from ticketing.core.config import get_settings

settings = get_settings()


class BookingCreate(BaseModel):
    event_id: int
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    mobile: str = Field(..., min_length=1, max_length=32)
    quantity: int = Field(..., gt=0, le=settings.MAX_TICKETS_PER_BOOKING)


class BookingResponse(BaseModel):
    id: int
    event_id: int
    name: str
    email: str
    mobile: str
    quantity: int
    total_amount: Decimal
    booking_code: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingDetailResponse(BookingResponse):
    """Booking joined with the event fields a ticket or dashboard shows."""

    event_title: str
    event_date: datetime
    event_location: str
    event_image_url: Optional[str] = None

    @classmethod
    def from_booking(cls, booking) -> "BookingDetailResponse":
        event = booking.event
        base = BookingResponse.model_validate(booking).model_dump()
        return cls(
            **base,
            event_title=event.title,
            event_date=event.date,
            event_location=event.location,
            event_image_url=event.image_url,
        )


class BookingCancelResponse(BaseModel):
    message: str
    booking_id: int
