"""
Booking endpoints with concurrency-safe seat reservation.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.db.session import get_db
from ticketing.schemas.booking import (
    BookingCancelResponse,
    BookingCreate,
    BookingDetailResponse,
    BookingResponse,
)
from ticketing.services.booking_service import (
    cancel_booking,
    get_booking_by_code,
    list_bookings,
    list_event_bookings,
    reserve_seats,
)
from ticketing.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(booking_data: BookingCreate, db: AsyncSession = Depends(get_db)):
    """
    Book seats for an event.

    Concurrent requests for the same event are serialized on the event's
    lock. When fewer seats remain than requested the response is 409 with
    the remaining count in the message; nothing is retried server-side.
    """
    booking = await reserve_seats(
        db,
        event_id=booking_data.event_id,
        name=booking_data.name,
        email=booking_data.email,
        mobile=booking_data.mobile,
        quantity=booking_data.quantity,
    )
    return BookingDetailResponse.from_booking(booking)


@router.put("/{booking_id}/cancel", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(booking_id: int, db: AsyncSession = Depends(get_db)):
    """Cancel a booking and release seats back to the event."""
    await cancel_booking(db, booking_id)
    return BookingCancelResponse(message="Booking cancelled successfully", booking_id=booking_id)


@router.get("/", response_model=list[BookingDetailResponse])
async def list_bookings_endpoint(db: AsyncSession = Depends(get_db)):
    """Admin view: every booking with its event, newest first."""
    bookings = await list_bookings(db)
    return [BookingDetailResponse.from_booking(b) for b in bookings]


@router.get("/code/{booking_code}", response_model=BookingDetailResponse)
async def get_booking_by_code_endpoint(booking_code: str, db: AsyncSession = Depends(get_db)):
    """Look up a ticket by its booking code (exact match)."""
    booking = await get_booking_by_code(db, booking_code)
    return BookingDetailResponse.from_booking(booking)


@router.get("/event/{event_id}", response_model=list[BookingResponse])
async def list_event_bookings_endpoint(event_id: int, db: AsyncSession = Depends(get_db)):
    """Confirmed bookings for one event, newest first."""
    return await list_event_bookings(db, event_id)
