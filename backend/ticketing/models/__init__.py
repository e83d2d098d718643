from ticketing.models.event import Event
from ticketing.models.booking import Booking, BookingStatus

__all__ = ["Event", "Booking", "BookingStatus"]
