"""
Error taxonomy for the ticketing core.

Services raise these; the API layer turns them into
{"error": {"kind": ..., "message": ...}} responses with the matching status.
"""

from fastapi import status


class TicketingError(Exception):
    kind = "unknown"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationFailed(TicketingError):
    """Missing or malformed input, rejected before any transaction opens."""

    kind = "validation"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(TicketingError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InsufficientInventory(TicketingError):
    kind = "insufficient_inventory"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, available: int):
        self.available = available
        super().__init__(f"Only {available} seats available")


class AlreadyCancelled(TicketingError):
    kind = "already_cancelled"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, booking_id: int):
        self.booking_id = booking_id
        super().__init__("Booking already cancelled")


class Conflict(TicketingError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class StorageUnavailable(TicketingError):
    """Database or lock backend failed; the caller may resubmit."""

    kind = "transient"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
