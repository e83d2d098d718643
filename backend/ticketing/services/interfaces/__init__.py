"""
Seat lock interface and the in-process implementation.
The Redis implementation lives in services.redis_seat_lock.
"""

from .seat_lock import SeatLock
from .local_seat_lock import LocalSeatLock

__all__ = ['SeatLock', 'LocalSeatLock']
