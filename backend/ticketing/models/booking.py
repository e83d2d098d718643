"""
Booking model: one row in the ledger per reservation.

Key design decisions:
- Status flips confirmed -> cancelled and never back; rows are never deleted
- total_amount is frozen at reservation time, later price edits don't touch it
- booking_code is the public lookup key, unique across the ledger
"""

import enum

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, CheckConstraint, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from ticketing.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    mobile = Column(String(32), nullable=False)
    quantity = Column(Integer, nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    booking_code = Column(String(32), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)

    event = relationship("Event", lazy="raise")

    __table_args__ = (
        UniqueConstraint("booking_code", name="uq_bookings_booking_code"),
        CheckConstraint("quantity > 0", name="check_booking_quantity_positive"),
        CheckConstraint("status IN ('confirmed', 'cancelled')", name="check_booking_status"),
        Index("ix_bookings_event_status", "event_id", "status"),
    )

    @property
    def is_cancelled(self) -> bool:
        return self.status == BookingStatus.CANCELLED.value

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, code={self.booking_code}, event={self.event_id}, status={self.status})>"
