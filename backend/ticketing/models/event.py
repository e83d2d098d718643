"""
Event model with seat inventory tracking.

Key design decisions:
- `available_seats` is denormalized and kept equal to
  total_seats - sum(confirmed booking quantities), floored at 0
- Index on `date` for range queries and the date-ascending listing
- Check constraints keep 0 <= available_seats <= total_seats at the DB level
"""

from sqlalchemy import Column, Integer, String, DateTime, Numeric, Index, CheckConstraint

from ticketing.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    location = Column(String(255), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    image_url = Column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("available_seats >= 0", name="check_available_seats_non_negative"),
        CheckConstraint("total_seats > 0", name="check_total_seats_positive"),
        CheckConstraint("available_seats <= total_seats", name="check_available_lte_total"),
        CheckConstraint("price >= 0", name="check_price_non_negative"),
        Index("ix_events_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, available={self.available_seats}/{self.total_seats})>"
