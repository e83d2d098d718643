"""Initial schema: events and bookings with indexes and constraints.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Events table
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("total_seats", sa.Integer(), nullable=False),
        sa.Column("available_seats", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("available_seats >= 0", name="check_available_seats_non_negative"),
        sa.CheckConstraint("total_seats > 0", name="check_total_seats_positive"),
        sa.CheckConstraint("available_seats <= total_seats", name="check_available_lte_total"),
        sa.CheckConstraint("price >= 0", name="check_price_non_negative"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    # Listing is always ORDER BY date, optionally bounded by a date range
    op.create_index("ix_events_date", "events", ["date"])

    # Bookings table
    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("mobile", sa.String(32), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("booking_code", sa.String(32), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'confirmed'")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("booking_code", name="uq_bookings_booking_code"),
        sa.CheckConstraint("quantity > 0", name="check_booking_quantity_positive"),
        sa.CheckConstraint("status IN ('confirmed', 'cancelled')", name="check_booking_status"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_event_id", "bookings", ["event_id"])
    # Confirmed-seat sums and the per-event listing filter on both columns
    op.create_index("ix_bookings_event_status", "bookings", ["event_id", "status"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("events")
