"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    location: str = Field(..., min_length=1, max_length=255)
    date: datetime
    total_seats: Optional[int] = Field(None, gt=0, le=100000)
    price: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = Field(None, max_length=500)


class EventUpdate(BaseModel):
    """Partial update: omitted fields keep their current value."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    date: Optional[datetime] = None
    total_seats: Optional[int] = Field(None, gt=0, le=100000)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    image_url: Optional[str] = Field(None, max_length=500)


class EventFilters(BaseModel):
    search: Optional[str] = None
    location: Optional[str] = None
    date: Optional[date_type] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def cache_key(self) -> str:
        parts = [f"{name}={value}" for name, value in self.model_dump(exclude_none=True).items()]
        return "&".join(sorted(parts)) or "all"


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    location: str
    date: datetime
    total_seats: int
    available_seats: int
    price: Decimal
    image_url: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventDeleteResponse(BaseModel):
    message: str
    id: int
