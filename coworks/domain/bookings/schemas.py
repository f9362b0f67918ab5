"""Booking domain schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models import BookingStatus, BookingType
from ...shared.validators import to_naive_utc


class BookingCreate(BaseModel):
    """Seat or meeting-room booking request; the price is computed server side"""

    type: str = BookingType.SEAT
    seat_id: Optional[int] = None
    seat_code: Optional[str] = None
    seating_type_code: Optional[str] = None
    start_time: datetime
    end_time: datetime
    quantity: int = 1
    num_participants: Optional[int] = None
    amenities: Optional[list[str]] = None

    @field_validator("type")
    @classmethod
    def check_type(cls, v):
        v = v.lower()
        if v not in BookingType.ALL:
            raise ValueError(f"type must be one of: {', '.join(BookingType.ALL)}")
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, v):
        return to_naive_utc(v)

    @field_validator("quantity")
    @classmethod
    def check_quantity(cls, v):
        if v < 1:
            raise ValueError("Quantity must be at least 1")
        return v

    @field_validator("num_participants")
    @classmethod
    def check_participants(cls, v):
        if v is not None and v < 1:
            raise ValueError("num_participants must be at least 1")
        return v

    @model_validator(mode="after")
    def check_seat(self):
        if self.seat_id is None and not self.seat_code:
            raise ValueError("seat_id or seat_code is required")
        return self


class BookingStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        v = v.upper()
        if v not in BookingStatus.ALL:
            raise ValueError(f"status must be one of: {', '.join(BookingStatus.ALL)}")
        return v


class BookingCostRequest(BaseModel):
    start_date: date
    end_date: date
    monthly_rate: float
    cancellation_date: Optional[date] = None
