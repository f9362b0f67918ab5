"""Seating domain schemas - seating types and seats"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import Seat, SeatingTypeName, SeatStatus

DEFAULT_CAPACITY_OPTIONS = {
    SeatingTypeName.CUBICLE: [1, 2, 4, 6, 8],
    SeatingTypeName.MEETING_ROOM: [4, 6, 8, 10, 12, 16, 20],
}

DEFAULT_QUANTITY_OPTIONS = {
    SeatingTypeName.HOT_DESK: [1, 2, 3, 4, 5, 10],
    SeatingTypeName.DEDICATED_DESK: [1, 2, 3, 4, 5],
}

DEFAULT_COST_MULTIPLIERS = {
    SeatingTypeName.HOT_DESK: {"1": 1.0, "2": 0.95, "3": 0.90, "4": 0.85, "5": 0.80, "10": 0.75},
    SeatingTypeName.DEDICATED_DESK: {"1": 1.0, "2": 0.95, "3": 0.92, "4": 0.90, "5": 0.85},
}


def _check_multiplier_map(v):
    if v is None:
        return v
    cleaned = {}
    for key, multiplier in v.items():
        if not str(key).isdigit() or int(key) < 1:
            raise ValueError("cost_multiplier keys must be positive quantities")
        if multiplier <= 0:
            raise ValueError("cost_multiplier values must be positive")
        cleaned[str(int(key))] = float(multiplier)
    return cleaned


class SeatingTypeCreate(BaseModel):
    name: str
    description: Optional[str] = None
    hourly_rate: float = 0.0
    daily_rate: Optional[float] = None
    weekly_rate: Optional[float] = None
    monthly_rate: Optional[float] = None
    base_price: Optional[float] = None
    is_hourly: Optional[bool] = None
    is_meeting_room: Optional[bool] = None
    min_booking_duration: int = 2
    min_seats: int = 1
    short_code: Optional[str] = None
    capacity_options: Optional[list[int]] = None
    quantity_options: Optional[list[int]] = None
    cost_multiplier: Optional[dict[str, float]] = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        v = v.strip().upper()
        if v not in SeatingTypeName.ALL:
            raise ValueError(f"Seating type must be one of: {', '.join(SeatingTypeName.ALL)}")
        return v

    @field_validator("hourly_rate", "daily_rate", "weekly_rate", "monthly_rate", "base_price")
    @classmethod
    def check_rate(cls, v):
        if v is not None and v < 0:
            raise ValueError("Rates cannot be negative")
        return v

    @field_validator("min_booking_duration", "min_seats")
    @classmethod
    def check_minimums(cls, v):
        if v < 1:
            raise ValueError("Minimums must be at least 1")
        return v

    @field_validator("short_code")
    @classmethod
    def normalize_short_code(cls, v):
        return v.strip().lower() if v else v

    @field_validator("cost_multiplier")
    @classmethod
    def check_cost_multiplier(cls, v):
        return _check_multiplier_map(v)

    def with_defaults(self, short_code: str) -> dict:
        """Column values with per-type defaults filled in"""
        data = self.model_dump()
        data["short_code"] = self.short_code or short_code
        if data["is_meeting_room"] is None:
            data["is_meeting_room"] = self.name == SeatingTypeName.MEETING_ROOM
        if data["is_hourly"] is None:
            data["is_hourly"] = self.name == SeatingTypeName.MEETING_ROOM
        if data["capacity_options"] is None:
            data["capacity_options"] = DEFAULT_CAPACITY_OPTIONS.get(self.name)
        if data["quantity_options"] is None:
            data["quantity_options"] = DEFAULT_QUANTITY_OPTIONS.get(self.name)
        if data["cost_multiplier"] is None:
            data["cost_multiplier"] = DEFAULT_COST_MULTIPLIERS.get(self.name)
        return data


class SeatingTypeUpdate(BaseModel):
    description: Optional[str] = None
    hourly_rate: Optional[float] = None
    daily_rate: Optional[float] = None
    weekly_rate: Optional[float] = None
    monthly_rate: Optional[float] = None
    base_price: Optional[float] = None
    is_hourly: Optional[bool] = None
    is_meeting_room: Optional[bool] = None
    min_booking_duration: Optional[int] = None
    min_seats: Optional[int] = None
    short_code: Optional[str] = None
    capacity_options: Optional[list[int]] = None
    quantity_options: Optional[list[int]] = None
    cost_multiplier: Optional[dict[str, float]] = None
    is_active: Optional[bool] = None

    @field_validator("hourly_rate", "daily_rate", "weekly_rate", "monthly_rate", "base_price")
    @classmethod
    def check_rate(cls, v):
        if v is not None and v < 0:
            raise ValueError("Rates cannot be negative")
        return v

    @field_validator("short_code")
    @classmethod
    def normalize_short_code(cls, v):
        return v.strip().lower() if v else v

    @field_validator("cost_multiplier")
    @classmethod
    def check_cost_multiplier(cls, v):
        return _check_multiplier_map(v)


class SeatingTypeResponse(BaseModel):
    id: int
    name: str
    short_code: str
    description: Optional[str] = None
    hourly_rate: float
    daily_rate: Optional[float] = None
    weekly_rate: Optional[float] = None
    monthly_rate: Optional[float] = None
    base_price: Optional[float] = None
    is_hourly: bool
    is_meeting_room: bool
    min_booking_duration: int
    min_seats: int
    capacity_options: Optional[list[int]] = None
    quantity_options: Optional[list[int]] = None
    cost_multiplier: Optional[dict[str, float]] = None
    is_active: bool

    class Config:
        from_attributes = True


class SeatCreate(BaseModel):
    branch_id: int
    seating_type_id: int
    seat_number: str
    seat_code: Optional[str] = None
    price: float = 0.0
    capacity: Optional[int] = None
    is_configurable: bool = False
    availability_status: str = SeatStatus.AVAILABLE

    @field_validator("availability_status")
    @classmethod
    def check_status(cls, v):
        v = v.upper()
        if v not in SeatStatus.ALL:
            raise ValueError(f"Status must be one of: {', '.join(SeatStatus.ALL)}")
        return v

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        if v < 0:
            raise ValueError("Price cannot be negative")
        return v


class SeatUpdate(BaseModel):
    seat_number: Optional[str] = None
    price: Optional[float] = None
    capacity: Optional[int] = None
    is_configurable: Optional[bool] = None
    availability_status: Optional[str] = None

    @field_validator("availability_status")
    @classmethod
    def check_status(cls, v):
        if v is None:
            return v
        v = v.upper()
        if v not in SeatStatus.ALL:
            raise ValueError(f"Status must be one of: {', '.join(SeatStatus.ALL)}")
        return v


def serialize_seating_type(seating_type) -> dict:
    return SeatingTypeResponse.model_validate(seating_type).model_dump()


def serialize_seat(seat: Seat) -> dict:
    data = {
        "id": seat.id,
        "branch_id": seat.branch_id,
        "seating_type_id": seat.seating_type_id,
        "seat_number": seat.seat_number,
        "seat_code": seat.seat_code,
        "price": seat.price,
        "capacity": seat.capacity,
        "is_configurable": seat.is_configurable,
        "availability_status": seat.availability_status,
    }
    if seat.seating_type is not None:
        data["seating_type"] = {
            "id": seat.seating_type.id,
            "name": seat.seating_type.name,
            "short_code": seat.seating_type.short_code,
        }
    if seat.branch is not None:
        data["branch"] = {
            "id": seat.branch.id,
            "name": seat.branch.name,
            "short_code": seat.branch.short_code,
        }
    return data
