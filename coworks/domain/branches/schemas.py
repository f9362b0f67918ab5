"""Branch domain schemas"""

from datetime import time
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import validate_email


class BranchCreate(BaseModel):
    name: str
    address: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    cost_multiplier: float = 1.0
    opening_time: time = time(8, 0)
    closing_time: time = time(22, 0)
    city: str = "Bengaluru"
    state: str = "Karnataka"
    country: str = "India"
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    capacity: Optional[int] = None
    is_active: bool = True
    images: Optional[list[str]] = None
    amenities: Optional[list[str]] = None
    short_code: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("cost_multiplier")
    @classmethod
    def check_multiplier(cls, v):
        if v <= 0:
            raise ValueError("cost_multiplier must be positive")
        return v

    @field_validator("short_code")
    @classmethod
    def normalize_short_code(cls, v):
        return v.strip().lower() if v else v

    @model_validator(mode="after")
    def check_hours(self):
        if self.opening_time >= self.closing_time:
            raise ValueError("opening_time must be before closing_time")
        return self


class BranchUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    cost_multiplier: Optional[float] = None
    opening_time: Optional[time] = None
    closing_time: Optional[time] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    capacity: Optional[int] = None
    is_active: Optional[bool] = None
    images: Optional[list[str]] = None
    amenities: Optional[list[str]] = None
    short_code: Optional[str] = None

    @field_validator("short_code")
    @classmethod
    def normalize_short_code(cls, v):
        return v.strip().lower() if v else v


class BranchResponse(BaseModel):
    id: int
    name: str
    short_code: str
    address: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    cost_multiplier: float
    opening_time: time
    closing_time: time
    city: str
    state: str
    country: str
    postal_code: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    capacity: Optional[int] = None
    is_active: bool
    images: Optional[list[str]] = None
    amenities: Optional[list[str]] = None

    class Config:
        from_attributes = True
