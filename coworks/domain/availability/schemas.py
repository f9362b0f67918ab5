"""Availability domain schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...shared.validators import to_naive_utc


class SlotGenerateRequest(BaseModel):
    """Generate two-hour slots for every available seat of a branch on a date"""

    date: date
    branch_id: Optional[int] = None
    branch_code: Optional[str] = None
    seating_type_id: Optional[int] = None
    regenerate: bool = False

    @model_validator(mode="after")
    def check_branch(self):
        if self.branch_id is None and not self.branch_code:
            raise ValueError("branch_id or branch_code is required")
        return self


class MaintenanceBlockCreate(BaseModel):
    seat_id: int
    start_time: datetime
    end_time: datetime
    reason: str
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, v):
        return to_naive_utc(v)

    @field_validator("reason")
    @classmethod
    def check_reason(cls, v):
        if not v or not v.strip():
            raise ValueError("Reason is required")
        return v.strip()
