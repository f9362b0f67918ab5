"""Support ticket schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from ...models import BookingType, TicketCategory, TicketStatus


class TicketCreate(BaseModel):
    title: str
    category: str
    description: str
    branch_id: int
    seating_type_id: Optional[int] = None
    booking_id: Optional[int] = None
    booking_type: Optional[str] = None

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        v = v.lower()
        if v not in TicketCategory.ALL:
            raise ValueError(f"category must be one of: {', '.join(TicketCategory.ALL)}")
        return v

    @model_validator(mode="after")
    def check_booking(self):
        if self.booking_id is not None:
            self.booking_type = (self.booking_type or BookingType.SEAT).lower()
            if self.booking_type not in BookingType.ALL:
                raise ValueError("booking_type must be seat or meeting")
        return self


class TicketMessageCreate(BaseModel):
    message: str

    @field_validator("message")
    @classmethod
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Message cannot be empty")
        return v.strip()


class TicketAssign(BaseModel):
    assigned_to: int


class TicketStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        v = v.lower()
        if v not in TicketStatus.ALL:
            raise ValueError(f"status must be one of: {', '.join(TicketStatus.ALL)}")
        return v
