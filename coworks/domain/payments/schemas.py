"""Payment domain schemas"""

from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import BookingType, PaymentMethod, PaymentStatus


def _check_booking_type(v: str) -> str:
    v = v.lower()
    if v not in BookingType.ALL:
        raise ValueError(f"booking_type must be one of: {', '.join(BookingType.ALL)}")
    return v


class CreateOrderRequest(BaseModel):
    booking_id: int
    booking_type: str = BookingType.SEAT

    @field_validator("booking_type")
    @classmethod
    def check_booking_type(cls, v):
        return _check_booking_type(v)


class VerifyPaymentRequest(BaseModel):
    """Fields returned by Razorpay checkout"""

    order_id: str
    payment_id: str
    signature: str


class OfflinePaymentCreate(BaseModel):
    booking_id: int
    booking_type: str = BookingType.SEAT
    amount: float
    payment_method: str = PaymentMethod.CASH
    payment_status: str = PaymentStatus.COMPLETED
    transaction_id: Optional[str] = None

    @field_validator("booking_type")
    @classmethod
    def check_booking_type(cls, v):
        return _check_booking_type(v)

    @field_validator("amount")
    @classmethod
    def check_amount(cls, v):
        if v <= 0:
            raise ValueError("Amount must be greater than 0")
        return v

    @field_validator("payment_method")
    @classmethod
    def check_method(cls, v):
        v = v.upper()
        if v not in PaymentMethod.ALL:
            raise ValueError(f"payment_method must be one of: {', '.join(PaymentMethod.ALL)}")
        return v

    @field_validator("payment_status")
    @classmethod
    def check_status(cls, v):
        v = v.upper()
        if v not in PaymentStatus.ALL:
            raise ValueError(f"payment_status must be one of: {', '.join(PaymentStatus.ALL)}")
        return v
