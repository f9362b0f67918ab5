"""Payment service - gateway orders, checkout verification, webhooks and offline payments"""

import json
import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import ensure_branch_access, scoped_branch_id
from ...config import RAZORPAY_KEY_ID
from ...models import Admin, BookingStatus, Customer, Payment, PaymentStatus
from ..bookings.repository import BookingRepository
from . import gateway
from .repository import PaymentRepository
from .schemas import CreateOrderRequest, OfflinePaymentCreate, VerifyPaymentRequest

logger = logging.getLogger(__name__)

WEBHOOK_STATUSES = {
    "payment.captured": PaymentStatus.COMPLETED,
    "payment.failed": PaymentStatus.FAILED,
    "refund.processed": PaymentStatus.REFUNDED,
}


def serialize_payment(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "booking_id": payment.booking_id,
        "booking_type": payment.booking_type,
        "customer_id": payment.customer_id,
        "amount": payment.amount,
        "currency": payment.currency,
        "payment_method": payment.payment_method,
        "payment_status": payment.payment_status,
        "order_id": payment.order_id,
        "transaction_id": payment.transaction_id,
        "created_at": payment.created_at,
    }


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()
        self.bookings = BookingRepository()

    def _get_booking(self, booking_id: int, booking_type: str):
        booking = self.bookings.get_booking(self.db, booking_id, booking_type)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        return booking

    def _confirm_booking(self, payment: Payment) -> None:
        booking = self.bookings.get_booking(self.db, payment.booking_id, payment.booking_type)
        if booking is not None and booking.status == BookingStatus.PENDING:
            booking.status = BookingStatus.CONFIRMED
            logger.info(f"✅ {payment.booking_type} booking {booking.id} confirmed by payment {payment.id}")

    # ========================================================================
    # CHECKOUT
    # ========================================================================

    async def create_order(self, data: CreateOrderRequest, customer: Customer) -> dict:
        booking = self._get_booking(data.booking_id, data.booking_type)
        if booking.customer_id != customer.id:
            raise HTTPException(status_code=403, detail="You do not have access to this booking")
        if booking.status == BookingStatus.CANCELLED:
            raise HTTPException(status_code=400, detail="Cannot pay for a cancelled booking")

        receipt = f"booking_{data.booking_type}_{booking.id}"
        try:
            order = await gateway.create_order(
                booking.total_price,
                receipt,
                notes={"booking_id": str(booking.id), "booking_type": data.booking_type},
            )
        except gateway.GatewayError as e:
            raise HTTPException(status_code=502, detail=str(e)) from e

        payment = self.repo.create(
            self.db,
            Payment(
                booking_id=booking.id,
                booking_type=data.booking_type,
                customer_id=customer.id,
                amount=booking.total_price,
                currency=order.get("currency", "INR"),
                payment_status=PaymentStatus.PENDING,
                order_id=order["id"],
            ),
        )
        logger.info(f"💳 Payment {payment.id} pending for order {payment.order_id}")
        return {
            "payment_id": payment.id,
            "order_id": payment.order_id,
            "amount": payment.amount,
            "amount_paise": gateway.to_paise(payment.amount),
            "currency": payment.currency,
            "key_id": RAZORPAY_KEY_ID,
            "receipt": receipt,
        }

    def verify_payment(self, data: VerifyPaymentRequest, customer: Customer) -> dict:
        payment = self.repo.get_by_order_id(self.db, data.order_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found for this order")
        if payment.customer_id != customer.id:
            raise HTTPException(status_code=403, detail="You do not have access to this payment")
        if payment.payment_status == PaymentStatus.COMPLETED:
            return serialize_payment(payment)

        if not gateway.verify_payment_signature(data.order_id, data.payment_id, data.signature):
            payment.payment_status = PaymentStatus.FAILED
            self.db.commit()
            logger.warning(f"⚠️ Invalid checkout signature for order {data.order_id}")
            raise HTTPException(status_code=400, detail="Invalid payment signature")

        payment.payment_status = PaymentStatus.COMPLETED
        payment.transaction_id = data.payment_id
        self._confirm_booking(payment)
        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"✅ Payment {payment.id} verified ({data.payment_id})")
        return serialize_payment(payment)

    def handle_webhook(self, body: bytes, signature: Optional[str]) -> dict:
        if not gateway.verify_webhook_signature(body, signature):
            raise HTTPException(status_code=401, detail="Invalid webhook signature")
        try:
            event = json.loads(body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Invalid webhook payload") from e
        if not isinstance(event, dict):
            raise HTTPException(status_code=400, detail="Invalid webhook payload")

        event_name = event.get("event")
        status = WEBHOOK_STATUSES.get(event_name) if isinstance(event_name, str) else None
        if status is None:
            logger.info(f"📊 Ignoring Razorpay event {event_name}")
            return {"event": event_name, "handled": False}

        entity = event.get("payload")
        for key in ("payment", "entity"):
            entity = entity.get(key) if isinstance(entity, dict) else None
        if not isinstance(entity, dict):
            entity = {}
        order_id = entity.get("order_id")
        payment = self.repo.get_by_order_id(self.db, order_id) if isinstance(order_id, str) else None
        if payment is None:
            logger.warning(f"⚠️ Razorpay event {event_name} for unknown order {order_id}")
            return {"event": event_name, "handled": False}

        payment.payment_status = status
        if entity.get("id"):
            payment.transaction_id = entity["id"]
        if entity.get("method"):
            payment.payment_method = str(entity["method"]).upper()
        if status == PaymentStatus.COMPLETED:
            self._confirm_booking(payment)
        self.db.commit()

        logger.info(f"✅ Razorpay {event_name}: payment {payment.id} -> {status}")
        return {"event": event_name, "handled": True, "payment_id": payment.id}

    # ========================================================================
    # OFFLINE PAYMENTS AND LISTINGS
    # ========================================================================

    def record_offline_payment(self, data: OfflinePaymentCreate, admin: Admin) -> dict:
        booking = self._get_booking(data.booking_id, data.booking_type)
        ensure_branch_access(admin, booking.seat.branch_id)

        payment = Payment(
            booking_id=booking.id,
            booking_type=data.booking_type,
            customer_id=booking.customer_id,
            amount=data.amount,
            payment_method=data.payment_method,
            payment_status=data.payment_status,
            transaction_id=data.transaction_id,
        )
        if payment.payment_status == PaymentStatus.COMPLETED:
            self._confirm_booking(payment)
        payment = self.repo.create(self.db, payment)
        logger.info(f"💳 Admin {admin.id} recorded {payment.payment_method} payment {payment.id}")
        return serialize_payment(payment)

    def list_customer_payments(self, customer: Customer, status: Optional[str] = None) -> list[dict]:
        payments = self.repo.list_payments(self.db, customer_id=customer.id, status=status.upper() if status else None)
        return [serialize_payment(p) for p in payments]

    def get_customer_payment(self, payment_id: int, customer: Customer) -> dict:
        payment = self.repo.get_by_id(self.db, payment_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        if payment.customer_id != customer.id:
            raise HTTPException(status_code=403, detail="You do not have access to this payment")
        return serialize_payment(payment)

    def list_payments(
        self,
        admin: Admin,
        status: Optional[str] = None,
        booking_type: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> list[dict]:
        branch_id = scoped_branch_id(admin, branch_id)
        payments = self.repo.list_payments(
            self.db, status=status.upper() if status else None, booking_type=booking_type
        )
        if branch_id is not None:
            scoped = []
            for payment in payments:
                booking = self.bookings.get_booking(self.db, payment.booking_id, payment.booking_type)
                if booking is not None and booking.seat.branch_id == branch_id:
                    scoped.append(payment)
            payments = scoped
        return [serialize_payment(p) for p in payments]
