"""Payment router - Razorpay checkout, webhook and payment records"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_customer
from ...database import get_db
from ...models import Admin, Customer
from ...rate_limiter import create_rate_limiter
from ...shared.responses import success_response
from .schemas import CreateOrderRequest, OfflinePaymentCreate, VerifyPaymentRequest
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Payments"])

verify_rate_limit = create_rate_limiter(limit=20, window_seconds=300, key_prefix="payment_verify")


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


# ============================================================================
# CHECKOUT
# ============================================================================


@router.post("/payments/create-order")
async def create_payment_order(
    data: CreateOrderRequest,
    customer: Customer = Depends(get_current_customer),
    service: PaymentService = Depends(get_payment_service),
):
    order = await service.create_order(data, customer)
    return success_response(order, "Payment order created", status_code=201)


@router.post("/payments/verify", dependencies=[Depends(verify_rate_limit)])
async def verify_payment(
    data: VerifyPaymentRequest,
    customer: Customer = Depends(get_current_customer),
    service: PaymentService = Depends(get_payment_service),
):
    return success_response(service.verify_payment(data, customer), "Payment verified")


@router.post("/payments/webhook")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    service: PaymentService = Depends(get_payment_service),
):
    # Signature covers the exact bytes received
    body = await request.body()
    result = service.handle_webhook(body, x_razorpay_signature)
    return success_response(result, "Webhook processed")


# ============================================================================
# PAYMENT RECORDS
# ============================================================================


@router.get("/payments")
async def list_my_payments(
    status: Optional[str] = Query(None),
    customer: Customer = Depends(get_current_customer),
    service: PaymentService = Depends(get_payment_service),
):
    return success_response(service.list_customer_payments(customer, status), "Payments retrieved")


@router.get("/payments/{payment_id}")
async def get_payment(
    payment_id: int,
    customer: Customer = Depends(get_current_customer),
    service: PaymentService = Depends(get_payment_service),
):
    return success_response(service.get_customer_payment(payment_id, customer), "Payment retrieved")


@router.post("/payments")
async def record_offline_payment(
    data: OfflinePaymentCreate,
    admin: Admin = Depends(get_current_admin),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.record_offline_payment(data, admin)
    return success_response(payment, "Payment recorded", status_code=201)


@router.get("/admin/payments")
async def admin_list_payments(
    status: Optional[str] = Query(None),
    booking_type: Optional[str] = Query(None),
    branch_id: Optional[int] = Query(None),
    admin: Admin = Depends(get_current_admin),
    service: PaymentService = Depends(get_payment_service),
):
    payments = service.list_payments(admin, status, booking_type, branch_id)
    return success_response(payments, "Payments retrieved")


__all__ = ["router"]
