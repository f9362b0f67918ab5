"""Booking router - customer bookings, admin status changes and cost calculation"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_customer
from ...database import get_db
from ...models import Admin, BookingType, Customer
from ...shared.responses import success_response
from .schemas import BookingCostRequest, BookingCreate, BookingStatusUpdate
from .service import BookingService, serialize_booking

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


# ============================================================================
# CUSTOMER BOOKINGS
# ============================================================================


@router.post("/bookings/calculate")
async def calculate_booking_cost(
    data: BookingCostRequest,
    service: BookingService = Depends(get_booking_service),
):
    return success_response(service.calculate_cost(data), "Booking cost calculated")


@router.post("/bookings")
async def create_booking(
    data: BookingCreate,
    customer: Customer = Depends(get_current_customer),
    service: BookingService = Depends(get_booking_service),
):
    result = service.create_booking(data, customer)
    return success_response(result, "Booking created", status_code=201)


@router.get("/bookings")
async def list_bookings(
    booking_type: Optional[str] = Query(None, alias="type"),
    status: Optional[str] = Query(None, description="active, upcoming, cancelled or completed"),
    branch_code: Optional[str] = Query(None),
    seating_type_code: Optional[str] = Query(None),
    customer: Customer = Depends(get_current_customer),
    service: BookingService = Depends(get_booking_service),
):
    bookings = service.list_customer_bookings(customer, booking_type, status, branch_code, seating_type_code)
    return success_response(bookings, "Bookings retrieved")


@router.get("/bookings/{booking_id}")
async def get_booking(
    booking_id: int,
    booking_type: str = Query(BookingType.SEAT, alias="type"),
    customer: Customer = Depends(get_current_customer),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_owned_booking(booking_id, booking_type, customer)
    return success_response(serialize_booking(booking), "Booking retrieved")


@router.put("/bookings/{booking_id}/cancel")
async def cancel_booking(
    booking_id: int,
    booking_type: str = Query(BookingType.SEAT, alias="type"),
    customer: Customer = Depends(get_current_customer),
    service: BookingService = Depends(get_booking_service),
):
    return success_response(service.cancel_booking(booking_id, booking_type, customer), "Booking cancelled")


# ============================================================================
# ADMIN
# ============================================================================


@router.get("/admin/bookings")
async def admin_list_bookings(
    status: Optional[str] = Query(None),
    booking_type: Optional[str] = Query(None, alias="type"),
    branch_id: Optional[int] = Query(None),
    customer_id: Optional[int] = Query(None),
    admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    bookings = service.list_bookings(admin, status, booking_type, branch_id, customer_id)
    return success_response(bookings, "Bookings retrieved")


@router.put("/admin/bookings/{booking_id}/status")
async def admin_update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    booking_type: str = Query(BookingType.SEAT, alias="type"),
    admin: Admin = Depends(get_current_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_status(booking_id, booking_type, data.status, admin)
    return success_response(booking, f"Booking status updated to {data.status}")


__all__ = ["router"]
