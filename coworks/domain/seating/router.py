"""Seating router - seating types and seats"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, require_super_admin
from ...database import get_db
from ...models import Admin
from ...shared.responses import success_response
from .schemas import (
    SeatCreate,
    SeatingTypeCreate,
    SeatingTypeUpdate,
    SeatUpdate,
    serialize_seat,
    serialize_seating_type,
)
from .service import SeatingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Seating"])


def get_seating_service(db: Session = Depends(get_db)) -> SeatingService:
    """Dependency injection for SeatingService"""
    return SeatingService(db)


# ============================================================================
# SEATING TYPES
# ============================================================================


@router.get("/seating-types")
async def list_seating_types(
    is_active: Optional[bool] = Query(None),
    service: SeatingService = Depends(get_seating_service),
):
    return success_response(service.list_types(is_active), "Seating types retrieved")


@router.get("/seating-types/{id_or_code}")
async def get_seating_type(id_or_code: str, service: SeatingService = Depends(get_seating_service)):
    seating_type = service.resolve_type(id_or_code)
    return success_response(serialize_seating_type(seating_type), "Seating type retrieved")


@router.post("/seating-types")
async def create_seating_type(
    data: SeatingTypeCreate,
    _admin: Admin = Depends(require_super_admin),
    service: SeatingService = Depends(get_seating_service),
):
    return success_response(service.create_type(data), "Seating type created", status_code=201)


@router.put("/seating-types/{type_id}")
async def update_seating_type(
    type_id: int,
    data: SeatingTypeUpdate,
    _admin: Admin = Depends(require_super_admin),
    service: SeatingService = Depends(get_seating_service),
):
    return success_response(service.update_type(type_id, data), "Seating type updated")


@router.delete("/seating-types/{type_id}")
async def delete_seating_type(
    type_id: int,
    _admin: Admin = Depends(require_super_admin),
    service: SeatingService = Depends(get_seating_service),
):
    service.delete_type(type_id)
    return success_response(None, "Seating type deleted")


# ============================================================================
# SEATS
# ============================================================================


@router.get("/seats")
async def list_seats(
    branch_id: Optional[int] = Query(None),
    branch_code: Optional[str] = Query(None),
    seating_type_id: Optional[int] = Query(None),
    seating_type_code: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    service: SeatingService = Depends(get_seating_service),
):
    seats = service.list_seats(branch_id, branch_code, seating_type_id, seating_type_code, status)
    return success_response(seats, "Seats retrieved")


@router.get("/seats/{seat_id}")
async def get_seat(seat_id: int, service: SeatingService = Depends(get_seating_service)):
    return success_response(serialize_seat(service.get_seat(seat_id)), "Seat retrieved")


@router.post("/seats")
async def create_seat(
    data: SeatCreate,
    admin: Admin = Depends(get_current_admin),
    service: SeatingService = Depends(get_seating_service),
):
    return success_response(service.create_seat(data, admin), "Seat created", status_code=201)


@router.put("/seats/{seat_id}")
async def update_seat(
    seat_id: int,
    data: SeatUpdate,
    admin: Admin = Depends(get_current_admin),
    service: SeatingService = Depends(get_seating_service),
):
    return success_response(service.update_seat(seat_id, data, admin), "Seat updated")


@router.delete("/seats/{seat_id}")
async def delete_seat(
    seat_id: int,
    admin: Admin = Depends(get_current_admin),
    service: SeatingService = Depends(get_seating_service),
):
    service.delete_seat(seat_id, admin)
    return success_response(None, "Seat deleted")


__all__ = ["router"]
