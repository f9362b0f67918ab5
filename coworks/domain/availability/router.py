"""Availability router - time slots, seat search, availability windows and maintenance blocks"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import Admin
from ...shared.responses import success_response
from .schemas import MaintenanceBlockCreate, SlotGenerateRequest
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


# ============================================================================
# TIME SLOTS
# ============================================================================


@router.get("/slots")
async def get_slots(
    branch_id: Optional[int] = Query(None),
    branch_code: Optional[str] = Query(None),
    seat_id: Optional[int] = Query(None),
    seating_type_id: Optional[int] = Query(None),
    seating_type_code: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    availability: Optional[str] = Query(None, description="available, booked, maintenance or all"),
    service: AvailabilityService = Depends(get_availability_service),
):
    data = service.get_slots(
        branch_id=branch_id,
        branch_code=branch_code,
        seat_id=seat_id,
        seating_type_id=seating_type_id,
        seating_type_code=seating_type_code,
        date_str=date,
        availability=availability,
    )
    return success_response(data, "Time slots retrieved")


@router.get("/slots/categorized")
async def get_categorized_slots(
    date: Optional[str] = Query(None),
    branch_id: Optional[int] = Query(None),
    seating_type_id: Optional[int] = Query(None),
    availability: Optional[str] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    data = service.get_categorized_slots(date, branch_id, seating_type_id, availability)
    return success_response(data, "Categorized time slots retrieved")


@router.post("/slots/generate")
async def generate_slots(
    data: SlotGenerateRequest,
    admin: Admin = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    result = service.generate_slots(data, admin)
    return success_response(
        result, f"Generated {result['slots_created']} time slots", status_code=201
    )


@router.get("/slots/available-seats")
async def get_available_seats(
    branch_code: Optional[str] = Query(None),
    seating_type_code: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    data = service.get_available_seats(branch_code, seating_type_code, start_date, end_date)
    return success_response(data, f"Found {data['seat_count']} available seats")


# ============================================================================
# DATE-RANGE AVAILABILITY
# ============================================================================


@router.get("/availability")
async def get_availability(
    seat_id: Optional[int] = Query(None),
    branch_id: Optional[int] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    seating_type_id: Optional[int] = Query(None),
    seating_type_code: Optional[str] = Query(None),
    service: AvailabilityService = Depends(get_availability_service),
):
    data = service.get_availability(
        seat_id=seat_id,
        branch_id=branch_id,
        start_date=start_date,
        end_date=end_date,
        seating_type_id=seating_type_id,
        seating_type_code=seating_type_code,
    )
    return success_response(data, "Availability retrieved")


# ============================================================================
# MAINTENANCE BLOCKS (admin)
# ============================================================================


@router.post("/admin/availability/block")
async def create_maintenance_block(
    data: MaintenanceBlockCreate,
    admin: Admin = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    block = service.create_block(data, admin)
    return success_response(block, "Maintenance block created", status_code=201)


@router.get("/admin/availability/blocks")
async def list_maintenance_blocks(
    seat_id: Optional[int] = Query(None),
    branch_id: Optional[int] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    admin: Admin = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    blocks = service.list_blocks(admin, seat_id, branch_id, start_date, end_date)
    return success_response(blocks, "Maintenance blocks retrieved")


@router.delete("/admin/availability/blocks/{block_id}")
async def delete_maintenance_block(
    block_id: int,
    admin: Admin = Depends(get_current_admin),
    service: AvailabilityService = Depends(get_availability_service),
):
    service.delete_block(block_id, admin)
    return success_response(None, "Maintenance block deleted")


__all__ = ["router"]
