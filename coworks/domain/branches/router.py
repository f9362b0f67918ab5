"""Branch router - FastAPI endpoints for branches"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, require_super_admin
from ...database import get_db
from ...models import Admin
from ...shared.responses import success_response
from .schemas import BranchCreate, BranchUpdate
from .service import BranchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/branches", tags=["Branches"])


def get_branch_service(db: Session = Depends(get_db)) -> BranchService:
    """Dependency injection for BranchService"""
    return BranchService(db)


# ============================================================================
# PUBLIC CATALOGUE
# ============================================================================


@router.get("")
async def list_branches(
    city: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    service: BranchService = Depends(get_branch_service),
):
    return success_response(service.list_branches(city, is_active, search), "Branches retrieved")


@router.get("/{id_or_code}")
async def get_branch(id_or_code: str, service: BranchService = Depends(get_branch_service)):
    """Get a branch by numeric id or short code"""
    return success_response(service.get_branch(id_or_code), "Branch retrieved")


@router.get("/{id_or_code}/seats")
async def list_branch_seats(
    id_or_code: str,
    seating_type_code: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    service: BranchService = Depends(get_branch_service),
):
    return success_response(
        service.list_seats(id_or_code, seating_type_code, status), "Seats retrieved"
    )


# ============================================================================
# ADMINISTRATION
# ============================================================================


@router.post("")
async def create_branch(
    data: BranchCreate,
    _admin: Admin = Depends(require_super_admin),
    service: BranchService = Depends(get_branch_service),
):
    return success_response(service.create_branch(data), "Branch created", status_code=201)


@router.put("/{branch_id}")
async def update_branch(
    branch_id: int,
    data: BranchUpdate,
    admin: Admin = Depends(get_current_admin),
    service: BranchService = Depends(get_branch_service),
):
    """Super admins edit any branch; branch admins only their own"""
    return success_response(service.update_branch(branch_id, data, admin), "Branch updated")


@router.delete("/{branch_id}")
async def delete_branch(
    branch_id: int,
    _admin: Admin = Depends(require_super_admin),
    service: BranchService = Depends(get_branch_service),
):
    service.delete_branch(branch_id)
    return success_response(None, "Branch deleted")


__all__ = ["router"]
