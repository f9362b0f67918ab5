"""Dashboard router"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin
from ...database import get_db
from ...models import Admin
from ...shared.responses import success_response
from ...shared.validators import parse_datetime
from .service import DashboardService

router = APIRouter(prefix="/api/admin/dashboard", tags=["Dashboard"])


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    """Dependency injection for DashboardService"""
    return DashboardService(db)


@router.get("/stats")
async def get_dashboard_stats(
    branch_id: Optional[int] = Query(None),
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    admin: Admin = Depends(get_current_admin),
    service: DashboardService = Depends(get_dashboard_service),
):
    try:
        created_from = parse_datetime(date_from, "from")
        created_to = parse_datetime(date_to, "to")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    stats = service.get_stats(admin, branch_id, created_from, created_to)
    return success_response(stats, "Dashboard statistics retrieved")


__all__ = ["router"]
