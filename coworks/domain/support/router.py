"""Support router - customer and admin ticket endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_admin, get_current_customer
from ...database import get_db
from ...models import Admin, Customer
from ...shared.responses import success_response
from .schemas import TicketAssign, TicketCreate, TicketMessageCreate, TicketStatusUpdate
from .service import SupportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Support"])


def get_support_service(db: Session = Depends(get_db)) -> SupportService:
    """Dependency injection for SupportService"""
    return SupportService(db)


# ============================================================================
# CUSTOMER TICKETS
# ============================================================================


@router.post("/support/tickets")
async def create_ticket(
    data: TicketCreate,
    customer: Customer = Depends(get_current_customer),
    service: SupportService = Depends(get_support_service),
):
    ticket = service.create_ticket(data, customer)
    return success_response(ticket, "Support ticket created", status_code=201)


@router.get("/support/tickets")
async def list_my_tickets(
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    customer: Customer = Depends(get_current_customer),
    service: SupportService = Depends(get_support_service),
):
    return success_response(service.list_customer_tickets(customer, status, category), "Tickets retrieved")


@router.get("/support/tickets/{ticket_id}")
async def get_my_ticket(
    ticket_id: int,
    customer: Customer = Depends(get_current_customer),
    service: SupportService = Depends(get_support_service),
):
    return success_response(service.get_customer_ticket(ticket_id, customer), "Ticket retrieved")


@router.post("/support/tickets/{ticket_id}/messages")
async def add_my_message(
    ticket_id: int,
    data: TicketMessageCreate,
    customer: Customer = Depends(get_current_customer),
    service: SupportService = Depends(get_support_service),
):
    message = service.add_customer_message(ticket_id, data, customer)
    return success_response(message, "Message added", status_code=201)


@router.put("/support/tickets/{ticket_id}/reopen")
async def reopen_ticket(
    ticket_id: int,
    customer: Customer = Depends(get_current_customer),
    service: SupportService = Depends(get_support_service),
):
    return success_response(service.reopen_ticket(ticket_id, customer), "Ticket reopened")


# ============================================================================
# ADMIN TICKETS
# ============================================================================


@router.get("/admin/support/tickets")
async def admin_list_tickets(
    status: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    branch_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    admin: Admin = Depends(get_current_admin),
    service: SupportService = Depends(get_support_service),
):
    tickets = service.list_tickets(admin, status, category, branch_id, search)
    return success_response(tickets, "Tickets retrieved")


@router.get("/admin/support/tickets/{ticket_id}")
async def admin_get_ticket(
    ticket_id: int,
    admin: Admin = Depends(get_current_admin),
    service: SupportService = Depends(get_support_service),
):
    return success_response(service.get_ticket(ticket_id, admin), "Ticket retrieved")


@router.post("/admin/support/tickets/{ticket_id}/messages")
async def admin_add_message(
    ticket_id: int,
    data: TicketMessageCreate,
    admin: Admin = Depends(get_current_admin),
    service: SupportService = Depends(get_support_service),
):
    message = service.add_admin_message(ticket_id, data, admin)
    return success_response(message, "Message added", status_code=201)


@router.put("/admin/support/tickets/{ticket_id}/assign")
async def admin_assign_ticket(
    ticket_id: int,
    data: TicketAssign,
    admin: Admin = Depends(get_current_admin),
    service: SupportService = Depends(get_support_service),
):
    return success_response(service.assign_ticket(ticket_id, data, admin), "Ticket assigned")


@router.put("/admin/support/tickets/{ticket_id}/status")
async def admin_update_ticket_status(
    ticket_id: int,
    data: TicketStatusUpdate,
    admin: Admin = Depends(get_current_admin),
    service: SupportService = Depends(get_support_service),
):
    return success_response(service.update_status(ticket_id, data, admin), "Ticket status updated")


__all__ = ["router"]
