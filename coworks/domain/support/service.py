"""Support service - ticket lifecycle and conversations"""

import logging
import secrets
import time
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import ensure_branch_access, scoped_branch_id
from ...models import Admin, Customer, MessageSender, SupportTicket, TicketStatus
from ..bookings.repository import BookingRepository
from .repository import SupportRepository
from .schemas import TicketAssign, TicketCreate, TicketMessageCreate, TicketStatusUpdate

logger = logging.getLogger(__name__)


def generate_ticket_number() -> str:
    """TKT-<6 random upper-case alphanumerics>-<last 7 digits of the epoch in ms>"""
    random_part = secrets.token_hex(3).upper()
    timestamp = str(int(time.time() * 1000))[-7:]
    return f"TKT-{random_part}-{timestamp}"


def serialize_message(message) -> dict:
    return {
        "id": message.id,
        "message": message.message,
        "sender_type": message.sender_type,
        "sender_id": message.sender_id,
        "read_at": message.read_at,
        "created_at": message.created_at,
    }


def serialize_ticket(ticket: SupportTicket, with_messages: bool = False) -> dict:
    data = {
        "id": ticket.id,
        "ticket_number": ticket.ticket_number,
        "customer_id": ticket.customer_id,
        "branch_id": ticket.branch_id,
        "branch_code": ticket.branch_code,
        "seating_type_id": ticket.seating_type_id,
        "seating_type_code": ticket.seating_type_code,
        "booking_id": ticket.booking_id,
        "booking_type": ticket.booking_type,
        "title": ticket.title,
        "category": ticket.category,
        "description": ticket.description,
        "status": ticket.status,
        "assigned_to": ticket.assigned_to,
        "closed_at": ticket.closed_at,
        "reopened_at": ticket.reopened_at,
        "created_at": ticket.created_at,
        "updated_at": ticket.updated_at,
        "message_count": len(ticket.messages),
    }
    if ticket.customer is not None:
        data["customer"] = {"id": ticket.customer.id, "name": ticket.customer.name, "email": ticket.customer.email}
    if with_messages:
        data["messages"] = [serialize_message(m) for m in ticket.messages]
    return data


class SupportService:
    """Service layer for support tickets"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SupportRepository()

    def _new_ticket_number(self) -> str:
        for _ in range(5):
            number = generate_ticket_number()
            if not self.repo.ticket_number_exists(self.db, number):
                return number
        raise HTTPException(status_code=500, detail="Could not allocate a ticket number")

    def _change_status(self, ticket: SupportTicket, status: str, actor_id: Optional[int] = None) -> None:
        """Apply a status change and record it as a system message"""
        old_status = ticket.status
        if old_status == status:
            return
        ticket.status = status
        if status == TicketStatus.CLOSED:
            ticket.closed_at = datetime.utcnow()
        elif status == TicketStatus.REOPENED:
            ticket.reopened_at = datetime.utcnow()
            ticket.closed_at = None
        self.repo.add_message(
            self.db,
            ticket,
            f"Ticket status changed from {old_status} to {status}",
            MessageSender.SYSTEM,
            actor_id,
        )
        logger.info(f"✏️ Ticket {ticket.ticket_number}: {old_status} -> {status}")

    # ========================================================================
    # CUSTOMER
    # ========================================================================

    def create_ticket(self, data: TicketCreate, customer: Customer) -> dict:
        branch = self.repo.get_branch(self.db, data.branch_id)
        if not branch:
            raise HTTPException(status_code=404, detail="Branch not found")

        seating_type = None
        if data.seating_type_id is not None:
            seating_type = self.repo.get_seating_type(self.db, data.seating_type_id)
            if not seating_type:
                raise HTTPException(status_code=404, detail="Seating type not found")

        if data.booking_id is not None:
            booking = BookingRepository.get_booking(self.db, data.booking_id, data.booking_type)
            if not booking:
                raise HTTPException(status_code=404, detail="Booking not found")
            if booking.customer_id != customer.id:
                raise HTTPException(status_code=403, detail="You do not have access to this booking")

        ticket = SupportTicket(
            ticket_number=self._new_ticket_number(),
            customer_id=customer.id,
            branch_id=branch.id,
            branch_code=branch.short_code,
            seating_type_id=seating_type.id if seating_type else None,
            seating_type_code=seating_type.short_code if seating_type else None,
            booking_id=data.booking_id,
            booking_type=data.booking_type if data.booking_id is not None else None,
            title=data.title,
            category=data.category,
            description=data.description,
            status=TicketStatus.NEW,
        )
        self.db.add(ticket)
        self.repo.add_message(self.db, ticket, data.description, MessageSender.CUSTOMER, customer.id)
        self.db.commit()
        self.db.refresh(ticket)

        logger.info(f"✅ Ticket {ticket.ticket_number} opened by customer {customer.id}")
        return serialize_ticket(ticket, with_messages=True)

    def list_customer_tickets(
        self, customer: Customer, status: Optional[str] = None, category: Optional[str] = None
    ) -> list[dict]:
        tickets = self.repo.list_tickets(self.db, customer_id=customer.id, status=status, category=category)
        return [serialize_ticket(t) for t in tickets]

    def _owned_ticket(self, ticket_id: int, customer: Customer) -> SupportTicket:
        ticket = self.repo.get_ticket(self.db, ticket_id)
        if not ticket:
            raise HTTPException(status_code=404, detail="Ticket not found")
        if ticket.customer_id != customer.id:
            raise HTTPException(status_code=403, detail="You do not have access to this ticket")
        return ticket

    def get_customer_ticket(self, ticket_id: int, customer: Customer) -> dict:
        ticket = self._owned_ticket(ticket_id, customer)
        if self.repo.mark_read(ticket, MessageSender.ADMIN):
            self.db.commit()
        return serialize_ticket(ticket, with_messages=True)

    def add_customer_message(self, ticket_id: int, data: TicketMessageCreate, customer: Customer) -> dict:
        ticket = self._owned_ticket(ticket_id, customer)
        if ticket.status == TicketStatus.CLOSED:
            raise HTTPException(status_code=400, detail="Cannot add messages to a closed ticket; reopen it first")
        message = self.repo.add_message(self.db, ticket, data.message, MessageSender.CUSTOMER, customer.id)
        self.db.commit()
        self.db.refresh(message)
        return serialize_message(message)

    def reopen_ticket(self, ticket_id: int, customer: Customer) -> dict:
        ticket = self._owned_ticket(ticket_id, customer)
        if ticket.status != TicketStatus.CLOSED:
            raise HTTPException(status_code=400, detail="Only closed tickets can be reopened")
        self._change_status(ticket, TicketStatus.REOPENED, customer.id)
        self.db.commit()
        self.db.refresh(ticket)
        return serialize_ticket(ticket, with_messages=True)

    # ========================================================================
    # ADMIN
    # ========================================================================

    def _admin_ticket(self, ticket_id: int, admin: Admin) -> SupportTicket:
        ticket = self.repo.get_ticket(self.db, ticket_id)
        if not ticket:
            raise HTTPException(status_code=404, detail="Ticket not found")
        ensure_branch_access(admin, ticket.branch_id)
        return ticket

    def list_tickets(
        self,
        admin: Admin,
        status: Optional[str] = None,
        category: Optional[str] = None,
        branch_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list[dict]:
        tickets = self.repo.list_tickets(
            self.db,
            branch_id=scoped_branch_id(admin, branch_id),
            status=status,
            category=category,
            search=search,
        )
        return [serialize_ticket(t) for t in tickets]

    def get_ticket(self, ticket_id: int, admin: Admin) -> dict:
        ticket = self._admin_ticket(ticket_id, admin)
        if self.repo.mark_read(ticket, MessageSender.CUSTOMER):
            self.db.commit()
        return serialize_ticket(ticket, with_messages=True)

    def add_admin_message(self, ticket_id: int, data: TicketMessageCreate, admin: Admin) -> dict:
        ticket = self._admin_ticket(ticket_id, admin)
        message = self.repo.add_message(self.db, ticket, data.message, MessageSender.ADMIN, admin.id)
        if ticket.status in (TicketStatus.NEW, TicketStatus.ASSIGNED):
            self._change_status(ticket, TicketStatus.IN_PROGRESS, admin.id)
        self.db.commit()
        self.db.refresh(message)
        return serialize_message(message)

    def assign_ticket(self, ticket_id: int, data: TicketAssign, admin: Admin) -> dict:
        ticket = self._admin_ticket(ticket_id, admin)
        assignee = self.repo.get_admin(self.db, data.assigned_to)
        if not assignee:
            raise HTTPException(status_code=404, detail="Admin to assign not found")
        ticket.assigned_to = assignee.id
        self._change_status(ticket, TicketStatus.ASSIGNED, admin.id)
        self.db.commit()
        self.db.refresh(ticket)
        logger.info(f"📊 Ticket {ticket.ticket_number} assigned to admin {assignee.id}")
        return serialize_ticket(ticket, with_messages=True)

    def update_status(self, ticket_id: int, data: TicketStatusUpdate, admin: Admin) -> dict:
        ticket = self._admin_ticket(ticket_id, admin)
        if ticket.status == data.status:
            raise HTTPException(status_code=400, detail=f"Ticket is already {data.status}")
        self._change_status(ticket, data.status, admin.id)
        self.db.commit()
        self.db.refresh(ticket)
        return serialize_ticket(ticket, with_messages=True)
