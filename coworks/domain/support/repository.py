"""Support ticket repository"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Admin, Branch, SeatingType, SupportTicket, TicketMessage


class SupportRepository:
    """Repository for support tickets and their messages"""

    @staticmethod
    def get_ticket(db: Session, ticket_id: int) -> Optional[SupportTicket]:
        return db.query(SupportTicket).filter(SupportTicket.id == ticket_id).first()

    @staticmethod
    def ticket_number_exists(db: Session, ticket_number: str) -> bool:
        return (
            db.query(SupportTicket.id).filter(SupportTicket.ticket_number == ticket_number).first()
            is not None
        )

    @staticmethod
    def list_tickets(
        db: Session,
        customer_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[SupportTicket]:
        query = db.query(SupportTicket)
        if customer_id is not None:
            query = query.filter(SupportTicket.customer_id == customer_id)
        if branch_id is not None:
            query = query.filter(SupportTicket.branch_id == branch_id)
        if status:
            query = query.filter(SupportTicket.status == status)
        if category:
            query = query.filter(SupportTicket.category == category)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    SupportTicket.title.ilike(pattern),
                    SupportTicket.description.ilike(pattern),
                    SupportTicket.ticket_number.ilike(pattern),
                )
            )
        return query.order_by(SupportTicket.id.desc()).all()

    @staticmethod
    def get_branch(db: Session, branch_id: int) -> Optional[Branch]:
        return db.query(Branch).filter(Branch.id == branch_id).first()

    @staticmethod
    def get_seating_type(db: Session, type_id: int) -> Optional[SeatingType]:
        return db.query(SeatingType).filter(SeatingType.id == type_id).first()

    @staticmethod
    def get_admin(db: Session, admin_id: int) -> Optional[Admin]:
        return db.query(Admin).filter(Admin.id == admin_id).first()

    @staticmethod
    def add_message(db: Session, ticket: SupportTicket, message: str, sender_type: str, sender_id=None):
        entry = TicketMessage(message=message, sender_type=sender_type, sender_id=sender_id)
        ticket.messages.append(entry)
        return entry

    @staticmethod
    def mark_read(ticket: SupportTicket, sender_type: str) -> int:
        """Set read_at on unread messages sent by sender_type"""
        now = datetime.utcnow()
        marked = 0
        for message in ticket.messages:
            if message.sender_type == sender_type and message.read_at is None:
                message.read_at = now
                marked += 1
        return marked
