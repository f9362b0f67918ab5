"""Dashboard service - aggregate counts for the admin console"""

import logging
from datetime import datetime, time, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...auth import scoped_branch_id
from ...models import (
    Admin,
    BookingStatus,
    BookingType,
    Branch,
    Customer,
    MeetingBooking,
    Payment,
    PaymentStatus,
    Seat,
    SeatBooking,
    SeatStatus,
    SupportTicket,
    TicketStatus,
)

logger = logging.getLogger(__name__)


class DashboardService:
    """Service layer for dashboard statistics"""

    def __init__(self, db: Session):
        self.db = db

    def _booking_query(self, model, branch_id: Optional[int], created_from, created_to):
        seat_column = model.meeting_room_id if model is MeetingBooking else model.seat_id
        query = self.db.query(model).join(Seat, seat_column == Seat.id)
        if branch_id is not None:
            query = query.filter(Seat.branch_id == branch_id)
        if created_from is not None:
            query = query.filter(model.created_at >= created_from)
        if created_to is not None:
            query = query.filter(model.created_at <= created_to)
        return query

    def get_stats(
        self,
        admin: Admin,
        branch_id: Optional[int] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> dict:
        """
        Counts for the dashboard; branch admins only ever see their branch.

        Revenue sums COMPLETED payments of bookings on the branch's seats.
        """
        branch_id = scoped_branch_id(admin, branch_id)

        branch_query = self.db.query(func.count(Branch.id))
        seat_query = self.db.query(Seat.availability_status, func.count(Seat.id))
        if branch_id is not None:
            branch_query = branch_query.filter(Branch.id == branch_id)
            seat_query = seat_query.filter(Seat.branch_id == branch_id)
        seats = {status: 0 for status in SeatStatus.ALL}
        for status, count in seat_query.group_by(Seat.availability_status).all():
            seats[status] = count

        bookings = {status: 0 for status in BookingStatus.ALL}
        today_start = datetime.combine(datetime.utcnow().date(), time.min)
        today_end = today_start + timedelta(days=1)
        todays_bookings = 0
        revenue = 0.0
        booking_ids = {kind: set() for kind in BookingType.ALL}
        for kind, model in ((BookingType.SEAT, SeatBooking), (BookingType.MEETING, MeetingBooking)):
            query = self._booking_query(model, branch_id, created_from, created_to)
            for status, count in (
                query.with_entities(model.status, func.count(model.id)).group_by(model.status).all()
            ):
                bookings[status] = bookings.get(status, 0) + count
            todays_bookings += query.filter(
                model.start_time < today_end,
                model.end_time > today_start,
                model.status.in_(BookingStatus.ACTIVE),
            ).count()
            booking_ids[kind] = {row[0] for row in query.with_entities(model.id).all()}

        payments = self.db.query(Payment).filter(Payment.payment_status == PaymentStatus.COMPLETED).all()
        for payment in payments:
            if payment.booking_id in booking_ids.get(payment.booking_type, set()):
                revenue += payment.amount

        ticket_query = self.db.query(func.count(SupportTicket.id)).filter(
            SupportTicket.status != TicketStatus.CLOSED
        )
        if branch_id is not None:
            ticket_query = ticket_query.filter(SupportTicket.branch_id == branch_id)

        stats = {
            "branch_id": branch_id,
            "branches": branch_query.scalar() or 0,
            "seats": {"total": sum(seats.values()), **seats},
            "bookings": {"total": sum(bookings.values()), **bookings},
            "todays_bookings": todays_bookings,
            "customers": self.db.query(func.count(Customer.id)).scalar() or 0,
            "open_tickets": ticket_query.scalar() or 0,
            "revenue": round(revenue, 2),
        }
        logger.info(f"📊 Dashboard stats computed for admin {admin.id} (branch {branch_id or 'all'})")
        return stats
