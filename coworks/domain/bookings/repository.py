"""Booking repository - seat and meeting bookings and their time slots"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import (
    BookingStatus,
    BookingType,
    MeetingBooking,
    Seat,
    SeatBooking,
    SeatStatus,
    TimeSlot,
)
from ...shared.validators import intervals_overlap


def model_for(booking_type: str):
    return MeetingBooking if booking_type == BookingType.MEETING else SeatBooking


class BookingRepository:
    """Repository for booking operations"""

    @staticmethod
    def get_seat(
        db: Session, seat_id: Optional[int] = None, seat_code: Optional[str] = None, lock: bool = False
    ) -> Optional[Seat]:
        query = db.query(Seat)
        if seat_id is not None:
            query = query.filter(Seat.id == seat_id)
        elif seat_code:
            query = query.filter(Seat.seat_code == seat_code.upper())
        else:
            return None
        if lock:
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def sibling_seats(db: Session, seat: Seat) -> list[Seat]:
        """AVAILABLE seats of the same branch and seating type, excluding the seat itself"""
        return (
            db.query(Seat)
            .filter(
                Seat.branch_id == seat.branch_id,
                Seat.seating_type_id == seat.seating_type_id,
                Seat.availability_status == SeatStatus.AVAILABLE,
                Seat.id != seat.id,
            )
            .order_by(Seat.seat_number)
            .all()
        )

    @staticmethod
    def get_booking(db: Session, booking_id: int, booking_type: str):
        model = model_for(booking_type)
        return db.query(model).filter(model.id == booking_id).first()

    @staticmethod
    def add(db: Session, booking):
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def list_for_customer(db: Session, customer_id: int, booking_type: Optional[str] = None) -> list:
        bookings = []
        if booking_type in (None, BookingType.SEAT):
            bookings += (
                db.query(SeatBooking)
                .options(joinedload(SeatBooking.seat).joinedload(Seat.branch))
                .filter(SeatBooking.customer_id == customer_id)
                .all()
            )
        if booking_type in (None, BookingType.MEETING):
            bookings += (
                db.query(MeetingBooking)
                .options(joinedload(MeetingBooking.meeting_room).joinedload(Seat.branch))
                .filter(MeetingBooking.customer_id == customer_id)
                .all()
            )
        return bookings

    @staticmethod
    def list_bookings(
        db: Session,
        status: Optional[str] = None,
        booking_type: Optional[str] = None,
        branch_id: Optional[int] = None,
        customer_id: Optional[int] = None,
    ) -> list:
        bookings = []
        for kind in BookingType.ALL:
            if booking_type and booking_type != kind:
                continue
            model = model_for(kind)
            seat_column = model.meeting_room_id if model is MeetingBooking else model.seat_id
            query = db.query(model).join(Seat, seat_column == Seat.id)
            if status:
                query = query.filter(model.status == status)
            if branch_id is not None:
                query = query.filter(Seat.branch_id == branch_id)
            if customer_id is not None:
                query = query.filter(model.customer_id == customer_id)
            bookings += query.all()
        return bookings

    @staticmethod
    def ended_bookings(db: Session, now: datetime) -> list:
        """PENDING and CONFIRMED bookings whose end time has passed"""
        bookings = []
        for model in (SeatBooking, MeetingBooking):
            bookings += (
                db.query(model)
                .filter(model.status.in_(BookingStatus.ACTIVE), model.end_time <= now)
                .all()
            )
        return bookings

    # Time slots
    @staticmethod
    def reserve_slots(db: Session, seat_id: int, booking_id: int, start: datetime, end: datetime) -> int:
        """Mark free slots of the seat that overlap [start, end) as taken by the booking"""
        slots = (
            db.query(TimeSlot)
            .filter(
                TimeSlot.seat_id == seat_id,
                TimeSlot.is_available.is_(True),
                TimeSlot.date >= start.date(),
                TimeSlot.date <= (end - timedelta(microseconds=1)).date(),
            )
            .all()
        )
        reserved = 0
        for slot in slots:
            slot_start = datetime.combine(slot.date, slot.start_time)
            slot_end = datetime.combine(slot.date, slot.end_time)
            if intervals_overlap(slot_start, slot_end, start, end):
                slot.is_available = False
                slot.booking_id = booking_id
                reserved += 1
        return reserved

    @staticmethod
    def release_slots(db: Session, seat_id: int, booking_id: int) -> int:
        return (
            db.query(TimeSlot)
            .filter(TimeSlot.seat_id == seat_id, TimeSlot.booking_id == booking_id)
            .update({"is_available": True, "booking_id": None}, synchronize_session=False)
        )

    @staticmethod
    def seat_has_active_bookings(db: Session, seat_id: int, exclude: Optional[tuple] = None) -> bool:
        for kind in BookingType.ALL:
            model = model_for(kind)
            seat_column = model.meeting_room_id if model is MeetingBooking else model.seat_id
            query = db.query(model.id).filter(seat_column == seat_id, model.status.in_(BookingStatus.ACTIVE))
            if exclude and exclude[0] == kind:
                query = query.filter(model.id != exclude[1])
            if query.first() is not None:
                return True
        return False
