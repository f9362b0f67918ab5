"""Seating repository - Database operations for seating types and seats"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import (
    Branch,
    MaintenanceBlock,
    MeetingBooking,
    Seat,
    SeatBooking,
    SeatingType,
    TimeSlot,
)


class SeatingRepository:
    """Repository for seating type and seat database operations"""

    # Seating types
    @staticmethod
    def list_types(db: Session, is_active: Optional[bool] = None) -> list[SeatingType]:
        query = db.query(SeatingType)
        if is_active is not None:
            query = query.filter(SeatingType.is_active == is_active)
        return query.order_by(SeatingType.id).all()

    @staticmethod
    def get_type(db: Session, type_id: int) -> Optional[SeatingType]:
        return db.query(SeatingType).filter(SeatingType.id == type_id).first()

    @staticmethod
    def get_type_by_code(db: Session, short_code: str) -> Optional[SeatingType]:
        return db.query(SeatingType).filter(SeatingType.short_code == short_code.lower()).first()

    @staticmethod
    def type_conflicts(
        db: Session, name: Optional[str], short_code: Optional[str], exclude_id: Optional[int] = None
    ) -> bool:
        conditions = []
        if name:
            conditions.append(SeatingType.name == name)
        if short_code:
            conditions.append(SeatingType.short_code == short_code)
        if not conditions:
            return False
        query = db.query(SeatingType.id).filter(or_(*conditions))
        if exclude_id is not None:
            query = query.filter(SeatingType.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def type_in_use(db: Session, type_id: int) -> bool:
        return db.query(Seat.id).filter(Seat.seating_type_id == type_id).first() is not None

    # Seats
    @staticmethod
    def list_seats(
        db: Session,
        branch_id: Optional[int] = None,
        branch_code: Optional[str] = None,
        seating_type_id: Optional[int] = None,
        seating_type_code: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Seat]:
        query = db.query(Seat).options(joinedload(Seat.seating_type), joinedload(Seat.branch))
        if branch_id is not None:
            query = query.filter(Seat.branch_id == branch_id)
        if branch_code:
            query = query.join(Branch, Seat.branch_id == Branch.id).filter(
                Branch.short_code == branch_code.lower()
            )
        if seating_type_id is not None:
            query = query.filter(Seat.seating_type_id == seating_type_id)
        if seating_type_code:
            query = query.join(SeatingType, Seat.seating_type_id == SeatingType.id).filter(
                SeatingType.short_code == seating_type_code.lower()
            )
        if status:
            query = query.filter(Seat.availability_status == status.upper())
        return query.order_by(Seat.branch_id, Seat.seat_code).all()

    @staticmethod
    def get_seat(db: Session, seat_id: int) -> Optional[Seat]:
        return db.query(Seat).filter(Seat.id == seat_id).first()

    @staticmethod
    def get_seat_by_code(db: Session, seat_code: str) -> Optional[Seat]:
        return db.query(Seat).filter(Seat.seat_code == seat_code.upper()).first()

    @staticmethod
    def seat_has_bookings(db: Session, seat_id: int) -> bool:
        seat_booking = db.query(SeatBooking.id).filter(SeatBooking.seat_id == seat_id).first()
        meeting = db.query(MeetingBooking.id).filter(MeetingBooking.meeting_room_id == seat_id).first()
        return seat_booking is not None or meeting is not None

    @staticmethod
    def delete_seat(db: Session, seat: Seat) -> None:
        """Remove a seat along with its slots and maintenance blocks"""
        db.query(TimeSlot).filter(TimeSlot.seat_id == seat.id).delete(synchronize_session=False)
        db.query(MaintenanceBlock).filter(MaintenanceBlock.seat_id == seat.id).delete(
            synchronize_session=False
        )
        db.delete(seat)
        db.commit()

    @staticmethod
    def add(db: Session, instance):
        db.add(instance)
        db.commit()
        db.refresh(instance)
        return instance

    @staticmethod
    def update(db: Session, instance, **updates):
        for key, value in updates.items():
            if value is not None and hasattr(instance, key):
                setattr(instance, key, value)
        db.commit()
        db.refresh(instance)
        return instance

    @staticmethod
    def delete(db: Session, instance) -> None:
        db.delete(instance)
        db.commit()
