"""Availability repository - slot, booking-overlap and maintenance queries"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import (
    Branch,
    BookingStatus,
    BookingType,
    MaintenanceBlock,
    MeetingBooking,
    Seat,
    SeatBooking,
    SeatingType,
    TimeSlot,
)


class AvailabilityRepository:
    """Repository for time slots, maintenance blocks and booking overlap"""

    # Lookups
    @staticmethod
    def get_branch(db: Session, branch_id: Optional[int] = None, branch_code: Optional[str] = None):
        if branch_id is not None:
            return db.query(Branch).filter(Branch.id == branch_id).first()
        if branch_code:
            return db.query(Branch).filter(Branch.short_code == branch_code.lower()).first()
        return None

    @staticmethod
    def get_seating_type(db: Session, type_id: Optional[int] = None, code: Optional[str] = None):
        if type_id is not None:
            return db.query(SeatingType).filter(SeatingType.id == type_id).first()
        if code:
            return db.query(SeatingType).filter(SeatingType.short_code == code.lower()).first()
        return None

    @staticmethod
    def get_seat(db: Session, seat_id: int, lock: bool = False) -> Optional[Seat]:
        query = db.query(Seat).filter(Seat.id == seat_id)
        if lock:
            # Row lock held until commit; no-op on SQLite
            query = query.with_for_update()
        return query.first()

    @staticmethod
    def list_branches(db: Session, branch_id: Optional[int] = None) -> list[Branch]:
        query = db.query(Branch)
        if branch_id is not None:
            query = query.filter(Branch.id == branch_id)
        return query.order_by(Branch.id).all()

    @staticmethod
    def list_active_seating_types(db: Session, type_id: Optional[int] = None) -> list[SeatingType]:
        query = db.query(SeatingType).filter(SeatingType.is_active.is_(True))
        if type_id is not None:
            query = query.filter(SeatingType.id == type_id)
        return query.order_by(SeatingType.id).all()

    @staticmethod
    def list_seats(
        db: Session,
        branch_id: int,
        seating_type_id: Optional[int] = None,
        status: Optional[str] = None,
    ) -> list[Seat]:
        query = (
            db.query(Seat)
            .options(joinedload(Seat.seating_type))
            .filter(Seat.branch_id == branch_id)
        )
        if seating_type_id is not None:
            query = query.filter(Seat.seating_type_id == seating_type_id)
        if status:
            query = query.filter(Seat.availability_status == status)
        return query.order_by(Seat.seat_number).all()

    # Time slots
    @staticmethod
    def list_slots(
        db: Session,
        slot_date: date,
        branch_id: Optional[int] = None,
        seat_id: Optional[int] = None,
        seating_type_id: Optional[int] = None,
    ) -> list[TimeSlot]:
        query = (
            db.query(TimeSlot)
            .join(Seat, TimeSlot.seat_id == Seat.id)
            .options(joinedload(TimeSlot.seat).joinedload(Seat.seating_type))
            .filter(TimeSlot.date == slot_date)
        )
        if branch_id is not None:
            query = query.filter(TimeSlot.branch_id == branch_id)
        if seat_id is not None:
            query = query.filter(TimeSlot.seat_id == seat_id)
        if seating_type_id is not None:
            query = query.filter(Seat.seating_type_id == seating_type_id)
        return query.order_by(TimeSlot.start_time, Seat.seat_number).all()

    @staticmethod
    def count_slots(
        db: Session, branch_id: int, slot_date: date, seating_type_id: Optional[int] = None
    ) -> int:
        query = db.query(TimeSlot).filter(TimeSlot.branch_id == branch_id, TimeSlot.date == slot_date)
        if seating_type_id is not None:
            query = query.join(Seat, TimeSlot.seat_id == Seat.id).filter(
                Seat.seating_type_id == seating_type_id
            )
        return query.count()

    @staticmethod
    def delete_free_slots(
        db: Session, branch_id: int, slot_date: date, seating_type_id: Optional[int] = None
    ) -> int:
        """Delete available, unbooked slots; reserved slots are kept"""
        query = db.query(TimeSlot.id).filter(
            TimeSlot.branch_id == branch_id,
            TimeSlot.date == slot_date,
            TimeSlot.is_available.is_(True),
            TimeSlot.booking_id.is_(None),
        )
        if seating_type_id is not None:
            query = query.join(Seat, TimeSlot.seat_id == Seat.id).filter(
                Seat.seating_type_id == seating_type_id
            )
        ids = [row[0] for row in query.all()]
        if not ids:
            return 0
        return db.query(TimeSlot).filter(TimeSlot.id.in_(ids)).delete(synchronize_session=False)

    @staticmethod
    def existing_slot_starts(db: Session, seat_ids: list[int], slot_date: date) -> set:
        """{(seat_id, start_time)} of slots already present on a date"""
        if not seat_ids:
            return set()
        rows = (
            db.query(TimeSlot.seat_id, TimeSlot.start_time)
            .filter(TimeSlot.seat_id.in_(seat_ids), TimeSlot.date == slot_date)
            .all()
        )
        return {(seat_id, start) for seat_id, start in rows}

    @staticmethod
    def add_all(db: Session, rows: list) -> None:
        db.add_all(rows)

    # Bookings
    @staticmethod
    def live_booking_keys(db: Session, seat_ids: list[int]) -> set:
        """{(seat_id, booking_id)} for every booking that exists on the given seats"""
        if not seat_ids:
            return set()
        seat_rows = db.query(SeatBooking.seat_id, SeatBooking.id).filter(
            SeatBooking.seat_id.in_(seat_ids)
        )
        meeting_rows = db.query(MeetingBooking.meeting_room_id, MeetingBooking.id).filter(
            MeetingBooking.meeting_room_id.in_(seat_ids)
        )
        return {tuple(row) for row in seat_rows.all()} | {tuple(row) for row in meeting_rows.all()}

    @staticmethod
    def overlapping_bookings(
        db: Session,
        seat_ids: list[int],
        start: datetime,
        end: datetime,
        statuses=BookingStatus.ACTIVE,
    ) -> list[dict]:
        """Seat and meeting bookings on the seats whose range overlaps [start, end)"""
        if not seat_ids:
            return []
        found = []
        seat_bookings = (
            db.query(SeatBooking)
            .filter(
                SeatBooking.seat_id.in_(seat_ids),
                SeatBooking.status.in_(statuses),
                SeatBooking.start_time < end,
                SeatBooking.end_time > start,
            )
            .all()
        )
        for booking in seat_bookings:
            found.append(
                {
                    "booking_id": booking.id,
                    "booking_type": BookingType.SEAT,
                    "seat_id": booking.seat_id,
                    "start_time": booking.start_time,
                    "end_time": booking.end_time,
                    "status": booking.status,
                }
            )
        meetings = (
            db.query(MeetingBooking)
            .filter(
                MeetingBooking.meeting_room_id.in_(seat_ids),
                MeetingBooking.status.in_(statuses),
                MeetingBooking.start_time < end,
                MeetingBooking.end_time > start,
            )
            .all()
        )
        for booking in meetings:
            found.append(
                {
                    "booking_id": booking.id,
                    "booking_type": BookingType.MEETING,
                    "seat_id": booking.meeting_room_id,
                    "start_time": booking.start_time,
                    "end_time": booking.end_time,
                    "status": booking.status,
                }
            )
        return sorted(found, key=lambda b: b["start_time"])

    # Maintenance blocks
    @staticmethod
    def blocks_by_seat(db: Session, seat_ids: list[int], start: datetime, end: datetime) -> dict:
        """{seat_id: [MaintenanceBlock]} overlapping [start, end)"""
        if not seat_ids:
            return {}
        blocks = (
            db.query(MaintenanceBlock)
            .filter(
                MaintenanceBlock.seat_id.in_(seat_ids),
                MaintenanceBlock.start_time < end,
                MaintenanceBlock.end_time > start,
            )
            .order_by(MaintenanceBlock.start_time)
            .all()
        )
        grouped: dict[int, list] = {}
        for block in blocks:
            grouped.setdefault(block.seat_id, []).append(block)
        return grouped

    @staticmethod
    def list_blocks(
        db: Session,
        seat_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[MaintenanceBlock]:
        query = db.query(MaintenanceBlock).options(joinedload(MaintenanceBlock.seat))
        if seat_id is not None:
            query = query.filter(MaintenanceBlock.seat_id == seat_id)
        if branch_id is not None:
            query = query.join(Seat, MaintenanceBlock.seat_id == Seat.id).filter(
                Seat.branch_id == branch_id
            )
        if start_date is not None:
            query = query.filter(MaintenanceBlock.end_time >= start_date)
        if end_date is not None:
            query = query.filter(MaintenanceBlock.start_time <= end_date)
        return query.order_by(MaintenanceBlock.start_time).all()

    @staticmethod
    def get_block(db: Session, block_id: int) -> Optional[MaintenanceBlock]:
        return db.query(MaintenanceBlock).filter(MaintenanceBlock.id == block_id).first()
