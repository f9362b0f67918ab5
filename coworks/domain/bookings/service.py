"""Booking service - business logic for seat and meeting bookings"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import ensure_branch_access, scoped_branch_id
from ...models import (
    Admin,
    BookingStatus,
    BookingType,
    Customer,
    MeetingBooking,
    Seat,
    SeatBooking,
    SeatingType,
    SeatingTypeName,
    SeatStatus,
)
from ..availability.repository import AvailabilityRepository
from .pricing import (
    DAILY,
    HOURLY,
    MONTHLY,
    apply_quantity_discounts,
    calculate_booking_cost,
    calculate_total_price,
)
from .repository import BookingRepository
from .schemas import BookingCostRequest, BookingCreate

logger = logging.getLogger(__name__)

MIN_DURATIONS = {
    SeatingTypeName.HOT_DESK: relativedelta(months=1),
    SeatingTypeName.DEDICATED_DESK: relativedelta(months=1),
    SeatingTypeName.CUBICLE: relativedelta(months=1),
    SeatingTypeName.MEETING_ROOM: relativedelta(hours=1),
    SeatingTypeName.DAILY_PASS: relativedelta(days=1),
}

MIN_DURATION_LABELS = {
    SeatingTypeName.HOT_DESK: "1 month",
    SeatingTypeName.DEDICATED_DESK: "1 month",
    SeatingTypeName.CUBICLE: "1 month",
    SeatingTypeName.MEETING_ROOM: "1 hour",
    SeatingTypeName.DAILY_PASS: "1 day",
}

# Admin status changes; anything else is rejected
TRANSITIONS = {
    BookingStatus.PENDING: (BookingStatus.CONFIRMED, BookingStatus.CANCELLED),
    BookingStatus.CONFIRMED: (BookingStatus.CANCELLED, BookingStatus.COMPLETED),
}

STATUS_FILTERS = ("active", "upcoming", "cancelled", "completed")


def booking_type_of(booking) -> str:
    return BookingType.MEETING if isinstance(booking, MeetingBooking) else BookingType.SEAT


def is_meeting_room(seating_type: SeatingType) -> bool:
    return seating_type.name == SeatingTypeName.MEETING_ROOM or bool(seating_type.is_meeting_room)


def serialize_booking(booking) -> dict:
    seat = booking.seat
    data = {
        "id": booking.id,
        "booking_type": booking_type_of(booking),
        "customer_id": booking.customer_id,
        "seat_id": booking.seat_id,
        "start_time": booking.start_time,
        "end_time": booking.end_time,
        "total_price": booking.total_price,
        "quantity": booking.quantity,
        "status": booking.status,
        "created_at": booking.created_at,
    }
    if isinstance(booking, MeetingBooking):
        data["num_participants"] = booking.num_participants
        data["amenities"] = booking.amenities or []
    if seat is not None:
        data["seat"] = {"id": seat.id, "seat_code": seat.seat_code, "seat_number": seat.seat_number}
        if seat.seating_type is not None:
            data["seating_type"] = {
                "id": seat.seating_type.id,
                "name": seat.seating_type.name,
                "short_code": seat.seating_type.short_code,
            }
        if seat.branch is not None:
            data["branch"] = {
                "id": seat.branch.id,
                "name": seat.branch.name,
                "short_code": seat.branch.short_code,
            }
    return data


def matches_status_filter(booking, status: str, now: datetime) -> bool:
    if status == "active":
        return booking.status == BookingStatus.CONFIRMED and booking.start_time <= now < booking.end_time
    if status == "upcoming":
        return booking.status in BookingStatus.ACTIVE and booking.start_time > now
    if status == "cancelled":
        return booking.status == BookingStatus.CANCELLED
    if status == "completed":
        return booking.status == BookingStatus.COMPLETED or (
            booking.status == BookingStatus.CONFIRMED and booking.end_time <= now
        )
    return True


def finish_booking(db: Session, booking, status: str) -> None:
    """
    Move a booking to CANCELLED or COMPLETED, free its time slots and put a
    BOOKED seat back to AVAILABLE once nothing else holds it. Caller commits.
    """
    booking.status = status
    repo = BookingRepository()
    repo.release_slots(db, booking.seat_id, booking.id)
    seat = booking.seat
    if seat is not None and seat.availability_status == SeatStatus.BOOKED:
        if not repo.seat_has_active_bookings(db, seat.id, exclude=(booking_type_of(booking), booking.id)):
            seat.availability_status = SeatStatus.AVAILABLE


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.availability = AvailabilityRepository()

    # ========================================================================
    # PRICING
    # ========================================================================

    def quote(self, seat: Seat, start: datetime, end: datetime, quantity: int) -> float:
        """Total price for quantity seats like seat over [start, end)"""
        seating_type = seat.seating_type
        if is_meeting_room(seating_type) or seating_type.is_hourly:
            rate_type, rate = HOURLY, seating_type.hourly_rate
        elif seating_type.name == SeatingTypeName.DAILY_PASS:
            rate_type, rate = DAILY, seating_type.daily_rate or (seating_type.hourly_rate or 0.0) * 24
        else:
            rate_type, rate = MONTHLY, seating_type.monthly_rate
        if not rate:
            rate = seat.price or 0.0

        per_seat = calculate_total_price(start, end, rate, 1, rate_type)
        branch_multiplier = seat.branch.cost_multiplier if seat.branch and seat.branch.cost_multiplier else 1.0
        base = per_seat * branch_multiplier * quantity
        return apply_quantity_discounts(base, quantity, seating_type.cost_multiplier)

    def calculate_cost(self, data: BookingCostRequest) -> dict:
        try:
            return calculate_booking_cost(
                data.start_date, data.end_date, data.monthly_rate, data.cancellation_date
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    # ========================================================================
    # CREATE
    # ========================================================================

    def _check_request(self, data: BookingCreate, seat: Seat) -> None:
        seating_type = seat.seating_type
        if data.seating_type_code and data.seating_type_code.lower() != seating_type.short_code:
            raise HTTPException(
                status_code=400,
                detail=f"Seat {seat.seat_code} is not of seating type {data.seating_type_code}",
            )

        meeting_room = is_meeting_room(seating_type)
        if data.type == BookingType.MEETING and not meeting_room:
            raise HTTPException(status_code=400, detail="Meeting bookings require a meeting room")
        if data.type == BookingType.SEAT and meeting_room:
            raise HTTPException(status_code=400, detail="Meeting rooms must be booked as meetings")

        minimum = MIN_DURATIONS.get(seating_type.name)
        if minimum and data.start_time + minimum > data.end_time:
            raise HTTPException(
                status_code=400,
                detail=f"{seating_type.name} bookings require a minimum duration of "
                f"{MIN_DURATION_LABELS[seating_type.name]}",
            )

        if seating_type.quantity_options and data.quantity not in seating_type.quantity_options:
            raise HTTPException(
                status_code=400,
                detail=f"Quantity must be one of: {', '.join(str(q) for q in seating_type.quantity_options)}",
            )

        if data.type == BookingType.MEETING:
            if data.quantity != 1:
                raise HTTPException(status_code=400, detail="Meeting bookings are for a single room")
            if seat.capacity and (data.num_participants or 1) > seat.capacity:
                raise HTTPException(
                    status_code=400,
                    detail=f"Meeting room capacity is {seat.capacity} participants",
                )

        if seat.availability_status != SeatStatus.AVAILABLE:
            raise HTTPException(status_code=400, detail=f"Seat {seat.seat_code} is not available")

    def _busy_reason(self, seat: Seat, start: datetime, end: datetime) -> Optional[str]:
        if self.availability.overlapping_bookings(self.db, [seat.id], start, end):
            return f"Seat {seat.seat_code} is already booked for the selected time"
        if self.availability.blocks_by_seat(self.db, [seat.id], start, end):
            return f"Seat {seat.seat_code} is under maintenance for the selected time"
        return None

    def create_booking(self, data: BookingCreate, customer: Customer) -> dict:
        """
        Book one seat, or quantity seats of the same type in the same branch.

        The requested seat is locked for the whole transaction; conflicts with
        active bookings or maintenance blocks give 409.
        """
        if data.end_time <= data.start_time:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        seat = self.repo.get_seat(self.db, data.seat_id, data.seat_code)
        if not seat:
            raise HTTPException(status_code=404, detail="Seat not found")
        self._check_request(data, seat)

        try:
            seat = self.repo.get_seat(self.db, seat.id, lock=True)
            reason = self._busy_reason(seat, data.start_time, data.end_time)
            if reason:
                raise HTTPException(status_code=409, detail=reason)

            seats = [seat]
            if data.quantity > 1:
                for candidate in self.repo.sibling_seats(self.db, seat):
                    if len(seats) == data.quantity:
                        break
                    if self._busy_reason(candidate, data.start_time, data.end_time) is None:
                        seats.append(candidate)
                if len(seats) < data.quantity:
                    raise HTTPException(
                        status_code=409,
                        detail=f"Only {len(seats)} seats are free for the selected time",
                    )

            try:
                total = self.quote(seat, data.start_time, data.end_time, data.quantity)
            except ValueError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            share = round(total / len(seats), 2)

            bookings = []
            for booked_seat in seats:
                if data.type == BookingType.MEETING:
                    booking = MeetingBooking(
                        customer_id=customer.id,
                        meeting_room_id=booked_seat.id,
                        start_time=data.start_time,
                        end_time=data.end_time,
                        num_participants=data.num_participants or 1,
                        amenities=data.amenities,
                        total_price=share,
                        status=BookingStatus.CONFIRMED,
                    )
                else:
                    booking = SeatBooking(
                        customer_id=customer.id,
                        seat_id=booked_seat.id,
                        start_time=data.start_time,
                        end_time=data.end_time,
                        quantity=1,
                        total_price=share,
                        status=BookingStatus.CONFIRMED,
                    )
                self.repo.add(self.db, booking)
                self.repo.reserve_slots(self.db, booked_seat.id, booking.id, data.start_time, data.end_time)
                bookings.append(booking)

            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Booking failed for customer {customer.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to create booking") from e

        for booking in bookings:
            self.db.refresh(booking)
        logger.info(
            f"✅ Customer {customer.id} booked {len(bookings)} seat(s) starting {seat.seat_code} "
            f"({data.start_time.isoformat()} - {data.end_time.isoformat()}) for {total}"
        )
        return {
            "bookings": [serialize_booking(b) for b in bookings],
            "quantity": len(bookings),
            "total_price": total,
        }

    # ========================================================================
    # CUSTOMER QUERIES
    # ========================================================================

    def list_customer_bookings(
        self,
        customer: Customer,
        booking_type: Optional[str] = None,
        status: Optional[str] = None,
        branch_code: Optional[str] = None,
        seating_type_code: Optional[str] = None,
    ) -> list[dict]:
        if booking_type and booking_type not in BookingType.ALL:
            raise HTTPException(status_code=400, detail="type must be seat or meeting")
        if status and status not in STATUS_FILTERS:
            raise HTTPException(status_code=400, detail=f"status must be one of: {', '.join(STATUS_FILTERS)}")

        now = datetime.utcnow()
        result = []
        for booking in self.repo.list_for_customer(self.db, customer.id, booking_type):
            if status and not matches_status_filter(booking, status, now):
                continue
            seat = booking.seat
            if branch_code and (seat is None or seat.branch.short_code != branch_code.lower()):
                continue
            if seating_type_code and (seat is None or seat.seating_type.short_code != seating_type_code.lower()):
                continue
            result.append(booking)

        result.sort(key=lambda b: (b.created_at or datetime.min, b.id), reverse=True)
        return [serialize_booking(b) for b in result]

    def get_owned_booking(self, booking_id: int, booking_type: str, customer: Customer):
        if booking_type not in BookingType.ALL:
            raise HTTPException(status_code=400, detail="type must be seat or meeting")
        booking = self.repo.get_booking(self.db, booking_id, booking_type)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        if booking.customer_id != customer.id:
            raise HTTPException(status_code=403, detail="You do not have access to this booking")
        return booking

    def refund_info(self, booking, cancelled_on) -> Optional[dict]:
        """Pro-rata refund for a cancelled monthly booking, None for other types"""
        seat = booking.seat
        if seat is None or seat.seating_type is None:
            return None
        seating_type = seat.seating_type
        if seating_type.name not in SeatingTypeName.MONTHLY or not seating_type.monthly_rate:
            return None

        multiplier = seat.branch.cost_multiplier if seat.branch and seat.branch.cost_multiplier else 1.0
        last_day = (booking.end_time - timedelta(microseconds=1)).date()
        return calculate_booking_cost(
            booking.start_time.date(),
            last_day,
            seating_type.monthly_rate * multiplier * booking.quantity,
            cancellation_date=cancelled_on,
        )

    def cancel_booking(self, booking_id: int, booking_type: str, customer: Customer) -> dict:
        booking = self.get_owned_booking(booking_id, booking_type, customer)
        if booking.status == BookingStatus.COMPLETED:
            raise HTTPException(status_code=400, detail="Completed bookings cannot be cancelled")
        if booking.status == BookingStatus.CANCELLED:
            raise HTTPException(status_code=400, detail="Booking is already cancelled")

        finish_booking(self.db, booking, BookingStatus.CANCELLED)
        self.db.commit()
        self.db.refresh(booking)
        logger.info(f"🚫 Customer {customer.id} cancelled {booking_type} booking {booking.id}")

        return {
            "booking": serialize_booking(booking),
            "refund": self.refund_info(booking, datetime.utcnow().date()),
        }

    # ========================================================================
    # ADMIN
    # ========================================================================

    def list_bookings(
        self,
        admin: Admin,
        status: Optional[str] = None,
        booking_type: Optional[str] = None,
        branch_id: Optional[int] = None,
        customer_id: Optional[int] = None,
    ) -> list[dict]:
        if status:
            status = status.upper()
            if status not in BookingStatus.ALL:
                raise HTTPException(
                    status_code=400, detail=f"status must be one of: {', '.join(BookingStatus.ALL)}"
                )
        if booking_type and booking_type not in BookingType.ALL:
            raise HTTPException(status_code=400, detail="type must be seat or meeting")

        bookings = self.repo.list_bookings(
            self.db,
            status=status,
            booking_type=booking_type,
            branch_id=scoped_branch_id(admin, branch_id),
            customer_id=customer_id,
        )
        bookings.sort(key=lambda b: (b.created_at or datetime.min, b.id), reverse=True)
        return [serialize_booking(b) for b in bookings]

    def update_status(self, booking_id: int, booking_type: str, status: str, admin: Admin) -> dict:
        if booking_type not in BookingType.ALL:
            raise HTTPException(status_code=400, detail="type must be seat or meeting")
        booking = self.repo.get_booking(self.db, booking_id, booking_type)
        if not booking:
            raise HTTPException(status_code=404, detail="Booking not found")
        ensure_branch_access(admin, booking.seat.branch_id)

        old_status = booking.status
        if status not in TRANSITIONS.get(old_status, ()):
            raise HTTPException(
                status_code=400,
                detail=f"Cannot change booking status from {old_status} to {status}",
            )

        if status in BookingStatus.FINISHED:
            finish_booking(self.db, booking, status)
        else:
            booking.status = status
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"✏️ Admin {admin.id} moved {booking_type} booking {booking.id}: {old_status} -> {status}")
        return serialize_booking(booking)
