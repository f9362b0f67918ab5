"""Availability service - slot queries, seat search, date-range availability and maintenance"""

import logging
import math
from datetime import date, datetime, time, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import ensure_branch_access, scoped_branch_id
from ...models import (
    Admin,
    Branch,
    MaintenanceBlock,
    SeatingType,
    SeatingTypeName,
    SeatStatus,
    TimeSlot,
)
from ...shared.validators import intervals_overlap, is_bare_date, parse_date, parse_datetime
from .partition import BUCKETS, partition_slots
from .repository import AvailabilityRepository
from .schemas import MaintenanceBlockCreate, SlotGenerateRequest

logger = logging.getLogger(__name__)

SLOT_LENGTH = timedelta(hours=2)
DEFAULT_OPENING_HOUR = 8
DEFAULT_CLOSING_HOUR = 18
MAX_RANGE_DAYS = 31

BOOKING_INFO = {
    SeatingTypeName.HOT_DESK: {
        "message": "Hot desk booking requires a minimum duration of 1 month",
        "can_book_multiple": True,
    },
    SeatingTypeName.DEDICATED_DESK: {
        "message": "Dedicated desk booking requires a minimum duration of 1 month with minimum 1 seat",
        "can_book_multiple": True,
    },
    SeatingTypeName.CUBICLE: {
        "message": "Cubicle booking requires a minimum duration of 1 month",
        "can_book_multiple": False,
    },
    SeatingTypeName.MEETING_ROOM: {
        "message": "Meeting room booking is on an hourly basis",
        "can_book_multiple": False,
    },
    SeatingTypeName.DAILY_PASS: {
        "message": "Daily pass booking is for a single day",
        "can_book_multiple": True,
    },
}


def parse_date_param(value: Optional[str], field: str, default: Optional[date] = None) -> Optional[date]:
    try:
        return parse_date(value, field) or default
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def check_availability_filter(availability: Optional[str]) -> Optional[str]:
    if not availability or availability == "all":
        return None
    availability = availability.lower()
    if availability not in BUCKETS:
        raise HTTPException(
            status_code=400,
            detail=f"availability must be one of: {', '.join(BUCKETS)}, all",
        )
    return availability


def is_hourly_type(seating_type: SeatingType) -> bool:
    return bool(seating_type.is_hourly) or seating_type.name == SeatingTypeName.MEETING_ROOM


def day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def branch_summary(branch: Branch) -> dict:
    return {
        "id": branch.id,
        "name": branch.name,
        "short_code": branch.short_code,
        "location": branch.location,
        "address": branch.address,
        "opening_time": branch.opening_time,
        "closing_time": branch.closing_time,
    }


def seating_type_summary(seating_type: SeatingType) -> dict:
    return {
        "id": seating_type.id,
        "name": seating_type.name,
        "short_code": seating_type.short_code,
        "description": seating_type.description,
        "hourly_rate": seating_type.hourly_rate,
        "daily_rate": seating_type.daily_rate,
        "monthly_rate": seating_type.monthly_rate,
        "is_hourly": seating_type.is_hourly,
        "min_booking_duration": seating_type.min_booking_duration,
        "min_seats": seating_type.min_seats,
    }


def group_by_seat(bookings: list[dict]) -> dict:
    grouped: dict[int, list] = {}
    for booking in bookings:
        grouped.setdefault(booking["seat_id"], []).append(booking)
    return grouped


def serialize_block(block: MaintenanceBlock) -> dict:
    return {
        "id": block.id,
        "seat_id": block.seat_id,
        "seat_code": block.seat.seat_code if block.seat is not None else None,
        "start_time": block.start_time,
        "end_time": block.end_time,
        "reason": block.reason,
        "notes": block.notes,
        "created_by": block.created_by,
        "created_at": block.created_at,
    }


class AvailabilityService:
    """Service layer for slots, availability windows and maintenance blocks"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AvailabilityRepository()

    # ========================================================================
    # LOOKUP HELPERS
    # ========================================================================

    def _resolve_branch(self, branch_id: Optional[int], branch_code: Optional[str]) -> Branch:
        if branch_id is None and not branch_code:
            raise HTTPException(status_code=400, detail="branch_id or branch_code is required")
        branch = self.repo.get_branch(self.db, branch_id, branch_code)
        if not branch:
            if branch_code and branch_id is None:
                raise HTTPException(status_code=404, detail=f"Branch with code {branch_code} not found")
            raise HTTPException(status_code=404, detail="Branch not found")
        return branch

    def _resolve_seating_type(
        self, type_id: Optional[int], type_code: Optional[str]
    ) -> Optional[SeatingType]:
        if type_id is None and not type_code:
            return None
        seating_type = self.repo.get_seating_type(self.db, type_id, type_code)
        if not seating_type:
            raise HTTPException(status_code=404, detail="Seating type not found")
        return seating_type

    def _partition_for_day(self, slots: list[TimeSlot], day: date, availability: Optional[str]) -> dict:
        seat_ids = sorted({s.seat_id for s in slots})
        start, end = day_bounds(day)
        return partition_slots(
            slots,
            live_bookings=self.repo.live_booking_keys(self.db, seat_ids),
            blocks_by_seat=self.repo.blocks_by_seat(self.db, seat_ids, start, end),
            availability=availability,
        )

    # ========================================================================
    # TIME SLOTS
    # ========================================================================

    def get_slots(
        self,
        branch_id: Optional[int] = None,
        branch_code: Optional[str] = None,
        seat_id: Optional[int] = None,
        seating_type_id: Optional[int] = None,
        seating_type_code: Optional[str] = None,
        date_str: Optional[str] = None,
        availability: Optional[str] = None,
    ) -> dict:
        """Slots of one branch and day, partitioned into buckets"""
        availability = check_availability_filter(availability)
        branch = self._resolve_branch(branch_id, branch_code)
        seating_type = self._resolve_seating_type(seating_type_id, seating_type_code)
        slot_date = parse_date_param(date_str, "date", datetime.utcnow().date())

        slots = self.repo.list_slots(
            self.db,
            slot_date,
            branch_id=branch.id,
            seat_id=seat_id,
            seating_type_id=seating_type.id if seating_type else None,
        )
        logger.info(f"🔍 {len(slots)} slots for branch {branch.short_code} on {slot_date}")

        return {
            "date": slot_date,
            "branch_id": branch.id,
            "branch_code": branch.short_code,
            **self._partition_for_day(slots, slot_date, availability),
        }

    def get_categorized_slots(
        self,
        date_str: Optional[str] = None,
        branch_id: Optional[int] = None,
        seating_type_id: Optional[int] = None,
        availability: Optional[str] = None,
    ) -> dict:
        """Slots of a day grouped by branch and seating type; empty groups are omitted"""
        availability = check_availability_filter(availability)
        slot_date = parse_date_param(date_str, "date", datetime.utcnow().date())

        seating_types = self.repo.list_active_seating_types(self.db, seating_type_id)
        if not seating_types:
            raise HTTPException(status_code=404, detail="No seating types found")
        branches = self.repo.list_branches(self.db, branch_id)
        if not branches:
            raise HTTPException(status_code=404, detail="No branches found")

        slots = self.repo.list_slots(self.db, slot_date, branch_id=branch_id, seating_type_id=seating_type_id)
        grouped: dict[tuple[int, int], list] = {}
        for slot in slots:
            grouped.setdefault((slot.branch_id, slot.seat.seating_type_id), []).append(slot)

        seat_ids = sorted({s.seat_id for s in slots})
        start, end = day_bounds(slot_date)
        live_bookings = self.repo.live_booking_keys(self.db, seat_ids)
        blocks = self.repo.blocks_by_seat(self.db, seat_ids, start, end)

        result = []
        for branch in branches:
            type_groups = []
            for seating_type in seating_types:
                group = grouped.get((branch.id, seating_type.id))
                if not group:
                    continue
                type_groups.append(
                    {
                        "seating_type_id": seating_type.id,
                        "seating_type_name": seating_type.name,
                        "short_code": seating_type.short_code,
                        **partition_slots(group, live_bookings, blocks, availability),
                    }
                )
            if type_groups:
                result.append(
                    {
                        "branch_id": branch.id,
                        "branch_name": branch.name,
                        "branch_code": branch.short_code,
                        "seating_types": type_groups,
                    }
                )

        return {"date": slot_date, "branches": result}

    def generate_slots(self, data: SlotGenerateRequest, admin: Admin) -> dict:
        """Create two-hour slots from opening to closing for each AVAILABLE seat"""
        branch = self._resolve_branch(data.branch_id, data.branch_code)
        ensure_branch_access(admin, branch.id)
        if data.date < datetime.utcnow().date():
            raise HTTPException(status_code=400, detail="Cannot generate slots for a past date")
        seating_type = self._resolve_seating_type(data.seating_type_id, None)
        type_id = seating_type.id if seating_type else None

        existing = self.repo.count_slots(self.db, branch.id, data.date, type_id)
        if existing and not data.regenerate:
            raise HTTPException(
                status_code=409,
                detail={
                    "message": f"Time slots already exist for {data.date.isoformat()}; pass regenerate to rebuild them",
                    "existing_count": existing,
                },
            )

        seats = self.repo.list_seats(self.db, branch.id, type_id, status=SeatStatus.AVAILABLE)
        if not seats:
            raise HTTPException(status_code=404, detail="No available seats found for this branch")

        windows = []
        cursor = datetime.combine(data.date, branch.opening_time or time(DEFAULT_OPENING_HOUR))
        closing = datetime.combine(data.date, branch.closing_time or time(DEFAULT_CLOSING_HOUR))
        while cursor + SLOT_LENGTH <= closing:
            windows.append((cursor, cursor + SLOT_LENGTH))
            cursor += SLOT_LENGTH

        try:
            deleted = self.repo.delete_free_slots(self.db, branch.id, data.date, type_id) if data.regenerate else 0
            seat_ids = [s.id for s in seats]
            taken = self.repo.existing_slot_starts(self.db, seat_ids, data.date)
            day_start, day_end = day_bounds(data.date)
            bookings = group_by_seat(self.repo.overlapping_bookings(self.db, seat_ids, day_start, day_end))

            rows = []
            for seat in seats:
                for start, end in windows:
                    if (seat.id, start.time()) in taken:
                        continue
                    booking = next(
                        (
                            b
                            for b in bookings.get(seat.id, [])
                            if intervals_overlap(start, end, b["start_time"], b["end_time"])
                        ),
                        None,
                    )
                    rows.append(
                        TimeSlot(
                            branch_id=branch.id,
                            seat_id=seat.id,
                            date=data.date,
                            start_time=start.time(),
                            end_time=end.time(),
                            is_available=booking is None,
                            booking_id=booking["booking_id"] if booking else None,
                        )
                    )
            self.repo.add_all(self.db, rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Slot generation failed for branch {branch.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to generate time slots") from e

        logger.info(
            f"✅ Generated {len(rows)} slots for {len(seats)} seats in {branch.short_code} on {data.date}"
        )
        return {
            "branch_id": branch.id,
            "branch_code": branch.short_code,
            "date": data.date,
            "seats": len(seats),
            "slots_created": len(rows),
            "slots_deleted": deleted,
        }

    # ========================================================================
    # SEAT SEARCH
    # ========================================================================

    def _hourly_windows(
        self, branch: Branch, start: datetime, end: datetime, bookings: list, blocks: list
    ) -> list[dict]:
        opening = branch.opening_time.hour if branch.opening_time else DEFAULT_OPENING_HOUR
        closing = branch.closing_time.hour if branch.closing_time else DEFAULT_CLOSING_HOUR

        windows = []
        day = start.date()
        while datetime.combine(day, time.min) < end:
            for hour in range(opening, closing):
                window_start = datetime.combine(day, time(hour))
                window_end = window_start + timedelta(hours=1)
                if window_start < start or window_end > end:
                    continue
                busy = any(
                    intervals_overlap(window_start, window_end, b["start_time"], b["end_time"])
                    for b in bookings
                ) or any(
                    intervals_overlap(window_start, window_end, b.start_time, b.end_time) for b in blocks
                )
                windows.append(
                    {"start_time": window_start, "end_time": window_end, "is_available": not busy}
                )
            day += timedelta(days=1)
        return windows

    def estimate_price(self, seating_type: SeatingType, start: datetime, end: datetime) -> dict:
        hours = (end - start).total_seconds() / 3600
        if is_hourly_type(seating_type):
            unit_rate = seating_type.hourly_rate or 0.0
            return {
                "rate_type": "hourly",
                "duration": round(hours, 2),
                "unit": "hours",
                "unit_rate": unit_rate,
                "total_price": round(unit_rate * hours, 2),
            }

        days = max(1, math.ceil(hours / 24))
        unit_rate = seating_type.daily_rate or (seating_type.hourly_rate or 0.0) * 24
        return {
            "rate_type": "daily",
            "duration": days,
            "unit": "days",
            "unit_rate": unit_rate,
            "total_price": round(unit_rate * days, 2),
        }

    def get_available_seats(
        self,
        branch_code: Optional[str],
        seating_type_code: Optional[str],
        start_date: Optional[str],
        end_date: Optional[str] = None,
    ) -> dict:
        """Free seats of a branch and seating type for a period, with pricing"""
        if not branch_code:
            raise HTTPException(status_code=400, detail="Branch code is required")
        if not seating_type_code:
            raise HTTPException(status_code=400, detail="Seating type code is required")
        if not start_date:
            raise HTTPException(status_code=400, detail="start_date is required")

        branch = self._resolve_branch(None, branch_code)
        seating_type = self.repo.get_seating_type(self.db, code=seating_type_code)
        if not seating_type:
            raise HTTPException(
                status_code=404, detail=f"Seating type with code {seating_type_code} not found"
            )

        try:
            start = parse_datetime(start_date, "start_date")
            end = parse_datetime(end_date, "end_date")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        hourly = is_hourly_type(seating_type)
        min_duration = seating_type.min_booking_duration or 1
        if end is not None and is_bare_date(end_date):
            # A bare end date includes that whole day
            end += timedelta(days=1)
        if end is None:
            if hourly and is_bare_date(start_date):
                # Hourly search without times covers the whole day
                end = start + timedelta(days=1)
            elif hourly:
                end = start + timedelta(hours=min_duration)
            elif seating_type.name in SeatingTypeName.MONTHLY:
                end = start + relativedelta(months=min_duration)
            else:
                end = start + timedelta(days=min_duration)
        if end <= start:
            raise HTTPException(status_code=400, detail="End date must be after start date")

        seats = self.repo.list_seats(self.db, branch.id, seating_type.id, status=SeatStatus.AVAILABLE)
        if not seats:
            raise HTTPException(
                status_code=404,
                detail=f"No available seats found for seating type {seating_type_code} in branch {branch_code}",
            )

        seat_ids = [s.id for s in seats]
        bookings = group_by_seat(self.repo.overlapping_bookings(self.db, seat_ids, start, end))
        blocks = self.repo.blocks_by_seat(self.db, seat_ids, start, end)

        available = []
        for seat in seats:
            entry = {
                "id": seat.id,
                "seat_number": seat.seat_number,
                "seat_code": seat.seat_code,
                "price": seat.price,
                "capacity": seat.capacity,
            }
            if hourly:
                windows = self._hourly_windows(
                    branch, start, end, bookings.get(seat.id, []), blocks.get(seat.id, [])
                )
                if not any(w["is_available"] for w in windows):
                    continue
                entry["time_slots"] = windows
            elif seat.id in bookings or seat.id in blocks:
                continue
            available.append(entry)

        return {
            "branch": branch_summary(branch),
            "seating_type": seating_type_summary(seating_type),
            "start_date": start,
            "end_date": end,
            "available_seats": available,
            "seat_count": len(available),
            "booking_requirements": {
                "min_duration": seating_type.min_booking_duration,
                "min_seats": seating_type.min_seats,
                "duration_unit": "hours" if hourly else "months",
                "is_hourly": hourly,
                "quantity_options": seating_type.quantity_options,
                "capacity_options": seating_type.capacity_options,
            },
            "booking_info": {"type": seating_type.name, **BOOKING_INFO.get(seating_type.name, {})},
            "pricing": self.estimate_price(seating_type, start, end),
        }

    # ========================================================================
    # DATE-RANGE AVAILABILITY
    # ========================================================================

    def _day_windows(self, seat, branch: Branch, days: list[date], bookings: list, blocks: list) -> list[dict]:
        windows = []
        for day in days:
            start = datetime.combine(day, branch.opening_time or time(DEFAULT_OPENING_HOUR))
            end = datetime.combine(day, branch.closing_time or time(DEFAULT_CLOSING_HOUR))
            window = {"date": day, "start_time": start, "end_time": end}

            if seat.availability_status != SeatStatus.AVAILABLE:
                windows.append({**window, "status": "unavailable", "reason": f"Seat is {seat.availability_status}"})
                continue

            if any(intervals_overlap(start, end, b["start_time"], b["end_time"]) for b in bookings):
                windows.append({**window, "status": "booked", "reason": "Reserved by another user"})
                continue

            block = next((b for b in blocks if intervals_overlap(start, end, b.start_time, b.end_time)), None)
            if block is not None:
                windows.append({**window, "status": "maintenance", "reason": block.reason or "Under maintenance"})
                continue

            windows.append({**window, "status": "available", "reason": None})
        return windows

    def get_availability(
        self,
        seat_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        seating_type_id: Optional[int] = None,
        seating_type_code: Optional[str] = None,
    ) -> dict:
        """Per-day availability of one seat or of every seat in a branch"""
        if seat_id is None and branch_id is None:
            raise HTTPException(status_code=400, detail="seat_id or branch_id is required")

        first_day = parse_date_param(start_date, "start_date")
        if first_day is None:
            raise HTTPException(status_code=400, detail="start_date is required")
        last_day = parse_date_param(end_date, "end_date", first_day)
        if last_day < first_day:
            raise HTTPException(status_code=400, detail="end_date must not be before start_date")
        if (last_day - first_day).days + 1 > MAX_RANGE_DAYS:
            raise HTTPException(status_code=400, detail=f"Date range cannot exceed {MAX_RANGE_DAYS} days")

        days = [first_day + timedelta(days=i) for i in range((last_day - first_day).days + 1)]
        range_start = datetime.combine(first_day, time.min)
        range_end = datetime.combine(last_day + timedelta(days=1), time.min)

        if seat_id is not None:
            seat = self.repo.get_seat(self.db, seat_id)
            if not seat:
                raise HTTPException(status_code=404, detail="Seat not found")
            seats = [seat]
            branch = seat.branch
        else:
            branch = self._resolve_branch(branch_id, None)
            seating_type = self._resolve_seating_type(seating_type_id, seating_type_code)
            seats = self.repo.list_seats(self.db, branch.id, seating_type.id if seating_type else None)

        seat_ids = [s.id for s in seats]
        bookings = group_by_seat(
            self.repo.overlapping_bookings(self.db, seat_ids, range_start, range_end)
        )
        blocks = self.repo.blocks_by_seat(self.db, seat_ids, range_start, range_end)

        per_seat = [
            {
                "seat_id": seat.id,
                "seat_code": seat.seat_code,
                "seat_number": seat.seat_number,
                "seating_type": seat.seating_type.name if seat.seating_type else None,
                "availability_status": seat.availability_status,
                "availability": self._day_windows(
                    seat, branch, days, bookings.get(seat.id, []), blocks.get(seat.id, [])
                ),
            }
            for seat in seats
        ]

        result = {"start_date": first_day, "end_date": last_day, "branch": branch_summary(branch)}
        if seat_id is not None:
            result.update(per_seat[0])
        else:
            result["seats"] = per_seat
        return result

    # ========================================================================
    # MAINTENANCE BLOCKS
    # ========================================================================

    def create_block(self, data: MaintenanceBlockCreate, admin: Admin) -> dict:
        """
        Insert a maintenance block unless it overlaps an active booking.
        The conflict check and the insert share one transaction with the
        seat row locked, so a booking cannot slip in between them.
        """
        if data.end_time <= data.start_time:
            raise HTTPException(status_code=400, detail="End time must be after start time")

        try:
            seat = self.repo.get_seat(self.db, data.seat_id, lock=True)
            if not seat:
                raise HTTPException(status_code=404, detail="Seat not found")
            ensure_branch_access(admin, seat.branch_id)

            conflicts = self.repo.overlapping_bookings(self.db, [seat.id], data.start_time, data.end_time)
            if conflicts:
                logger.warning(
                    f"⚠️ Maintenance block on seat {seat.id} conflicts with {len(conflicts)} booking(s)"
                )
                raise HTTPException(
                    status_code=409,
                    detail={
                        "message": "Maintenance block conflicts with existing bookings",
                        "conflicts": conflicts,
                    },
                )

            block = MaintenanceBlock(
                seat_id=seat.id,
                start_time=data.start_time,
                end_time=data.end_time,
                reason=data.reason,
                notes=data.notes,
                created_by=admin.id,
            )
            self.db.add(block)
            self.db.commit()
        except HTTPException:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create maintenance block: {e}")
            raise HTTPException(status_code=500, detail="Failed to create maintenance block") from e

        self.db.refresh(block)
        logger.info(f"🔧 Maintenance block {block.id} created on seat {block.seat_id} by admin {admin.id}")
        return serialize_block(block)

    def list_blocks(
        self,
        admin: Admin,
        seat_id: Optional[int] = None,
        branch_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> list[dict]:
        try:
            start = parse_datetime(start_date, "start_date")
            end = parse_datetime(end_date, "end_date")
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        # A bare end date covers that whole day
        if end is not None and is_bare_date(end_date):
            end = end + timedelta(days=1) - timedelta(microseconds=1)

        blocks = self.repo.list_blocks(
            self.db,
            seat_id=seat_id,
            branch_id=scoped_branch_id(admin, branch_id),
            start_date=start,
            end_date=end,
        )
        return [serialize_block(b) for b in blocks]

    def delete_block(self, block_id: int, admin: Admin) -> None:
        block = self.repo.get_block(self.db, block_id)
        if not block:
            raise HTTPException(status_code=404, detail="Maintenance block not found")
        ensure_branch_access(admin, block.seat.branch_id)
        self.db.delete(block)
        self.db.commit()
        logger.info(f"🗑️ Maintenance block {block_id} deleted by admin {admin.id}")
