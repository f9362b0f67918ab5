"""
Slot partitioning - sorts time slots into available / booked / maintenance buckets.

Each slot lands in at most one bucket, decided in this order:
  1. booked       - slot is reserved and its booking still exists
  2. maintenance  - seat is under maintenance or a maintenance block covers the slot
  3. available    - slot is free and the seat is AVAILABLE
Slots matching none of these (e.g. a free slot on a seat marked BOOKED) are only
reflected in total_slots.
"""

from datetime import datetime
from typing import Iterable, Optional

from ...models import SeatStatus
from ...shared.validators import intervals_overlap

AVAILABLE = "available"
BOOKED = "booked"
MAINTENANCE = "maintenance"

BUCKETS = (AVAILABLE, BOOKED, MAINTENANCE)


def slot_window(slot) -> tuple[datetime, datetime]:
    return datetime.combine(slot.date, slot.start_time), datetime.combine(slot.date, slot.end_time)


def serialize_slot(slot) -> dict:
    seat = slot.seat
    data = {
        "id": slot.id,
        "seat_id": slot.seat_id,
        "branch_id": slot.branch_id,
        "date": slot.date.isoformat(),
        "start_time": slot.start_time.strftime("%H:%M:%S"),
        "end_time": slot.end_time.strftime("%H:%M:%S"),
        "is_available": slot.is_available,
        "booking_id": slot.booking_id,
    }
    if seat is not None:
        data["seat"] = {
            "id": seat.id,
            "seat_number": seat.seat_number,
            "seat_code": seat.seat_code,
            "availability_status": seat.availability_status,
        }
        if seat.seating_type is not None:
            data["seating_type"] = {
                "id": seat.seating_type.id,
                "name": seat.seating_type.name,
                "short_code": seat.seating_type.short_code,
            }
    return data


def classify_slot(slot, live_bookings: set, blocks_by_seat: dict) -> Optional[str]:
    """Bucket for a single slot, or None when it fits none"""
    seat_status = slot.seat.availability_status if slot.seat is not None else None

    if not slot.is_available and slot.booking_id and (slot.seat_id, slot.booking_id) in live_bookings:
        return BOOKED

    if seat_status == SeatStatus.MAINTENANCE:
        return MAINTENANCE
    blocks = blocks_by_seat.get(slot.seat_id)
    if blocks:
        start, end = slot_window(slot)
        if any(intervals_overlap(start, end, b.start_time, b.end_time) for b in blocks):
            return MAINTENANCE

    if slot.is_available and seat_status == SeatStatus.AVAILABLE:
        return AVAILABLE
    return None


def partition_slots(
    slots: Iterable,
    live_bookings: Optional[set] = None,
    blocks_by_seat: Optional[dict] = None,
    availability: Optional[str] = None,
) -> dict:
    """
    Partition slots in a single pass.

    Args:
        slots: TimeSlot rows with their seat loaded
        live_bookings: {(seat_id, booking_id)} of bookings that exist
        blocks_by_seat: {seat_id: [MaintenanceBlock]} overlapping the slots' day
        availability: optional bucket name; other buckets keep their count
            but their slot lists are emptied

    Returns:
        {"total_slots": n, "available": {"count", "slots"}, "booked": {...}, "maintenance": {...}}
    """
    live_bookings = live_bookings or set()
    blocks_by_seat = blocks_by_seat or {}

    buckets = {name: [] for name in BUCKETS}
    total = 0
    for slot in slots:
        total += 1
        bucket = classify_slot(slot, live_bookings, blocks_by_seat)
        if bucket is not None:
            buckets[bucket].append(slot)

    result = {"total_slots": total}
    for name in BUCKETS:
        shown = availability is None or availability == name
        result[name] = {
            "count": len(buckets[name]),
            "slots": [serialize_slot(s) for s in buckets[name]] if shown else [],
        }
    return result
