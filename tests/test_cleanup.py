"""Expired booking cleanup and revoked token purge"""

from datetime import datetime, time, timedelta

from conftest import future_day

from coworks.domain.bookings.cleanup import cleanup_expired_bookings, purge_blacklisted_tokens
from coworks.models import (
    BlacklistedToken,
    BookingStatus,
    MeetingBooking,
    SeatBooking,
    SeatStatus,
    TimeSlot,
)


def seat_booking(db, customer, seat, start, end, status):
    booking = SeatBooking(
        customer_id=customer.id, seat_id=seat.id, start_time=start, end_time=end, total_price=100.0, status=status
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


class TestCleanupExpiredBookings:
    def test_closes_only_ended_active_bookings(self, db, customer, hot_desks):
        day = future_day(2)
        confirmed = seat_booking(
            db, customer, hot_desks[0], day, day + timedelta(hours=4), BookingStatus.CONFIRMED
        )
        pending = seat_booking(db, customer, hot_desks[1], day, day + timedelta(hours=4), BookingStatus.PENDING)
        running = seat_booking(db, customer, hot_desks[2], day, day + timedelta(days=3), BookingStatus.CONFIRMED)

        counts = cleanup_expired_bookings(db, now=day + timedelta(hours=5))

        assert counts == {"completed": 1, "cancelled": 1}
        for booking in (confirmed, pending, running):
            db.refresh(booking)
        assert confirmed.status == BookingStatus.COMPLETED
        assert pending.status == BookingStatus.CANCELLED
        assert running.status == BookingStatus.CONFIRMED

    def test_booking_ending_exactly_now_is_closed(self, db, customer, hot_desks):
        day = future_day(2)
        seat_booking(db, customer, hot_desks[0], day, day + timedelta(hours=2), BookingStatus.CONFIRMED)
        assert cleanup_expired_bookings(db, now=day + timedelta(hours=2)) == {"completed": 1, "cancelled": 0}

    def test_frees_slots_and_booked_seat(self, db, customer, meeting_room):
        day = future_day(2)
        meeting_room.availability_status = SeatStatus.BOOKED
        booking = MeetingBooking(
            customer_id=customer.id,
            meeting_room_id=meeting_room.id,
            start_time=day + timedelta(hours=8),
            end_time=day + timedelta(hours=10),
            num_participants=4,
            total_price=1000.0,
            status=BookingStatus.CONFIRMED,
        )
        db.add(booking)
        db.commit()
        db.add(
            TimeSlot(
                branch_id=meeting_room.branch_id,
                seat_id=meeting_room.id,
                date=day.date(),
                start_time=time(8, 0),
                end_time=time(10, 0),
                is_available=False,
                booking_id=booking.id,
            )
        )
        db.commit()

        cleanup_expired_bookings(db, now=day + timedelta(hours=11))

        slot = db.query(TimeSlot).one()
        assert slot.is_available is True
        assert slot.booking_id is None
        db.refresh(meeting_room)
        assert meeting_room.availability_status == SeatStatus.AVAILABLE

    def test_finished_bookings_are_left_alone(self, db, customer, hot_desks):
        day = future_day(-3)
        seat_booking(db, customer, hot_desks[0], day, day + timedelta(hours=2), BookingStatus.CANCELLED)
        seat_booking(db, customer, hot_desks[1], day, day + timedelta(hours=2), BookingStatus.COMPLETED)

        assert cleanup_expired_bookings(db) == {"completed": 0, "cancelled": 0}


class TestPurgeBlacklistedTokens:
    def test_deletes_only_expired_entries(self, db):
        now = datetime.utcnow()
        db.add_all(
            [
                BlacklistedToken(token="old-token", expires_at=now - timedelta(minutes=1)),
                BlacklistedToken(token="live-token", expires_at=now + timedelta(hours=1)),
            ]
        )
        db.commit()

        assert purge_blacklisted_tokens(db, now=now) == 1
        assert [t.token for t in db.query(BlacklistedToken).all()] == ["live-token"]
        assert purge_blacklisted_tokens(db, now=now) == 0
