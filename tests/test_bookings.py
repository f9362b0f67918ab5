"""Seat and meeting bookings, cancellation and admin status changes"""

from datetime import timedelta

import pytest
from conftest import future_day, make_seat
from dateutil.relativedelta import relativedelta

from coworks.models import (
    BookingStatus,
    MaintenanceBlock,
    SeatBooking,
    SeatStatus,
    TimeSlot,
)


@pytest.fixture
def month():
    """A full calendar month at least ten days ahead"""
    start = future_day(40).replace(day=1)
    return start, start + relativedelta(months=1)


def book(client, headers, seat, start, end, **extra):
    payload = {"seat_id": seat.id, "start_time": start.isoformat(), "end_time": end.isoformat(), **extra}
    return client.post("/api/bookings", json=payload, headers=headers)


class TestCreateBooking:
    def test_monthly_hot_desk(self, client, hot_desks, month, customer, customer_headers):
        response = book(client, customer_headers, hot_desks[0], *month)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["quantity"] == 1
        assert data["total_price"] == 3000.0
        [booking] = data["bookings"]
        assert booking["status"] == BookingStatus.CONFIRMED
        assert booking["customer_id"] == customer.id
        assert booking["seat"]["seat_code"] == hot_desks[0].seat_code
        assert booking["branch"]["short_code"] == "ngb"

    def test_branch_multiplier_applies(self, client, db, branch, hot_desks, month, customer_headers):
        branch.cost_multiplier = 1.5
        db.commit()

        response = book(client, customer_headers, hot_desks[0], *month)
        assert response.json()["data"]["total_price"] == 4500.0

    def test_book_by_seat_code(self, client, hot_desks, month, customer_headers):
        start, end = month
        response = client.post(
            "/api/bookings",
            json={
                "seat_code": hot_desks[1].seat_code.lower(),
                "seating_type_code": "hot",
                "start_time": start.isoformat(),
                "end_time": end.isoformat(),
            },
            headers=customer_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["bookings"][0]["seat_id"] == hot_desks[1].id

    def test_multiple_seats_share_discounted_price(self, client, hot_desks, month, customer_headers):
        response = book(client, customer_headers, hot_desks[0], *month, quantity=2)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["quantity"] == 2
        # 2 x 3000 at the 0.95 tier
        assert data["total_price"] == 5700.0
        assert [b["total_price"] for b in data["bookings"]] == [2850.0, 2850.0]
        assert len({b["seat_id"] for b in data["bookings"]}) == 2

    def test_not_enough_free_seats(self, client, db, customer, hot_desks, month, customer_headers):
        start, end = month
        db.add(
            SeatBooking(
                customer_id=customer.id,
                seat_id=hot_desks[2].id,
                start_time=start,
                end_time=end,
                total_price=3000.0,
                status=BookingStatus.CONFIRMED,
            )
        )
        db.commit()

        response = book(client, customer_headers, hot_desks[0], start, end, quantity=3)
        assert response.status_code == 409
        assert db.query(SeatBooking).count() == 1

    def test_quantity_must_be_an_offered_option(self, client, hot_desks, month, customer_headers):
        response = book(client, customer_headers, hot_desks[0], *month, quantity=4)
        assert response.status_code == 400

    def test_overlap_conflicts(self, client, hot_desks, month, customer_headers, other_customer_headers):
        start, end = month
        assert book(client, customer_headers, hot_desks[0], start, end).status_code == 201

        response = book(client, other_customer_headers, hot_desks[0], start + timedelta(days=3), end + timedelta(days=3))
        assert response.status_code == 409
        assert "already booked" in response.json()["message"]

    def test_back_to_back_bookings_do_not_conflict(self, client, hot_desks, month, customer_headers):
        start, end = month
        assert book(client, customer_headers, hot_desks[0], start, end).status_code == 201
        response = book(client, customer_headers, hot_desks[0], end, end + relativedelta(months=1))
        assert response.status_code == 201

    def test_maintenance_block_conflicts(self, client, db, hot_desks, month, customer_headers):
        start, end = month
        db.add(
            MaintenanceBlock(
                seat_id=hot_desks[0].id,
                start_time=start + timedelta(days=2),
                end_time=start + timedelta(days=3),
                reason="Rewiring",
            )
        )
        db.commit()

        response = book(client, customer_headers, hot_desks[0], start, end)
        assert response.status_code == 409
        assert "maintenance" in response.json()["message"]

    def test_minimum_duration(self, client, hot_desks, customer_headers):
        start = future_day(10)
        response = book(client, customer_headers, hot_desks[0], start, start + timedelta(days=7))
        assert response.status_code == 400
        assert "1 month" in response.json()["message"]

    def test_seat_out_of_service(self, client, db, hot_desks, month, customer_headers):
        hot_desks[0].availability_status = SeatStatus.MAINTENANCE
        db.commit()
        assert book(client, customer_headers, hot_desks[0], *month).status_code == 400

    def test_seating_type_mismatch(self, client, hot_desks, month, customer_headers):
        response = book(client, customer_headers, hot_desks[0], *month, seating_type_code="ded")
        assert response.status_code == 400

    def test_inverted_range(self, client, hot_desks, month, customer_headers):
        start, end = month
        assert book(client, customer_headers, hot_desks[0], end, start).status_code == 400

    def test_unknown_seat(self, client, db, month, customer_headers):
        start, end = month
        response = client.post(
            "/api/bookings",
            json={"seat_id": 999, "start_time": start.isoformat(), "end_time": end.isoformat()},
            headers=customer_headers,
        )
        assert response.status_code == 404

    def test_seat_is_required(self, client, db, month, customer_headers):
        start, end = month
        response = client.post(
            "/api/bookings",
            json={"start_time": start.isoformat(), "end_time": end.isoformat()},
            headers=customer_headers,
        )
        assert response.status_code == 400

    def test_requires_customer_token(self, client, hot_desks, month, super_admin_headers):
        assert book(client, super_admin_headers, hot_desks[0], *month).status_code == 403

    def test_reserves_generated_slots(self, client, db, meeting_room, customer_headers, super_admin_headers):
        day = future_day(3)
        client.post(
            "/api/slots/generate",
            json={"branch_code": "ngb", "date": day.date().isoformat()},
            headers=super_admin_headers,
        )

        response = book(
            client,
            customer_headers,
            meeting_room,
            day + timedelta(hours=9),
            day + timedelta(hours=11),
            type="meeting",
        )
        booking_id = response.json()["data"]["bookings"][0]["id"]

        reserved = db.query(TimeSlot).filter(TimeSlot.booking_id == booking_id).all()
        # 09:00-11:00 touches the 08:00 and 10:00 slots
        assert sorted(s.start_time.hour for s in reserved) == [8, 10]
        assert all(not s.is_available for s in reserved)


class TestMeetingBookings:
    def test_hourly_meeting(self, client, meeting_room, customer_headers):
        start = future_day(2) + timedelta(hours=10)
        response = book(
            client,
            customer_headers,
            meeting_room,
            start,
            start + timedelta(hours=2),
            type="meeting",
            num_participants=6,
            amenities=["projector"],
        )

        assert response.status_code == 201
        [booking] = response.json()["data"]["bookings"]
        assert booking["booking_type"] == "meeting"
        assert booking["total_price"] == 1000.0
        assert booking["num_participants"] == 6
        assert booking["amenities"] == ["projector"]

    def test_over_capacity(self, client, meeting_room, customer_headers):
        start = future_day(2) + timedelta(hours=10)
        response = book(
            client, customer_headers, meeting_room, start, start + timedelta(hours=1), type="meeting", num_participants=9
        )
        assert response.status_code == 400

    def test_meeting_room_must_be_booked_as_meeting(self, client, meeting_room, customer_headers):
        start = future_day(2) + timedelta(hours=10)
        response = book(client, customer_headers, meeting_room, start, start + timedelta(hours=1))
        assert response.status_code == 400

    def test_desk_cannot_be_booked_as_meeting(self, client, hot_desks, month, customer_headers):
        assert book(client, customer_headers, hot_desks[0], *month, type="meeting").status_code == 400

    def test_shorter_than_an_hour(self, client, meeting_room, customer_headers):
        start = future_day(2) + timedelta(hours=10)
        response = book(client, customer_headers, meeting_room, start, start + timedelta(minutes=30), type="meeting")
        assert response.status_code == 400


class TestCustomerBookings:
    def test_list_and_filter(self, client, hot_desks, meeting_room, month, customer_headers, other_customer_headers):
        book(client, customer_headers, hot_desks[0], *month)
        start = future_day(2) + timedelta(hours=10)
        book(client, customer_headers, meeting_room, start, start + timedelta(hours=1), type="meeting")
        book(client, other_customer_headers, hot_desks[1], *month)

        everything = client.get("/api/bookings", headers=customer_headers).json()["data"]
        assert len(everything) == 2

        meetings = client.get("/api/bookings", params={"type": "meeting"}, headers=customer_headers).json()["data"]
        assert [b["booking_type"] for b in meetings] == ["meeting"]

        upcoming = client.get("/api/bookings", params={"status": "upcoming"}, headers=customer_headers).json()["data"]
        assert len(upcoming) == 2

        assert client.get("/api/bookings", params={"status": "weird"}, headers=customer_headers).status_code == 400

    def test_get_own_booking_only(self, client, hot_desks, month, customer_headers, other_customer_headers):
        booking_id = book(client, customer_headers, hot_desks[0], *month).json()["data"]["bookings"][0]["id"]

        assert client.get(f"/api/bookings/{booking_id}", headers=customer_headers).status_code == 200
        assert client.get(f"/api/bookings/{booking_id}", headers=other_customer_headers).status_code == 403
        assert client.get("/api/bookings/999", headers=customer_headers).status_code == 404
        assert client.get(f"/api/bookings/{booking_id}", params={"type": "desk"}, headers=customer_headers).status_code == 400

    def test_cancel_monthly_booking_reports_refund(self, client, hot_desks, month, customer_headers):
        booking_id = book(client, customer_headers, hot_desks[0], *month).json()["data"]["bookings"][0]["id"]

        response = client.put(f"/api/bookings/{booking_id}/cancel", headers=customer_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["booking"]["status"] == BookingStatus.CANCELLED
        assert data["refund"]["total_cost"] > 0
        assert "refund_amount" in data["refund"]

        again = client.put(f"/api/bookings/{booking_id}/cancel", headers=customer_headers)
        assert again.status_code == 400

    def test_cancelled_seat_can_be_booked_again(self, client, hot_desks, month, customer_headers, other_customer_headers):
        booking_id = book(client, customer_headers, hot_desks[0], *month).json()["data"]["bookings"][0]["id"]
        client.put(f"/api/bookings/{booking_id}/cancel", headers=customer_headers)

        assert book(client, other_customer_headers, hot_desks[0], *month).status_code == 201

    def test_cancel_meeting_frees_slots(self, client, db, meeting_room, customer_headers, super_admin_headers):
        day = future_day(3)
        client.post(
            "/api/slots/generate",
            json={"branch_code": "ngb", "date": day.date().isoformat()},
            headers=super_admin_headers,
        )
        created = book(
            client, customer_headers, meeting_room, day + timedelta(hours=8), day + timedelta(hours=10), type="meeting"
        )
        booking_id = created.json()["data"]["bookings"][0]["id"]

        response = client.put(f"/api/bookings/{booking_id}/cancel", params={"type": "meeting"}, headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["data"]["refund"] is None
        assert db.query(TimeSlot).filter(TimeSlot.is_available.is_(False)).count() == 0

    def test_cannot_cancel_someone_elses_booking(self, client, hot_desks, month, customer_headers, other_customer_headers):
        booking_id = book(client, customer_headers, hot_desks[0], *month).json()["data"]["bookings"][0]["id"]
        response = client.put(f"/api/bookings/{booking_id}/cancel", headers=other_customer_headers)
        assert response.status_code == 403

    def test_calculate_cost(self, client, db):
        response = client.post(
            "/api/bookings/calculate",
            json={"start_date": "2026-01-01", "end_date": "2026-03-31", "monthly_rate": 3000},
        )
        assert response.status_code == 200
        assert response.json()["data"]["total_cost"] == 9000.0

    def test_calculate_cost_rejects_inverted_range(self, client, db):
        response = client.post(
            "/api/bookings/calculate",
            json={"start_date": "2026-03-01", "end_date": "2026-01-01", "monthly_rate": 3000},
        )
        assert response.status_code == 400


class TestAdminBookings:
    def test_branch_scoped_listing(
        self, client, db, hot_desks, other_branch, hot_desk_type, month, customer_headers, branch_admin_headers, super_admin_headers
    ):
        book(client, customer_headers, hot_desks[0], *month)
        far_seat = make_seat(db, other_branch, hot_desk_type, 1)
        book(client, customer_headers, far_seat, *month)

        assert len(client.get("/api/admin/bookings", headers=branch_admin_headers).json()["data"]) == 1
        assert len(client.get("/api/admin/bookings", headers=super_admin_headers).json()["data"]) == 2

        confirmed = client.get(
            "/api/admin/bookings", params={"status": "confirmed"}, headers=super_admin_headers
        ).json()["data"]
        assert len(confirmed) == 2

    def test_status_transitions(self, client, hot_desks, month, customer_headers, branch_admin_headers):
        booking_id = book(client, customer_headers, hot_desks[0], *month).json()["data"]["bookings"][0]["id"]
        url = f"/api/admin/bookings/{booking_id}/status"

        completed = client.put(url, json={"status": "completed"}, headers=branch_admin_headers)
        assert completed.status_code == 200
        assert completed.json()["data"]["status"] == BookingStatus.COMPLETED

        back = client.put(url, json={"status": "CONFIRMED"}, headers=branch_admin_headers)
        assert back.status_code == 400

    def test_pending_can_be_confirmed(self, client, db, customer, hot_desks, month, branch_admin_headers):
        start, end = month
        booking = SeatBooking(
            customer_id=customer.id,
            seat_id=hot_desks[0].id,
            start_time=start,
            end_time=end,
            total_price=3000.0,
            status=BookingStatus.PENDING,
        )
        db.add(booking)
        db.commit()

        response = client.put(
            f"/api/admin/bookings/{booking.id}/status", json={"status": "confirmed"}, headers=branch_admin_headers
        )
        assert response.json()["data"]["status"] == BookingStatus.CONFIRMED

    def test_unknown_status(self, client, hot_desks, month, customer_headers, branch_admin_headers):
        booking_id = book(client, customer_headers, hot_desks[0], *month).json()["data"]["bookings"][0]["id"]
        response = client.put(
            f"/api/admin/bookings/{booking_id}/status", json={"status": "lost"}, headers=branch_admin_headers
        )
        assert response.status_code == 400

    def test_cancelling_returns_booked_seat_to_available(
        self, client, db, customer, hot_desks, month, super_admin_headers
    ):
        start, end = month
        seat = hot_desks[0]
        booking = SeatBooking(
            customer_id=customer.id,
            seat_id=seat.id,
            start_time=start,
            end_time=end,
            total_price=3000.0,
            status=BookingStatus.CONFIRMED,
        )
        db.add(booking)
        seat.availability_status = SeatStatus.BOOKED
        db.commit()

        client.put(f"/api/admin/bookings/{booking.id}/status", json={"status": "cancelled"}, headers=super_admin_headers)

        db.refresh(seat)
        assert seat.availability_status == SeatStatus.AVAILABLE

    def test_other_branch_is_forbidden(self, client, db, other_branch, hot_desk_type, month, customer_headers, branch_admin_headers):
        far_seat = make_seat(db, other_branch, hot_desk_type, 1)
        booking_id = book(client, customer_headers, far_seat, *month).json()["data"]["bookings"][0]["id"]

        response = client.put(
            f"/api/admin/bookings/{booking_id}/status", json={"status": "cancelled"}, headers=branch_admin_headers
        )
        assert response.status_code == 403
