"""Time slot generation and partitioned slot queries"""

from datetime import timedelta

import pytest
from conftest import future_day

from coworks.models import BookingStatus, SeatBooking, SeatStatus, TimeSlot


@pytest.fixture
def slot_day():
    return future_day(3)


def generate(client, headers, day, **extra):
    return client.post(
        "/api/slots/generate",
        json={"branch_code": "ngb", "date": day.date().isoformat(), **extra},
        headers=headers,
    )


class TestGenerateSlots:
    def test_creates_two_hour_slots_for_each_available_seat(self, client, db, hot_desks, slot_day, branch_admin_headers):
        response = generate(client, branch_admin_headers, slot_day)

        assert response.status_code == 201
        data = response.json()["data"]
        # 08:00-18:00 fits five two-hour slots
        assert data["seats"] == 3
        assert data["slots_created"] == 15
        assert data["slots_deleted"] == 0

        starts = sorted({s.start_time.hour for s in db.query(TimeSlot).all()})
        assert starts == [8, 10, 12, 14, 16]

    def test_skips_seats_that_are_not_available(self, client, db, hot_desks, slot_day, branch_admin_headers):
        hot_desks[2].availability_status = SeatStatus.MAINTENANCE
        db.commit()

        response = generate(client, branch_admin_headers, slot_day)
        assert response.json()["data"]["slots_created"] == 10

    def test_existing_slots_conflict_unless_regenerating(self, client, hot_desks, slot_day, branch_admin_headers):
        generate(client, branch_admin_headers, slot_day)

        again = generate(client, branch_admin_headers, slot_day)
        assert again.status_code == 409
        assert again.json()["data"]["existing_count"] == 15

        rebuilt = generate(client, branch_admin_headers, slot_day, regenerate=True)
        assert rebuilt.status_code == 201
        assert rebuilt.json()["data"]["slots_deleted"] == 15
        assert rebuilt.json()["data"]["slots_created"] == 15

    def test_slots_covered_by_bookings_are_reserved(self, client, db, customer, hot_desks, slot_day, branch_admin_headers):
        booking = SeatBooking(
            customer_id=customer.id,
            seat_id=hot_desks[0].id,
            start_time=slot_day + timedelta(hours=10),
            end_time=slot_day + timedelta(hours=12),
            total_price=200.0,
            status=BookingStatus.CONFIRMED,
        )
        db.add(booking)
        db.commit()

        generate(client, branch_admin_headers, slot_day)

        reserved = db.query(TimeSlot).filter(TimeSlot.is_available.is_(False)).all()
        assert len(reserved) == 1
        assert reserved[0].seat_id == hot_desks[0].id
        assert reserved[0].booking_id == booking.id
        assert reserved[0].start_time.hour == 10

    def test_rejects_past_date(self, client, hot_desks, branch_admin_headers):
        response = generate(client, branch_admin_headers, future_day(-2))
        assert response.status_code == 400

    def test_requires_branch(self, client, slot_day, branch_admin_headers):
        response = client.post(
            "/api/slots/generate", json={"date": slot_day.date().isoformat()}, headers=branch_admin_headers
        )
        assert response.status_code == 400

    def test_branch_admin_limited_to_own_branch(self, client, other_branch, slot_day, branch_admin_headers):
        response = client.post(
            "/api/slots/generate",
            json={"branch_code": "wtf", "date": slot_day.date().isoformat()},
            headers=branch_admin_headers,
        )
        assert response.status_code == 403

    def test_no_seats(self, client, branch, slot_day, super_admin_headers):
        assert generate(client, super_admin_headers, slot_day).status_code == 404

    def test_customers_cannot_generate(self, client, hot_desks, slot_day, customer_headers):
        assert generate(client, customer_headers, slot_day).status_code == 403


class TestQuerySlots:
    @pytest.fixture
    def generated(self, client, db, customer, hot_desks, slot_day, super_admin_headers):
        db.add(
            SeatBooking(
                customer_id=customer.id,
                seat_id=hot_desks[0].id,
                start_time=slot_day + timedelta(hours=8),
                end_time=slot_day + timedelta(hours=10),
                total_price=200.0,
                status=BookingStatus.CONFIRMED,
            )
        )
        db.commit()
        generate(client, super_admin_headers, slot_day)
        hot_desks[1].availability_status = SeatStatus.MAINTENANCE
        db.commit()
        return slot_day

    def test_partitioned_by_state(self, client, generated):
        response = client.get("/api/slots", params={"branch_code": "ngb", "date": generated.date().isoformat()})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_slots"] == 15
        assert data["booked"]["count"] == 1
        assert data["maintenance"]["count"] == 5
        assert data["available"]["count"] == 9

    def test_availability_filter(self, client, generated):
        response = client.get(
            "/api/slots",
            params={"branch_code": "ngb", "date": generated.date().isoformat(), "availability": "booked"},
        )
        data = response.json()["data"]
        assert len(data["booked"]["slots"]) == 1
        assert data["available"]["slots"] == []
        assert data["available"]["count"] == 9

    def test_invalid_availability_filter(self, client, generated):
        response = client.get("/api/slots", params={"branch_code": "ngb", "availability": "free"})
        assert response.status_code == 400

    def test_unknown_branch_code(self, client, db):
        response = client.get("/api/slots", params={"branch_code": "zzz"})
        assert response.status_code == 404

    def test_invalid_date(self, client, branch):
        response = client.get("/api/slots", params={"branch_code": "ngb", "date": "03/02/2026"})
        assert response.status_code == 400

    def test_categorized_groups_by_branch_and_type(self, client, generated, meeting_room, other_branch):
        response = client.get("/api/slots/categorized", params={"date": generated.date().isoformat()})

        assert response.status_code == 200
        [group] = response.json()["data"]["branches"]
        assert group["branch_code"] == "ngb"
        assert [t["seating_type_name"] for t in group["seating_types"]] == ["HOT_DESK"]
        assert group["seating_types"][0]["total_slots"] == 15
