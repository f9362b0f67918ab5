"""Dashboard statistics and service health endpoints"""

from datetime import datetime, timedelta

import pytest
from conftest import future_day, make_seat

from coworks.models import BookingStatus, Payment, PaymentStatus, SeatBooking, SeatStatus, SupportTicket


def add_booking(db, customer, seat, start, end, status=BookingStatus.CONFIRMED, price=3000.0):
    booking = SeatBooking(
        customer_id=customer.id, seat_id=seat.id, start_time=start, end_time=end, total_price=price, status=status
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def add_payment(db, booking, amount, status):
    db.add(
        Payment(
            booking_id=booking.id,
            booking_type="seat",
            customer_id=booking.customer_id,
            amount=amount,
            payment_method="CASH",
            payment_status=status,
        )
    )
    db.commit()


@pytest.fixture
def activity(db, customer, other_customer, hot_desks, other_branch, hot_desk_type):
    now = datetime.utcnow()
    hot_desks[2].availability_status = SeatStatus.MAINTENANCE
    db.commit()

    current = add_booking(db, customer, hot_desks[0], now - timedelta(hours=1), now + timedelta(hours=1))
    add_payment(db, current, 3000.0, PaymentStatus.COMPLETED)
    upcoming = add_booking(
        db, customer, hot_desks[1], future_day(10), future_day(40), status=BookingStatus.PENDING
    )
    add_payment(db, upcoming, 500.0, PaymentStatus.PENDING)

    far_seat = make_seat(db, other_branch, hot_desk_type, 1)
    far = add_booking(db, other_customer, far_seat, future_day(5), future_day(35))
    add_payment(db, far, 2000.0, PaymentStatus.COMPLETED)

    db.add(
        SupportTicket(
            ticket_number="TKT-ABC123-0000001",
            customer_id=customer.id,
            branch_id=hot_desks[0].branch_id,
            title="Noisy neighbours",
            category="other",
            description="Calls on speaker all day",
            status="new",
        )
    )
    db.commit()


class TestDashboardStats:
    def test_super_admin_sees_everything(self, client, activity, super_admin_headers):
        response = client.get("/api/admin/dashboard/stats", headers=super_admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["branch_id"] is None
        assert data["branches"] == 2
        assert data["seats"] == {"total": 4, "AVAILABLE": 3, "BOOKED": 0, "MAINTENANCE": 1}
        assert data["bookings"]["total"] == 3
        assert data["bookings"]["CONFIRMED"] == 2
        assert data["bookings"]["PENDING"] == 1
        assert data["todays_bookings"] == 1
        assert data["customers"] == 2
        assert data["open_tickets"] == 1
        assert data["revenue"] == 5000.0

    def test_branch_admin_is_scoped(self, client, activity, branch, branch_admin_headers):
        data = client.get("/api/admin/dashboard/stats", headers=branch_admin_headers).json()["data"]

        assert data["branch_id"] == branch.id
        assert data["branches"] == 1
        assert data["seats"]["total"] == 3
        assert data["bookings"]["total"] == 2
        assert data["revenue"] == 3000.0

    def test_branch_admin_cannot_pick_another_branch(
        self, client, activity, other_branch, branch_admin_headers
    ):
        response = client.get(
            "/api/admin/dashboard/stats", params={"branch_id": other_branch.id}, headers=branch_admin_headers
        )
        assert response.status_code == 403

    def test_super_admin_branch_filter(self, client, activity, other_branch, super_admin_headers):
        data = client.get(
            "/api/admin/dashboard/stats", params={"branch_id": other_branch.id}, headers=super_admin_headers
        ).json()["data"]
        assert data["seats"]["total"] == 1
        assert data["revenue"] == 2000.0
        assert data["open_tickets"] == 0

    def test_creation_window(self, client, activity, super_admin_headers):
        later = (datetime.utcnow() + timedelta(days=1)).date().isoformat()
        data = client.get(
            "/api/admin/dashboard/stats", params={"from": later}, headers=super_admin_headers
        ).json()["data"]
        assert data["bookings"]["total"] == 0
        assert data["revenue"] == 0

    def test_invalid_window(self, client, super_admin_headers):
        response = client.get("/api/admin/dashboard/stats", params={"to": "yesterday"}, headers=super_admin_headers)
        assert response.status_code == 400

    def test_requires_admin(self, client, customer_headers):
        assert client.get("/api/admin/dashboard/stats", headers=customer_headers).status_code == 403
        assert client.get("/api/admin/dashboard/stats").status_code in (401, 403)


class TestHealth:
    def test_root(self, client):
        body = client.get("/").json()
        assert body["success"] is True
        assert "version" in body["data"]

    def test_health_pings_database(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["data"]["database"] is True
