"""Support tickets: customer conversations and admin handling"""

from datetime import timedelta

import pytest
from conftest import future_day, make_seat

from coworks.models import BookingStatus, MessageSender, SeatBooking, TicketStatus


def open_ticket(client, headers, branch_id, **extra):
    payload = {
        "title": "Wi-Fi keeps dropping",
        "category": "internet_issue",
        "description": "  The connection drops every few minutes near desk 4.  ",
        "branch_id": branch_id,
        **extra,
    }
    return client.post("/api/support/tickets", json=payload, headers=headers)


@pytest.fixture
def ticket(client, branch, customer, customer_headers):
    response = open_ticket(client, customer_headers, branch.id)
    assert response.status_code == 201
    return response.json()["data"]


class TestCustomerTickets:
    def test_create_ticket(self, ticket, customer):
        assert ticket["status"] == TicketStatus.NEW
        assert ticket["branch_code"] == "ngb"
        assert ticket["customer_id"] == customer.id
        assert ticket["ticket_number"].startswith("TKT-")
        assert ticket["description"] == "The connection drops every few minutes near desk 4."

        [first] = ticket["messages"]
        assert first["sender_type"] == MessageSender.CUSTOMER
        assert first["message"] == ticket["description"]

    def test_category_is_normalized_and_validated(self, client, branch, customer_headers):
        response = open_ticket(client, customer_headers, branch.id, category="CLEANLINESS")
        assert response.json()["data"]["category"] == "cleanliness"

        assert open_ticket(client, customer_headers, branch.id, category="noise").status_code == 400
        assert open_ticket(client, customer_headers, branch.id, title="   ").status_code == 400

    def test_unknown_branch_or_seating_type(self, client, branch, customer_headers):
        assert open_ticket(client, customer_headers, 999).status_code == 404
        assert open_ticket(client, customer_headers, branch.id, seating_type_id=999).status_code == 404

    def test_linked_booking_must_belong_to_customer(
        self, client, db, branch, hot_desk_type, customer_headers, other_customer
    ):
        seat = make_seat(db, branch, hot_desk_type, 1)
        start = future_day(5)
        booking = SeatBooking(
            customer_id=other_customer.id,
            seat_id=seat.id,
            start_time=start,
            end_time=start + timedelta(days=31),
            total_price=3000.0,
            status=BookingStatus.CONFIRMED,
        )
        db.add(booking)
        db.commit()

        response = open_ticket(client, customer_headers, branch.id, booking_id=booking.id)
        assert response.status_code == 403
        assert open_ticket(client, customer_headers, branch.id, booking_id=999).status_code == 404

    def test_list_and_get_own_tickets(self, client, ticket, customer_headers, other_customer_headers):
        mine = client.get("/api/support/tickets", headers=customer_headers).json()["data"]
        assert [t["id"] for t in mine] == [ticket["id"]]
        assert mine[0]["message_count"] == 1

        assert client.get("/api/support/tickets", headers=other_customer_headers).json()["data"] == []
        assert client.get(f"/api/support/tickets/{ticket['id']}", headers=other_customer_headers).status_code == 403
        assert client.get("/api/support/tickets/999", headers=customer_headers).status_code == 404

    def test_status_filter(self, client, ticket, customer_headers):
        closed = client.get("/api/support/tickets", params={"status": "closed"}, headers=customer_headers)
        assert closed.json()["data"] == []

    def test_reading_marks_admin_replies_read(self, client, ticket, customer_headers, branch_admin_headers):
        client.post(
            f"/api/admin/support/tickets/{ticket['id']}/messages",
            json={"message": "Looking into it"},
            headers=branch_admin_headers,
        )

        data = client.get(f"/api/support/tickets/{ticket['id']}", headers=customer_headers).json()["data"]
        replies = [m for m in data["messages"] if m["sender_type"] == MessageSender.ADMIN]
        assert len(replies) == 1
        assert replies[0]["read_at"] is not None

    def test_add_message(self, client, ticket, customer_headers):
        response = client.post(
            f"/api/support/tickets/{ticket['id']}/messages",
            json={"message": "Still happening this morning"},
            headers=customer_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["sender_type"] == MessageSender.CUSTOMER

        blank = client.post(
            f"/api/support/tickets/{ticket['id']}/messages", json={"message": "  "}, headers=customer_headers
        )
        assert blank.status_code == 400

    def test_closed_ticket_must_be_reopened_before_replying(
        self, client, ticket, customer_headers, branch_admin_headers
    ):
        early = client.put(f"/api/support/tickets/{ticket['id']}/reopen", headers=customer_headers)
        assert early.status_code == 400

        client.put(
            f"/api/admin/support/tickets/{ticket['id']}/status",
            json={"status": "closed"},
            headers=branch_admin_headers,
        )
        blocked = client.post(
            f"/api/support/tickets/{ticket['id']}/messages", json={"message": "Hello?"}, headers=customer_headers
        )
        assert blocked.status_code == 400

        reopened = client.put(f"/api/support/tickets/{ticket['id']}/reopen", headers=customer_headers)
        assert reopened.status_code == 200
        data = reopened.json()["data"]
        assert data["status"] == TicketStatus.REOPENED
        assert data["reopened_at"] is not None
        assert data["closed_at"] is None

        allowed = client.post(
            f"/api/support/tickets/{ticket['id']}/messages", json={"message": "Hello?"}, headers=customer_headers
        )
        assert allowed.status_code == 201

    def test_admins_use_admin_routes(self, client, ticket, branch_admin_headers):
        assert client.get("/api/support/tickets", headers=branch_admin_headers).status_code == 403


class TestAdminTickets:
    def test_listing_is_branch_scoped(
        self, client, ticket, other_branch, customer_headers, branch_admin_headers, super_admin_headers
    ):
        open_ticket(client, customer_headers, other_branch.id, title="Printer jammed", category="other")

        everything = client.get("/api/admin/support/tickets", headers=super_admin_headers).json()["data"]
        assert len(everything) == 2
        scoped = client.get("/api/admin/support/tickets", headers=branch_admin_headers).json()["data"]
        assert [t["id"] for t in scoped] == [ticket["id"]]

        searched = client.get(
            "/api/admin/support/tickets", params={"search": "printer"}, headers=super_admin_headers
        ).json()["data"]
        assert [t["title"] for t in searched] == ["Printer jammed"]

    def test_other_branch_ticket_forbidden(self, client, other_branch, customer_headers, branch_admin_headers):
        far = open_ticket(client, customer_headers, other_branch.id).json()["data"]
        assert client.get(f"/api/admin/support/tickets/{far['id']}", headers=branch_admin_headers).status_code == 403

    def test_admin_reply_moves_ticket_in_progress(self, client, ticket, branch_admin_headers):
        response = client.post(
            f"/api/admin/support/tickets/{ticket['id']}/messages",
            json={"message": "A technician is on the way"},
            headers=branch_admin_headers,
        )
        assert response.status_code == 201

        data = client.get(f"/api/admin/support/tickets/{ticket['id']}", headers=branch_admin_headers).json()["data"]
        assert data["status"] == TicketStatus.IN_PROGRESS
        senders = [m["sender_type"] for m in data["messages"]]
        assert senders == [MessageSender.CUSTOMER, MessageSender.ADMIN, MessageSender.SYSTEM]
        assert data["messages"][0]["read_at"] is not None

    def test_assign(self, client, ticket, branch_admin, super_admin_headers):
        response = client.put(
            f"/api/admin/support/tickets/{ticket['id']}/assign",
            json={"assigned_to": branch_admin.id},
            headers=super_admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["assigned_to"] == branch_admin.id
        assert data["status"] == TicketStatus.ASSIGNED
        assert data["messages"][-1]["message"] == "Ticket status changed from new to assigned"

        unknown = client.put(
            f"/api/admin/support/tickets/{ticket['id']}/assign",
            json={"assigned_to": 999},
            headers=super_admin_headers,
        )
        assert unknown.status_code == 404

    def test_status_update(self, client, ticket, branch_admin_headers):
        url = f"/api/admin/support/tickets/{ticket['id']}/status"

        closed = client.put(url, json={"status": "CLOSED"}, headers=branch_admin_headers)
        assert closed.status_code == 200
        data = closed.json()["data"]
        assert data["status"] == TicketStatus.CLOSED
        assert data["closed_at"] is not None
        assert data["messages"][-1]["sender_type"] == MessageSender.SYSTEM

        assert client.put(url, json={"status": "closed"}, headers=branch_admin_headers).status_code == 400
        assert client.put(url, json={"status": "archived"}, headers=branch_admin_headers).status_code == 400

    def test_customers_cannot_use_admin_routes(self, client, ticket, customer_headers):
        assert client.get("/api/admin/support/tickets", headers=customer_headers).status_code == 403
