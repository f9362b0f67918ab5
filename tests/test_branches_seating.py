"""Branch catalogue, seating types and seat inventory"""

from datetime import datetime

from conftest import make_seat

from coworks.models import BookingStatus, SeatBooking, SeatStatus
from coworks.shared.short_codes import branch_short_code_for, make_unique


class TestShortCodes:
    def test_known_branch_names(self):
        assert branch_short_code_for("Coworks Whitefield") == "wtf"
        assert branch_short_code_for("HSR Layout 2") == "hsr"

    def test_unknown_branch_name_uses_leading_letters(self):
        assert branch_short_code_for("Banashankari") == "ban"

    def test_make_unique_appends_counter(self):
        taken = {"ban", "ban2"}
        assert make_unique("ban", lambda code: code in taken) == "ban3"


class TestBranches:
    def test_public_listing_includes_seat_counts(self, client, branch, hot_desks, meeting_room):
        response = client.get("/api/branches")
        assert response.status_code == 200
        [listed] = response.json()["data"]
        assert listed["short_code"] == "ngb"
        assert listed["seat_counts"] == {"HOT_DESK": 3, "MEETING_ROOM": 1}
        assert listed["total_seats"] == 4

    def test_get_by_id_or_code(self, client, branch):
        assert client.get(f"/api/branches/{branch.id}").json()["data"]["name"] == "Naagarbhaavi"
        assert client.get("/api/branches/ngb").json()["data"]["id"] == branch.id
        assert client.get("/api/branches/nope").status_code == 404

    def test_branch_seats(self, client, branch, hot_desks, meeting_room):
        response = client.get("/api/branches/ngb/seats", params={"seating_type_code": "hot"})
        assert response.status_code == 200
        assert response.json()["data"]["total"] == 3

    def test_create_generates_short_code(self, client, branch, super_admin_headers):
        response = client.post(
            "/api/branches",
            json={"name": "Naagarbhaavi Annex", "address": "3 Ring Road", "location": "Bengaluru"},
            headers=super_admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["short_code"] == "ngb2"

    def test_create_rejects_duplicate_code(self, client, branch, super_admin_headers):
        response = client.post(
            "/api/branches",
            json={"name": "Other", "address": "x", "location": "y", "short_code": "NGB"},
            headers=super_admin_headers,
        )
        assert response.status_code == 409

    def test_create_rejects_inverted_hours(self, client, super_admin_headers):
        response = client.post(
            "/api/branches",
            json={
                "name": "Late",
                "address": "x",
                "location": "y",
                "opening_time": "20:00:00",
                "closing_time": "08:00:00",
            },
            headers=super_admin_headers,
        )
        assert response.status_code == 400

    def test_branch_admin_cannot_create(self, client, branch_admin_headers):
        response = client.post(
            "/api/branches",
            json={"name": "X", "address": "x", "location": "y"},
            headers=branch_admin_headers,
        )
        assert response.status_code == 403

    def test_branch_admin_updates_only_own_branch(self, client, branch, other_branch, branch_admin_headers):
        own = client.put(f"/api/branches/{branch.id}", json={"phone": "08012345678"}, headers=branch_admin_headers)
        assert own.status_code == 200
        assert own.json()["data"]["phone"] == "08012345678"

        other = client.put(f"/api/branches/{other_branch.id}", json={"phone": "1"}, headers=branch_admin_headers)
        assert other.status_code == 403

    def test_delete_refused_while_seats_exist(self, client, branch, hot_desks, other_branch, super_admin_headers):
        assert client.delete(f"/api/branches/{branch.id}", headers=super_admin_headers).status_code == 409
        assert client.delete(f"/api/branches/{other_branch.id}", headers=super_admin_headers).status_code == 200


class TestSeatingTypes:
    def test_create_fills_defaults(self, client, super_admin_headers):
        response = client.post(
            "/api/seating-types",
            json={"name": "dedicated_desk", "monthly_rate": 6000},
            headers=super_admin_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "DEDICATED_DESK"
        assert data["short_code"] == "ded"
        assert data["quantity_options"] == [1, 2, 3, 4, 5]
        assert data["is_meeting_room"] is False

    def test_meeting_room_defaults_to_hourly(self, client, super_admin_headers):
        response = client.post("/api/seating-types", json={"name": "MEETING_ROOM"}, headers=super_admin_headers)
        data = response.json()["data"]
        assert data["is_hourly"] is True
        assert data["is_meeting_room"] is True

    def test_unknown_type_name(self, client, super_admin_headers):
        response = client.post("/api/seating-types", json={"name": "SOFA"}, headers=super_admin_headers)
        assert response.status_code == 400

    def test_duplicate_type(self, client, hot_desk_type, super_admin_headers):
        response = client.post("/api/seating-types", json={"name": "HOT_DESK"}, headers=super_admin_headers)
        assert response.status_code == 409

    def test_get_by_code(self, client, hot_desk_type):
        response = client.get("/api/seating-types/hot")
        assert response.status_code == 200
        assert response.json()["data"]["hourly_rate"] == 100.0

    def test_delete_refused_while_in_use(self, client, hot_desks, hot_desk_type, super_admin_headers):
        response = client.delete(f"/api/seating-types/{hot_desk_type.id}", headers=super_admin_headers)
        assert response.status_code == 409


class TestSeats:
    def test_create_seat_derives_code(self, client, branch, hot_desk_type, branch_admin_headers):
        response = client.post(
            "/api/seats",
            json={"branch_id": branch.id, "seating_type_id": hot_desk_type.id, "seat_number": "9", "price": 3000},
            headers=branch_admin_headers,
        )
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["seat_code"] == "HOT9"
        assert data["availability_status"] == SeatStatus.AVAILABLE

    def test_branch_admin_cannot_add_to_other_branch(self, client, other_branch, hot_desk_type, branch_admin_headers):
        response = client.post(
            "/api/seats",
            json={"branch_id": other_branch.id, "seating_type_id": hot_desk_type.id, "seat_number": "1"},
            headers=branch_admin_headers,
        )
        assert response.status_code == 403

    def test_duplicate_seat_code(self, client, branch, hot_desk_type, hot_desks, super_admin_headers):
        response = client.post(
            "/api/seats",
            json={
                "branch_id": branch.id,
                "seating_type_id": hot_desk_type.id,
                "seat_number": "1",
                "seat_code": hot_desks[0].seat_code,
            },
            headers=super_admin_headers,
        )
        assert response.status_code == 409

    def test_filter_by_status(self, client, db, branch, hot_desk_type, hot_desks):
        make_seat(db, branch, hot_desk_type, 4, availability_status=SeatStatus.MAINTENANCE)
        response = client.get("/api/seats", params={"branch_code": "ngb", "status": "MAINTENANCE"})
        assert [s["seat_number"] for s in response.json()["data"]] == ["4"]

    def test_update_status(self, client, hot_desks, branch_admin_headers):
        response = client.put(
            f"/api/seats/{hot_desks[0].id}",
            json={"availability_status": "maintenance"},
            headers=branch_admin_headers,
        )
        assert response.status_code == 200
        assert response.json()["data"]["availability_status"] == SeatStatus.MAINTENANCE

    def test_delete_refused_when_seat_has_bookings(self, client, db, customer, hot_desks, super_admin_headers):
        seat = hot_desks[0]
        start = datetime(2030, 1, 1)
        db.add(
            SeatBooking(
                customer_id=customer.id,
                seat_id=seat.id,
                start_time=start,
                end_time=start.replace(month=2),
                total_price=3000.0,
                status=BookingStatus.CONFIRMED,
            )
        )
        db.commit()

        assert client.delete(f"/api/seats/{seat.id}", headers=super_admin_headers).status_code == 409
        assert client.delete(f"/api/seats/{hot_desks[1].id}", headers=super_admin_headers).status_code == 200
