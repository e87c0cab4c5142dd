"""Admin and staff endpoints."""

import uuid
from decimal import Decimal

import pytest

from app.models.audit_log import AuditLog
from app.models.room_type import RoomType


@pytest.fixture
def admin(make_profile, auth_headers):
    return auth_headers(make_profile("admin@raygreenhotel.com", role="admin"))


@pytest.fixture
def staff(make_profile, auth_headers):
    return auth_headers(make_profile("frontdesk@raygreenhotel.com", role="staff"))


def _book(client, booking_payload, **overrides) -> dict:
    res = client.post("/api/v1/public/bookings", json=booking_payload(**overrides))
    assert res.status_code == 200, res.text
    return res.json()


class TestAccess:
    def test_anonymous_is_401(self, client):
        assert client.get("/api/v1/admin/bookings").status_code == 401

    def test_guest_is_403(self, client, make_profile, auth_headers):
        guest = auth_headers(make_profile("g@x.com"))
        assert client.get("/api/v1/admin/bookings", headers=guest).status_code == 403

    def test_staff_cannot_delete(self, client, booking_payload, staff):
        b = _book(client, booking_payload)
        assert client.delete(f"/api/v1/admin/bookings/{b['bookingId']}", headers=staff).status_code == 403


class TestBookingManagement:
    def test_list_filters_by_status_and_query(self, client, booking_payload, staff):
        a = _book(client, booking_payload)
        _book(client, booking_payload, guestEmail="b@x.com", guestName="Brian Odhiambo")
        client.patch(f"/api/v1/admin/bookings/{a['bookingId']}/status", json={"status": "cancelled"}, headers=staff)

        cancelled = client.get("/api/v1/admin/bookings", params={"status": "cancelled"}, headers=staff).json()
        assert [b["id"] for b in cancelled] == [a["bookingId"]]
        found = client.get("/api/v1/admin/bookings", params={"q": "brian"}, headers=staff).json()
        assert [b["guestEmail"] for b in found] == ["b@x.com"]

    def test_status_update_validates_value(self, client, booking_payload, staff):
        b = _book(client, booking_payload)
        res = client.patch(f"/api/v1/admin/bookings/{b['bookingId']}/status", json={"status": "archived"}, headers=staff)
        assert res.status_code == 400
        res = client.patch("/api/v1/admin/bookings/missing/status", json={"status": "cancelled"}, headers=staff)
        assert res.status_code == 404

    def test_bulk_status(self, client, booking_payload, staff, db):
        a = _book(client, booking_payload)
        b = _book(client, booking_payload, guestEmail="b@x.com")
        res = client.post(
            "/api/v1/admin/bookings/bulk-status",
            json={"ids": [a["bookingId"], "missing", b["bookingId"]], "status": "cancelled"},
            headers=staff,
        )
        body = res.json()
        assert body["updated"] == [a["bookingId"], b["bookingId"]]
        assert body["failed"] == [{"id": "missing", "reason": "Booking not found"}]
        actors = {row.actor for row in db.query(AuditLog).filter(AuditLog.operation == "UPDATE").all()}
        assert actors == {"frontdesk@raygreenhotel.com"}

    def test_duplicates_and_delete(self, client, booking_payload, admin, room_type, db):
        # same guest and dates in a second room type slips past the per-room-type check
        other = RoomType(id=str(uuid.uuid4()), name="Standard Room", base_price=Decimal("6500"), max_occupancy=2)
        db.add(other)
        db.commit()
        a = _book(client, booking_payload)
        b = _book(client, booking_payload, roomTypeId=other.id)

        clusters = client.get("/api/v1/admin/bookings/duplicates", headers=admin).json()
        assert len(clusters) == 1
        assert {x["id"] for x in clusters[0]["bookings"]} == {a["bookingId"], b["bookingId"]}

        assert client.delete(f"/api/v1/admin/bookings/{b['bookingId']}", headers=admin).json() == {"ok": True}
        assert client.get("/api/v1/admin/bookings/duplicates", headers=admin).json() == []


class TestConferenceBookings:
    def _payload(self, **overrides):
        body = {
            "contactName": "Grace Wanjiru",
            "contactEmail": "grace@ngo.org",
            "organization": "Lake Basin NGO",
            "eventDate": "2024-06-10",
            "startTime": "09:00",
            "endTime": "17:00",
            "attendees": 40,
            "totalPrice": 80000,
        }
        body.update(overrides)
        return body

    def test_create_and_confirm(self, client, staff, sent_emails):
        res = client.post("/api/v1/public/conference-bookings", json=self._payload())
        assert res.status_code == 200
        created = res.json()
        assert created["bookingReference"].startswith("RGC")
        assert [m[0] for m in sent_emails] == ["grace@ngo.org"]

        res = client.patch(f"/api/v1/admin/conference-bookings/{created['id']}/status",
                           json={"status": "confirmed"}, headers=staff)
        assert res.json()["status"] == "confirmed"
        listed = client.get("/api/v1/admin/conference-bookings", params={"status": "confirmed"}, headers=staff).json()
        assert [c["id"] for c in listed] == [created["id"]]

    def test_end_before_start_is_rejected(self, client):
        res = client.post("/api/v1/public/conference-bookings", json=self._payload(startTime="14:00", endTime="10:00"))
        assert res.status_code == 400
        assert res.json()["errors"] == ["End time must be after start time"]

    def test_bad_time_format(self, client):
        res = client.post("/api/v1/public/conference-bookings", json=self._payload(startTime="9am"))
        assert res.json()["errors"] == ["Start and end times must be HH:MM"]

    def test_oversized_price_is_400_not_500(self, client):
        res = client.post("/api/v1/public/conference-bookings", json=self._payload(totalPrice=10**12))
        assert res.status_code == 400
        assert res.json()["errors"] == ["Total price cannot exceed 9,999,999,999.99"]


class TestCatalog:
    def test_room_type_crud_is_public_readable(self, client, admin):
        res = client.post("/api/v1/admin/room-types", json={
            "name": "Executive Double", "basePrice": 12500, "maxOccupancy": 3, "amenities": ["Lake view"],
        }, headers=admin)
        assert res.status_code == 200
        rid = res.json()["id"]
        patched = client.patch(f"/api/v1/admin/room-types/{rid}", json={"basePrice": 13000}, headers=admin).json()
        assert patched["basePrice"] == 13000.0
        names = [r["name"] for r in client.get("/api/v1/public/room-types").json()]
        assert names == ["Executive Double"]
        dup = client.post("/api/v1/admin/room-types", json={"name": "Executive Double", "basePrice": 1}, headers=admin)
        assert dup.status_code == 409

    def test_menu_items_hide_unavailable(self, client, staff):
        item = client.post("/api/v1/admin/menu-items", json={
            "name": "Tilapia Fry", "category": "Mains", "price": 1200,
        }, headers=staff).json()
        assert [m["name"] for m in client.get("/api/v1/public/menu-items").json()] == ["Tilapia Fry"]
        client.patch(f"/api/v1/admin/menu-items/{item['id']}", json={"isAvailable": False}, headers=staff)
        assert client.get("/api/v1/public/menu-items").json() == []

    def test_testimonials(self, client, staff):
        res = client.post("/api/v1/admin/testimonials", json={"name": "Otieno", "content": "Great stay", "rating": 5},
                          headers=staff)
        assert res.status_code == 200
        assert client.get("/api/v1/public/testimonials").json()[0]["content"] == "Great stay"
        bad = client.post("/api/v1/admin/testimonials", json={"name": "x", "content": "y", "rating": 9}, headers=staff)
        assert bad.status_code == 400


class TestMetricsAndAudit:
    def test_overview(self, client, booking_payload, gateway, staff):
        _book(client, booking_payload)
        checkout = client.post("/api/v1/public/bookings/checkout",
                               json=booking_payload(guestEmail="b@x.com", totalPrice=9500)).json()
        sid = checkout["url"].rsplit("/", 1)[1]
        gateway.mark_paid(sid)
        client.post("/api/v1/public/payments/verify", json={"session_id": sid})
        client.post("/api/v1/public/bookings/checkout", json=booking_payload(guestEmail="c@x.com"))

        m = client.get("/api/v1/admin/metrics/overview", headers=staff).json()
        assert m["totalBookings"] == 3
        assert m["pendingBookings"] == 1
        assert m["confirmedBookings"] == 2
        assert m["revenueKES"] == 9500.0
        assert m["bookingsLast7Days"] == 3

    def test_audit_log_is_admin_only(self, client, booking_payload, admin, staff):
        _book(client, booking_payload)
        assert client.get("/api/v1/admin/audit-logs", headers=staff).status_code == 403
        rows = client.get("/api/v1/admin/audit-logs", params={"table": "bookings"}, headers=admin).json()
        assert [(r["operation"], r["actor"]) for r in rows] == [("INSERT", "public")]
