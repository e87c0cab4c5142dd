"""Tests for the half-open overlap rule and the admin duplicate finder."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.errors import DuplicateBookingError
from app.services.conflict_service import (
    ensure_no_conflict,
    find_conflict,
    find_duplicate_clusters,
    ranges_overlap,
)


def _b(ref, check_in, check_out, status="confirmed", email="a@x.com"):
    return SimpleNamespace(
        booking_reference=ref,
        guest_email=email,
        check_in_date=check_in,
        check_out_date=check_out,
        status=status,
        total_price=Decimal("19000"),
    )


class _Repo:
    def __init__(self, bookings):
        self.bookings = bookings

    def active_for_guest(self, guest_email, room_type_id):
        return [b for b in self.bookings if b.guest_email == guest_email]


class TestRangesOverlap:
    @pytest.mark.parametrize(
        "a, b, expected",
        [
            ((1, 3), (1, 3), True),
            ((1, 5), (2, 3), True),
            ((2, 4), (1, 3), True),
            ((1, 3), (3, 5), False),  # back-to-back
            ((3, 5), (1, 3), False),
            ((1, 2), (4, 6), False),
        ],
    )
    def test_half_open_rule(self, a, b, expected):
        d = lambda day: date(2024, 5, day)  # noqa: E731
        assert ranges_overlap(d(a[0]), d(a[1]), d(b[0]), d(b[1])) is expected


class TestFindConflict:
    def test_ignores_cancelled_and_expired(self):
        candidates = [
            _b("RGH1", date(2024, 5, 1), date(2024, 5, 3), status="cancelled"),
            _b("RGH2", date(2024, 5, 1), date(2024, 5, 3), status="expired"),
        ]
        assert find_conflict(candidates, date(2024, 5, 2), date(2024, 5, 4)) is None

    def test_returns_first_overlapping(self):
        first = _b("RGH1", date(2024, 5, 1), date(2024, 5, 3), status="pending")
        second = _b("RGH2", date(2024, 5, 2), date(2024, 5, 6))
        assert find_conflict([first, second], date(2024, 5, 2), date(2024, 5, 4)) is first


class TestEnsureNoConflict:
    def test_pending_conflict_suggests_completing_payment(self):
        repo = _Repo([_b("RGH11111111", date(2024, 5, 1), date(2024, 5, 3), status="pending")])
        with pytest.raises(DuplicateBookingError) as exc:
            ensure_no_conflict(repo, "a@x.com", "rt", date(2024, 5, 2), date(2024, 5, 4))
        body = exc.value.to_dict()
        assert body["error"] == "duplicate_booking"
        assert body["conflictingBooking"] == {
            "bookingReference": "RGH11111111",
            "checkInDate": "2024-05-01",
            "checkOutDate": "2024-05-03",
            "status": "pending",
            "totalPrice": 19000.0,
        }
        assert "Complete the payment" in body["suggestion"]

    def test_confirmed_conflict_says_already_confirmed(self):
        repo = _Repo([_b("RGH1", date(2024, 5, 1), date(2024, 5, 3))])
        with pytest.raises(DuplicateBookingError) as exc:
            ensure_no_conflict(repo, "a@x.com", "rt", date(2024, 5, 1), date(2024, 5, 3))
        assert "already have a confirmed booking" in exc.value.suggestion

    def test_other_guest_does_not_conflict(self):
        repo = _Repo([_b("RGH1", date(2024, 5, 1), date(2024, 5, 3), email="b@x.com")])
        ensure_no_conflict(repo, "a@x.com", "rt", date(2024, 5, 1), date(2024, 5, 3))


class TestDuplicateClusters:
    def test_groups_on_exact_email_and_dates(self):
        bookings = [
            _b("RGH1", date(2024, 5, 1), date(2024, 5, 3)),
            _b("RGH2", date(2024, 5, 1), date(2024, 5, 3), status="pending"),
            _b("RGH3", date(2024, 5, 1), date(2024, 5, 4)),  # overlapping but different key
            _b("RGH4", date(2024, 5, 1), date(2024, 5, 3), email="b@x.com"),
            _b("RGH5", date(2024, 5, 1), date(2024, 5, 3), status="cancelled"),
        ]
        clusters = find_duplicate_clusters(bookings)
        assert len(clusters) == 1
        assert [b.booking_reference for b in clusters[0].bookings] == ["RGH1", "RGH2"]
        assert clusters[0].key == "a@x.com-2024-05-01-2024-05-03"

    def test_no_clusters_for_unique_bookings(self):
        assert find_duplicate_clusters([_b("RGH1", date(2024, 5, 1), date(2024, 5, 3))]) == []
