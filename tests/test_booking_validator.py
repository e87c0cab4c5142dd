"""Tests for the server-side booking field checks."""

from datetime import date
from decimal import Decimal

import pytest

from app.core.errors import ValidationError
from app.services.booking_service import BookingRequest
from app.services.booking_validator import (
    TOTAL_PRICE_MAX,
    ensure_valid_booking,
    validate_booking_request,
    validate_guest_details,
)


def _request(**overrides) -> BookingRequest:
    fields = dict(
        room_type_id="rt-1",
        check_in_date=date(2024, 5, 1),
        check_out_date=date(2024, 5, 3),
        guest_name="Amina Otieno",
        guest_email="a@x.com",
        guest_phone="0712 345 678",
        adults=2,
        children=1,
        total_price=Decimal("19000"),
    )
    fields.update(overrides)
    return BookingRequest(**fields)


class TestGuestDetails:
    def test_valid_details_have_no_errors(self):
        assert validate_guest_details("Amina", "amina@example.co.ke", "+254 (712) 345-678", "Quiet room") == []

    def test_phone_and_requests_are_optional(self):
        assert validate_guest_details("Amina", "a@x.com") == []

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name_is_rejected(self, name):
        assert "Guest name is required" in validate_guest_details(name, "a@x.com")

    def test_name_over_100_characters_is_rejected(self):
        errors = validate_guest_details("x" * 101, "a@x.com")
        assert errors == ["Guest name must be at most 100 characters"]

    @pytest.mark.parametrize("email", ["not-an-email", "a@x", "@x.com", "a b@x.com"])
    def test_malformed_email_is_rejected(self, email):
        assert validate_guest_details("Amina", email) == ["Valid email is required"]

    @pytest.mark.parametrize("phone", ["12345", "0712abc678", "+254-712-345-678-999-000"])
    def test_implausible_phone_is_rejected(self, phone):
        errors = validate_guest_details("Amina", "a@x.com", phone)
        assert len(errors) == 1 and errors[0].startswith("Phone number")

    def test_phone_needs_seven_digits_not_just_seven_characters(self):
        assert validate_guest_details("Amina", "a@x.com", "+(1) - 2") != []

    def test_special_requests_are_bounded(self):
        errors = validate_guest_details("Amina", "a@x.com", None, "x" * 1001)
        assert errors == ["Special requests must be at most 1000 characters"]

    def test_every_failing_field_is_reported(self):
        assert len(validate_guest_details("", "bad", "abc", "x" * 2000)) == 4


class TestBookingRequest:
    def test_valid_request(self):
        assert validate_booking_request(_request()) == []

    def test_same_day_stay_is_rejected(self):
        errors = validate_booking_request(_request(check_out_date=date(2024, 5, 1)))
        assert errors == ["Check-out date must be after check-in date"]

    def test_check_out_before_check_in_is_rejected(self):
        assert validate_booking_request(_request(check_out_date=date(2024, 4, 30))) != []

    def test_needs_an_adult(self):
        assert "At least 1 adult is required" in validate_booking_request(_request(adults=0))

    def test_negative_children_and_price_are_rejected(self):
        errors = validate_booking_request(_request(children=-1, total_price=Decimal("-5")))
        assert "Children cannot be negative" in errors
        assert "Total price cannot be negative" in errors

    def test_price_beyond_the_column_range_is_rejected(self):
        assert validate_booking_request(_request(total_price=TOTAL_PRICE_MAX)) == []
        errors = validate_booking_request(_request(total_price=Decimal("10000000000")))
        assert errors == ["Total price cannot exceed 9,999,999,999.99"]

    def test_ensure_valid_raises_with_all_messages(self):
        with pytest.raises(ValidationError) as exc:
            ensure_valid_booking(_request(guest_name="", adults=0))
        assert exc.value.errors == ["Guest name is required", "At least 1 adult is required"]
        assert exc.value.to_dict()["error"] == "validation_failed"
