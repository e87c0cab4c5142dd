"""Server-side checks on guest-supplied booking fields.

Every check returns a list of human-readable messages; an empty list means
valid. ``ensure_valid_booking`` is what the lifecycle calls and it fails
closed by raising ``ValidationError``.
"""
import re
from decimal import Decimal

from app.core.config import settings
from app.core.errors import ValidationError

NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255
PHONE_MIN_DIGITS = 7
# largest value a Numeric(12, 2) price column holds
TOTAL_PRICE_MAX = Decimal("9999999999.99")

EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
PHONE_RE = re.compile(r"^[0-9+\-\s().]{7,20}$")


def validate_guest_details(name: str | None, email: str | None, phone: str | None = None,
                           special_requests: str | None = None) -> list[str]:
    errors: list[str] = []

    name = (name or "").strip()
    if not name:
        errors.append("Guest name is required")
    elif len(name) > NAME_MAX_LENGTH:
        errors.append(f"Guest name must be at most {NAME_MAX_LENGTH} characters")

    email = (email or "").strip()
    if not email:
        errors.append("Email is required")
    elif len(email) > EMAIL_MAX_LENGTH or not EMAIL_RE.match(email):
        errors.append("Valid email is required")

    phone = (phone or "").strip()
    if phone:
        digits = sum(ch.isdigit() for ch in phone)
        if not PHONE_RE.match(phone) or digits < PHONE_MIN_DIGITS:
            errors.append("Phone number may only contain digits, spaces and + - ( ) . and must have at least 7 digits")

    max_len = settings.SPECIAL_REQUESTS_MAX_LENGTH
    if special_requests and len(special_requests) > max_len:
        errors.append(f"Special requests must be at most {max_len} characters")

    return errors


def validate_total_price(total_price) -> list[str]:
    if total_price is None or total_price < 0:
        return ["Total price cannot be negative"]
    if total_price > TOTAL_PRICE_MAX:
        return [f"Total price cannot exceed {TOTAL_PRICE_MAX:,}"]
    return []


def validate_booking_request(req) -> list[str]:
    """Guest checks plus stay checks for a room booking request."""
    errors = validate_guest_details(req.guest_name, req.guest_email, req.guest_phone, req.special_requests)
    if req.check_in_date is None or req.check_out_date is None:
        errors.append("Check-in and check-out dates are required")
    elif req.check_out_date <= req.check_in_date:
        errors.append("Check-out date must be after check-in date")
    if req.adults is None or req.adults < 1:
        errors.append("At least 1 adult is required")
    if req.children is None or req.children < 0:
        errors.append("Children cannot be negative")
    errors.extend(validate_total_price(req.total_price))
    return errors


def ensure_valid_booking(req) -> None:
    errors = validate_booking_request(req)
    if errors:
        raise ValidationError(errors)
