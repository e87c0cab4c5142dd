"""Typed failures raised by the service layer.

Routes never build error responses for these by hand; ``app.main`` registers
one exception handler per class and renders the JSON body.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal


class BookingError(Exception):
    """Base class for booking-domain failures."""

    code = "booking_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class ValidationError(BookingError):
    code = "validation_failed"
    status_code = 400

    def __init__(self, errors: list[str]):
        super().__init__("Validation failed: " + ", ".join(errors))
        self.errors = list(errors)

    def to_dict(self) -> dict:
        return {**super().to_dict(), "errors": self.errors}


@dataclass
class ConflictingBooking:
    booking_reference: str
    check_in_date: date
    check_out_date: date
    status: str
    total_price: Decimal

    def to_dict(self) -> dict:
        return {
            "bookingReference": self.booking_reference,
            "checkInDate": self.check_in_date.isoformat(),
            "checkOutDate": self.check_out_date.isoformat(),
            "status": self.status,
            "totalPrice": float(self.total_price),
        }


class DuplicateBookingError(BookingError):
    code = "duplicate_booking"
    status_code = 409

    def __init__(self, conflicting: ConflictingBooking):
        if conflicting.status == "confirmed":
            suggestion = "You already have a confirmed booking for these dates."
        else:
            suggestion = "You already have a pending booking for these dates. Complete the payment to confirm it."
        super().__init__(f"You already have a booking ({conflicting.booking_reference}) for these dates")
        self.conflicting = conflicting
        self.suggestion = suggestion

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "conflictingBooking": self.conflicting.to_dict(),
            "suggestion": self.suggestion,
        }


class NotFoundError(BookingError):
    code = "not_found"
    status_code = 404


class AlreadyExistsError(BookingError):
    code = "already_exists"
    status_code = 409


class UpstreamError(BookingError):
    """An external collaborator (payment processor, email API) failed."""

    code = "upstream_unavailable"
    status_code = 502

    def to_dict(self) -> dict:
        # never leak provider error text to clients
        return {"error": self.code, "message": "An external service is unavailable. Please try again."}
