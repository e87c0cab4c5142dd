"""Guest and staff notifications for room and conference bookings.

Delivery is best-effort and at-most-once per request: each message is written
to the ``email_logs`` outbox and handed to a scheduler (FastAPI's
``BackgroundTasks.add_task`` in routes), which runs ``deliver_email`` after the
response has gone out. A failed send is logged and recorded on the outbox row;
it never reaches the caller. The Celery ``process_email_queue`` job retries
failed rows only when ``EMAIL_RETRY_ENABLED`` is set.
"""
import logging
from decimal import Decimal
from typing import Callable

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db import session as db_session
from app.models.booking import Booking
from app.models.conference_booking import ConferenceBooking
from app.models.email_log import EmailLog
from app.services.email_service import attempt_delivery, queue_email

logger = logging.getLogger(__name__)

Scheduler = Callable[..., None]


def _run_now(fn, *args) -> None:
    fn(*args)


def format_kes(amount: Decimal | float | int) -> str:
    return f"KES {Decimal(amount):,.0f}"


def format_date(d) -> str:
    return d.strftime("%A, %B %d, %Y").replace(" 0", " ")


def _guests_line(adults: int, children: int) -> str:
    line = f"{adults} Adult{'s' if adults > 1 else ''}"
    if children > 0:
        line += f", {children} Child{'ren' if children > 1 else ''}"
    return line


def guest_confirmation_message(booking: Booking, room_name: str) -> tuple[str, str]:
    subject = f"Booking Confirmation - Raygreen Hotel ({booking.check_in_date.isoformat()})"
    lines = [
        f"Dear {booking.guest_name},",
        "",
        "Thank you for choosing Raygreen Hotel! We're delighted to confirm your reservation.",
        f"Booking Reference: {booking.booking_reference}",
        "",
        f"Room Type: {room_name}",
        f"Check-in: {format_date(booking.check_in_date)}",
        f"Check-out: {format_date(booking.check_out_date)}",
        f"Guests: {_guests_line(booking.adults, booking.children)}",
        f"Total Amount: {format_kes(booking.total_price)}",
    ]
    if booking.special_requests:
        lines.append(f"Special Requests: {booking.special_requests}")
    lines += [
        "",
        "What's next?",
        "- Our team will contact you within 24 hours to confirm final details",
        "- Check-in time: 2:00 PM | Check-out time: 11:00 AM",
        "- Please bring a valid ID for check-in",
        "",
        "Raygreen Hotel, Kisumu",
    ]
    return subject, "\n".join(lines)


def staff_alert_message(booking: Booking, room_name: str) -> tuple[str, str]:
    subject = f"New Booking: {booking.booking_reference} - {booking.guest_name}"
    lines = [
        f"A new booking was received ({booking.status}).",
        "",
        f"Reference: {booking.booking_reference}",
        f"Guest: {booking.guest_name} <{booking.guest_email}>",
        f"Phone: {booking.guest_phone or '-'}",
        f"Room Type: {room_name}",
        f"Stay: {booking.check_in_date.isoformat()} to {booking.check_out_date.isoformat()} ({booking.nights} nights)",
        f"Guests: {_guests_line(booking.adults, booking.children)}",
        f"Total: {format_kes(booking.total_price)}",
        f"Payment status: {booking.payment_status}",
        f"Special requests: {booking.special_requests or '-'}",
    ]
    return subject, "\n".join(lines)


def conference_confirmation_message(cb: ConferenceBooking) -> tuple[str, str]:
    subject = f"Conference Booking Received - Raygreen Hotel ({cb.event_date.isoformat()})"
    body = "\n".join([
        f"Dear {cb.contact_name},",
        "",
        "Thank you for your conference enquiry. Our events team will be in touch shortly.",
        f"Reference: {cb.booking_reference}",
        f"Date: {format_date(cb.event_date)} {cb.start_time}-{cb.end_time}",
        f"Attendees: {cb.attendees}",
        "",
        "Raygreen Hotel, Kisumu",
    ])
    return subject, body


def deliver_email(email_id: str) -> None:
    """Background entry point: one attempt on a fresh session, never raises."""
    db = db_session.SessionLocal()
    try:
        log = db.get(EmailLog, email_id)
        if not log or log.status == "sent":
            return
        attempt_delivery(db, log)
    except Exception:
        logger.exception("Delivery of email %s crashed", email_id)
    finally:
        db.close()


class NotificationDispatcher:
    def __init__(self, db: Session, schedule: Scheduler | None = None):
        self.db = db
        self.schedule = schedule or _run_now

    def _dispatch(self, to_email: str, subject: str, body: str, kind: str, reference: str) -> str | None:
        try:
            eid = queue_email(self.db, to_email, subject, body, kind=kind, related_booking_reference=reference)
            self.schedule(deliver_email, eid)
            return eid
        except Exception:
            self.db.rollback()
            logger.warning("Could not queue %s email for %s", kind, reference, exc_info=True)
            return None

    def notify_guest_confirmation(self, booking: Booking, room_name: str) -> str | None:
        subject, body = guest_confirmation_message(booking, room_name)
        return self._dispatch(booking.guest_email, subject, body, "guest_confirmation", booking.booking_reference)

    def notify_staff_alert(self, booking: Booking, room_name: str) -> list[str]:
        subject, body = staff_alert_message(booking, room_name)
        ids = []
        for to_email in settings.staff_alert_recipients:
            eid = self._dispatch(to_email, subject, body, "staff_alert", booking.booking_reference)
            if eid:
                ids.append(eid)
        return ids

    def notify_conference_confirmation(self, cb: ConferenceBooking) -> str | None:
        subject, body = conference_confirmation_message(cb)
        return self._dispatch(cb.contact_email, subject, body, "conference_confirmation", cb.booking_reference)
