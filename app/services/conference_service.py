import logging
import re
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.booking import BOOKING_STATUSES
from app.models.conference_booking import ConferenceBooking
from app.repositories.booking_repository import ConferenceBookingRepository
from app.services.audit_service import log_audit
from app.services.booking_service import allocate_reference
from app.services.booking_validator import validate_guest_details, validate_total_price
from app.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

CONFERENCE_REF_PREFIX = "RGC"
TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


@dataclass
class ConferenceRequest:
    contact_name: str
    contact_email: str
    event_date: date
    start_time: str
    end_time: str
    attendees: int = 1
    contact_phone: str | None = None
    organization: str | None = None
    special_requests: str | None = None
    total_price: Decimal = Decimal("0")


def validate_conference_request(req: ConferenceRequest) -> list[str]:
    errors = validate_guest_details(req.contact_name, req.contact_email, req.contact_phone, req.special_requests)
    if req.event_date is None:
        errors.append("Event date is required")
    start_ok = bool(req.start_time and TIME_RE.match(req.start_time))
    end_ok = bool(req.end_time and TIME_RE.match(req.end_time))
    if not (start_ok and end_ok):
        errors.append("Start and end times must be HH:MM")
    elif req.end_time <= req.start_time:
        # zero-padded HH:MM compares correctly as text
        errors.append("End time must be after start time")
    if req.attendees is None or req.attendees < 1:
        errors.append("At least 1 attendee is required")
    errors.extend(validate_total_price(req.total_price))
    return errors


def create_conference_booking(db: Session, req: ConferenceRequest, *, actor: str = "public",
                              notifier: NotificationDispatcher | None = None) -> ConferenceBooking:
    errors = validate_conference_request(req)
    if errors:
        raise ValidationError(errors)

    repo = ConferenceBookingRepository(db)
    cb = ConferenceBooking(
        id=str(uuid.uuid4()),
        booking_reference=allocate_reference(repo.reference_exists, CONFERENCE_REF_PREFIX),
        contact_name=req.contact_name.strip(),
        contact_email=req.contact_email.strip().lower(),
        contact_phone=(req.contact_phone or "").strip() or None,
        organization=(req.organization or "").strip() or None,
        event_date=req.event_date,
        start_time=req.start_time,
        end_time=req.end_time,
        attendees=req.attendees,
        total_price=Decimal(req.total_price),
        special_requests=(req.special_requests or "").strip() or None,
        status="pending",
    )
    try:
        repo.add(cb)
        log_audit(db, actor, "INSERT", "conference_bookings", cb.id, {
            "booking_reference": cb.booking_reference,
            "event_date": cb.event_date,
            "attendees": cb.attendees,
        })
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(cb)
    logger.info("Conference booking %s created for %s on %s", cb.booking_reference, cb.contact_email, cb.event_date)
    if notifier is not None:
        notifier.notify_conference_confirmation(cb)
    return cb


def update_conference_status(db: Session, booking_id: str, new_status: str, *, actor: str) -> ConferenceBooking:
    if new_status not in BOOKING_STATUSES:
        raise ValidationError([f"Unknown status '{new_status}'"])
    cb = ConferenceBookingRepository(db).get(booking_id)
    if not cb:
        raise NotFoundError("Conference booking not found")
    previous = cb.status
    cb.status = new_status
    log_audit(db, actor, "UPDATE", "conference_bookings", cb.id, {"status": {"from": previous, "to": new_status}})
    db.commit()
    logger.info("Conference booking %s status %s -> %s by %s", cb.booking_reference, previous, new_status, actor)
    return cb
