import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError, UpstreamError, ValidationError
from app.models.booking import BOOKING_STATUSES, TERMINAL_STATUSES, Booking
from app.models.user import Profile
from app.repositories.booking_repository import BookingRepository, RoomTypeRepository
from app.services.audit_service import log_audit
from app.services.booking_validator import ensure_valid_booking
from app.services.conflict_service import ensure_no_conflict
from app.services.notification_service import NotificationDispatcher
from app.services.payment_gateway import CheckoutSession, PaymentGateway

logger = logging.getLogger(__name__)

BOOKING_REF_PREFIX = "RGH"
DEFAULT_ROOM_NAME = "Standard Room"


@dataclass
class BookingRequest:
    room_type_id: str
    check_in_date: date
    check_out_date: date
    guest_name: str
    guest_email: str
    adults: int = 1
    children: int = 0
    guest_phone: str | None = None
    special_requests: str | None = None
    total_price: Decimal = Decimal("0")
    user_id: str | None = None


@dataclass
class BulkStatusResult:
    status: str
    updated: list[str] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)


@dataclass
class ReconciliationResult:
    status: str
    booking_confirmed: bool
    booking_reference: str | None = None


def make_booking_reference(prefix: str = BOOKING_REF_PREFIX, now_ms: int | None = None) -> str:
    """Prefix + last 8 digits of the creation timestamp in milliseconds."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return prefix + str(now_ms)[-8:]


def allocate_reference(exists: Callable[[str], bool], prefix: str = BOOKING_REF_PREFIX) -> str:
    # booking_reference must be unique; two bookings in the same millisecond step forward
    now_ms = time.time_ns() // 1_000_000
    for i in range(10):
        ref = make_booking_reference(prefix, now_ms + i)
        if not exists(ref):
            return ref
    raise RuntimeError("could not allocate booking reference")


def _room_name(db: Session, room_type_id: str) -> str:
    room = RoomTypeRepository(db).get(room_type_id)
    return room.name if room else DEFAULT_ROOM_NAME


def _normalize(req: BookingRequest) -> BookingRequest:
    req.guest_name = (req.guest_name or "").strip()
    req.guest_email = (req.guest_email or "").strip().lower()
    req.guest_phone = (req.guest_phone or "").strip() or None
    req.special_requests = (req.special_requests or "").strip() or None
    return req


def create_booking(db: Session, req: BookingRequest, *, actor: str = "public", direct: bool = True,
                   notifier: NotificationDispatcher | None = None) -> Booking:
    """Validate, check for a clashing stay, insert.

    direct=True is the pay-at-hotel path and stores the booking as confirmed;
    direct=False is the checkout path and stores it as pending until payment
    is reconciled. The room-type row lock serialises concurrent requests for
    the same room type so the conflict check and insert cannot interleave.
    """
    ensure_valid_booking(req)
    req = _normalize(req)

    bookings = BookingRepository(db)
    rooms = RoomTypeRepository(db)
    try:
        room = rooms.lock(req.room_type_id)
        if not room:
            raise NotFoundError("Room type not found")
        if req.adults + req.children > room.max_occupancy:
            raise ValidationError([f"{room.name} sleeps at most {room.max_occupancy} guests"])

        ensure_no_conflict(bookings, req.guest_email, room.id, req.check_in_date, req.check_out_date)

        booking = Booking(
            id=str(uuid.uuid4()),
            booking_reference=allocate_reference(bookings.reference_exists),
            user_id=req.user_id,
            guest_name=req.guest_name,
            guest_email=req.guest_email,
            guest_phone=req.guest_phone,
            room_type_id=room.id,
            check_in_date=req.check_in_date,
            check_out_date=req.check_out_date,
            adults=req.adults,
            children=req.children,
            num_guests=req.adults + req.children,
            total_price=Decimal(req.total_price),
            special_requests=req.special_requests,
            status="confirmed" if direct else "pending",
            payment_status="pending",
        )
        bookings.add(booking)
        log_audit(db, actor, "INSERT", "bookings", booking.id, {
            "booking_reference": booking.booking_reference,
            "status": booking.status,
            "check_in_date": booking.check_in_date,
            "check_out_date": booking.check_out_date,
        })
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(booking)
    logger.info("Booking %s created (%s) for %s", booking.booking_reference, booking.status, booking.guest_email)

    # checkout-path alerts are sent by start_checkout once the session exists
    if notifier is not None and direct:
        notifier.notify_guest_confirmation(booking, room.name)
        notifier.notify_staff_alert(booking, room.name)
    return booking


def start_checkout(db: Session, req: BookingRequest, gateway: PaymentGateway, *, success_url: str, cancel_url: str,
                   actor: str = "public", notifier: NotificationDispatcher | None = None) -> tuple[Booking, CheckoutSession]:
    booking = create_booking(db, req, actor=actor, direct=False)
    try:
        session = gateway.create_checkout(booking, _room_name(db, booking.room_type_id), success_url, cancel_url)
    except UpstreamError:
        # release the dates so the guest can retry straight away
        booking.status = "cancelled"
        booking.payment_status = "failed"
        log_audit(db, "system", "UPDATE", "bookings", booking.id, {"status": "cancelled", "reason": "checkout_failed"})
        db.commit()
        raise

    booking.stripe_session_id = session.id
    log_audit(db, actor, "UPDATE", "bookings", booking.id, {"stripe_session_id": session.id})
    db.commit()
    if notifier is not None:
        notifier.notify_staff_alert(booking, _room_name(db, booking.room_type_id))
    return booking, session


def update_status(db: Session, booking_id: str, new_status: str, *, actor: str) -> Booking:
    """Overwrite a booking's status. Any transition between known statuses is allowed."""
    if new_status not in BOOKING_STATUSES:
        raise ValidationError([f"Unknown status '{new_status}'"])
    b = BookingRepository(db).get(booking_id)
    if not b:
        raise NotFoundError("Booking not found")

    previous = b.status
    if previous in TERMINAL_STATUSES and new_status != previous:
        logger.warning("Booking %s moved out of terminal status %s to %s by %s",
                       b.booking_reference, previous, new_status, actor)
    b.status = new_status
    log_audit(db, actor, "UPDATE", "bookings", b.id, {"status": {"from": previous, "to": new_status}})
    db.commit()
    logger.info("Booking %s status %s -> %s by %s", b.booking_reference, previous, new_status, actor)
    return b


def bulk_update_status(db: Session, booking_ids: Iterable[str], new_status: str, *, actor: str) -> BulkStatusResult:
    """Update each id independently; a missing id is reported, the rest still update."""
    if new_status not in BOOKING_STATUSES:
        raise ValidationError([f"Unknown status '{new_status}'"])
    result = BulkStatusResult(status=new_status)
    for booking_id in dict.fromkeys(booking_ids):
        try:
            update_status(db, booking_id, new_status, actor=actor)
            result.updated.append(booking_id)
        except NotFoundError as e:
            result.failed.append({"id": booking_id, "reason": e.message})
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Bulk status update failed for booking %s", booking_id)
            result.failed.append({"id": booking_id, "reason": "Store error"})
    return result


def cancel_own_booking(db: Session, booking_id: str, user: Profile) -> Booking:
    b = BookingRepository(db).get(booking_id)
    # ownership is user_id only; profile emails are unverified
    if not b or b.user_id != user.id:
        raise NotFoundError("Booking not found")
    if b.status == "cancelled":
        return b
    if b.status == "expired":
        raise ValidationError(["Booking has expired and can no longer be cancelled"])
    return update_status(db, b.id, "cancelled", actor=user.email)


def reconcile_payment(db: Session, session_id: str, gateway: PaymentGateway, *,
                      notifier: NotificationDispatcher | None = None) -> ReconciliationResult:
    """Confirm the booking behind a paid checkout session. Safe to call repeatedly."""
    session_id = (session_id or "").strip()
    if not session_id:
        raise ValidationError(["Session ID is required"])

    verification = gateway.verify(session_id)
    if not verification.paid:
        logger.info("Payment not completed for session %s, status: %s", session_id, verification.raw_status)
        return ReconciliationResult(status=verification.raw_status, booking_confirmed=False)

    b = BookingRepository(db).get_by_session(session_id)
    if not b:
        raise NotFoundError("Booking not found")

    first_confirmation = b.status != "confirmed" or b.payment_status != "paid"
    if b.status in TERMINAL_STATUSES:
        logger.warning("Payment received for %s booking %s; confirming it", b.status, b.booking_reference)
    b.status = "confirmed"
    b.payment_status = "paid"
    if first_confirmation:
        log_audit(db, "stripe", "UPDATE", "bookings", b.id, {
            "status": "confirmed", "payment_status": "paid", "stripe_session_id": session_id,
        })
    db.commit()

    if first_confirmation:
        logger.info("Booking %s confirmed by payment session %s", b.booking_reference, session_id)
        if notifier is not None:
            notifier.notify_guest_confirmation(b, _room_name(db, b.room_type_id))
    return ReconciliationResult(status="paid", booking_confirmed=True, booking_reference=b.booking_reference)


def delete_booking(db: Session, booking_id: str, *, actor: str) -> None:
    """Hard delete, used by admins to clear duplicate rows."""
    repo = BookingRepository(db)
    b = repo.get(booking_id)
    if not b:
        raise NotFoundError("Booking not found")
    log_audit(db, actor, "DELETE", "bookings", b.id, {"booking_reference": b.booking_reference})
    repo.delete(b)
    db.commit()
    logger.info("Booking %s deleted by %s", b.booking_reference, actor)


def expire_stale_bookings(db: Session, older_than: timedelta | None = None) -> int:
    if older_than is None:
        older_than = timedelta(hours=settings.PENDING_BOOKING_TTL_HOURS)
    cutoff = datetime.now(timezone.utc) - older_than
    stale = BookingRepository(db).stale_pending(cutoff)
    for b in stale:
        b.status = "expired"
        log_audit(db, "system", "UPDATE", "bookings", b.id, {"status": {"from": "pending", "to": "expired"}})
    db.commit()
    if stale:
        logger.info("Expired %d stale pending bookings", len(stale))
    return len(stale)
