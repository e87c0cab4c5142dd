import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from app.core.errors import ConflictingBooking, DuplicateBookingError
from app.models.booking import ACTIVE_STATUSES, Booking
from app.repositories.booking_repository import BookingRepository

logger = logging.getLogger(__name__)


def ranges_overlap(in_a: date, out_a: date, in_b: date, out_b: date) -> bool:
    """Half-open [in, out) overlap; a checkout on another stay's check-in day is not a clash."""
    return in_a < out_b and in_b < out_a


def find_conflict(candidates: Iterable[Booking], check_in: date, check_out: date) -> Booking | None:
    for b in candidates:
        if b.status not in ACTIVE_STATUSES:
            continue
        if ranges_overlap(check_in, check_out, b.check_in_date, b.check_out_date):
            return b
    return None


def ensure_no_conflict(repo: BookingRepository, guest_email: str, room_type_id: str,
                       check_in: date, check_out: date) -> None:
    existing = find_conflict(repo.active_for_guest(guest_email, room_type_id), check_in, check_out)
    if existing is None:
        return
    logger.warning(
        "Duplicate booking rejected for %s on room type %s (%s..%s), conflicts with %s",
        guest_email, room_type_id, check_in, check_out, existing.booking_reference,
    )
    raise DuplicateBookingError(ConflictingBooking(
        booking_reference=existing.booking_reference,
        check_in_date=existing.check_in_date,
        check_out_date=existing.check_out_date,
        status=existing.status,
        total_price=existing.total_price,
    ))


@dataclass
class DuplicateCluster:
    guest_email: str
    check_in_date: date
    check_out_date: date
    bookings: list[Booking]

    @property
    def key(self) -> str:
        return f"{self.guest_email}-{self.check_in_date.isoformat()}-{self.check_out_date.isoformat()}"


def find_duplicate_clusters(bookings: Iterable[Booking]) -> list[DuplicateCluster]:
    """Group active bookings on exact (email, check-in, check-out) equality.

    Coarser than the write-time overlap check and ignores room type; it is
    meant for admins cleaning up rows that slipped through.
    """
    groups: dict[tuple[str, date, date], list[Booking]] = {}
    for b in bookings:
        if b.status not in ACTIVE_STATUSES:
            continue
        groups.setdefault((b.guest_email, b.check_in_date, b.check_out_date), []).append(b)
    return [
        DuplicateCluster(guest_email=k[0], check_in_date=k[1], check_out_date=k[2], bookings=v)
        for k, v in groups.items()
        if len(v) > 1
    ]
