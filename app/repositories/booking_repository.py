"""Typed query methods for the booking tables.

Services go through these instead of composing queries inline, so every
read/write the lifecycle depends on has one named, testable home.
"""
from datetime import date, datetime
from typing import Iterable, Sequence

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.models.booking import ACTIVE_STATUSES, Booking
from app.models.conference_booking import ConferenceBooking
from app.models.room_type import RoomType


class BookingRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, booking_id: str) -> Booking | None:
        return self.db.get(Booking, booking_id)

    def get_by_reference(self, reference: str) -> Booking | None:
        return self.db.query(Booking).filter(Booking.booking_reference == reference).first()

    def get_by_session(self, session_id: str) -> Booking | None:
        return self.db.query(Booking).filter(Booking.stripe_session_id == session_id).first()

    def reference_exists(self, reference: str) -> bool:
        return self.db.query(Booking.id).filter(Booking.booking_reference == reference).first() is not None

    def active_for_guest(self, guest_email: str, room_type_id: str) -> Sequence[Booking]:
        return (
            self.db.query(Booking)
            .filter(
                Booking.guest_email == guest_email,
                Booking.room_type_id == room_type_id,
                Booking.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Booking.created_at.asc())
            .all()
        )

    def list_active(self) -> Sequence[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.status.in_(ACTIVE_STATUSES))
            .order_by(Booking.created_at.asc())
            .all()
        )

    def search(self, status: str | None = None, q: str | None = None, limit: int = 200) -> Sequence[Booking]:
        query = self.db.query(Booking)
        if status:
            query = query.filter(Booking.status == status)
        if q:
            ql = f"%{q.lower()}%"
            query = query.filter(or_(
                func.lower(Booking.guest_name).like(ql),
                Booking.guest_email.like(ql),
                Booking.guest_phone.like(ql),
                Booking.booking_reference.like(f"%{q.upper()}%"),
            ))
        return query.order_by(Booking.created_at.desc()).limit(min(limit, 500)).all()

    def for_user(self, user_id: str) -> Sequence[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc())
            .all()
        )

    def stale_pending(self, cutoff: datetime) -> Sequence[Booking]:
        return (
            self.db.query(Booking)
            .filter(
                Booking.status == "pending",
                Booking.payment_status == "pending",
                Booking.created_at < cutoff,
            )
            .all()
        )

    def add(self, booking: Booking) -> Booking:
        self.db.add(booking)
        return booking

    def delete(self, booking: Booking) -> None:
        self.db.delete(booking)


class RoomTypeRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, room_type_id: str) -> RoomType | None:
        return self.db.get(RoomType, room_type_id)

    def lock(self, room_type_id: str) -> RoomType | None:
        """Row-lock the room type for the rest of the transaction (no-op on SQLite)."""
        return self.db.execute(
            select(RoomType).where(RoomType.id == room_type_id).with_for_update()
        ).scalar_one_or_none()

    def get_by_name(self, name: str) -> RoomType | None:
        return self.db.query(RoomType).filter(RoomType.name == name).first()

    def list_all(self) -> Sequence[RoomType]:
        return self.db.query(RoomType).order_by(RoomType.base_price.asc()).all()

    def names_for(self, ids: Iterable[str]) -> dict[str, str]:
        ids = set(ids)
        if not ids:
            return {}
        rows = self.db.query(RoomType.id, RoomType.name).filter(RoomType.id.in_(ids)).all()
        return {r[0]: r[1] for r in rows}


class ConferenceBookingRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, booking_id: str) -> ConferenceBooking | None:
        return self.db.get(ConferenceBooking, booking_id)

    def reference_exists(self, reference: str) -> bool:
        return (
            self.db.query(ConferenceBooking.id)
            .filter(ConferenceBooking.booking_reference == reference)
            .first()
            is not None
        )

    def search(self, status: str | None = None, since: date | None = None, limit: int = 200) -> Sequence[ConferenceBooking]:
        query = self.db.query(ConferenceBooking)
        if status:
            query = query.filter(ConferenceBooking.status == status)
        if since:
            query = query.filter(ConferenceBooking.event_date >= since)
        return query.order_by(ConferenceBooking.event_date.asc()).limit(min(limit, 500)).all()

    def add(self, booking: ConferenceBooking) -> ConferenceBooking:
        self.db.add(booking)
        return booking
