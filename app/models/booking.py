from sqlalchemy import CheckConstraint, String, Integer, Date, DateTime, Numeric, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import date, datetime, timezone
from decimal import Decimal
from app.db.session import Base

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "expired")
ACTIVE_STATUSES = ("pending", "confirmed")
TERMINAL_STATUSES = ("cancelled", "expired")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_bookings_dates"),
        CheckConstraint("adults >= 1", name="ck_bookings_adults"),
        CheckConstraint("total_price >= 0", name="ck_bookings_total_price"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    booking_reference: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    user_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)  # signed-in guest, if any

    guest_name: Mapped[str] = mapped_column(String(100))
    guest_email: Mapped[str] = mapped_column(String(255), index=True)  # stored lower-cased
    guest_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)

    room_type_id: Mapped[str] = mapped_column(String(36), ForeignKey("room_types.id"), index=True)
    check_in_date: Mapped[date] = mapped_column(Date, index=True)
    check_out_date: Mapped[date] = mapped_column(Date)
    adults: Mapped[int] = mapped_column(Integer, default=1)
    children: Mapped[int] = mapped_column(Integer, default=0)
    num_guests: Mapped[int] = mapped_column(Integer, default=1)

    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, confirmed, cancelled, expired
    payment_status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, paid, failed, refunded
    stripe_session_id: Mapped[str | None] = mapped_column(String(255), unique=True, index=True, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days
