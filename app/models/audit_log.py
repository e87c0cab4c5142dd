from sqlalchemy import String, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    table_name: Mapped[str] = mapped_column(String(60), index=True)  # bookings, room_types, conference_bookings, ...
    operation: Mapped[str] = mapped_column(String(10), index=True)   # INSERT, UPDATE, DELETE
    actor: Mapped[str] = mapped_column(String(255), index=True)      # profile email, "public", "stripe", "system"
    record_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    payload_json: Mapped[str] = mapped_column(Text, default="{}")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
