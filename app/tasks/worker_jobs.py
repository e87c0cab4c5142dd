import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError, ProgrammingError
from app.db import session as db_session
from app.services import booking_service
from app.services.email_service import process_pending_emails

logger = logging.getLogger(__name__)

def expire_stale_bookings() -> dict:
    """Expire unpaid checkout bookings older than PENDING_BOOKING_TTL_HOURS."""
    db: Session = db_session.SessionLocal()
    try:
        try:
            expired = booking_service.expire_stale_bookings(db)
        except (ProgrammingError, OperationalError):
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            logger.warning("bookings table missing; skipping expiry run")
            return {"skipped": True, "reason": "missing_tables"}
        return {"expired": expired}
    finally:
        db.close()


def process_email_queue(limit: int = 50) -> dict:
    """Retry failed outbox emails. Scheduled only when EMAIL_RETRY_ENABLED is set."""
    db: Session = db_session.SessionLocal()
    try:
        try:
            return process_pending_emails(db, limit=limit)
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("email_logs table missing; skipping email queue run")
            return {"skipped": True, "reason": "missing_tables"}
    finally:
        db.close()
