from datetime import datetime, timedelta, timezone
import logging
import smtplib
from email.message import EmailMessage
from email.utils import parseaddr
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
import uuid
import requests

from app.core.config import settings
from app.models.email_log import EmailLog

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"
QUEUED_GRACE = timedelta(minutes=10)


def queue_email(db: Session, to_email: str, subject: str, body: str, kind: str = "", related_booking_reference: str = "") -> str:
    """Write the outbox row; delivery happens separately via deliver_email."""
    eid = str(uuid.uuid4())
    db.add(
        EmailLog(
            id=eid,
            to_email=to_email,
            subject=subject[:200],
            body=body,
            kind=kind,
            status="queued",
            attempts=0,
            related_booking_reference=related_booking_reference,
        )
    )
    db.commit()
    return eid


def attempt_delivery(db: Session, log: EmailLog) -> bool:
    """One send attempt for an outbox row. Never raises; the outcome is recorded on the row."""
    log.attempts = (log.attempts or 0) + 1
    try:
        send_email(log.to_email, log.subject, log.body or "")
    except Exception as exc:
        log.status = "failed"
        log.last_error = str(exc)[:500]
        db.commit()
        logger.warning("Email %s (%s) to %s failed: %s", log.id, log.kind, log.to_email, exc)
        return False
    log.status = "sent"
    log.last_error = None
    log.sent_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("Email %s (%s) sent to %s", log.id, log.kind, log.to_email)
    return True


def send_email(to_email: str, subject: str, body: str):
    """Send email via Resend if configured, otherwise SMTP (MailHog recommended for local)."""

    if settings.RESEND_API_KEY:
        _send_via_resend(to_email, subject, body)
        return

    msg = EmailMessage()
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg, from_addr=parseaddr(settings.EMAIL_FROM)[1])


def _send_via_resend(to_email: str, subject: str, body: str):
    payload = {
        "from": settings.EMAIL_FROM,
        "to": [to_email],
        "subject": subject,
        "text": body,
    }
    r = requests.post(
        RESEND_URL,
        json=payload,
        headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"Resend error {r.status_code}: {r.text}")


def process_pending_emails(db: Session, limit: int = 50, max_attempts: int | None = None) -> dict:
    """Retry failed outbox rows that still have attempts left. Returns counts.

    Queued rows are only picked up once they are older than QUEUED_GRACE, so
    the worker does not race the request's own background delivery.
    """
    if max_attempts is None:
        max_attempts = settings.EMAIL_MAX_ATTEMPTS
    stale_queued = datetime.now(timezone.utc) - QUEUED_GRACE
    pending = (
        db.query(EmailLog)
        .filter(
            or_(
                EmailLog.status == "failed",
                and_(EmailLog.status == "queued", EmailLog.created_at < stale_queued),
            ),
            EmailLog.attempts < max_attempts,
            EmailLog.body.isnot(None),
            EmailLog.body != "",
        )
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        if attempt_delivery(db, log):
            sent += 1
        else:
            failed += 1
    return {"processed": len(pending), "sent": sent, "failed": failed}
