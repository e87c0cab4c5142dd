"""Celery job bodies, run synchronously against the test database."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from app.models.booking import Booking
from app.services.booking_service import BookingRequest, create_booking
from app.tasks import worker_jobs
from app.tasks.celery_app import celery


def test_expire_job_uses_its_own_session(db, room_type):
    b = create_booking(db, BookingRequest(
        room_type_id=room_type.id,
        check_in_date=date(2024, 5, 1),
        check_out_date=date(2024, 5, 3),
        guest_name="Amina Otieno",
        guest_email="a@x.com",
        total_price=Decimal("9500"),
    ), direct=False)
    b.created_at = datetime.now(timezone.utc) - timedelta(days=2)
    db.commit()

    assert worker_jobs.expire_stale_bookings() == {"expired": 1}
    db.expire_all()
    assert db.get(Booking, b.id).status == "expired"


def test_email_job_with_empty_outbox():
    assert worker_jobs.process_email_queue() == {"processed": 0, "sent": 0, "failed": 0}


def test_email_retry_is_not_scheduled_by_default():
    schedule = celery.conf.beat_schedule
    assert schedule["expire-stale-bookings-hourly"]["task"] == "app.tasks.jobs.expire_stale_bookings"
    assert "process-email-queue-every-2-minutes" not in schedule
