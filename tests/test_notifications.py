"""Notification dispatch is best-effort: failures are recorded, never raised."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.core.errors import UpstreamError
from app.models.email_log import EmailLog
from app.services import notification_service
from app.services.booking_service import BookingRequest, create_booking, start_checkout
from app.services.email_service import process_pending_emails
from app.services.notification_service import NotificationDispatcher, format_kes, guest_confirmation_message

SUCCESS_URL = "http://hotel.test/booking-success?session_id={CHECKOUT_SESSION_ID}"
CANCEL_URL = "http://hotel.test/booking?cancelled=true"


def _req(room_type, **overrides):
    fields = dict(
        room_type_id=room_type.id,
        check_in_date=date(2024, 5, 1),
        check_out_date=date(2024, 5, 3),
        guest_name="Amina Otieno",
        guest_email="a@x.com",
        adults=1,
        children=1,
        total_price=Decimal("19000"),
        special_requests="Extra pillows",
    )
    fields.update(overrides)
    return BookingRequest(**fields)


class TestMessages:
    def test_guest_confirmation_contents(self, db, room_type):
        b = create_booking(db, _req(room_type))
        subject, body = guest_confirmation_message(b, "Deluxe Double")
        assert subject == "Booking Confirmation - Raygreen Hotel (2024-05-01)"
        assert b.booking_reference in body
        assert "Check-in: Wednesday, May 1, 2024" in body
        assert "Guests: 1 Adult, 1 Child" in body
        assert "Total Amount: KES 19,000" in body
        assert "Special Requests: Extra pillows" in body

    def test_format_kes(self):
        assert format_kes(Decimal("125000.00")) == "KES 125,000"


class TestDispatch:
    def test_direct_booking_sends_guest_and_staff_mail(self, db, room_type, sent_emails):
        b = create_booking(db, _req(room_type), notifier=NotificationDispatcher(db))
        recipients = sorted(m[0] for m in sent_emails)
        assert recipients == ["a@x.com", "frontdesk@raygreenhotel.com"]
        logs = db.query(EmailLog).filter(EmailLog.related_booking_reference == b.booking_reference).all()
        assert {(log.kind, log.status, log.attempts) for log in logs} == {
            ("guest_confirmation", "sent", 1),
            ("staff_alert", "sent", 1),
        }

    def test_checkout_alerts_staff_once_the_session_exists(self, db, room_type, gateway, sent_emails):
        booking, _ = start_checkout(db, _req(room_type), gateway, success_url=SUCCESS_URL, cancel_url=CANCEL_URL,
                                    notifier=NotificationDispatcher(db))
        assert [m[0] for m in sent_emails] == ["frontdesk@raygreenhotel.com"]
        log = db.query(EmailLog).one()
        assert (log.kind, log.related_booking_reference) == ("staff_alert", booking.booking_reference)

    def test_failed_checkout_sends_no_staff_alert(self, db, room_type, gateway, sent_emails):
        gateway.fail_create = True
        with pytest.raises(UpstreamError):
            start_checkout(db, _req(room_type), gateway, success_url=SUCCESS_URL, cancel_url=CANCEL_URL,
                           notifier=NotificationDispatcher(db))
        assert sent_emails == []
        assert db.query(EmailLog).count() == 0

    def test_transport_failure_does_not_fail_creation(self, db, room_type, failing_transport):
        b = create_booking(db, _req(room_type), notifier=NotificationDispatcher(db))
        assert b.status == "confirmed"
        logs = db.query(EmailLog).all()
        assert len(logs) == 2
        for log in logs:
            db.refresh(log)
            assert log.status == "failed"
            assert "smtp unreachable" in log.last_error

    def test_scheduler_failure_is_swallowed(self, db, room_type):
        def broken_scheduler(fn, *args):
            raise RuntimeError("queue full")

        b = create_booking(db, _req(room_type), notifier=NotificationDispatcher(db, schedule=broken_scheduler))
        assert b.status == "confirmed"

    def test_delivery_is_deferred_to_the_scheduler(self, db, room_type, sent_emails):
        scheduled = []
        dispatcher = NotificationDispatcher(db, schedule=lambda fn, *args: scheduled.append((fn, args)))
        create_booking(db, _req(room_type), notifier=dispatcher)
        assert sent_emails == []
        assert all(fn is notification_service.deliver_email for fn, _ in scheduled)
        for fn, args in scheduled:
            fn(*args)
        assert len(sent_emails) == 2


class TestRetryQueue:
    def test_failed_rows_are_retried_up_to_the_limit(self, db, room_type, monkeypatch, sent_emails):
        calls = []

        def flaky(to_email, subject, body):
            calls.append(to_email)
            raise ConnectionError("down")

        monkeypatch.setattr("app.services.email_service.send_email", flaky)
        create_booking(db, _req(room_type), notifier=NotificationDispatcher(db))
        assert len(calls) == 2

        process_pending_emails(db, max_attempts=2)
        assert len(calls) == 4
        result = process_pending_emails(db, max_attempts=2)
        assert result["processed"] == 0

    def test_fresh_queued_rows_are_left_for_background_delivery(self, db, room_type):
        dispatcher = NotificationDispatcher(db, schedule=lambda fn, *args: None)
        create_booking(db, _req(room_type), notifier=dispatcher)
        assert process_pending_emails(db)["processed"] == 0

        for log in db.query(EmailLog).all():
            log.created_at = datetime.now(timezone.utc) - timedelta(minutes=30)
        db.commit()
        assert process_pending_emails(db) == {"processed": 2, "sent": 2, "failed": 0}
