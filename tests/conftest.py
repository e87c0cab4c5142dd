"""Shared fixtures: a throwaway SQLite database, a fake payment gateway and a captured mail transport."""

import os
import tempfile
import uuid
from decimal import Decimal
from pathlib import Path

# Settings are read at import time, so the environment must be in place first.
_TMP_DIR = Path(tempfile.mkdtemp(prefix="raygreen-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["STAFF_ALERT_EMAILS"] = "frontdesk@raygreenhotel.com"
os.environ["RESEND_API_KEY"] = ""
os.environ["CLIENT_BASE_URL"] = "http://hotel.test"

import pytest
from fastapi.testclient import TestClient

from app.core.errors import UpstreamError
from app.core.security import create_access_token, hash_password
from app.db.session import Base, SessionLocal, engine
from app.main import app
from app.models.audit_log import AuditLog  # noqa: F401
from app.models.booking import Booking  # noqa: F401
from app.models.conference_booking import ConferenceBooking  # noqa: F401
from app.models.email_log import EmailLog  # noqa: F401
from app.models.menu_item import MenuItem  # noqa: F401
from app.models.portal_token import PortalToken  # noqa: F401
from app.models.room_type import RoomType
from app.models.testimonial import Testimonial  # noqa: F401
from app.models.user import Profile
from app.services import email_service
from app.services.payment_gateway import CheckoutSession, PaymentVerification, get_payment_gateway


class FakeGateway:
    """In-memory stand-in for the hosted checkout provider."""

    def __init__(self):
        self.created: dict[str, str] = {}  # session id -> booking reference
        self.paid: set[str] = set()
        self.fail_create = False
        self.verify_calls = 0

    def create_checkout(self, booking, room_name, success_url, cancel_url):
        if self.fail_create:
            raise UpstreamError("checkout provider down")
        sid = f"cs_test_{len(self.created) + 1}"
        self.created[sid] = booking.booking_reference
        return CheckoutSession(id=sid, url=f"https://checkout.test/{sid}")

    def mark_paid(self, session_id: str):
        self.paid.add(session_id)

    def verify(self, session_id):
        self.verify_calls += 1
        if session_id in self.paid:
            return PaymentVerification(paid=True, raw_status="paid")
        if session_id in self.created:
            return PaymentVerification(paid=False, raw_status="unpaid")
        return PaymentVerification(paid=False, raw_status="not_found")


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Replaces the SMTP/Resend transport; each send is recorded as (to, subject, body)."""
    outbox: list[tuple[str, str, str]] = []

    def _send(to_email, subject, body):
        outbox.append((to_email, subject, body))

    monkeypatch.setattr(email_service, "send_email", _send)
    return outbox


@pytest.fixture
def failing_transport(monkeypatch):
    def _send(to_email, subject, body):
        raise ConnectionError("smtp unreachable")

    monkeypatch.setattr(email_service, "send_email", _send)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def room_type(db) -> RoomType:
    r = RoomType(
        id=str(uuid.uuid4()),
        name="Deluxe Double",
        description="Queen bed, lake view",
        base_price=Decimal("9500"),
        max_occupancy=2,
        amenities=["Free Wi-Fi", "Breakfast"],
    )
    db.add(r)
    db.commit()
    return r


@pytest.fixture
def gateway():
    fake = FakeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_payment_gateway, None)


@pytest.fixture
def client(gateway):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_profile(db):
    def _make(email: str, role: str = "guest", password: str = "secret123") -> Profile:
        p = Profile(
            id=str(uuid.uuid4()),
            email=email,
            display_name=email.split("@")[0],
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(p)
        db.commit()
        return p

    return _make


@pytest.fixture
def auth_headers():
    def _headers(profile: Profile) -> dict:
        return {"Authorization": f"Bearer {create_access_token(profile.id, profile.role)}"}

    return _headers


@pytest.fixture
def booking_payload(room_type):
    def _payload(**overrides) -> dict:
        body = {
            "roomTypeId": room_type.id,
            "checkInDate": "2024-05-01",
            "checkOutDate": "2024-05-03",
            "guestName": "Amina Otieno",
            "guestEmail": "a@x.com",
            "guestPhone": "+254 712 345 678",
            "adults": 2,
            "children": 0,
            "totalPrice": 19000,
            "specialRequests": "Late check-in",
        }
        body.update(overrides)
        return body

    return _payload
