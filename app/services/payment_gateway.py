import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Protocol

import stripe

from app.core.config import settings
from app.core.errors import UpstreamError
from app.models.booking import Booking

logger = logging.getLogger(__name__)


@dataclass
class CheckoutSession:
    id: str
    url: str


@dataclass
class PaymentVerification:
    paid: bool
    raw_status: str


class PaymentGateway(Protocol):
    def create_checkout(self, booking: Booking, room_name: str, success_url: str, cancel_url: str) -> CheckoutSession: ...

    def verify(self, session_id: str) -> PaymentVerification: ...


def charge_amount_minor(total_kes: Decimal, currency: str, kes_per_usd: int) -> int:
    """Amount in the charge currency's smallest unit; prices are stored in KES."""
    total = Decimal(total_kes)
    if currency.lower() != "kes":
        total = total / Decimal(kes_per_usd)
    return int((total * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway:
    """Hosted Stripe Checkout. Only session creation and lookup go through here."""

    def __init__(self, api_key: str, currency: str = "usd", kes_per_usd: int = 130):
        self.api_key = api_key
        self.currency = currency.lower()
        self.kes_per_usd = kes_per_usd

    def _require_key(self):
        if not self.api_key:
            raise UpstreamError("Stripe is not configured (STRIPE_SECRET_KEY missing)")

    def create_checkout(self, booking: Booking, room_name: str, success_url: str, cancel_url: str) -> CheckoutSession:
        self._require_key()
        try:
            session = stripe.checkout.Session.create(
                api_key=self.api_key,
                mode="payment",
                customer_email=booking.guest_email,
                line_items=[{
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {
                            "name": f"Hotel Booking - {room_name}",
                            "description": f"Booking from {booking.check_in_date.isoformat()} to {booking.check_out_date.isoformat()}",
                        },
                        "unit_amount": charge_amount_minor(booking.total_price, self.currency, self.kes_per_usd),
                    },
                    "quantity": 1,
                }],
                success_url=success_url,
                cancel_url=cancel_url,
                metadata={
                    "booking_id": booking.id,
                    "booking_reference": booking.booking_reference,
                },
            )
        except stripe.StripeError as e:
            logger.error("Stripe checkout creation failed for %s: %s", booking.booking_reference, e)
            raise UpstreamError(f"Stripe checkout failed: {e}") from e
        return CheckoutSession(id=session.id, url=session.url)

    def verify(self, session_id: str) -> PaymentVerification:
        self._require_key()
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.api_key)
        except stripe.InvalidRequestError as e:
            logger.info("Stripe has no checkout session %s: %s", session_id, e)
            return PaymentVerification(paid=False, raw_status="not_found")
        except stripe.StripeError as e:
            logger.error("Stripe session lookup failed for %s: %s", session_id, e)
            raise UpstreamError(f"Stripe lookup failed: {e}") from e
        raw = str(session.payment_status or "")
        return PaymentVerification(paid=raw == "paid", raw_status=raw)


def get_payment_gateway() -> PaymentGateway:
    return StripeGateway(settings.STRIPE_SECRET_KEY, settings.STRIPE_CURRENCY, settings.KES_PER_USD)
