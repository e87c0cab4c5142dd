from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_notifier
from app.db.session import get_db
from app.schemas.payments import VerifyPaymentIn, VerifyPaymentOut
from app.services.booking_service import reconcile_payment
from app.services.notification_service import NotificationDispatcher
from app.services.payment_gateway import PaymentGateway, get_payment_gateway

router = APIRouter(tags=["payments"])


@router.post("/public/payments/verify", response_model=VerifyPaymentOut)
def verify_payment(body: VerifyPaymentIn, db: Session = Depends(get_db),
                   gateway: PaymentGateway = Depends(get_payment_gateway),
                   notifier: NotificationDispatcher = Depends(get_notifier)):
    """Called by the success page with the checkout session id. Safe to call more than once."""
    result = reconcile_payment(db, body.session_id, gateway, notifier=notifier)
    return VerifyPaymentOut(
        status=result.status,
        booking_confirmed=result.booking_confirmed,
        bookingReference=result.booking_reference,
    )
