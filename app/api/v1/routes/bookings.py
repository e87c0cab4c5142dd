from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.api.deps import get_current_user, get_notifier, get_optional_user
from app.core.config import settings
from app.core.errors import NotFoundError
from app.db.session import get_db
from app.models.booking import Booking
from app.models.user import Profile
from app.repositories.booking_repository import BookingRepository, RoomTypeRepository
from app.schemas.booking import (
    BookingCreate, BookingCreatedOut, BookingOut, BookingSummaryOut, BookingValidateOut, CheckoutOut,
)
from app.services.booking_service import (
    BookingRequest, cancel_own_booking, create_booking, start_checkout,
)
from app.services.booking_validator import validate_booking_request
from app.services.notification_service import NotificationDispatcher
from app.services.payment_gateway import PaymentGateway, get_payment_gateway

router = APIRouter(tags=["bookings"])


def booking_out(b: Booking, room_name: str | None = None) -> BookingOut:
    return BookingOut(
        id=b.id,
        bookingReference=b.booking_reference,
        roomTypeId=b.room_type_id,
        roomTypeName=room_name,
        guestName=b.guest_name,
        guestEmail=b.guest_email,
        guestPhone=b.guest_phone,
        checkInDate=b.check_in_date,
        checkOutDate=b.check_out_date,
        nights=b.nights,
        adults=b.adults,
        children=b.children,
        totalPrice=float(b.total_price or 0),
        specialRequests=b.special_requests,
        status=b.status,
        paymentStatus=b.payment_status,
        createdAt=b.created_at.isoformat() if b.created_at else "",
    )


def bookings_out(db: Session, items) -> list[BookingOut]:
    names = RoomTypeRepository(db).names_for(b.room_type_id for b in items)
    return [booking_out(b, names.get(b.room_type_id)) for b in items]


def _to_request(body: BookingCreate, user: Profile | None) -> BookingRequest:
    return BookingRequest(
        room_type_id=body.roomTypeId,
        check_in_date=body.checkInDate,
        check_out_date=body.checkOutDate,
        guest_name=body.guestName,
        guest_email=body.guestEmail,
        guest_phone=body.guestPhone,
        adults=body.adults,
        children=body.children,
        special_requests=body.specialRequests,
        total_price=body.totalPrice,
        user_id=user.id if user else None,
    )


@router.post("/public/bookings/validate", response_model=BookingValidateOut)
def validate_booking(body: BookingCreate):
    """Form pre-check; the same rules run again on create."""
    errors = validate_booking_request(_to_request(body, None))
    return BookingValidateOut(valid=not errors, errors=errors)


@router.post("/public/bookings", response_model=BookingCreatedOut)
def create_public_booking(body: BookingCreate, db: Session = Depends(get_db),
                          user: Profile | None = Depends(get_optional_user),
                          notifier: NotificationDispatcher = Depends(get_notifier)):
    """Pay-at-hotel booking, confirmed immediately."""
    b = create_booking(db, _to_request(body, user), actor=user.email if user else "public",
                       direct=True, notifier=notifier)
    return BookingCreatedOut(bookingId=b.id, bookingReference=b.booking_reference, status=b.status)


@router.post("/public/bookings/checkout", response_model=CheckoutOut)
def create_checkout_booking(body: BookingCreate, db: Session = Depends(get_db),
                            user: Profile | None = Depends(get_optional_user),
                            gateway: PaymentGateway = Depends(get_payment_gateway),
                            notifier: NotificationDispatcher = Depends(get_notifier)):
    """Pending booking plus a hosted checkout session; confirmed by /public/payments/verify."""
    base = settings.CLIENT_BASE_URL.rstrip("/")
    b, session = start_checkout(
        db, _to_request(body, user), gateway,
        success_url=f"{base}/booking-success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{base}/booking?cancelled=true",
        actor=user.email if user else "public",
        notifier=notifier,
    )
    return CheckoutOut(url=session.url, bookingId=b.id, bookingReference=b.booking_reference)


@router.get("/public/bookings/{reference}", response_model=BookingSummaryOut)
def get_booking(reference: str, db: Session = Depends(get_db)):
    b = BookingRepository(db).get_by_reference(reference.strip().upper())
    if not b:
        raise NotFoundError("Booking not found")
    return BookingSummaryOut(
        bookingReference=b.booking_reference,
        roomTypeName=RoomTypeRepository(db).names_for([b.room_type_id]).get(b.room_type_id),
        checkInDate=b.check_in_date,
        checkOutDate=b.check_out_date,
        nights=b.nights,
        totalPrice=float(b.total_price or 0),
        status=b.status,
        paymentStatus=b.payment_status,
    )


@router.get("/me/bookings", response_model=list[BookingOut])
def my_bookings(db: Session = Depends(get_db), me: Profile = Depends(get_current_user)):
    return bookings_out(db, BookingRepository(db).for_user(me.id))


@router.post("/me/bookings/{booking_id}/cancel", response_model=BookingOut)
def cancel_my_booking(booking_id: str, db: Session = Depends(get_db), me: Profile = Depends(get_current_user)):
    b = cancel_own_booking(db, booking_id, me)
    return bookings_out(db, [b])[0]
