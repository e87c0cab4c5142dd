from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.api.deps import get_notifier
from app.db.session import get_db
from app.models.menu_item import MenuItem
from app.models.room_type import RoomType
from app.models.testimonial import Testimonial
from app.repositories.booking_repository import RoomTypeRepository
from app.schemas.conference import ConferenceBookingCreate
from app.services.conference_service import ConferenceRequest, create_conference_booking
from app.services.notification_service import NotificationDispatcher

router = APIRouter(tags=["public"])


def room_type_out(r: RoomType) -> dict:
    return {
        "id": r.id,
        "name": r.name,
        "description": r.description,
        "basePrice": float(r.base_price),
        "maxOccupancy": r.max_occupancy,
        "amenities": list(r.amenities or []),
        "imageUrl": r.image_url,
    }


def menu_item_out(m: MenuItem) -> dict:
    return {
        "id": m.id,
        "name": m.name,
        "category": m.category,
        "description": m.description,
        "price": float(m.price),
        "imageUrl": m.image_url,
        "isAvailable": m.is_available,
    }


def testimonial_out(t: Testimonial) -> dict:
    return {"id": t.id, "name": t.name, "content": t.content, "rating": t.rating, "imageUrl": t.image_url}


@router.get("/public/room-types")
def list_room_types(db: Session = Depends(get_db)):
    """Room types ordered by nightly price. Use the returned `id` as `roomTypeId` when booking."""
    return [room_type_out(r) for r in RoomTypeRepository(db).list_all()]


@router.get("/public/menu-items")
def list_menu_items(category: str | None = None, db: Session = Depends(get_db)):
    q = db.query(MenuItem).filter(MenuItem.is_available == True)
    if category:
        q = q.filter(MenuItem.category == category)
    return [menu_item_out(m) for m in q.order_by(MenuItem.category.asc(), MenuItem.name.asc()).all()]


@router.get("/public/testimonials")
def list_testimonials(db: Session = Depends(get_db)):
    items = db.query(Testimonial).order_by(Testimonial.created_at.desc()).limit(50).all()
    return [testimonial_out(t) for t in items]


@router.post("/public/conference-bookings")
def create_public_conference_booking(body: ConferenceBookingCreate, db: Session = Depends(get_db),
                                     notifier: NotificationDispatcher = Depends(get_notifier)):
    cb = create_conference_booking(db, ConferenceRequest(
        contact_name=body.contactName,
        contact_email=body.contactEmail,
        contact_phone=body.contactPhone,
        organization=body.organization,
        event_date=body.eventDate,
        start_time=body.startTime,
        end_time=body.endTime,
        attendees=body.attendees,
        total_price=body.totalPrice,
        special_requests=body.specialRequests,
    ), notifier=notifier)
    return {"success": True, "id": cb.id, "bookingReference": cb.booking_reference}
