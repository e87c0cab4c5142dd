import uuid
from datetime import date, datetime, timedelta, timezone
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func

from app.db.session import get_db
from app.api.deps import require_roles
from app.api.v1.routes.bookings import booking_out, bookings_out
from app.api.v1.routes.public import menu_item_out, room_type_out, testimonial_out
from app.models.audit_log import AuditLog
from app.models.booking import Booking
from app.models.conference_booking import ConferenceBooking
from app.models.portal_token import PortalToken
from app.models.testimonial import Testimonial
from app.models.user import Profile
from app.repositories.booking_repository import BookingRepository, ConferenceBookingRepository, RoomTypeRepository
from app.schemas.booking import BookingOut, BulkStatusIn, BulkStatusOut, StatusUpdateIn
from app.schemas.catalog import MenuItemIn, MenuItemPatch, RoomTypeIn, RoomTypePatch, TestimonialIn
from app.schemas.conference import ConferenceBookingOut
from app.schemas.portal import PortalTokenCreate, PortalTokenIssued, PortalTokenOut
from app.services.audit_service import log_audit
from app.services.booking_service import bulk_update_status, delete_booking, update_status
from app.services.catalog_service import create_menu_item, create_room_type, update_menu_item, update_room_type
from app.services.conference_service import update_conference_status
from app.services.conflict_service import find_duplicate_clusters
from app.services.portal_service import issue_token, revoke_token

router = APIRouter(tags=["admin"])

STAFF_ROLES = ("admin", "staff")


def conference_out(cb: ConferenceBooking) -> ConferenceBookingOut:
    return ConferenceBookingOut(
        id=cb.id,
        bookingReference=cb.booking_reference,
        contactName=cb.contact_name,
        contactEmail=cb.contact_email,
        contactPhone=cb.contact_phone,
        organization=cb.organization,
        eventDate=cb.event_date,
        startTime=cb.start_time,
        endTime=cb.end_time,
        attendees=cb.attendees,
        totalPrice=float(cb.total_price or 0),
        specialRequests=cb.special_requests,
        status=cb.status,
        createdAt=cb.created_at.isoformat() if cb.created_at else "",
    )


# -------------------------
# ROOM BOOKINGS
# -------------------------
@router.get("/admin/bookings", response_model=list[BookingOut])
def admin_list_bookings(status: str | None = None, q: str | None = None, limit: int = 200,
                        db: Session = Depends(get_db),
                        me: Profile = Depends(require_roles(*STAFF_ROLES))):
    return bookings_out(db, BookingRepository(db).search(status=status, q=q, limit=limit))


@router.get("/admin/bookings/duplicates")
def admin_duplicate_bookings(db: Session = Depends(get_db),
                             me: Profile = Depends(require_roles(*STAFF_ROLES))):
    """Active bookings sharing guest email and exact dates."""
    clusters = find_duplicate_clusters(BookingRepository(db).list_active())
    names = RoomTypeRepository(db).names_for(b.room_type_id for c in clusters for b in c.bookings)
    return [
        {
            "key": c.key,
            "guestEmail": c.guest_email,
            "checkInDate": c.check_in_date.isoformat(),
            "checkOutDate": c.check_out_date.isoformat(),
            "bookings": [booking_out(b, names.get(b.room_type_id)) for b in c.bookings],
        }
        for c in clusters
    ]


@router.patch("/admin/bookings/{booking_id}/status", response_model=BookingOut)
def admin_update_booking_status(booking_id: str, body: StatusUpdateIn,
                                db: Session = Depends(get_db),
                                me: Profile = Depends(require_roles(*STAFF_ROLES))):
    b = update_status(db, booking_id, body.status, actor=me.email)
    return bookings_out(db, [b])[0]


@router.post("/admin/bookings/bulk-status", response_model=BulkStatusOut)
def admin_bulk_status(body: BulkStatusIn, db: Session = Depends(get_db),
                      me: Profile = Depends(require_roles(*STAFF_ROLES))):
    result = bulk_update_status(db, body.ids, body.status, actor=me.email)
    return BulkStatusOut(status=result.status, updated=result.updated, failed=result.failed)


@router.delete("/admin/bookings/{booking_id}")
def admin_delete_booking(booking_id: str, db: Session = Depends(get_db),
                         me: Profile = Depends(require_roles("admin"))):
    delete_booking(db, booking_id, actor=me.email)
    return {"ok": True}


# -------------------------
# CONFERENCE BOOKINGS
# -------------------------
@router.get("/admin/conference-bookings", response_model=list[ConferenceBookingOut])
def admin_list_conference_bookings(status: str | None = None, since: date | None = None, limit: int = 200,
                                   db: Session = Depends(get_db),
                                   me: Profile = Depends(require_roles(*STAFF_ROLES))):
    return [conference_out(cb) for cb in ConferenceBookingRepository(db).search(status=status, since=since, limit=limit)]


@router.patch("/admin/conference-bookings/{booking_id}/status", response_model=ConferenceBookingOut)
def admin_update_conference_status(booking_id: str, body: StatusUpdateIn,
                                   db: Session = Depends(get_db),
                                   me: Profile = Depends(require_roles(*STAFF_ROLES))):
    return conference_out(update_conference_status(db, booking_id, body.status, actor=me.email))


# -------------------------
# CATALOG: ROOM TYPES, MENU, TESTIMONIALS
# -------------------------
@router.post("/admin/room-types")
def admin_create_room_type(body: RoomTypeIn, db: Session = Depends(get_db),
                           me: Profile = Depends(require_roles("admin"))):
    return room_type_out(create_room_type(db, body, actor=me.email))


@router.patch("/admin/room-types/{room_type_id}")
def admin_update_room_type(room_type_id: str, body: RoomTypePatch, db: Session = Depends(get_db),
                           me: Profile = Depends(require_roles("admin"))):
    return room_type_out(update_room_type(db, room_type_id, body, actor=me.email))


@router.post("/admin/menu-items")
def admin_create_menu_item(body: MenuItemIn, db: Session = Depends(get_db),
                           me: Profile = Depends(require_roles(*STAFF_ROLES))):
    return menu_item_out(create_menu_item(db, body, actor=me.email))


@router.patch("/admin/menu-items/{item_id}")
def admin_update_menu_item(item_id: str, body: MenuItemPatch, db: Session = Depends(get_db),
                           me: Profile = Depends(require_roles(*STAFF_ROLES))):
    return menu_item_out(update_menu_item(db, item_id, body, actor=me.email))


@router.post("/admin/testimonials")
def admin_create_testimonial(body: TestimonialIn, db: Session = Depends(get_db),
                             me: Profile = Depends(require_roles(*STAFF_ROLES))):
    t = Testimonial(
        id=str(uuid.uuid4()),
        name=body.name.strip(),
        content=body.content.strip(),
        rating=body.rating,
        image_url=body.imageUrl,
    )
    db.add(t)
    log_audit(db, me.email, "INSERT", "testimonials", t.id, {"name": t.name, "rating": t.rating})
    db.commit()
    return testimonial_out(t)


# -------------------------
# PARTNER PORTAL TOKENS
# -------------------------
def portal_token_out(t: PortalToken) -> PortalTokenOut:
    return PortalTokenOut(
        id=t.id,
        portalName=t.portal_name,
        permissions=dict(t.permissions or {}),
        isActive=t.is_active,
        expiresAt=t.expires_at.isoformat() if t.expires_at else "",
        lastUsedAt=t.last_used_at.isoformat() if t.last_used_at else None,
        createdBy=t.created_by,
    )


@router.post("/admin/portal-tokens", response_model=PortalTokenIssued)
def admin_issue_portal_token(body: PortalTokenCreate, db: Session = Depends(get_db),
                             me: Profile = Depends(require_roles("admin"))):
    row, token = issue_token(db, body.portalName, created_by=me.email,
                             permissions=body.permissions, ttl_days=body.expiresInDays)
    return PortalTokenIssued(**portal_token_out(row).model_dump(), token=token)


@router.get("/admin/portal-tokens", response_model=list[PortalTokenOut])
def admin_list_portal_tokens(db: Session = Depends(get_db),
                             me: Profile = Depends(require_roles("admin"))):
    items = db.query(PortalToken).order_by(PortalToken.created_at.desc()).all()
    return [portal_token_out(t) for t in items]


@router.post("/admin/portal-tokens/{token_id}/revoke", response_model=PortalTokenOut)
def admin_revoke_portal_token(token_id: str, db: Session = Depends(get_db),
                              me: Profile = Depends(require_roles("admin"))):
    return portal_token_out(revoke_token(db, token_id, actor=me.email))


# -------------------------
# METRICS + AUDIT
# -------------------------
@router.get("/admin/metrics/overview")
def metrics_overview(db: Session = Depends(get_db),
                     me: Profile = Depends(require_roles(*STAFF_ROLES))):
    now = datetime.now(timezone.utc)
    today = now.date()
    total = db.query(func.count(Booking.id)).scalar()
    pending = db.query(func.count(Booking.id)).filter(Booking.status == "pending").scalar()
    confirmed = db.query(func.count(Booking.id)).filter(Booking.status == "confirmed").scalar()
    revenue = (
        db.query(func.coalesce(func.sum(Booking.total_price), 0))
        .filter(Booking.status == "confirmed", Booking.payment_status == "paid")
        .scalar()
    )
    todays_check_ins = (
        db.query(func.count(Booking.id))
        .filter(Booking.check_in_date == today, Booking.status == "confirmed")
        .scalar()
    )
    last_7_days = db.query(func.count(Booking.id)).filter(Booking.created_at >= now - timedelta(days=7)).scalar()

    conf_since = now - timedelta(days=30)
    conference_count = (
        db.query(func.count(ConferenceBooking.id)).filter(ConferenceBooking.created_at >= conf_since).scalar()
    )
    conference_revenue = (
        db.query(func.coalesce(func.sum(ConferenceBooking.total_price), 0))
        .filter(ConferenceBooking.created_at >= conf_since, ConferenceBooking.status == "confirmed")
        .scalar()
    )

    return {
        "totalBookings": int(total or 0),
        "pendingBookings": int(pending or 0),
        "confirmedBookings": int(confirmed or 0),
        "revenueKES": float(revenue or 0),
        "todaysCheckIns": int(todays_check_ins or 0),
        "bookingsLast7Days": int(last_7_days or 0),
        "conferenceBookings30Days": int(conference_count or 0),
        "conferenceRevenue30DaysKES": float(conference_revenue or 0),
    }


@router.get("/admin/audit-logs")
def admin_audit_logs(table: str | None = None, limit: int = 100,
                     db: Session = Depends(get_db),
                     me: Profile = Depends(require_roles("admin"))):
    q = db.query(AuditLog)
    if table:
        q = q.filter(AuditLog.table_name == table)
    items = q.order_by(AuditLog.created_at.desc()).limit(min(limit, 500)).all()
    return [
        {
            "id": a.id,
            "table": a.table_name,
            "operation": a.operation,
            "actor": a.actor,
            "recordId": a.record_id,
            "payload": a.payload_json,
            "createdAt": a.created_at.isoformat() if a.created_at else None,
        }
        for a in items
    ]
