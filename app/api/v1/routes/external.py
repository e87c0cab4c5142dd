"""Partner portal API, authenticated by the ``X-Portal-Token`` header."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_portal, require_portal_write
from app.api.v1.routes.bookings import bookings_out
from app.api.v1.routes.public import menu_item_out, room_type_out
from app.db.session import get_db
from app.models.menu_item import MenuItem
from app.models.portal_token import PortalToken
from app.repositories.booking_repository import BookingRepository, RoomTypeRepository
from app.schemas.booking import BookingOut, BulkStatusIn, BulkStatusOut, StatusUpdateIn
from app.schemas.catalog import MenuItemIn, MenuItemPatch, RoomTypeIn, RoomTypePatch
from app.services.booking_service import bulk_update_status, update_status
from app.services.catalog_service import create_menu_item, create_room_type, update_menu_item, update_room_type
from app.services.portal_service import can_write, portal_actor

router = APIRouter(tags=["external"])


@router.get("/external/whoami")
def portal_whoami(portal: PortalToken = Depends(get_portal)):
    return {
        "portalName": portal.portal_name,
        "permissions": dict(portal.permissions or {}),
        "canWrite": can_write(portal),
        "expiresAt": portal.expires_at.isoformat() if portal.expires_at else None,
    }


# -------------------------
# ROOMS
# -------------------------
@router.get("/external/rooms")
def portal_list_rooms(db: Session = Depends(get_db), portal: PortalToken = Depends(get_portal)):
    return [room_type_out(r) for r in RoomTypeRepository(db).list_all()]


@router.post("/external/rooms")
def portal_create_room(body: RoomTypeIn, db: Session = Depends(get_db),
                       portal: PortalToken = Depends(require_portal_write)):
    return room_type_out(create_room_type(db, body, actor=portal_actor(portal)))


@router.patch("/external/rooms/{room_type_id}")
def portal_update_room(room_type_id: str, body: RoomTypePatch, db: Session = Depends(get_db),
                       portal: PortalToken = Depends(require_portal_write)):
    return room_type_out(update_room_type(db, room_type_id, body, actor=portal_actor(portal)))


# -------------------------
# BOOKINGS
# -------------------------
@router.get("/external/bookings", response_model=list[BookingOut])
def portal_list_bookings(status: str | None = None, limit: int = 200, db: Session = Depends(get_db),
                         portal: PortalToken = Depends(get_portal)):
    return bookings_out(db, BookingRepository(db).search(status=status, limit=limit))


@router.patch("/external/bookings/{booking_id}/status", response_model=BookingOut)
def portal_update_booking_status(booking_id: str, body: StatusUpdateIn, db: Session = Depends(get_db),
                                 portal: PortalToken = Depends(require_portal_write)):
    b = update_status(db, booking_id, body.status, actor=portal_actor(portal))
    return bookings_out(db, [b])[0]


@router.post("/external/bookings/bulk-status", response_model=BulkStatusOut)
def portal_bulk_status(body: BulkStatusIn, db: Session = Depends(get_db),
                       portal: PortalToken = Depends(require_portal_write)):
    result = bulk_update_status(db, body.ids, body.status, actor=portal_actor(portal))
    return BulkStatusOut(status=result.status, updated=result.updated, failed=result.failed)


# -------------------------
# MENU
# -------------------------
@router.get("/external/menu")
def portal_list_menu(db: Session = Depends(get_db), portal: PortalToken = Depends(get_portal)):
    """All menu items, including ones hidden from the public site."""
    items = db.query(MenuItem).order_by(MenuItem.category.asc(), MenuItem.name.asc()).all()
    return [menu_item_out(m) for m in items]


@router.post("/external/menu")
def portal_create_menu_item(body: MenuItemIn, db: Session = Depends(get_db),
                            portal: PortalToken = Depends(require_portal_write)):
    return menu_item_out(create_menu_item(db, body, actor=portal_actor(portal)))


@router.patch("/external/menu/{item_id}")
def portal_update_menu_item(item_id: str, body: MenuItemPatch, db: Session = Depends(get_db),
                            portal: PortalToken = Depends(require_portal_write)):
    return menu_item_out(update_menu_item(db, item_id, body, actor=portal_actor(portal)))
