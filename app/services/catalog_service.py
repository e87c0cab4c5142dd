"""Room type and menu writes shared by the admin console and partner portals."""
import logging
import uuid

from sqlalchemy.orm import Session

from app.core.errors import AlreadyExistsError, NotFoundError
from app.models.menu_item import MenuItem
from app.models.room_type import RoomType
from app.repositories.booking_repository import RoomTypeRepository
from app.schemas.catalog import MenuItemIn, MenuItemPatch, RoomTypeIn, RoomTypePatch
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)


def create_room_type(db: Session, body: RoomTypeIn, *, actor: str) -> RoomType:
    name = body.name.strip()
    if RoomTypeRepository(db).get_by_name(name):
        raise AlreadyExistsError(f"Room type '{name}' already exists")
    r = RoomType(
        id=str(uuid.uuid4()),
        name=name,
        description=body.description,
        base_price=body.basePrice,
        max_occupancy=body.maxOccupancy,
        amenities=body.amenities,
        image_url=body.imageUrl,
    )
    db.add(r)
    log_audit(db, actor, "INSERT", "room_types", r.id, {"name": name, "basePrice": body.basePrice})
    db.commit()
    logger.info("Room type %s created by %s", name, actor)
    return r


def update_room_type(db: Session, room_type_id: str, body: RoomTypePatch, *, actor: str) -> RoomType:
    r = db.get(RoomType, room_type_id)
    if not r:
        raise NotFoundError("Room type not found")
    changes = body.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        name = changes["name"].strip()
        existing = RoomTypeRepository(db).get_by_name(name)
        if existing and existing.id != r.id:
            raise AlreadyExistsError(f"Room type '{name}' already exists")
        r.name = name
    if "description" in changes:
        r.description = changes["description"]
    if changes.get("basePrice") is not None:
        r.base_price = changes["basePrice"]
    if changes.get("maxOccupancy") is not None:
        r.max_occupancy = changes["maxOccupancy"]
    if changes.get("amenities") is not None:
        r.amenities = changes["amenities"]
    if "imageUrl" in changes:
        r.image_url = changes["imageUrl"]
    log_audit(db, actor, "UPDATE", "room_types", r.id, changes)
    db.commit()
    return r


def create_menu_item(db: Session, body: MenuItemIn, *, actor: str) -> MenuItem:
    m = MenuItem(
        id=str(uuid.uuid4()),
        name=body.name.strip(),
        category=body.category.strip().lower(),
        description=body.description,
        price=body.price,
        image_url=body.imageUrl,
        is_available=body.isAvailable,
    )
    db.add(m)
    log_audit(db, actor, "INSERT", "menu_items", m.id, {"name": m.name, "price": body.price})
    db.commit()
    return m


def update_menu_item(db: Session, item_id: str, body: MenuItemPatch, *, actor: str) -> MenuItem:
    m = db.get(MenuItem, item_id)
    if not m:
        raise NotFoundError("Menu item not found")
    changes = body.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        m.name = changes["name"].strip()
    if changes.get("category") is not None:
        m.category = changes["category"].strip().lower()
    if "description" in changes:
        m.description = changes["description"]
    if changes.get("price") is not None:
        m.price = changes["price"]
    if "imageUrl" in changes:
        m.image_url = changes["imageUrl"]
    if changes.get("isAvailable") is not None:
        m.is_available = changes["isAvailable"]
    log_audit(db, actor, "UPDATE", "menu_items", m.id, changes)
    db.commit()
    return m
