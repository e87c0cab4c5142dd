import logging
import os
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.db.session import SessionLocal
from app.core.security import hash_password
from app.models.user import Profile
from app.models.room_type import RoomType

logger = logging.getLogger(__name__)

ROOM_TYPES = [
    # name, nightly KES, max occupancy, amenities
    ("Standard Room", 6500, 2, ["Free Wi-Fi", "Breakfast", "TV"]),
    ("Deluxe Single", 8500, 1, ["Free Wi-Fi", "Breakfast", "TV", "Work desk"]),
    ("Deluxe Double", 9500, 2, ["Free Wi-Fi", "Breakfast", "TV", "Work desk"]),
    ("Executive Single", 11000, 1, ["Free Wi-Fi", "Breakfast", "TV", "Mini bar", "Lake view"]),
    ("Executive Double", 12500, 3, ["Free Wi-Fi", "Breakfast", "TV", "Mini bar", "Lake view"]),
]


def ensure_profile(db: Session, email: str, password: str, role: str, name: str):
    u = db.query(Profile).filter(Profile.email == email).first()
    if u:
        return
    db.add(
        Profile(
            id=str(uuid.uuid4()),
            email=email,
            display_name=name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    db.commit()


def ensure_room_types(db: Session) -> int:
    created = 0
    for name, price, occupancy, amenities in ROOM_TYPES:
        if db.query(RoomType).filter(RoomType.name == name).first():
            continue
        db.add(RoomType(
            id=str(uuid.uuid4()),
            name=name,
            base_price=Decimal(price),
            max_occupancy=occupancy,
            amenities=amenities,
        ))
        created += 1
    db.commit()
    return created


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM profiles LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("profiles table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        admin_email = os.getenv("SEED_ADMIN_EMAIL", "admin@raygreenhotel.com")
        admin_password = os.getenv("SEED_ADMIN_PASSWORD", "admin12345")
        ensure_profile(db, admin_email, admin_password, "admin", "Admin")
        ensure_profile(db, "frontdesk@raygreenhotel.com", os.getenv("SEED_STAFF_PASSWORD", "staff12345"), "staff", "Front Desk")

        created = ensure_room_types(db)
        logger.info("Seed complete: %d room types created", created)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
