"""Tokens for partner portals that manage rooms, bookings and the menu.

A token is shown once when issued; only its SHA-256 hex digest is stored.
Portal writes are audited with ``portal:<name>`` as the actor.
"""
import hashlib
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.portal_token import PortalToken
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL_DAYS = 365


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def portal_actor(portal: PortalToken) -> str:
    return f"portal:{portal.portal_name}"


def can_write(portal: PortalToken) -> bool:
    return bool((portal.permissions or {}).get("write", True))


def issue_token(db: Session, portal_name: str, *, created_by: str, permissions: dict | None = None,
                ttl_days: int = DEFAULT_TOKEN_TTL_DAYS) -> tuple[PortalToken, str]:
    portal_name = (portal_name or "").strip()
    if not portal_name:
        raise ValidationError(["Portal name is required"])
    token = secrets.token_urlsafe(32)
    row = PortalToken(
        id=str(uuid.uuid4()),
        portal_name=portal_name,
        token_hash=hash_token(token),
        permissions=permissions or {},
        is_active=True,
        expires_at=datetime.now(timezone.utc) + timedelta(days=ttl_days),
        created_by=created_by,
    )
    db.add(row)
    log_audit(db, created_by, "INSERT", "external_portal_tokens", row.id,
              {"portal_name": portal_name, "permissions": row.permissions, "expires_at": row.expires_at})
    db.commit()
    logger.info("Portal token issued for %s by %s", portal_name, created_by)
    return row, token


def authenticate(db: Session, token: str) -> PortalToken | None:
    """Active, unexpired token matching the presented value, or None. Stamps last_used_at."""
    if not token:
        return None
    now = datetime.now(timezone.utc)
    row = (
        db.query(PortalToken)
        .filter(
            PortalToken.token_hash == hash_token(token),
            PortalToken.is_active == True,
            PortalToken.expires_at > now,
        )
        .first()
    )
    if row is None:
        return None
    row.last_used_at = now
    db.commit()
    return row


def revoke_token(db: Session, token_id: str, *, actor: str) -> PortalToken:
    row = db.get(PortalToken, token_id)
    if not row:
        raise NotFoundError("Portal token not found")
    row.is_active = False
    log_audit(db, actor, "UPDATE", "external_portal_tokens", row.id, {"is_active": False})
    db.commit()
    logger.info("Portal token for %s revoked by %s", row.portal_name, actor)
    return row
