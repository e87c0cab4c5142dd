from fastapi import BackgroundTasks, Depends, Header, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.security import decode_access_token
from app.models.portal_token import PortalToken
from app.models.user import Profile
from app.services.notification_service import NotificationDispatcher
from app.services.portal_service import authenticate, can_write

bearer = HTTPBearer(auto_error=False)

def _user_from_token(token: str, db: Session) -> Profile:
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = db.get(Profile, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> Profile:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return _user_from_token(creds.credentials, db)

def get_optional_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> Profile | None:
    """Public booking endpoints link the booking to the caller when a token is sent."""
    if not creds:
        return None
    return _user_from_token(creds.credentials, db)

def require_roles(*roles: str):
    def _guard(user: Profile = Depends(get_current_user)) -> Profile:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user
    return _guard

def get_notifier(background_tasks: BackgroundTasks, db: Session = Depends(get_db)) -> NotificationDispatcher:
    # delivery runs after the response is sent
    return NotificationDispatcher(db, schedule=background_tasks.add_task)

def get_portal(
    x_portal_token: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> PortalToken:
    if not x_portal_token:
        raise HTTPException(status_code=401, detail="Portal token required")
    portal = authenticate(db, x_portal_token)
    if not portal:
        raise HTTPException(status_code=401, detail="Invalid portal token")
    return portal

def require_portal_write(portal: PortalToken = Depends(get_portal)) -> PortalToken:
    if not can_write(portal):
        raise HTTPException(status_code=403, detail="Portal token is read-only")
    return portal
