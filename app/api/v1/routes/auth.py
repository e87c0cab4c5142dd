import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.auth import LoginRequest, RegisterRequest, TokenOut
from app.models.user import Profile
from app.core.security import hash_password, verify_password, create_access_token
from app.services.audit_service import log_audit
from app.services.booking_validator import EMAIL_RE
from app.api.deps import get_current_user

router = APIRouter(tags=["auth"])

@router.post("/auth/register", response_model=TokenOut)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Self-service sign-up; always creates a guest profile."""
    email_l = body.email.strip().lower()
    if not EMAIL_RE.match(email_l):
        raise HTTPException(status_code=400, detail="Valid email is required")
    if len(body.password) < 8:
        raise HTTPException(status_code=400, detail="Password too short")
    if db.query(Profile).filter(Profile.email == email_l).first():
        raise HTTPException(status_code=409, detail="email already exists")
    u = Profile(
        id=str(uuid.uuid4()),
        email=email_l,
        display_name=body.displayName.strip(),
        role="guest",
        password_hash=hash_password(body.password),
        is_active=True,
    )
    db.add(u)
    log_audit(db, email_l, "INSERT", "profiles", u.id, {"email": email_l, "role": "guest"})
    db.commit()
    return TokenOut(access_token=create_access_token(u.id, u.role))

@router.post("/auth/login", response_model=TokenOut)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(Profile).filter(Profile.email == body.email.strip().lower()).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return TokenOut(access_token=create_access_token(user.id, user.role))

@router.get("/auth/me")
def me(me: Profile = Depends(get_current_user)):
    """Return current user info including role."""
    return {
        "id": me.id,
        "email": me.email,
        "displayName": me.display_name or "",
        "role": me.role,
    }
