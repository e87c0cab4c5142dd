from pydantic import BaseModel, Field
from typing import Optional

class PortalTokenCreate(BaseModel):
    portalName: str
    permissions: dict = {}
    expiresInDays: int = Field(default=365, ge=1, le=3650)

class PortalTokenOut(BaseModel):
    id: str
    portalName: str
    permissions: dict
    isActive: bool
    expiresAt: str
    lastUsedAt: Optional[str] = None
    createdBy: Optional[str] = None

class PortalTokenIssued(PortalTokenOut):
    token: str  # shown once; only the hash is kept
