from datetime import date
from decimal import Decimal
from pydantic import BaseModel
from typing import Optional

class ConferenceBookingCreate(BaseModel):
    contactName: str
    contactEmail: str
    contactPhone: Optional[str] = None
    organization: Optional[str] = None
    eventDate: date
    startTime: str  # HH:MM
    endTime: str    # HH:MM
    attendees: int = 1
    totalPrice: Decimal = Decimal("0")
    specialRequests: Optional[str] = None

class ConferenceBookingOut(BaseModel):
    id: str
    bookingReference: str
    contactName: str
    contactEmail: str
    contactPhone: Optional[str] = None
    organization: Optional[str] = None
    eventDate: date
    startTime: str
    endTime: str
    attendees: int
    totalPrice: float
    specialRequests: Optional[str] = None
    status: str
    createdAt: str
