from datetime import date
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

class BookingCreate(BaseModel):
    roomTypeId: str
    checkInDate: date
    checkOutDate: date
    guestName: str
    guestEmail: str  # plain str; the booking validator owns the email rule
    guestPhone: Optional[str] = None
    adults: int = 1
    children: int = 0
    totalPrice: Decimal = Decimal("0")
    specialRequests: Optional[str] = None

class BookingValidateOut(BaseModel):
    valid: bool
    errors: List[str] = []

class BookingCreatedOut(BaseModel):
    success: bool = True
    bookingId: str
    bookingReference: str
    status: str

class CheckoutOut(BaseModel):
    url: str
    bookingId: str
    bookingReference: str

class BookingOut(BaseModel):
    id: str
    bookingReference: str
    roomTypeId: str
    roomTypeName: Optional[str] = None
    guestName: str
    guestEmail: str
    guestPhone: Optional[str] = None
    checkInDate: date
    checkOutDate: date
    nights: int
    adults: int
    children: int
    totalPrice: float
    specialRequests: Optional[str] = None
    status: str
    paymentStatus: str
    createdAt: str

class BookingSummaryOut(BaseModel):
    """Unauthenticated lookup by reference; no guest contact details."""
    bookingReference: str
    roomTypeName: Optional[str] = None
    checkInDate: date
    checkOutDate: date
    nights: int
    totalPrice: float
    status: str
    paymentStatus: str

class StatusUpdateIn(BaseModel):
    status: str

class BulkStatusIn(BaseModel):
    ids: List[str] = Field(min_length=1)
    status: str

class BulkStatusOut(BaseModel):
    status: str
    updated: List[str]
    failed: List[dict]
