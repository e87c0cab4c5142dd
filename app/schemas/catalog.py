from decimal import Decimal
from pydantic import BaseModel, Field
from typing import List, Optional

class RoomTypeIn(BaseModel):
    name: str
    description: Optional[str] = None
    basePrice: Decimal = Field(ge=0)
    maxOccupancy: int = Field(default=2, ge=1)
    amenities: List[str] = []
    imageUrl: Optional[str] = None

class RoomTypePatch(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    basePrice: Optional[Decimal] = Field(default=None, ge=0)
    maxOccupancy: Optional[int] = Field(default=None, ge=1)
    amenities: Optional[List[str]] = None
    imageUrl: Optional[str] = None

class MenuItemIn(BaseModel):
    name: str
    category: str
    description: Optional[str] = None
    price: Decimal = Field(ge=0)
    imageUrl: Optional[str] = None
    isAvailable: bool = True

class MenuItemPatch(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    imageUrl: Optional[str] = None
    isAvailable: Optional[bool] = None

class TestimonialIn(BaseModel):
    name: str
    content: str
    rating: int = Field(default=5, ge=1, le=5)
    imageUrl: Optional[str] = None
