"""
Car listing Pydantic schemas.

Closed-vocabulary fields are accepted as plain strings on input and checked
by the listing store, so a bad submission reports every violation at once.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List, Dict, Any
from carmarket.app.models.enums import (
    CarStatus, CarCategory, FuelType, Transmission, Drivetrain, BodyType,
    CarCondition, ListingType, PriceType, OwnerType, ContactMethod
)


class RentalRates(BaseModel):
    hourly: Optional[float] = Field(None, ge=0)
    daily: Optional[float] = Field(None, ge=0)
    weekly: Optional[float] = Field(None, ge=0)
    monthly: Optional[float] = Field(None, ge=0)


class CarLocation(BaseModel):
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = "USA"
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class ContactInfo(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    preferred_contact_method: ContactMethod = ContactMethod.BOTH


class CarCreate(BaseModel):
    """
    Schema for submitting a new listing.

    Unknown keys (including any client-supplied status) are ignored.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    mileage: Optional[int] = None
    price: Optional[float] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    price_type: Optional[str] = None
    rental_rates: Optional[RentalRates] = None
    engine_size: Optional[str] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    drivetrain: Optional[str] = None
    category: Optional[str] = None
    body_type: Optional[str] = None
    condition: Optional[str] = None
    listing_type: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    features: List[str] = Field(default_factory=list)
    safety_features: List[str] = Field(default_factory=list)
    location: Optional[CarLocation] = None
    contact_info: Optional[ContactInfo] = None
    vin: Optional[str] = None
    license_plate: Optional[str] = None
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None


class CarUpdate(CarCreate):
    """Schema for owner edits. Only the keys sent are applied."""
    images: Optional[List[str]] = None
    features: Optional[List[str]] = None
    safety_features: Optional[List[str]] = None


class CarStatusUpdate(BaseModel):
    """Owner-driven status change after approval."""
    status: CarStatus


class CarResponse(BaseModel):
    """Schema for a listing."""
    id: int
    slug: str
    title: str
    description: str
    make: str
    model: str
    year: int
    age: int
    mileage: int
    price: float
    currency: str
    price_type: PriceType
    rental_rates: Optional[Dict[str, Any]] = None
    engine_size: Optional[str] = None
    fuel_type: FuelType
    transmission: Transmission
    drivetrain: Optional[Drivetrain] = None
    category: CarCategory
    body_type: Optional[BodyType] = None
    condition: CarCondition
    listing_type: ListingType
    images: List[str]
    primary_image: Optional[str] = None
    features: List[str]
    safety_features: List[str]
    location: CarLocation
    contact_info: Optional[Dict[str, Any]] = None
    owner_id: int
    owner_type: OwnerType
    status: CarStatus
    rejection_reason: Optional[str] = None
    is_available: bool
    is_featured: bool
    is_verified: bool
    verified_by_id: Optional[int] = None
    verified_at: Optional[datetime] = None
    views: int
    favorites: int
    inquiries: int
    vin: Optional[str] = None
    license_plate: Optional[str] = None
    available_from: Optional[datetime] = None
    available_until: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    pages: int
    limit: int
    has_next: bool
    has_prev: bool


class CarListResponse(BaseModel):
    """Schema for paginated listing results."""
    cars: List[CarResponse]
    count: int
    total: int
    pagination: Pagination


class FavoriteToggleResponse(BaseModel):
    message: str
    is_favorited: bool
    favorites: int
