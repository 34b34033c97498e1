"""
Car listing database model.

A listing is a vehicle offered for sale and/or rent. Every listing starts
as PENDING and must be approved by an admin before it goes live.
"""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Float, ForeignKey, JSON, Enum,
    UniqueConstraint, Index
)
from sqlalchemy.sql import func
from carmarket.app.db.session import Base
from carmarket.app.models.enums import (
    CarStatus, CarCategory, FuelType, Transmission, Drivetrain, BodyType,
    CarCondition, ListingType, PriceType, OwnerType
)


class Car(Base):
    """
    Car listing model.

    Status lifecycle:
        PENDING -> ACTIVE (admin approval)
        PENDING -> deleted (admin rejection)
        ACTIVE <-> SOLD / RENTED / INACTIVE (owner)
    """
    __tablename__ = "cars"
    __table_args__ = (
        Index("ix_cars_make_model", "make", "model"),
        Index("ix_cars_status_available", "status", "is_available"),
        Index("ix_cars_location", "location_city", "location_state"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    slug = Column(String(300), unique=True, nullable=False)

    # Basic information
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)

    # Car details
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False, index=True)
    mileage = Column(Integer, nullable=False)

    # Engine & performance
    engine_size = Column(String(50), nullable=True)
    fuel_type = Column(Enum(FuelType), nullable=False)
    transmission = Column(Enum(Transmission), nullable=False)
    drivetrain = Column(Enum(Drivetrain), nullable=True)

    # Category & type
    category = Column(Enum(CarCategory), nullable=False, index=True)
    body_type = Column(Enum(BodyType), nullable=True)
    condition = Column(Enum(CarCondition), nullable=False)
    listing_type = Column(Enum(ListingType), default=ListingType.SALE, nullable=False, index=True)

    # Pricing
    price = Column(Float, nullable=False, index=True)
    currency = Column(String(3), default="USD", nullable=False)
    price_type = Column(Enum(PriceType), default=PriceType.NEGOTIABLE, nullable=False)
    rental_rates = Column(JSON, nullable=True)

    # Media & equipment (images are encoded payloads, first one is primary)
    images = Column(JSON, default=list, nullable=False)
    features = Column(JSON, default=list, nullable=False)
    safety_features = Column(JSON, default=list, nullable=False)

    # Location
    location_address = Column(String(300), nullable=True)
    location_city = Column(String(100), nullable=True)
    location_state = Column(String(100), nullable=True)
    location_zip_code = Column(String(20), nullable=True)
    location_country = Column(String(100), default="USA", nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    contact_info = Column(JSON, nullable=True)

    # Ownership
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_type = Column(Enum(OwnerType), nullable=False)

    # Status & availability
    status = Column(Enum(CarStatus), default=CarStatus.PENDING, nullable=False, index=True)
    rejection_reason = Column(String(500), nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)
    is_featured = Column(Boolean, default=False, nullable=False)

    # Verification (set on approval)
    is_verified = Column(Boolean, default=False, nullable=False)
    verified_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)

    # Analytics
    views = Column(Integer, default=0, nullable=False)
    favorites = Column(Integer, default=0, nullable=False)
    inquiries = Column(Integer, default=0, nullable=False)

    # Additional information
    vin = Column(String(17), nullable=True)
    license_plate = Column(String(20), nullable=True)
    available_from = Column(DateTime(timezone=True), nullable=True)
    available_until = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def location(self) -> dict:
        return {
            "address": self.location_address,
            "city": self.location_city,
            "state": self.location_state,
            "zip_code": self.location_zip_code,
            "country": self.location_country,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }

    @property
    def primary_image(self):
        return self.images[0] if self.images else None

    @property
    def age(self) -> int:
        return datetime.utcnow().year - self.year

    def __repr__(self):
        return f"<Car(id={self.id}, title='{self.title}', owner={self.owner_id}, status='{self.status.value}')>"


class CarFavorite(Base):
    """A user's saved listing."""
    __tablename__ = "car_favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "car_id", name="uq_car_favorites_user_car"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    car_id = Column(Integer, ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<CarFavorite(user={self.user_id}, car={self.car_id})>"
