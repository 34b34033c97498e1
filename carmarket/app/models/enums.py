"""
Enumerations for the car marketplace.

Defines user roles and the closed vocabularies used by car listings.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        USER: Private seller/buyer (default role)
        DEALER: Business account, listings are marked as dealer stock
        ADMIN: Moderates listings and manages users
    """
    USER = "user"
    DEALER = "dealer"
    ADMIN = "admin"


class CarStatus(str, enum.Enum):
    """
    Listing status.

    PENDING: Submitted, waiting for admin approval
    ACTIVE: Approved and visible in the public catalogue
    SOLD / RENTED / INACTIVE: Set by the owner after approval
    REJECTED: Kept for completeness; rejected listings are deleted
    """
    PENDING = "pending"
    ACTIVE = "active"
    SOLD = "sold"
    RENTED = "rented"
    INACTIVE = "inactive"
    REJECTED = "rejected"


class CarCategory(str, enum.Enum):
    SEDAN = "sedan"
    SUV = "suv"
    HATCHBACK = "hatchback"
    COUPE = "coupe"
    CONVERTIBLE = "convertible"
    WAGON = "wagon"
    TRUCK = "truck"
    VAN = "van"
    MOTORCYCLE = "motorcycle"


class FuelType(str, enum.Enum):
    GASOLINE = "gasoline"
    DIESEL = "diesel"
    ELECTRIC = "electric"
    HYBRID = "hybrid"
    LPG = "lpg"
    CNG = "cng"


class Transmission(str, enum.Enum):
    MANUAL = "manual"
    AUTOMATIC = "automatic"
    CVT = "cvt"
    SEMI_AUTOMATIC = "semi-automatic"


class Drivetrain(str, enum.Enum):
    FWD = "fwd"
    RWD = "rwd"
    AWD = "awd"
    FOUR_WD = "4wd"


class BodyType(str, enum.Enum):
    TWO_DOOR = "2-door"
    FOUR_DOOR = "4-door"
    FIVE_DOOR = "5-door"
    PICKUP = "pickup"
    VAN = "van"
    OTHER = "other"


class CarCondition(str, enum.Enum):
    NEW = "new"
    LIKE_NEW = "like-new"
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class ListingType(str, enum.Enum):
    SALE = "sale"
    RENT = "rent"
    BOTH = "both"


class PriceType(str, enum.Enum):
    FIXED = "fixed"
    NEGOTIABLE = "negotiable"


class OwnerType(str, enum.Enum):
    PRIVATE = "private"
    DEALER = "dealer"


class ContactMethod(str, enum.Enum):
    PHONE = "phone"
    EMAIL = "email"
    BOTH = "both"


class CarSort(str, enum.Enum):
    """Catalogue orderings."""
    NEWEST = "newest"
    FEATURED = "featured"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    YEAR_ASC = "year_asc"
    YEAR_DESC = "year_desc"
    MILEAGE_ASC = "mileage_asc"
    MILEAGE_DESC = "mileage_desc"
