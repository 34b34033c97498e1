"""
Listing Store.

Persistence operations for car listings: validation, pending creation,
the one-shot moderation transition, and the catalogue queries.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union
import enum

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from carmarket.app.core.exceptions import (
    ListingValidationError, ResourceNotFoundError, InvalidStateError
)
from carmarket.app.models.car import Car, CarFavorite
from carmarket.app.models.user import User
from carmarket.app.models.enums import (
    CarStatus, CarCategory, FuelType, Transmission, Drivetrain, BodyType,
    CarCondition, ListingType, PriceType, OwnerType, UserRole, CarSort
)

logger = logging.getLogger("carmarket.listings")

TITLE_LENGTH = (5, 100)
DESCRIPTION_LENGTH = (20, 2000)
MIN_YEAR = 1900
VIN_PATTERN = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")

# field -> (vocabulary, required)
ENUM_FIELDS = {
    "fuel_type": (FuelType, True),
    "transmission": (Transmission, True),
    "category": (CarCategory, True),
    "condition": (CarCondition, True),
    "listing_type": (ListingType, True),
    "drivetrain": (Drivetrain, False),
    "body_type": (BodyType, False),
    "price_type": (PriceType, False),
}

# Never taken from client input
SERVER_MANAGED_FIELDS = {
    "id", "slug", "status", "owner_id", "owner_type", "rejection_reason",
    "is_available", "is_featured", "is_verified", "verified_by_id", "verified_at",
    "views", "favorites", "inquiries", "created_at", "updated_at",
}

EDITABLE_COLUMNS = {
    "title", "description", "make", "model", "year", "mileage", "engine_size",
    "fuel_type", "transmission", "drivetrain", "category", "body_type", "condition",
    "listing_type", "price", "currency", "price_type", "rental_rates", "images",
    "features", "safety_features", "contact_info", "vin", "license_plate",
    "available_from", "available_until",
}

# Optional columns an owner edit may clear with an explicit null
NULLABLE_COLUMNS = {
    "engine_size", "drivetrain", "body_type", "rental_rates", "contact_info",
    "vin", "license_plate", "available_from", "available_until",
}

OWNER_SETTABLE_STATUSES = (CarStatus.ACTIVE, CarStatus.SOLD, CarStatus.RENTED, CarStatus.INACTIVE)


@dataclass(frozen=True)
class Valid:
    """Validated and normalized listing fields."""
    value: Dict[str, Any]


@dataclass(frozen=True)
class Invalid:
    """Every violation found in the submitted fields."""
    errors: List[Dict[str, str]]


ValidationResult = Union[Valid, Invalid]


class ListingTransition(str, enum.Enum):
    """Moderation transitions out of PENDING."""
    ACTIVATE = "active"
    DELETE = "deleted"


@dataclass
class CarSearchParams:
    """Public catalogue filters."""
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_year: Optional[int] = None
    max_year: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    category: Optional[CarCategory] = None
    fuel_type: Optional[FuelType] = None
    transmission: Optional[Transmission] = None
    listing_type: Optional[ListingType] = None
    condition: Optional[CarCondition] = None
    city: Optional[str] = None
    state: Optional[str] = None
    search: Optional[str] = None


SORT_OPTIONS = {
    CarSort.PRICE_ASC: (Car.price.asc(),),
    CarSort.PRICE_DESC: (Car.price.desc(),),
    CarSort.YEAR_ASC: (Car.year.asc(),),
    CarSort.YEAR_DESC: (Car.year.desc(),),
    CarSort.MILEAGE_ASC: (Car.mileage.asc(),),
    CarSort.MILEAGE_DESC: (Car.mileage.desc(),),
    CarSort.FEATURED: (Car.is_featured.desc(), Car.created_at.desc()),
    CarSort.NEWEST: (Car.created_at.desc(),),
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_listing_fields(fields: Dict[str, Any], partial: bool = False) -> ValidationResult:
    """
    Validate submitted listing fields against the listing rules.

    With partial=True (owner edits) only the keys present are checked.
    Server-managed keys such as status are dropped from the result.
    """
    errors: List[Dict[str, str]] = []
    cleaned = {k: v for k, v in fields.items() if k not in SERVER_MANAGED_FIELDS}

    def wants(name: str) -> bool:
        return not partial or name in fields

    def fail(name: str, message: str):
        errors.append({"field": name, "message": message})

    def text(name: str) -> Optional[str]:
        value = fields.get(name)
        if value is None:
            return ""
        if not isinstance(value, str):
            fail(name, f"{name.capitalize()} must be text")
            return None
        return value.strip()

    if wants("title"):
        title = text("title")
        if title is not None and not TITLE_LENGTH[0] <= len(title) <= TITLE_LENGTH[1]:
            fail("title", "Title must be between 5 and 100 characters")
        cleaned["title"] = title

    if wants("description"):
        description = text("description")
        if description is not None and not DESCRIPTION_LENGTH[0] <= len(description) <= DESCRIPTION_LENGTH[1]:
            fail("description", "Description must be between 20 and 2000 characters")
        cleaned["description"] = description

    for name in ("make", "model"):
        if wants(name):
            value = text(name)
            if value == "":
                fail(name, f"{name.capitalize()} is required")
            cleaned[name] = value

    if wants("year"):
        year = fields.get("year")
        max_year = datetime.utcnow().year + 1
        if not _is_int(year) or not MIN_YEAR <= year <= max_year:
            fail("year", f"Year must be between {MIN_YEAR} and {max_year}")

    if wants("mileage"):
        mileage = fields.get("mileage")
        if not _is_int(mileage) or mileage < 0:
            fail("mileage", "Mileage must be a positive number")

    if wants("price"):
        price = fields.get("price")
        if not _is_number(price) or price < 0:
            fail("price", "Price must be a positive number")

    for name, (vocabulary, required) in ENUM_FIELDS.items():
        if not wants(name):
            continue
        raw = fields.get(name)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            if required:
                fail(name, f"{name.replace('_', ' ').capitalize()} is required")
            else:
                cleaned[name] = None
            continue
        try:
            cleaned[name] = vocabulary(str(raw).strip().lower())
        except ValueError:
            allowed = ", ".join(member.value for member in vocabulary)
            fail(name, f"Invalid {name.replace('_', ' ')}. Allowed values: {allowed}")

    if fields.get("vin"):
        vin = str(fields["vin"]).strip().upper()
        if not VIN_PATTERN.match(vin):
            fail("vin", "Please enter a valid VIN number")
        cleaned["vin"] = vin

    if fields.get("license_plate"):
        cleaned["license_plate"] = str(fields["license_plate"]).strip().upper()

    if fields.get("currency"):
        cleaned["currency"] = str(fields["currency"]).upper()

    if errors:
        return Invalid(errors)
    return Valid(cleaned)


def _to_columns(values: Dict[str, Any], keep_nulls: bool = False) -> Dict[str, Any]:
    """
    Map validated fields onto Car columns (location is flattened).

    None values are dropped, except that with keep_nulls an explicit None
    for a nullable column is kept so an edit can clear it.
    """
    columns = {
        k: v for k, v in values.items()
        if k in EDITABLE_COLUMNS and (v is not None or (keep_nulls and k in NULLABLE_COLUMNS))
    }

    location = values.get("location")
    if location:
        for key in ("address", "city", "state", "zip_code", "country"):
            if key in location:
                columns[f"location_{key}"] = location[key]
        for key in ("latitude", "longitude"):
            if key in location:
                columns[key] = location[key]
    return columns


def make_slug(make: str, model: str, year: Any, title: str) -> str:
    base = re.sub(r"[^a-z0-9]+", "-", f"{make}-{model}-{year}-{title}".lower()).strip("-")
    return f"{base}-{uuid.uuid4().hex[:8]}"


async def create_pending(db: AsyncSession, owner: User, fields: Dict[str, Any]) -> Car:
    """
    Validate and persist a new listing in PENDING state.

    Raises:
        ListingValidationError: with every violated field; nothing is persisted
    """
    result = validate_listing_fields(fields)
    if isinstance(result, Invalid):
        raise ListingValidationError(result.errors)

    columns = _to_columns(result.value)
    car = Car(
        **columns,
        slug=make_slug(columns["make"], columns["model"], columns["year"], columns["title"]),
        owner_id=owner.id,
        owner_type=OwnerType.DEALER if owner.role == UserRole.DEALER else OwnerType.PRIVATE,
        status=CarStatus.PENDING,
    )
    db.add(car)
    await db.commit()
    await db.refresh(car)

    logger.info("Created pending listing %s for owner %s", car.id, owner.id)
    return car


async def find_by_id(db: AsyncSession, car_id: int) -> Car:
    """Load a listing or raise ResourceNotFoundError."""
    result = await db.execute(select(Car).where(Car.id == car_id))
    car = result.scalar_one_or_none()
    if not car:
        raise ResourceNotFoundError("Car", car_id)
    return car


async def transition_status(
    db: AsyncSession,
    car_id: int,
    target: ListingTransition,
    verified_by_id: Optional[int] = None
) -> Car:
    """
    Move a PENDING listing to ACTIVE or delete it.

    The write is conditional on status = PENDING, so of two concurrent
    callers exactly one succeeds and the other gets InvalidStateError.
    For DELETE the returned Car is the detached, last-known record.
    """
    car = await find_by_id(db, car_id)
    if car.status != CarStatus.PENDING:
        raise InvalidStateError(current_status=car.status.value)

    still_pending = (Car.id == car_id, Car.status == CarStatus.PENDING)
    if target == ListingTransition.ACTIVATE:
        stmt = update(Car).where(*still_pending).values(
            status=CarStatus.ACTIVE,
            is_available=True,
            is_verified=True,
            verified_by_id=verified_by_id,
            verified_at=datetime.utcnow(),
        )
    else:
        stmt = delete(Car).where(*still_pending)

    result = await db.execute(stmt.execution_options(synchronize_session=False))
    if result.rowcount != 1:
        await db.rollback()
        raise InvalidStateError(message="Car listing has already been processed")

    await db.commit()

    if target == ListingTransition.ACTIVATE:
        await db.refresh(car)
    else:
        db.expunge(car)
    return car


async def increment_views(db: AsyncSession, car_id: int) -> None:
    await db.execute(
        update(Car).where(Car.id == car_id).values(views=Car.views + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


async def increment_inquiries(db: AsyncSession, car_id: int) -> None:
    await db.execute(
        update(Car).where(Car.id == car_id).values(inquiries=Car.inquiries + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()


async def toggle_favorite(db: AsyncSession, user_id: int, car_id: int) -> Tuple[bool, int]:
    """
    Add or remove a listing from the user's favorites.

    Returns:
        (is_favorited after the toggle, listing's favorite count)
    """
    car = await find_by_id(db, car_id)

    result = await db.execute(
        select(CarFavorite).where(CarFavorite.user_id == user_id, CarFavorite.car_id == car_id)
    )
    favorite = result.scalar_one_or_none()

    if favorite:
        await db.delete(favorite)
        delta = -1
    else:
        db.add(CarFavorite(user_id=user_id, car_id=car_id))
        delta = 1

    await db.execute(
        update(Car).where(Car.id == car_id).values(favorites=Car.favorites + delta)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(car)

    return favorite is None, car.favorites


def _text_search(query, text: str):
    pattern = f"%{text}%"
    return query.where(or_(
        Car.title.ilike(pattern),
        Car.description.ilike(pattern),
        Car.make.ilike(pattern),
        Car.model.ilike(pattern),
        Car.location_city.ilike(pattern),
        Car.location_state.ilike(pattern),
    ))


async def _paginate(db: AsyncSession, query, order_by, page: int, limit: int) -> Tuple[List[Car], int]:
    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar()

    offset = (page - 1) * limit
    result = await db.execute(query.order_by(*order_by, Car.id.desc()).offset(offset).limit(limit))
    return list(result.scalars().all()), total


async def search_cars(
    db: AsyncSession,
    params: CarSearchParams,
    sort: Optional[CarSort] = None,
    page: int = 1,
    limit: int = 12
) -> Tuple[List[Car], int]:
    """
    Search the public catalogue (ACTIVE and available listings only).

    Raises:
        ListingValidationError: unknown sort order
    """
    try:
        order_by = SORT_OPTIONS[CarSort(sort or CarSort.NEWEST)]
    except ValueError:
        raise ListingValidationError([{
            "field": "sort",
            "message": "Sort must be one of: " + ", ".join(option.value for option in CarSort),
        }])

    query = select(Car).where(Car.status == CarStatus.ACTIVE, Car.is_available == True)

    if params.min_price is not None:
        query = query.where(Car.price >= params.min_price)
    if params.max_price is not None:
        query = query.where(Car.price <= params.max_price)
    if params.min_year is not None:
        query = query.where(Car.year >= params.min_year)
    if params.max_year is not None:
        query = query.where(Car.year <= params.max_year)

    if params.make:
        query = query.where(Car.make.ilike(f"%{params.make}%"))
    if params.model:
        query = query.where(Car.model.ilike(f"%{params.model}%"))
    if params.city:
        query = query.where(Car.location_city.ilike(f"%{params.city}%"))
    if params.state:
        query = query.where(Car.location_state.ilike(f"%{params.state}%"))

    for name in ("category", "fuel_type", "transmission", "listing_type", "condition"):
        value = getattr(params, name)
        if value is not None:
            query = query.where(getattr(Car, name) == value)

    if params.search:
        query = _text_search(query, params.search)

    return await _paginate(db, query, order_by, page, limit)


async def list_cars(
    db: AsyncSession,
    status: Optional[CarStatus] = None,
    owner_id: Optional[int] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 12
) -> Tuple[List[Car], int]:
    """List listings in any status (owner dashboards and admin views)."""
    query = select(Car)
    if status is not None:
        query = query.where(Car.status == status)
    if owner_id is not None:
        query = query.where(Car.owner_id == owner_id)
    if search:
        query = _text_search(query, search)
    return await _paginate(db, query, SORT_OPTIONS[CarSort.NEWEST], page, limit)


async def list_favorite_cars(db: AsyncSession, user_id: int, page: int = 1, limit: int = 12) -> Tuple[List[Car], int]:
    query = select(Car).join(CarFavorite, CarFavorite.car_id == Car.id).where(CarFavorite.user_id == user_id)
    return await _paginate(db, query, SORT_OPTIONS[CarSort.NEWEST], page, limit)


async def update_listing(db: AsyncSession, car: Car, fields: Dict[str, Any]) -> Car:
    """
    Apply an owner edit to non-status fields.

    Raises:
        ListingValidationError: if any supplied field is invalid
    """
    result = validate_listing_fields(fields, partial=True)
    if isinstance(result, Invalid):
        raise ListingValidationError(result.errors)

    for column, value in _to_columns(result.value, keep_nulls=True).items():
        setattr(car, column, value)

    await db.commit()
    await db.refresh(car)
    return car


async def set_owner_status(db: AsyncSession, car: Car, status: CarStatus) -> Car:
    """
    Owner-driven status change (e.g. marking a car sold).

    Not available while the listing awaits moderation.
    """
    if car.status in (CarStatus.PENDING, CarStatus.REJECTED):
        raise InvalidStateError(
            message="Listing status cannot be changed before it is approved",
            current_status=car.status.value
        )
    if status not in OWNER_SETTABLE_STATUSES:
        raise ListingValidationError([{
            "field": "status",
            "message": "Status must be one of: " + ", ".join(s.value for s in OWNER_SETTABLE_STATUSES),
        }])

    car.status = status
    car.is_available = status == CarStatus.ACTIVE
    await db.commit()
    await db.refresh(car)
    return car


async def delete_listing(db: AsyncSession, car: Car) -> None:
    """Delete a listing. Notifications referencing it keep their snapshot."""
    await db.delete(car)
    await db.commit()
