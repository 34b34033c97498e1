"""
Car listing endpoints.

Public catalogue, owner listing management and the admin moderation
decisions (approve / reject).
"""

import math
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from carmarket.app.db.session import get_db
from carmarket.app.core.config import settings
from carmarket.app.core.dependencies import get_current_user, get_optional_user
from carmarket.app.core.exceptions import ResourceNotFoundError
from carmarket.app.core.guards import require_admin, is_owner_or_admin, OwnershipGuard
from carmarket.app.models.car import Car
from carmarket.app.models.enums import (
    CarStatus, CarCategory, FuelType, Transmission, ListingType, CarCondition, CarSort
)
from carmarket.app.models.user import User
from carmarket.app.schemas.car import (
    CarCreate, CarUpdate, CarStatusUpdate, CarResponse, CarListResponse,
    Pagination, FavoriteToggleResponse
)
from carmarket.app.schemas.moderation import CarReject, CarSubmissionResponse, CarDecisionResponse
from carmarket.app.services import listing_store, moderation
from carmarket.app.services.listing_store import CarSearchParams
from carmarket.app.services.moderation import AdminRoster, SqlAdminRoster, ModerationOutcome, DecisionResult
from carmarket.app.services.audit import log_listing_event, AuditAction

router = APIRouter(prefix="/cars", tags=["Cars"])
ownership_guard = OwnershipGuard()


def get_admin_roster(db: AsyncSession = Depends(get_db)) -> AdminRoster:
    return SqlAdminRoster(db)


def build_listing_page(cars: List[Car], total: int, page: int, limit: int) -> CarListResponse:
    pages = math.ceil(total / limit) if total else 0
    return CarListResponse(
        cars=[CarResponse.model_validate(car) for car in cars],
        count=len(cars),
        total=total,
        pagination=Pagination(
            page=page,
            pages=pages,
            limit=limit,
            has_next=page < pages,
            has_prev=page > 1,
        )
    )


def _decision_response(decision: DecisionResult, message: str) -> CarDecisionResponse:
    return CarDecisionResponse(
        message=message,
        outcome=decision.outcome.value,
        car_id=decision.car.id,
        car_title=decision.car_title,
        reason=decision.reason,
        deleted=decision.deleted,
        owner_notified=decision.owner_notified,
        car=decision.car,
    )


@router.get("", response_model=CarListResponse)
async def list_cars(
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    min_year: Optional[int] = Query(None),
    max_year: Optional[int] = Query(None),
    make: Optional[str] = None,
    model: Optional[str] = None,
    category: Optional[CarCategory] = None,
    fuel_type: Optional[FuelType] = None,
    transmission: Optional[Transmission] = None,
    listing_type: Optional[ListingType] = None,
    condition: Optional[CarCondition] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
    search: Optional[str] = Query(None, description="Free text over title, description, make, model and location"),
    sort: CarSort = Query(CarSort.NEWEST, description="Catalogue ordering"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.cars_page_size, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """
    Browse the public catalogue.

    Only approved (ACTIVE) and available listings are returned.
    """
    params = CarSearchParams(
        min_price=min_price, max_price=max_price,
        min_year=min_year, max_year=max_year,
        make=make, model=model,
        category=category, fuel_type=fuel_type, transmission=transmission,
        listing_type=listing_type, condition=condition,
        city=city, state=state, search=search,
    )
    cars, total = await listing_store.search_cars(db, params, sort=sort, page=page, limit=limit)
    return build_listing_page(cars, total, page, limit)


@router.post("", response_model=CarSubmissionResponse, status_code=status.HTTP_201_CREATED)
async def create_car(
    car_data: CarCreate,
    current_user: User = Depends(get_current_user),
    roster: AdminRoster = Depends(get_admin_roster),
    db: AsyncSession = Depends(get_db)
):
    """
    Submit a new listing for approval.

    The listing is always created PENDING; every admin is notified.

    Raises:
        400 with every invalid field listed in details.errors
    """
    user_id, email = current_user.id, current_user.email

    result = await moderation.submit_listing(db, current_user, car_data.model_dump(), roster)

    await log_listing_event(
        db=db,
        action=AuditAction.CAR_SUBMITTED,
        actor_id=user_id,
        actor_email=email,
        car_id=result.car.id,
        metadata={"admins_notified": result.admins_notified}
    )

    return CarSubmissionResponse(
        message="Car listing submitted for approval",
        car=result.car,
        admins_notified=result.admins_notified,
    )


@router.get("/my-listings", response_model=CarListResponse)
async def my_listings(
    status_filter: Optional[CarStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.cars_page_size, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Listings owned by the current user, in any status."""
    cars, total = await listing_store.list_cars(
        db, status=status_filter, owner_id=current_user.id, page=page, limit=limit
    )
    return build_listing_page(cars, total, page, limit)


@router.get("/favorites", response_model=CarListResponse)
async def my_favorites(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.cars_page_size, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    cars, total = await listing_store.list_favorite_cars(db, current_user.id, page=page, limit=limit)
    return build_listing_page(cars, total, page, limit)


@router.get("/{car_id}", response_model=CarResponse)
async def get_car(
    car_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get a single listing and count the view.

    Listings that are not ACTIVE are only visible to their owner and admins.
    """
    car = await listing_store.find_by_id(db, car_id)
    if car.status != CarStatus.ACTIVE:
        if current_user is None or not is_owner_or_admin(car.owner_id, current_user):
            raise ResourceNotFoundError("Car", car_id)

    await listing_store.increment_views(db, car_id)
    await db.refresh(car)
    return CarResponse.model_validate(car)


@router.put("/{car_id}", response_model=CarResponse)
async def update_car(
    car_id: int,
    car_data: CarUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Edit a listing's details.

    Status and moderation fields cannot be changed here.
    """
    car = await listing_store.find_by_id(db, car_id)
    ownership_guard.enforce(car.owner_id, current_user, "car listing")

    car = await listing_store.update_listing(db, car, car_data.model_dump(exclude_unset=True))
    return CarResponse.model_validate(car)


@router.patch("/{car_id}/status", response_model=CarResponse)
async def update_car_status(
    car_id: int,
    status_update: CarStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark an approved listing active, sold, rented or inactive."""
    car = await listing_store.find_by_id(db, car_id)
    ownership_guard.enforce(car.owner_id, current_user, "car listing")

    car = await listing_store.set_owner_status(db, car, status_update.status)
    return CarResponse.model_validate(car)


@router.delete("/{car_id}")
async def delete_car(
    car_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a listing (owner or admin).

    Withdrawing a pending listing retires its approval requests.
    """
    user_id, email = current_user.id, current_user.email

    car = await listing_store.find_by_id(db, car_id)
    ownership_guard.enforce(car.owner_id, current_user, "car listing")
    title = car.title

    await moderation.withdraw_listing(db, car)

    await log_listing_event(
        db=db,
        action=AuditAction.CAR_DELETED,
        actor_id=user_id,
        actor_email=email,
        car_id=car_id,
        metadata={"carTitle": title}
    )

    return {"message": "Car listing deleted successfully", "car_id": car_id}


@router.post("/{car_id}/favorite", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    car_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    is_favorited, favorites = await listing_store.toggle_favorite(db, current_user.id, car_id)
    return FavoriteToggleResponse(
        message="Added to favorites" if is_favorited else "Removed from favorites",
        is_favorited=is_favorited,
        favorites=favorites,
    )


@router.post("/{car_id}/inquiry")
async def record_inquiry(car_id: int, db: AsyncSession = Depends(get_db)):
    """Count a contact request against an active listing."""
    car = await listing_store.find_by_id(db, car_id)
    if car.status != CarStatus.ACTIVE:
        raise ResourceNotFoundError("Car", car_id)

    await listing_store.increment_inquiries(db, car_id)
    await db.refresh(car)
    return {"message": "Inquiry recorded", "inquiries": car.inquiries}


# --- Moderation (admin) ---

@router.put("/{car_id}/approve", response_model=CarDecisionResponse)
async def approve_car(
    car_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Approve a pending listing.

    Raises:
        404 if the listing does not exist
        400 (ERR_STATE_001) if it is not pending approval
    """
    admin_id, admin_email = admin.id, admin.email

    decision = await moderation.decide(db, admin, car_id, ModerationOutcome.APPROVE)

    await log_listing_event(
        db=db,
        action=AuditAction.CAR_APPROVED,
        actor_id=admin_id,
        actor_email=admin_email,
        car_id=car_id,
        metadata={"carTitle": decision.car_title, "ownerNotified": decision.owner_notified}
    )

    return _decision_response(decision, "Car listing approved successfully")


@router.put("/{car_id}/reject", response_model=CarDecisionResponse)
async def reject_car(
    car_id: int,
    payload: Optional[CarReject] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Reject a pending listing.

    The listing is deleted; the owner is told why.
    """
    admin_id, admin_email = admin.id, admin.email
    reason = payload.reason if payload else None

    decision = await moderation.decide(db, admin, car_id, ModerationOutcome.REJECT, reason=reason)

    await log_listing_event(
        db=db,
        action=AuditAction.CAR_REJECTED,
        actor_id=admin_id,
        actor_email=admin_email,
        car_id=car_id,
        metadata={"carTitle": decision.car_title, "reason": decision.reason}
    )

    return _decision_response(decision, "Car listing rejected and removed")
