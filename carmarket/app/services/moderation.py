"""
Listing Moderation Workflow.

Submission:  create PENDING listing -> notify every admin (best-effort).
Decision:    PENDING -> ACTIVE (approve) or deleted (reject), then notify
             the owner and retire the admins' approval requests (best-effort).

The listing write is the only authoritative state change. Notification
writes happen after it is committed and never undo it.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from carmarket.app.core.config import settings
from carmarket.app.core.exceptions import InvalidStateError, NotificationDeliveryError
from carmarket.app.models.car import Car
from carmarket.app.models.enums import CarStatus, UserRole
from carmarket.app.models.notification import NotificationType
from carmarket.app.models.user import User
from carmarket.app.schemas.car import CarResponse
from carmarket.app.schemas.notification import NotificationCreate
from carmarket.app.services import listing_store
from carmarket.app.services.listing_store import ListingTransition
from carmarket.app.services.notification_service import NotificationService

logger = logging.getLogger("carmarket.moderation")


class AdminRoster(Protocol):
    """Source of the admins who receive approval requests."""

    async def list_admins(self) -> List[User]:
        ...


class SqlAdminRoster:
    """Active admin accounts, read at call time (no lock against role changes)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_admins(self) -> List[User]:
        result = await self.db.execute(
            select(User).where(User.role == UserRole.ADMIN, User.is_active == True).order_by(User.id)
        )
        return list(result.scalars().all())


class ModerationOutcome(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass
class SubmissionResult:
    car: CarResponse
    admins_notified: int


@dataclass
class DecisionResult:
    """
    Outcome of an admin decision.

    car is a snapshot taken right after the transition; for rejections the
    listing no longer exists.
    """
    car: CarResponse
    outcome: ModerationOutcome
    car_title: str
    reason: Optional[str]
    deleted: bool
    owner_notified: bool


def build_approval_requests(car: CarResponse, owner: User, admins: List[User]) -> List[NotificationCreate]:
    """One actionable approval request per admin."""
    owner_name = owner.full_name
    metadata = {
        "carTitle": car.title,
        "carId": str(car.id),
        "ownerName": owner_name,
        "ownerEmail": owner.email,
    }
    return [
        NotificationCreate(
            recipient_id=admin.id,
            sender_id=owner.id,
            related_car_id=car.id,
            type=NotificationType.CAR_APPROVAL_PENDING,
            title="New Car Listing Pending Approval",
            message=f'{owner_name} has submitted a new car listing: "{car.title}" for approval.',
            action_required=True,
            metadata_payload=dict(metadata),
        )
        for admin in admins
    ]


async def submit_listing(
    db: AsyncSession,
    owner: User,
    fields: Dict[str, Any],
    roster: AdminRoster
) -> SubmissionResult:
    """
    Create a PENDING listing and fan out approval requests to all admins.

    Raises:
        ListingValidationError: invalid fields, nothing persisted
    """
    car = await listing_store.create_pending(db, owner, fields)
    listing = CarResponse.model_validate(car)

    try:
        admins = await roster.list_admins()
        requests = build_approval_requests(listing, owner, admins)
    except Exception:
        await db.rollback()
        logger.exception("Could not load admins to notify about car %s", listing.id)
        return SubmissionResult(car=listing, admins_notified=0)

    try:
        created = await NotificationService.create_many(db, requests)
    except NotificationDeliveryError as exc:
        logger.error(
            "Approval requests for car %s partially failed: %s",
            listing.id, exc.message
        )
        return SubmissionResult(car=listing, admins_notified=len(exc.created))
    except Exception:
        await db.rollback()
        logger.exception("Could not send approval requests for car %s", listing.id)
        return SubmissionResult(car=listing, admins_notified=0)

    logger.info("Sent approval notifications to %d admin(s) for car: %s", len(created), listing.title)
    return SubmissionResult(car=listing, admins_notified=len(created))


async def _notify_owner(
    db: AsyncSession,
    admin_id: int,
    admin_name: str,
    owner_id: int,
    car_id: int,
    car_title: str,
    outcome: ModerationOutcome,
    reason: Optional[str]
) -> None:
    if outcome == ModerationOutcome.APPROVE:
        type_ = NotificationType.CAR_APPROVED
        title = "Car Listing Approved"
        message = f'Your car listing "{car_title}" has been approved and is now live on the platform.'
        metadata = {"carTitle": car_title, "carId": str(car_id), "approvedBy": admin_name}
    else:
        type_ = NotificationType.CAR_REJECTED
        title = "Car Listing Rejected"
        message = f'Your car listing "{car_title}" has been rejected. Reason: {reason}'
        metadata = {"carTitle": car_title, "carId": str(car_id), "rejectedBy": admin_name, "reason": reason}

    try:
        await NotificationService.create_notification(
            db,
            recipient_id=owner_id,
            sender_id=admin_id,
            related_car_id=car_id,
            type=type_,
            title=title,
            message=message,
            action_required=False,
            metadata=metadata
        )
        await db.commit()
    except Exception as exc:
        await db.rollback()
        raise NotificationDeliveryError(f"Could not notify owner {owner_id} about car {car_id}") from exc


async def _retire_approval_requests(db: AsyncSession, car_id: int) -> int:
    try:
        resolved = await NotificationService.mark_resolved(db, car_id)
        await db.commit()
    except Exception as exc:
        await db.rollback()
        raise NotificationDeliveryError(f"Could not resolve approval requests for car {car_id}") from exc
    return resolved


async def decide(
    db: AsyncSession,
    admin: User,
    car_id: int,
    outcome: ModerationOutcome,
    reason: Optional[str] = None
) -> DecisionResult:
    """
    Approve or reject a PENDING listing.

    Raises:
        ResourceNotFoundError: listing does not exist
        InvalidStateError: listing is not PENDING, or another admin won the race
    """
    car = await listing_store.find_by_id(db, car_id)
    if car.status != CarStatus.PENDING:
        raise InvalidStateError(current_status=car.status.value)

    admin_id, admin_name = admin.id, admin.full_name
    owner_id, car_title = car.owner_id, car.title

    if outcome == ModerationOutcome.APPROVE:
        car = await listing_store.transition_status(db, car_id, ListingTransition.ACTIVATE, verified_by_id=admin_id)
        reason = None
    else:
        car = await listing_store.transition_status(db, car_id, ListingTransition.DELETE)
        reason = (reason or "").strip() or settings.rejection_reason_placeholder
    listing = CarResponse.model_validate(car)

    logger.info("Admin %s chose %s for car %s", admin_id, outcome.value, car_id)

    owner_notified = True
    try:
        await _notify_owner(db, admin_id, admin_name, owner_id, car_id, car_title, outcome, reason)
    except NotificationDeliveryError as exc:
        owner_notified = False
        logger.error("%s: %s", exc.message, exc.__cause__)

    try:
        resolved = await _retire_approval_requests(db, car_id)
        logger.info("Resolved %d approval request(s) for car %s", resolved, car_id)
    except NotificationDeliveryError as exc:
        logger.error("%s: %s", exc.message, exc.__cause__)

    return DecisionResult(
        car=listing,
        outcome=outcome,
        car_title=car_title,
        reason=reason,
        deleted=outcome == ModerationOutcome.REJECT,
        owner_notified=owner_notified,
    )


async def withdraw_listing(db: AsyncSession, car: Car) -> int:
    """
    Delete a listing on behalf of its owner or an admin.

    A listing withdrawn while still PENDING has its approval requests
    retired so no admin is left acting on a listing that is gone.

    Returns:
        number of approval requests resolved
    """
    car_id, was_pending = car.id, car.status == CarStatus.PENDING
    await listing_store.delete_listing(db, car)

    if not was_pending:
        return 0

    try:
        resolved = await _retire_approval_requests(db, car_id)
    except NotificationDeliveryError as exc:
        logger.error("%s: %s", exc.message, exc.__cause__)
        return 0

    logger.info("Resolved %d approval request(s) for withdrawn car %s", resolved, car_id)
    return resolved
