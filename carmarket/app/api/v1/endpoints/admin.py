"""
Admin API Endpoints.

Provides admin-only user management, listing oversight and audit endpoints.
"""

from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from carmarket.app.db.session import get_db
from carmarket.app.core.config import settings
from carmarket.app.models.user import User
from carmarket.app.models.car import Car
from carmarket.app.models.enums import UserRole, CarStatus
from carmarket.app.schemas.auth import UserResponse
from carmarket.app.schemas.car import CarListResponse
from carmarket.app.schemas.admin import (
    UserListResponse, AdminUserUpdate, AdminActionResponse,
    UserStats, CarStats, StatsResponse, AuditTrailResponse, AuditLogResponse
)
from carmarket.app.core.guards import require_admin
from carmarket.app.core.token_revocation import revoke_all_user_tokens, clear_user_token_revocation
from carmarket.app.services import listing_store
from carmarket.app.services.notification_service import NotificationService
from carmarket.app.services.audit import log_admin_action, AuditAction, get_audit_trail
from carmarket.app.api.v1.endpoints.cars import build_listing_page

router = APIRouter(prefix="/admin", tags=["Admin"])


async def _get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    is_active: Optional[bool] = Query(None, description="Filter by account status"),
    search: Optional[str] = Query(None, description="Match name or email"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    List users in the system (admin-only).

    Returns paginated user list with role and status information.
    """
    query = select(User)
    if role is not None:
        query = query.where(User.role == role)
    if is_active is not None:
        query = query.where(User.is_active == is_active)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
            User.email.ilike(pattern),
        ))

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar()

    offset = (page - 1) * page_size
    result = await db.execute(
        query.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(page_size)
    )
    users = result.scalars().all()

    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Get detailed information about a specific user (admin-only)."""
    return UserResponse.model_validate(await _get_user_or_404(db, user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    update: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a user's details, role or account status (admin-only).

    Deactivating a user revokes all of their active tokens.
    """
    admin_id, admin_email = admin.id, admin.email
    target_user = await _get_user_or_404(db, user_id)
    changes = update.model_dump(exclude_unset=True)

    if changes.get("is_active") is False and target_user.id == admin_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot deactivate your own account"
        )

    if "email" in changes and changes["email"]:
        changes["email"] = changes["email"].lower()
        if changes["email"] != target_user.email:
            existing = await db.execute(select(User).where(User.email == changes["email"]))
            if existing.scalar_one_or_none():
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="User with this email already exists"
                )

    was_active = target_user.is_active
    for field, value in changes.items():
        if value is not None:
            setattr(target_user, field, value)

    await db.commit()
    await db.refresh(target_user)
    response = UserResponse.model_validate(target_user)

    action = AuditAction.USER_UPDATED
    if was_active and not response.is_active:
        await revoke_all_user_tokens(user_id)
        action = AuditAction.USER_DEACTIVATED
    elif not was_active and response.is_active:
        await clear_user_token_revocation(user_id)

    await log_admin_action(
        db=db,
        admin_id=admin_id,
        admin_email=admin_email,
        action=action,
        target_user_id=response.id,
        target_email=response.email,
        metadata={"fields": sorted(changes)}
    )

    return response


@router.delete("/users/{user_id}", response_model=AdminActionResponse)
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a user account (admin-only).

    The user's listings, favorites and received notifications go with it.
    """
    admin_id, admin_email = admin.id, admin.email
    target_user = await _get_user_or_404(db, user_id)

    if target_user.id == admin_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account"
        )

    target_email = target_user.email
    await db.delete(target_user)
    await db.commit()

    await revoke_all_user_tokens(user_id)

    audit_log = await log_admin_action(
        db=db,
        admin_id=admin_id,
        admin_email=admin_email,
        action=AuditAction.USER_DELETED,
        target_user_id=user_id,
        target_email=target_email
    )

    return AdminActionResponse(
        success=True,
        message=f"User '{target_email}' has been deleted",
        user_id=user_id,
        action=AuditAction.USER_DELETED,
        audit_log_id=audit_log.id
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Platform counters for the admin dashboard."""
    async def count(model, *criteria) -> int:
        query = select(func.count(model.id))
        if criteria:
            query = query.where(*criteria)
        result = await db.execute(query)
        return result.scalar()

    since = datetime.utcnow() - timedelta(days=30)

    users = UserStats(
        total=await count(User),
        users=await count(User, User.role == UserRole.USER),
        dealers=await count(User, User.role == UserRole.DEALER),
        admins=await count(User, User.role == UserRole.ADMIN),
        active=await count(User, User.is_active == True),
        recent_registrations=await count(User, User.created_at >= since),
    )
    cars = CarStats(
        total=await count(Car),
        active=await count(Car, Car.status == CarStatus.ACTIVE),
        pending=await count(Car, Car.status == CarStatus.PENDING),
        sold=await count(Car, Car.status == CarStatus.SOLD),
        rented=await count(Car, Car.status == CarStatus.RENTED),
    )

    return StatsResponse(
        users=users,
        cars=cars,
        pending_approval_notifications=await NotificationService.count_pending_approvals(db)
    )


@router.get("/cars", response_model=CarListResponse)
async def list_all_cars(
    status_filter: Optional[CarStatus] = Query(None, alias="status"),
    owner_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.cars_page_size, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """All listings in any status (admin-only)."""
    cars, total = await listing_store.list_cars(
        db, status=status_filter, owner_id=owner_id, search=search, page=page, limit=limit
    )
    return build_listing_page(cars, total, page, limit)


@router.get("/cars/pending", response_model=CarListResponse)
async def list_pending_cars(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.cars_page_size, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """The moderation queue."""
    cars, total = await listing_store.list_cars(db, status=CarStatus.PENDING, page=page, limit=limit)
    return build_listing_page(cars, total, page, limit)


@router.get("/audit-logs", response_model=AuditTrailResponse)
async def get_audit_logs(
    user_id: Optional[int] = Query(None, description="Filter by target user ID"),
    car_id: Optional[int] = Query(None, description="Filter by target listing ID"),
    action: Optional[str] = Query(None, description="Filter by action type"),
    limit: int = Query(100, ge=1, le=500, description="Maximum records to return"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Get audit trail with optional filtering (admin-only).

    Returns recent audit logs for security monitoring and compliance.
    """
    logs = await get_audit_trail(
        db=db,
        action=action,
        target_user_id=user_id,
        target_car_id=car_id,
        limit=limit
    )

    return AuditTrailResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=len(logs)
    )
