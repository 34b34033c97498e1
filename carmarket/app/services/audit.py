"""
Audit logging service for tracking security events, moderation decisions
and admin actions.
"""

from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from carmarket.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"
    USER_REGISTERED = "USER_REGISTERED"
    USER_UPDATED = "USER_UPDATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    USER_DELETED = "USER_DELETED"
    PASSWORD_CHANGED = "PASSWORD_CHANGED"
    DEALER_INFO_UPDATED = "DEALER_INFO_UPDATED"
    ACCOUNT_DELETED = "ACCOUNT_DELETED"

    # Listing moderation
    CAR_SUBMITTED = "CAR_SUBMITTED"
    CAR_APPROVED = "CAR_APPROVED"
    CAR_REJECTED = "CAR_REJECTED"
    CAR_DELETED = "CAR_DELETED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_email: Optional[str] = None,
    target_user_id: Optional[int] = None,
    target_email: Optional[str] = None,
    target_car_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Log an event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_email: Email of actor
        target_user_id: ID of user being acted upon (if applicable)
        target_email: Email of target user
        target_car_id: ID of listing being acted upon (if applicable)
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        target_user_id=target_user_id,
        target_email=target_email,
        target_car_id=target_car_id,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def log_admin_action(
    db: AsyncSession,
    admin_id: int,
    admin_email: str,
    action: str,
    target_user_id: int,
    target_email: str,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log an admin action on a user account."""
    return await log_event(
        db=db,
        action=action,
        actor_id=admin_id,
        actor_email=admin_email,
        target_user_id=target_user_id,
        target_email=target_email,
        metadata=metadata
    )


async def log_listing_event(
    db: AsyncSession,
    action: str,
    actor_id: int,
    actor_email: str,
    car_id: int,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log a listing submission or moderation decision."""
    return await log_event(
        db=db,
        action=action,
        actor_id=actor_id,
        actor_email=actor_email,
        target_car_id=car_id,
        metadata=metadata
    )


async def log_auth_event(
    db: AsyncSession,
    action: str,
    user_id: Optional[int],
    email: Optional[str],
    ip_address: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """Log an authentication event (login success/failure)."""
    return await log_event(
        db=db,
        action=action,
        actor_id=user_id,
        actor_email=email,
        ip_address=ip_address,
        metadata=metadata
    )


async def get_audit_trail(
    db: AsyncSession,
    action: Optional[str] = None,
    target_user_id: Optional[int] = None,
    target_car_id: Optional[int] = None,
    limit: int = 100
) -> List[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if action:
        query = query.where(AuditLog.action == action)
    if target_user_id:
        query = query.where(AuditLog.target_user_id == target_user_id)
    if target_car_id:
        query = query.where(AuditLog.target_car_id == target_car_id)

    result = await db.execute(query.limit(limit))
    return list(result.scalars().all())
