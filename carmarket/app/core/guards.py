"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from fastapi import Depends, HTTPException, status
from carmarket.app.core.exceptions import InsufficientPermissionsError
from carmarket.app.models.enums import UserRole
from carmarket.app.models.user import User
from carmarket.app.core.dependencies import get_current_user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Dependency for admin-only endpoints.

    Returns:
        The admin User, raises 403 otherwise
    """
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user


def is_owner_or_admin(resource_owner_id: int, current_user: User) -> bool:
    """Admins can access everything, other users only what they own."""
    if current_user.role == UserRole.ADMIN:
        return True
    return current_user.id == resource_owner_id


class OwnershipGuard:
    """
    Ownership guard for listing access.

    Usage:
        ownership_guard = OwnershipGuard()

        car = await listing_store.find_by_id(db, car_id)
        ownership_guard.enforce(car.owner_id, current_user, "car listing")
    """

    def enforce(
        self,
        resource_owner_id: int,
        current_user: User,
        resource_name: str = "resource",
        allow_admin: bool = True
    ):
        """
        Enforce ownership validation, raise 403 if access denied.

        Raises:
            InsufficientPermissionsError (403) if ownership check fails
        """
        allowed = (
            is_owner_or_admin(resource_owner_id, current_user)
            if allow_admin
            else current_user.id == resource_owner_id
        )
        if not allowed:
            raise InsufficientPermissionsError(
                f"Access denied. You do not have permission to modify this {resource_name}."
            )
