"""
User profile endpoints.
"""

import time
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from carmarket.app.db.session import get_db
from carmarket.app.models.user import User
from carmarket.app.models.enums import UserRole
from carmarket.app.schemas.auth import (
    UserResponse, ProfileUpdate, PasswordChange, DealerInfoUpdate, DealerInfoResponse, AccountDelete
)
from carmarket.app.core.dependencies import get_current_user
from carmarket.app.core.security import get_password_hash, verify_password
from carmarket.app.core.token_revocation import revoke_all_user_tokens
from carmarket.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update name, phone and business name of the current user."""
    for field, value in profile.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value.strip() if isinstance(value, str) else value)

    await db.commit()
    await db.refresh(current_user)
    return UserResponse.model_validate(current_user)


@router.put("/change-password")
async def change_password(
    passwords: PasswordChange,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Change the current user's password.

    Raises:
        400 if the current password is wrong
    """
    if not verify_password(passwords.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    user_id, email = current_user.id, current_user.email
    current_user.hashed_password = get_password_hash(passwords.new_password)
    await db.commit()

    await log_event(db=db, action=AuditAction.PASSWORD_CHANGED, actor_id=user_id, actor_email=email)

    return {"message": "Password updated successfully"}


@router.put("/dealer-info", response_model=DealerInfoResponse)
async def update_dealer_info(
    info: DealerInfoUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update the business details shown on a dealer's listings.

    Raises:
        403 if the current user is not a dealer
    """
    if current_user.role != UserRole.DEALER:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Dealer access required"
        )

    changes = info.model_dump(exclude_unset=True, mode="json")
    if "description" in changes:
        changes["business_description"] = changes.pop("description")

    user_id, email = current_user.id, current_user.email
    for field, value in changes.items():
        setattr(current_user, field, value.strip() if isinstance(value, str) else value)

    await db.commit()
    await db.refresh(current_user)
    response = DealerInfoResponse.model_validate(current_user)

    await log_event(
        db=db,
        action=AuditAction.DEALER_INFO_UPDATED,
        actor_id=user_id,
        actor_email=email,
        metadata={"fields": sorted(changes)}
    )

    return response


@router.delete("/account")
async def delete_account(
    confirmation: AccountDelete,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Close the current user's account.

    The account is deactivated rather than removed, its email is released
    for re-registration and every token it holds stops working.

    Raises:
        400 if the password is wrong
    """
    if not verify_password(confirmation.password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect password"
        )

    user_id, email = current_user.id, current_user.email
    current_user.is_active = False
    current_user.email = f"deleted_{int(time.time() * 1000)}_{email}"
    await db.commit()

    await revoke_all_user_tokens(user_id)

    await log_event(
        db=db,
        action=AuditAction.ACCOUNT_DELETED,
        actor_id=user_id,
        actor_email=email,
        target_user_id=user_id,
        target_email=email
    )

    return {"message": "Account deleted successfully"}
