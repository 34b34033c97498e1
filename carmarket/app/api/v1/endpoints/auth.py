"""
Authentication API endpoints.

Provides register, login, logout and current user endpoints for the web client.
"""

from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from carmarket.app.db.session import get_db
from carmarket.app.models.user import User
from carmarket.app.models.enums import UserRole
from carmarket.app.schemas.auth import UserRegister, UserLogin, TokenResponse, UserResponse
from carmarket.app.core.security import get_password_hash, verify_password
from carmarket.app.core.jwt import create_access_token
from carmarket.app.core.dependencies import get_current_user, security
from carmarket.app.core.token_revocation import revoke_token
from carmarket.app.services.audit import log_auth_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_token(user: User) -> TokenResponse:
    jwt_payload = {
        "sub": user.email,
        "user_id": user.id,
        "role": user.role.value,
    }
    return TokenResponse(
        access_token=create_access_token(data=jwt_payload),
        token_type="bearer",
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new user.

    - ADMIN role cannot be created via API.
    - Emails are unique (case-insensitive).
    """
    if user_data.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin users cannot be registered via API"
        )

    email = user_data.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists"
        )

    new_user = User(
        email=email,
        first_name=user_data.first_name.strip(),
        last_name=user_data.last_name.strip(),
        phone=user_data.phone,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role or UserRole.USER,
        business_name=user_data.business_name,
        is_active=True,
    )

    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    token = _issue_token(new_user)

    await log_auth_event(
        db=db,
        action=AuditAction.USER_REGISTERED,
        user_id=token.user_id,
        email=token.email,
        ip_address=request.client.host if request.client else None,
        metadata={"role": token.role.value}
    )

    return token


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Logs successful and failed login attempts for security monitoring.
    """
    email = credentials.email.lower()
    ip_address = request.client.host if request.client else None

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id if user else None,
            email=email,
            ip_address=ip_address,
            metadata={"reason": "Invalid password" if user else "User not found"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        await log_auth_event(
            db=db,
            action=AuditAction.LOGIN_FAILED,
            user_id=user.id,
            email=email,
            ip_address=ip_address,
            metadata={"reason": "Account is deactivated"}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated"
        )

    user.last_login = datetime.utcnow()
    await db.commit()
    await db.refresh(user)

    token = _issue_token(user)

    await log_auth_event(
        db=db,
        action=AuditAction.LOGIN_SUCCESS,
        user_id=token.user_id,
        email=token.email,
        ip_address=ip_address
    )

    return token


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """
    Get current authenticated user information.

    Requires valid JWT token in Authorization header.
    """
    return UserResponse.model_validate(current_user)


@router.post("/logout")
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the presented token."""
    user_id, email = current_user.id, current_user.email
    await revoke_token(credentials.credentials, user_id)

    await log_auth_event(db=db, action=AuditAction.LOGOUT, user_id=user_id, email=email)

    return {"message": "Logged out successfully"}
