"""
Authentication dependencies for FastAPI.

This module provides dependencies for protecting routes with JWT authentication.
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from carmarket.app.core.jwt import decode_access_token
from carmarket.app.core.token_revocation import is_token_revoked, are_user_tokens_revoked
from carmarket.app.db.session import get_db
from carmarket.app.models.user import User

# HTTP Bearer security schemes
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _authenticate(token: str, db: AsyncSession) -> User:
    # 1. Decode and validate JWT
    payload = decode_access_token(token)
    if payload is None:
        raise _unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise _unauthorized("Invalid token payload")

    # 2. Check if this specific token has been revoked (logout)
    if await is_token_revoked(token):
        raise _unauthorized("Token has been revoked")

    # 3. Check if all user tokens have been revoked (user deactivated)
    if await are_user_tokens_revoked(user_id):
        raise _unauthorized("User access has been revoked")

    # 4. Real-time database check: user still exists and is active
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency for JWT authentication.

    Returns the authenticated, active User loaded in the request's session.

    Raises:
        HTTPException: 401 if authentication fails, 403 if the account is inactive
    """
    return await _authenticate(credentials.credentials, db)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Like get_current_user, but anonymous requests get None.

    A token that is present but invalid is still rejected.
    """
    if credentials is None:
        return None
    return await _authenticate(credentials.credentials, db)
