"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication and profile endpoints.
"""

from pydantic import BaseModel, EmailStr, Field, HttpUrl
from datetime import datetime
from typing import Optional, Dict
from carmarket.app.models.enums import UserRole


class UserRegister(BaseModel):
    """
    Schema for user registration.

    Used by POST /auth/register endpoint.
    Default role is USER; DEALER may be requested, ADMIN may not.
    """
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    phone: Optional[str] = Field(None, max_length=30, pattern=r"^\+?[\d\s\-()]+$")
    role: Optional[UserRole] = Field(default=UserRole.USER, description="User role (defaults to user)")
    business_name: Optional[str] = Field(None, max_length=200, description="Dealer business name")


class UserLogin(BaseModel):
    """Schema for user login (email + password)."""
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class TokenResponse(BaseModel):
    """
    Schema for JWT token response.

    Returned by successful login/register operations.
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    full_name: str
    role: UserRole = Field(..., description="User role")


class UserResponse(BaseModel):
    """
    Schema for user information response.

    Used by GET /auth/me and the profile endpoints.
    """
    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str
    phone: Optional[str] = None
    role: UserRole
    business_name: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Schema for updating the current user's profile."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    phone: Optional[str] = Field(None, max_length=30, pattern=r"^\+?[\d\s\-()]+$")
    business_name: Optional[str] = Field(None, max_length=200)


class PasswordChange(BaseModel):
    """Schema for changing the current user's password."""
    current_password: str
    new_password: str = Field(..., min_length=6)


class BusinessAddress(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class DealerInfoUpdate(BaseModel):
    """
    Schema for a dealer updating their business details.

    Used by PUT /users/dealer-info. Only the keys sent are applied.
    """
    business_name: str = Field(..., min_length=2, max_length=100)
    business_license: Optional[str] = Field(None, min_length=1, max_length=100)
    business_address: Optional[BusinessAddress] = None
    website: Optional[HttpUrl] = None
    description: Optional[str] = Field(None, max_length=1000)


class DealerInfoResponse(BaseModel):
    business_name: Optional[str] = None
    business_license: Optional[str] = None
    business_address: Optional[Dict[str, Optional[str]]] = None
    website: Optional[str] = None
    description: Optional[str] = Field(None, validation_alias="business_description")

    class Config:
        from_attributes = True


class AccountDelete(BaseModel):
    """Password confirmation for DELETE /users/account."""
    password: str = Field(..., min_length=1)
