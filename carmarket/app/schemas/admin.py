"""
Admin API Schema Definitions.

Pydantic schemas for admin endpoints.
"""

from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import Optional, List
from carmarket.app.models.enums import UserRole
from carmarket.app.schemas.auth import UserResponse


class UserListResponse(BaseModel):
    """Schema for list users response."""
    users: List[UserResponse]
    total: int
    page: int
    page_size: int


class AdminUserUpdate(BaseModel):
    """Fields an admin may change on a user account."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=30)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class AdminActionResponse(BaseModel):
    """Schema for admin action response."""
    success: bool
    message: str
    user_id: int
    action: str
    audit_log_id: int


class UserStats(BaseModel):
    total: int
    users: int
    dealers: int
    admins: int
    active: int
    recent_registrations: int


class CarStats(BaseModel):
    total: int
    active: int
    pending: int
    sold: int
    rented: int


class StatsResponse(BaseModel):
    users: UserStats
    cars: CarStats
    pending_approval_notifications: int


class AuditLogResponse(BaseModel):
    """Schema for audit log entry."""
    id: int
    actor_id: Optional[int]
    actor_email: Optional[str]
    action: str
    target_user_id: Optional[int]
    target_email: Optional[str]
    target_car_id: Optional[int]
    meta_data: Optional[dict]
    ip_address: Optional[str]
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Schema for audit trail list."""
    logs: List[AuditLogResponse]
    total: int
