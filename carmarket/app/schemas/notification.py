"""
Notification Schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Dict, Any, List
from carmarket.app.models.notification import NotificationType


class NotificationCreate(BaseModel):
    """Unsaved notification, as built by the moderation workflow."""
    recipient_id: int
    type: NotificationType
    title: str
    message: str
    sender_id: Optional[int] = None
    related_car_id: Optional[int] = None
    action_required: bool = False
    metadata_payload: Optional[Dict[str, Any]] = None


class NotificationResponse(BaseModel):
    id: int
    type: NotificationType
    title: str
    message: str
    recipient_id: int
    sender_id: Optional[int]
    related_car_id: Optional[int]
    metadata_payload: Optional[Dict[str, Any]]
    is_read: bool
    action_required: bool
    created_at: datetime
    read_at: Optional[datetime]

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    count: int


class UnreadCountResponse(BaseModel):
    count: int
