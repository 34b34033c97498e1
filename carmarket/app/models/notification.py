"""
Notification Database Model.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Enum, Index
from sqlalchemy.sql import func
from carmarket.app.db.session import Base
import enum


class NotificationType(str, enum.Enum):
    CAR_APPROVAL_PENDING = "car_approval_pending"
    CAR_APPROVED = "car_approved"
    CAR_REJECTED = "car_rejected"


class Notification(Base):
    """
    In-App Notification.

    related_car_id is advisory: it has no foreign key so a listing can be
    deleted while notifications about it remain. metadata_payload holds a
    snapshot (car title, owner name, ...) taken when the notification was
    created.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient_read", "recipient_id", "is_read", "created_at"),
        Index("ix_notifications_type_action", "type", "action_required"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Recipient / sender
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    related_car_id = Column(Integer, nullable=True, index=True)

    # Content
    type = Column(Enum(NotificationType), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    metadata_payload = Column(JSON, nullable=True)

    # State
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    action_required = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, recipient={self.recipient_id}, type='{self.type.value}')>"
