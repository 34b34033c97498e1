"""
Notification Service.

Handles creation and state management of notifications.
"""

import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, desc
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime
from typing import Optional, Dict, Any, List

from carmarket.app.core.exceptions import NotificationDeliveryError
from carmarket.app.models.notification import Notification, NotificationType
from carmarket.app.schemas.notification import NotificationCreate

logger = logging.getLogger("carmarket.notifications")


class NotificationService:

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        recipient_id: int,
        title: str,
        message: str,
        type: NotificationType,
        sender_id: Optional[int] = None,
        related_car_id: Optional[int] = None,
        action_required: bool = False,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Notification:
        """Create a single notification."""
        notif = Notification(
            recipient_id=recipient_id,
            sender_id=sender_id,
            related_car_id=related_car_id,
            type=type,
            title=title,
            message=message,
            action_required=action_required,
            is_read=False,
            metadata_payload=metadata
        )
        db.add(notif)
        await db.flush()  # Caller commits
        return notif

    @staticmethod
    async def create_many(db: AsyncSession, notifications: List[NotificationCreate]) -> List[Notification]:
        """
        Create a batch of notifications, each committed on its own.

        A failed write does not undo the ones already committed. If any
        write fails, NotificationDeliveryError is raised after the whole
        batch has been attempted, carrying the records that were created.
        """
        created: List[Notification] = []
        failed = 0

        for item in notifications:
            notif = Notification(**item.model_dump(), is_read=False)
            db.add(notif)
            try:
                await db.commit()
                await db.refresh(notif)
            except SQLAlchemyError:
                await db.rollback()
                failed += 1
                logger.exception(
                    "Failed to create %s notification for user %s",
                    item.type.value, item.recipient_id
                )
                continue
            created.append(notif)

        if failed:
            raise NotificationDeliveryError(
                f"{failed} of {len(notifications)} notifications could not be created",
                created=created,
                failed=failed
            )
        return created

    @staticmethod
    async def mark_resolved(
        db: AsyncSession,
        related_car_id: int,
        type: NotificationType = NotificationType.CAR_APPROVAL_PENDING
    ) -> int:
        """
        Retire actionable notifications about a listing.

        Matching nothing is fine and returns 0.
        """
        stmt = update(Notification).where(
            Notification.related_car_id == related_car_id,
            Notification.type == type,
            Notification.action_required == True
        ).values(
            action_required=False,
            is_read=True,
            read_at=datetime.utcnow()
        ).execution_options(synchronize_session=False)
        result = await db.execute(stmt)
        return result.rowcount

    @staticmethod
    async def find_for_recipient(
        db: AsyncSession,
        recipient_id: int,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        """List a user's notifications, newest first."""
        query = select(Notification).where(Notification.recipient_id == recipient_id)
        if unread_only:
            query = query.where(Notification.is_read == False)
        query = query.order_by(desc(Notification.created_at), desc(Notification.id)).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def find_pending_approvals(db: AsyncSession, limit: int = 100) -> List[Notification]:
        """All approval requests still waiting for an admin decision."""
        query = select(Notification).where(
            Notification.type == NotificationType.CAR_APPROVAL_PENDING,
            Notification.action_required == True
        ).order_by(desc(Notification.created_at), desc(Notification.id)).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def count_pending_approvals(db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count(Notification.id)).where(
                Notification.type == NotificationType.CAR_APPROVAL_PENDING,
                Notification.action_required == True
            )
        )
        return result.scalar()

    @staticmethod
    async def unread_count(db: AsyncSession, recipient_id: int) -> int:
        result = await db.execute(
            select(func.count(Notification.id)).where(
                Notification.recipient_id == recipient_id,
                Notification.is_read == False
            )
        )
        return result.scalar()

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, recipient_id: int) -> bool:
        """Mark a notification as read."""
        stmt = update(Notification).where(
            Notification.id == notification_id,
            Notification.recipient_id == recipient_id
        ).values(
            is_read=True,
            read_at=datetime.utcnow()
        ).execution_options(synchronize_session=False)
        result = await db.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def mark_all_read(db: AsyncSession, recipient_id: int) -> int:
        """Mark all notifications for user as read."""
        stmt = update(Notification).where(
            Notification.recipient_id == recipient_id,
            Notification.is_read == False
        ).values(
            is_read=True,
            read_at=datetime.utcnow()
        ).execution_options(synchronize_session=False)
        result = await db.execute(stmt)
        return result.rowcount
