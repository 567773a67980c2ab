"""
Notification Service.

Handles creation, dispatch and read state of in-app notifications.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy import update

from marketplace_backend.app.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Notification:
        """Create a single notification."""
        notif = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            metadata_payload=metadata
        )
        db.add(notif)
        await db.flush()  # Caller commits usually
        return notif

    @staticmethod
    async def dispatch(
        session_factory: async_sessionmaker,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Deliver one notification in its own session.

        Runs as a background task after the response, once the triggering
        ledger write is committed. Failures are logged and
        reported through the return value only.
        """
        try:
            async with session_factory() as db:
                await NotificationService.create_notification(
                    db, user_id, title, message, type, metadata
                )
                await db.commit()
        except Exception:
            logger.exception("Failed to deliver %s notification to user %s", type.value, user_id)
            return False

        logger.info("Delivered %s notification to user %s", type.value, user_id)
        return True

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, user_id: int) -> bool:
        """Mark a notification as read."""
        stmt = update(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).values(
            is_read=True,
            read_at=datetime.now(timezone.utc)
        )
        result = await db.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_id: int) -> int:
        """Mark all notifications for user as read."""
        stmt = update(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read.is_(False)
        ).values(
            is_read=True,
            read_at=datetime.now(timezone.utc)
        )
        result = await db.execute(stmt)
        return result.rowcount
