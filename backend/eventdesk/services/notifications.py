"""Notification Service — per-user inbox plus the fan-out helper other services use.

Invariants:
    - A user only ever reads or marks their own notifications
    - fan_out() adds rows to the session without committing; the caller's
      commit makes the notifications visible together with the change
      that produced them
"""

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventdesk.core.errors import ErrorContext, PermissionDeniedError
from eventdesk.models.notification import Notification
from eventdesk.models.user import User
from eventdesk.services.guards import get_or_404

logger = logging.getLogger(__name__)


def fan_out(db: AsyncSession, rows: list[dict]) -> list[Notification]:
    """Stage one Notification per row dict (user_id, type, title, message, ...)."""
    notifications = [
        Notification(
            user_id=row["user_id"],
            type=row["type"],
            title=row["title"],
            message=row["message"],
            link=row.get("link"),
            metadata_=row.get("metadata", {}),
        )
        for row in rows
    ]
    db.add_all(notifications)
    return notifications


class NotificationService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_notifications(
        self, user: User, unread_only: bool = False, limit: int = 50,
    ) -> list[Notification]:
        query = select(Notification).where(Notification.user_id == user.id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        result = await self.db.execute(
            query.order_by(Notification.created_at.desc()).limit(limit),
        )
        return list(result.scalars().all())

    async def unread_count(self, user: User) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user.id,
                Notification.is_read.is_(False),
            ),
        )
        return int(result.scalar_one())

    async def mark_read(self, notification_id: UUID, user: User) -> Notification:
        notification = await get_or_404(
            self.db, Notification, notification_id, "Notification",
        )
        if notification.user_id != user.id:
            raise PermissionDeniedError(
                "Cannot modify another user's notification",
                ErrorContext(user_id=str(user.id)),
            )
        notification.is_read = True
        await self.db.commit()
        await self.db.refresh(notification)
        return notification

    async def mark_all_read(self, user: User) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(
                Notification.user_id == user.id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True),
        )
        await self.db.commit()
        logger.info(
            f"Marked {result.rowcount} notifications read",
            extra={"user_id": user.id},
        )
        return result.rowcount
