"""Repository for Notification database operations."""

from collections.abc import Sequence

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from stockdeck.models.notification import Notification
from stockdeck.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification database operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    async def get_by_user(
        self,
        user_id: int,
        unread_only: bool = False,
        limit: int = 50,
    ) -> Sequence[Notification]:
        """Get a user's notifications, newest first."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        result = await self.session.execute(query)
        return result.scalars().all()

    async def get_by_id_and_user(self, notification_id: int, user_id: int) -> Notification | None:
        result = await self.session.execute(
            select(Notification)
            .where(Notification.id == notification_id)
            .where(Notification.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def count_unread(self, user_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id)
            .where(Notification.is_read.is_(False))
        )
        return result.scalar() or 0
