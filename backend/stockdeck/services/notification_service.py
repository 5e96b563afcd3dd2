"""User notifications: listing, creation and read tracking."""
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockdeck.core.exceptions import DataValidationError, NotificationNotFoundError
from stockdeck.models.base import utc_now
from stockdeck.models.notification import Notification
from stockdeck.repositories.notification_repository import NotificationRepository
from stockdeck.utils.structured_logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Reads and writes the notifications table for one process."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def list_notifications(
        self, user_id: int, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        async with self.session_factory() as session:
            repo = NotificationRepository(session)
            return list(await repo.get_by_user(user_id, unread_only=unread_only, limit=limit))

    async def create_notification(
        self,
        user_id: int,
        type: str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        if not title.strip() or not message.strip():
            raise DataValidationError("Notification title and message must not be empty")

        async with self.session_factory() as session:
            async with session.begin():
                notification = await NotificationRepository(session).create(
                    user_id=user_id,
                    type=type,
                    title=title.strip(),
                    message=message.strip(),
                    data=dict(data or {}),
                    is_read=False,
                    created_at=utc_now(),
                )

        logger.info("Notification created", user_id=user_id, notification_type=type)
        return notification

    async def mark_read(self, user_id: int, notification_id: int) -> Notification:
        """Mark a notification as read. Marking twice is a no-op.

        Raises:
            NotificationNotFoundError: If it does not exist for this user
        """
        async with self.session_factory() as session:
            async with session.begin():
                repo = NotificationRepository(session)
                notification = await repo.get_by_id_and_user(notification_id, user_id)
                if notification is None:
                    raise NotificationNotFoundError(notification_id)
                notification.is_read = True
                return await repo.save(notification)

    async def count_unread(self, user_id: int) -> int:
        async with self.session_factory() as session:
            return await NotificationRepository(session).count_unread(user_id)
