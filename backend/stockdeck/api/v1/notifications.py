"""API endpoints for user notifications."""

from fastapi import APIRouter, Depends, Query, status

from stockdeck.core.deps import get_current_user_id, get_notification_service
from stockdeck.models.notification import Notification
from stockdeck.schemas.notification import NotificationCreate, NotificationResponse
from stockdeck.services.notification_service import NotificationService

router = APIRouter()


def _to_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        user_id=notification.user_id,
        type=notification.type,
        title=notification.title,
        message=notification.message,
        data=notification.data or {},
        is_read=notification.is_read,
        created_at=notification.created_at,
    )


@router.get(
    "",
    response_model=list[NotificationResponse],
    summary="List Notifications",
    description="Notifications of the current user, newest first.",
    operation_id="list_notifications",
)
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    user_id: int = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> list[NotificationResponse]:
    notifications = await service.list_notifications(user_id, unread_only=unread_only, limit=limit)
    return [_to_response(n) for n in notifications]


@router.post(
    "",
    response_model=NotificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Notification",
    operation_id="create_notification",
)
async def create_notification(
    request: NotificationCreate,
    user_id: int = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    notification = await service.create_notification(
        user_id,
        type=request.type,
        title=request.title,
        message=request.message,
        data=request.data,
    )
    return _to_response(notification)


@router.put(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark Notification Read",
    operation_id="mark_notification_read",
)
async def mark_read(
    notification_id: int,
    user_id: int = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationResponse:
    notification = await service.mark_read(user_id, notification_id)
    return _to_response(notification)
