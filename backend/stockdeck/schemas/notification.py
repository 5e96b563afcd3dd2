"""Schemas for notifications."""
from datetime import datetime
from typing import Any

from pydantic import Field

from stockdeck.schemas.base import StrictBaseModel


class NotificationCreate(StrictBaseModel):
    type: str = Field("info", min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class NotificationResponse(StrictBaseModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    data: dict[str, Any]
    is_read: bool
    created_at: datetime
