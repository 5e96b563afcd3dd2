"""Schemas for the strategy catalog."""
from typing import Any

from stockdeck.schemas.base import StrictBaseModel


class StrategyResponse(StrictBaseModel):
    id: int
    key: str
    name: str
    description: str | None
    config: dict[str, Any]
    is_active: bool
