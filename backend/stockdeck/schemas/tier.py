"""Schemas for tier entitlements and dashboard counters."""
from pydantic import Field

from stockdeck.schemas.base import StrictBaseModel


class TierLimitsResponse(StrictBaseModel):
    """Numeric limits of a tier. ``null`` means unlimited."""

    max_decks: int | None
    max_stocks_per_deck: int | None
    max_strategies_per_stock: int | None
    search_result_limit: int | None


class TierProfileResponse(StrictBaseModel):
    tier: int
    name: str
    limits: TierLimitsResponse
    features: list[str]
    notification_channels: list[str]


class TierUsageResponse(StrictBaseModel):
    """The current user's tier together with what they are using."""

    profile: TierProfileResponse
    deck_count: int
    can_create_deck: bool


class DashboardStatsResponse(StrictBaseModel):
    total_decks: int = Field(ge=0)
    total_stocks: int = Field(ge=0)
    active_strategies: int = Field(ge=0)
    unread_notifications: int = Field(ge=0)
