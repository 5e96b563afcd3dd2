"""Schemas for Deck API."""
from datetime import datetime
from typing import Any

from pydantic import Field

from stockdeck.models.deck import DeckType
from stockdeck.schemas.base import StrictBaseModel


class DeckCreate(StrictBaseModel):
    """Request to create a new deck."""

    name: str = Field(..., min_length=1, max_length=100, description="Name for the deck")
    type: DeckType = Field(DeckType.WATCHLIST, description="Kind of deck")
    description: str | None = Field(None, max_length=2000)
    is_public: bool = False
    settings: dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Tech Watchlist",
                    "type": "watchlist",
                    "description": "Large cap tech names",
                    "is_public": False,
                    "settings": {},
                }
            ]
        }
    }


class DeckUpdate(StrictBaseModel):
    """Request to update a deck. Only provided fields change."""

    name: str | None = Field(None, min_length=1, max_length=100)
    type: DeckType | None = None
    description: str | None = Field(None, max_length=2000)
    is_public: bool | None = None
    settings: dict[str, Any] | None = None


class DeckResponse(StrictBaseModel):
    """Response containing a deck."""

    id: int
    user_id: int
    name: str
    type: DeckType
    description: str | None
    is_public: bool
    settings: dict[str, Any]
    stock_count: int | None = Field(None, description="Number of stocks in the deck")
    created_at: datetime
    updated_at: datetime


class DeckPerformanceResponse(StrictBaseModel):
    """Descriptive statistics over a deck's recorded returns (percent).

    ``has_data`` is False when no stock has a recorded return; every
    metric is then null rather than zero.
    """

    deck_id: int
    has_data: bool
    sample_size: int
    average_return: float | None
    best_return: float | None
    worst_return: float | None
    total_return: float | None
    volatility: float | None
