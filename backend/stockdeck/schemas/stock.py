"""Schemas for deck stock endpoints."""
from datetime import datetime
from typing import Any

from pydantic import Field

from stockdeck.models.deck_stock import StockStatus
from stockdeck.schemas.base import StrictBaseModel
from stockdeck.schemas.market import QuoteResponse


class StockAdd(StrictBaseModel):
    """Request to add a stock to a deck."""

    symbol: str = Field(..., min_length=1, max_length=20, description="Ticker symbol")
    notes: str | None = None
    target_price: float | None = Field(None, ge=0)
    stop_loss: float | None = Field(None, ge=0)
    position_size: float | None = Field(None, ge=0)
    tags: list[str] = Field(default_factory=list, max_length=50)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "symbol": "AAPL",
                    "notes": "Earnings next week",
                    "target_price": 250.0,
                    "tags": ["tech"],
                }
            ]
        }
    }


class StockUpdate(StrictBaseModel):
    """Request to update a stock's metadata or status."""

    notes: str | None = None
    target_price: float | None = Field(None, ge=0)
    stop_loss: float | None = Field(None, ge=0)
    position_size: float | None = Field(None, ge=0)
    tags: list[str] | None = Field(None, max_length=50)
    status: StockStatus | None = None


class ApplyStrategyRequest(StrictBaseModel):
    """Request to apply a strategy to a stock."""

    strategy_id: str = Field(..., min_length=1, max_length=50, examples=["ma-cross"])


class StockResponse(StrictBaseModel):
    """Response containing one stock of a deck."""

    id: int
    deck_id: int
    symbol: str
    status: StockStatus
    notes: str | None
    target_price: float | None
    stop_loss: float | None
    position_size: float | None
    tags: list[str]
    applied_strategy_ids: list[str]
    performance_snapshot: dict[str, Any] | None
    added_at: datetime
    last_updated_at: datetime
    quote: QuoteResponse | None = Field(None, description="Present when quotes were requested")


class RefreshResponse(StrictBaseModel):
    """Result of a performance refresh.

    ``stale`` is true when market data was unavailable and the previous
    snapshot was kept.
    """

    stock: StockResponse
    stale: bool
    warning: str | None = None
