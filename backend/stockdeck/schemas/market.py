"""Schemas for quotes, search and recommendations."""
from pydantic import Field

from stockdeck.schemas.base import StrictBaseModel


class QuoteResponse(StrictBaseModel):
    """Normalized quote for a symbol.

    ``is_fallback`` marks a placeholder served while market data is
    unavailable; its price is not a real price.
    """

    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    sector: str
    market_cap: float | None = None
    is_fallback: bool = False


class SearchResponse(StrictBaseModel):
    query: str
    limit: int = Field(description="Result limit applied after tier clamping")
    results: list[QuoteResponse]


class RecommendationResponse(StrictBaseModel):
    """A stock suggested to the user."""

    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    sector: str
    confidence: str = Field(description="High, Medium or Low")
    reason: str
    score: float
