"""Base provider interface and data models for quote providers.

This module defines the contract that all market data providers must implement.
Providers raise on failure (APIError, SymbolNotFoundError); degrading to
fallback data is the QuoteGateway's job, not the provider's.
"""
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any

UNKNOWN_SECTOR = "Unknown"


@dataclass(frozen=True)
class Quote:
    """Normalized quote for one symbol.

    ``is_fallback`` marks placeholder data returned when the upstream provider
    could not be reached; its price is 0.0 and must not be stored as a
    performance snapshot.
    """

    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    sector: str = UNKNOWN_SECTOR
    market_cap: float | None = None
    is_fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def fallback(cls, symbol: str) -> "Quote":
        """Placeholder quote used when market data is unavailable."""
        symbol = symbol.upper()
        return cls(
            symbol=symbol,
            name=f"{symbol} Corp.",
            price=0.0,
            change=0.0,
            change_percent=0.0,
            sector=UNKNOWN_SECTOR,
            is_fallback=True,
        )


@dataclass(frozen=True)
class SymbolMatch:
    """A search hit before it has been priced."""

    symbol: str
    name: str


def percent_change(current: float, previous: float) -> float:
    """Percentage change from ``previous`` to ``current`` (0.0 if previous <= 0)."""
    if previous <= 0:
        return 0.0
    return (current - previous) / previous * 100


class QuoteProviderInterface(ABC):
    """
    Abstract interface for quote providers.

    Implementations: PolygonQuoteProvider (REST via httpx),
    YahooQuoteProvider (yfinance) and MockQuoteProvider (deterministic data).
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider (e.g., 'polygon')."""
        pass

    @property
    def is_available(self) -> bool:
        """Whether the provider is configured well enough to try upstream calls."""
        return True

    @abstractmethod
    async def get_quote(self, symbol: str) -> Quote:
        """
        Get the latest quote for a symbol.

        Args:
            symbol: Normalized stock symbol (e.g., 'AAPL')

        Returns:
            Quote with price, change and descriptive fields

        Raises:
            SymbolNotFoundError: If symbol doesn't exist
            APIError: If provider API fails
        """
        pass

    @abstractmethod
    async def search_symbols(self, query: str, limit: int) -> list[SymbolMatch]:
        """
        Find symbols matching a free-text query.

        Raises:
            APIError: If provider API fails
        """
        pass

    @abstractmethod
    async def top_movers(self, limit: int) -> list[Quote]:
        """
        Get today's top gaining stocks.

        Raises:
            APIError: If provider API fails
        """
        pass

    async def close(self) -> None:
        """Release network resources held by the provider."""
        return None
