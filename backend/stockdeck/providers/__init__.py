"""Quote provider abstractions and implementations.

This package provides a provider-agnostic interface for fetching quotes.

Available providers:
- PolygonQuoteProvider: Polygon.io REST API (requires API key)
- YahooQuoteProvider: Free market data via Yahoo Finance
- MockQuoteProvider: Deterministic data for testing
"""

from stockdeck.providers.base import (
    Quote,
    QuoteProviderInterface,
    SymbolMatch,
)
from stockdeck.providers.mock import MockQuoteProvider
from stockdeck.providers.polygon import PolygonQuoteProvider
from stockdeck.providers.yahoo import YahooQuoteProvider

__all__ = [
    "Quote",
    "QuoteProviderInterface",
    "SymbolMatch",
    "PolygonQuoteProvider",
    "YahooQuoteProvider",
    "MockQuoteProvider",
]
