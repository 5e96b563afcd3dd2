"""Mock quote provider for testing.

Generates deterministic quotes without hitting external APIs.
Useful for unit tests, integration tests, and development environments.
"""
import logging

from stockdeck.core.exceptions import SymbolNotFoundError
from stockdeck.providers.base import Quote, QuoteProviderInterface, SymbolMatch

logger = logging.getLogger(__name__)

MOCK_UNIVERSE: dict[str, tuple[str, str]] = {
    "AAPL": ("Apple Inc.", "Technology"),
    "AMZN": ("Amazon.com Inc.", "Consumer Cyclical"),
    "GOOGL": ("Alphabet Inc.", "Communication Services"),
    "JPM": ("JPMorgan Chase & Co.", "Financial Services"),
    "META": ("Meta Platforms Inc.", "Communication Services"),
    "MSFT": ("Microsoft Corporation", "Technology"),
    "NVDA": ("NVIDIA Corporation", "Technology"),
    "TSLA": ("Tesla Inc.", "Consumer Cyclical"),
    "XOM": ("Exxon Mobil Corporation", "Energy"),
}


class MockQuoteProvider(QuoteProviderInterface):
    """
    Mock quote provider for testing.

    Prices are derived from the symbol's characters so the same symbol
    always gets the same quote. Unknown symbols raise SymbolNotFoundError
    unless ``strict`` is False.
    """

    def __init__(self, strict: bool = False):
        self.strict = strict

    @property
    def provider_name(self) -> str:
        return "mock"

    def _quote_for(self, symbol: str) -> Quote:
        name, sector = MOCK_UNIVERSE.get(symbol, (f"{symbol} Corporation", "Technology"))
        seed = sum(ord(c) for c in symbol)
        price = round(50 + seed % 200 + (seed % 100) / 100, 2)
        change_percent = round(((seed % 21) - 10) / 2, 2)
        change = round(price * change_percent / 100, 2)
        return Quote(
            symbol=symbol,
            name=name,
            price=price,
            change=change,
            change_percent=change_percent,
            sector=sector,
            market_cap=1_000_000_000.0,
        )

    async def get_quote(self, symbol: str) -> Quote:
        symbol = symbol.upper().strip()
        if self.strict and symbol not in MOCK_UNIVERSE:
            raise SymbolNotFoundError(f"Symbol '{symbol}' not found")
        return self._quote_for(symbol)

    async def search_symbols(self, query: str, limit: int) -> list[SymbolMatch]:
        needle = query.upper().strip()
        matches = [
            SymbolMatch(symbol=symbol, name=name)
            for symbol, (name, _sector) in sorted(MOCK_UNIVERSE.items())
            if needle in symbol or needle in name.upper()
        ]
        return matches[:limit]

    async def top_movers(self, limit: int) -> list[Quote]:
        quotes = [self._quote_for(symbol) for symbol in MOCK_UNIVERSE]
        quotes.sort(key=lambda q: q.change_percent, reverse=True)
        logger.info(f"Generated {min(limit, len(quotes))} mock top movers")
        return quotes[:limit]
