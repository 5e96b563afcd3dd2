"""Yahoo Finance quote provider implementation.

This provider wraps the yfinance library, running its blocking calls in the
default executor and translating results into Quote objects.
"""
import asyncio
import logging
from typing import Any

import yfinance as yf

from stockdeck.core.exceptions import APIError, SymbolNotFoundError
from stockdeck.providers.base import (
    UNKNOWN_SECTOR,
    Quote,
    QuoteProviderInterface,
    SymbolMatch,
    percent_change,
)

logger = logging.getLogger(__name__)


class YahooQuoteProvider(QuoteProviderInterface):
    """
    Yahoo Finance quote provider.

    Free and keyless; used when no Polygon key is available.
    """

    @property
    def provider_name(self) -> str:
        return "yahoo_finance"

    async def get_quote(self, symbol: str) -> Quote:
        """Get latest quote from Yahoo Finance."""
        symbol = symbol.upper().strip()

        try:
            loop = asyncio.get_running_loop()

            ticker = await loop.run_in_executor(None, lambda: yf.Ticker(symbol))
            info = await loop.run_in_executor(None, lambda: ticker.info)

            if not info or "symbol" not in info:
                raise SymbolNotFoundError(f"Symbol '{symbol}' not found")

            fast_info = await loop.run_in_executor(None, lambda: ticker.fast_info)
            price = fast_info.get("lastPrice") or info.get("regularMarketPrice")
            previous_close = info.get("previousClose") or fast_info.get("previousClose")
            if price is None:
                raise SymbolNotFoundError(f"No price available for '{symbol}'")

            price = float(price)
            previous_close = float(previous_close) if previous_close else price
            return Quote(
                symbol=symbol,
                name=info.get("longName") or info.get("shortName") or symbol,
                price=price,
                change=price - previous_close,
                change_percent=percent_change(price, previous_close),
                sector=info.get("sector") or UNKNOWN_SECTOR,
                market_cap=info.get("marketCap"),
            )

        except SymbolNotFoundError:
            raise
        except Exception as e:
            logger.error(f"Error fetching quote for {symbol}: {e}")
            raise APIError(f"Failed to fetch quote for {symbol}: {e}")

    async def search_symbols(self, query: str, limit: int) -> list[SymbolMatch]:
        try:
            loop = asyncio.get_running_loop()
            search = await loop.run_in_executor(
                None, lambda: yf.Search(query, max_results=limit, news_count=0)
            )
            results: list[dict[str, Any]] = search.quotes or []
        except Exception as e:
            logger.error(f"Yahoo search failed for {query!r}: {e}")
            raise APIError(f"Yahoo search failed: {e}")

        return [
            SymbolMatch(
                symbol=item["symbol"],
                name=item.get("longname") or item.get("shortname") or item["symbol"],
            )
            for item in results
            if item.get("symbol") and item.get("quoteType") in (None, "EQUITY", "ETF")
        ][:limit]

    async def top_movers(self, limit: int) -> list[Quote]:
        try:
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(
                None, lambda: yf.screen("day_gainers", count=limit)
            )
        except Exception as e:
            logger.error(f"Yahoo day_gainers screen failed: {e}")
            raise APIError(f"Yahoo top movers failed: {e}")

        quotes = []
        for item in (response or {}).get("quotes", [])[:limit]:
            symbol = item.get("symbol")
            if not symbol:
                continue
            quotes.append(
                Quote(
                    symbol=symbol,
                    name=item.get("longName") or item.get("shortName") or symbol,
                    price=float(item.get("regularMarketPrice") or 0.0),
                    change=float(item.get("regularMarketChange") or 0.0),
                    change_percent=float(item.get("regularMarketChangePercent") or 0.0),
                    sector=item.get("sector") or UNKNOWN_SECTOR,
                    market_cap=item.get("marketCap"),
                )
            )
        return quotes
