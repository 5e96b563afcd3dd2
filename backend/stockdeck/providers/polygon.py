"""Polygon.io quote provider implementation.

Wraps the Polygon REST API:
- /v2/last/trade/{symbol}: latest trade price
- /v2/aggs/ticker/{symbol}/prev: previous close for change calculation
- /v3/reference/tickers: symbol search and company details
- /v2/snapshot/locale/us/markets/stocks/gainers: top movers
"""
import asyncio
import logging
from typing import Any

import httpx

from stockdeck.core.config import get_settings
from stockdeck.core.exceptions import APIError, SymbolNotFoundError
from stockdeck.providers.base import (
    UNKNOWN_SECTOR,
    Quote,
    QuoteProviderInterface,
    SymbolMatch,
    percent_change,
)

logger = logging.getLogger(__name__)


class PolygonQuoteProvider(QuoteProviderInterface):
    """
    Polygon.io quote provider.

    One pooled httpx.AsyncClient is reused across calls. Every request is a
    single attempt bounded by ``timeout``; retrying is left to the caller.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        settings = get_settings()
        self.api_key = settings.polygon_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.polygon_base_url).rstrip("/")
        self.timeout = settings.quote_timeout if timeout is None else timeout
        self._client = client

        if not self.api_key:
            logger.warning("POLYGON_API_KEY not configured; quotes will use fallback data")

    @property
    def provider_name(self) -> str:
        return "polygon"

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self.api_key:
            raise APIError("Polygon API key not configured")

        client = await self._get_client()
        query = {**(params or {}), "apiKey": self.api_key}
        try:
            response = await client.get(path, params=query)
        except httpx.HTTPError as e:
            raise APIError(f"Polygon request to {path} failed: {e}") from e

        if response.status_code == 404:
            raise SymbolNotFoundError(f"Polygon returned 404 for {path}")
        if response.status_code >= 400:
            raise APIError(
                f"Polygon API error: {response.status_code} {response.reason_phrase}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Polygon returned invalid JSON for {path}") from e

    async def get_quote(self, symbol: str) -> Quote:
        """Get latest price, previous close and company details in parallel."""
        symbol = symbol.upper().strip()

        trade_data, prev_data, details_data = await asyncio.gather(
            self._request(f"/v2/last/trade/{symbol}"),
            self._request(f"/v2/aggs/ticker/{symbol}/prev"),
            self._request(f"/v3/reference/tickers/{symbol}"),
        )

        prev_results = prev_data.get("results") or []
        previous_close = float(prev_results[0].get("c", 0)) if prev_results else 0.0
        last_price = (trade_data.get("results") or {}).get("p")
        if last_price is None and not previous_close:
            raise SymbolNotFoundError(f"No price data for {symbol}")
        current_price = float(last_price) if last_price is not None else previous_close
        if not previous_close:
            previous_close = current_price

        details = details_data.get("results") or {}
        return Quote(
            symbol=symbol,
            name=details.get("name") or f"{symbol} Corp.",
            price=current_price,
            change=current_price - previous_close,
            change_percent=percent_change(current_price, previous_close),
            sector=details.get("sic_description") or UNKNOWN_SECTOR,
            market_cap=details.get("market_cap"),
        )

    async def search_symbols(self, query: str, limit: int) -> list[SymbolMatch]:
        data = await self._request(
            "/v3/reference/tickers",
            params={"search": query, "active": "true", "market": "stocks", "limit": limit},
        )
        matches = []
        for item in (data.get("results") or [])[:limit]:
            ticker = item.get("ticker")
            if ticker:
                matches.append(SymbolMatch(symbol=ticker, name=item.get("name") or ticker))
        return matches

    async def top_movers(self, limit: int) -> list[Quote]:
        data = await self._request(
            "/v2/snapshot/locale/us/markets/stocks/gainers",
            params={"include_otc": "false"},
        )
        quotes = []
        for item in (data.get("tickers") or [])[:limit]:
            ticker = item.get("ticker")
            if not ticker:
                continue
            last_trade = item.get("lastTrade") or {}
            day = item.get("day") or {}
            price = last_trade.get("p") or day.get("c") or 0.0
            quotes.append(
                Quote(
                    symbol=ticker,
                    name=item.get("name") or f"{ticker} Corp.",
                    price=float(price),
                    change=float(item.get("todaysChange") or 0.0),
                    change_percent=float(item.get("todaysChangePerc") or 0.0),
                )
            )
        return quotes
