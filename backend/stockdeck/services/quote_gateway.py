"""Quote gateway: cached, failure-tolerant access to a quote provider.

Every public method degrades instead of raising. A quote that could not be
fetched comes back as ``Quote.fallback`` (tagged ``is_fallback``), and
search/top-mover failures come back as empty lists. Only successful
responses are cached; entries expire by absolute age (cachetools.TTLCache).
"""
import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from cachetools import TTLCache

from stockdeck.core.exceptions import UpstreamUnavailableError
from stockdeck.providers.base import Quote, QuoteProviderInterface
from stockdeck.utils.validation import normalize_symbol

logger = logging.getLogger(__name__)


@dataclass
class QuoteCacheConfig:
    """Cache and timeout configuration for the gateway."""
    ttl: int = 60            # seconds a response stays valid
    maxsize: int = 1000      # max cached responses
    timeout: float = 5.0     # single upstream attempt, seconds


class QuoteGateway:
    """
    Cached front for a QuoteProviderInterface.

    Flow for every call:
    1. Return the cached response if it is younger than ``ttl``
    2. Otherwise make one upstream attempt bounded by ``timeout``
    3. On success cache and return; on failure log and degrade
    """

    def __init__(
        self,
        provider: QuoteProviderInterface,
        config: QuoteCacheConfig | None = None,
        timer: Callable[[], float] | None = None,
    ):
        self.provider = provider
        self.config = config or QuoteCacheConfig()

        cache_kwargs = {"maxsize": self.config.maxsize, "ttl": self.config.ttl}
        if timer is not None:
            cache_kwargs["timer"] = timer
        self._cache: TTLCache = TTLCache(**cache_kwargs)

        logger.info(
            f"QuoteGateway initialized: provider={provider.provider_name}, "
            f"TTL={self.config.ttl}s, size={self.config.maxsize}"
        )

    @property
    def is_available(self) -> bool:
        return self.provider.is_available

    def clear(self) -> None:
        self._cache.clear()

    async def _call(self, description: str, coro):
        """Run one upstream call with the configured timeout.

        Any provider error, including malformed upstream payloads, is
        reported as UpstreamUnavailableError. Cancellation propagates.

        Raises:
            UpstreamUnavailableError: On provider failure or timeout
        """
        try:
            return await asyncio.wait_for(coro, timeout=self.config.timeout)
        except UpstreamUnavailableError:
            raise
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailableError(
                f"{description} timed out after {self.config.timeout}s"
            ) from e
        except Exception as e:
            logger.warning(f"{description} failed with unexpected {type(e).__name__}: {e}")
            raise UpstreamUnavailableError(f"{description} failed: {e}") from e

    async def fetch_quote(self, symbol: str) -> Quote:
        """Get a quote, raising instead of degrading.

        Used by callers that must tell fresh data from fallback data.

        Raises:
            UpstreamUnavailableError: If the provider fails or times out
        """
        symbol = normalize_symbol(symbol)
        key = f"quote:{symbol}"
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug(f"Quote cache hit: {symbol}")
            return cached

        quote = await self._call(f"Quote for {symbol}", self.provider.get_quote(symbol))
        self._cache[key] = quote
        return quote

    async def get_quote(self, symbol: str) -> Quote:
        """Get a quote, or a tagged fallback quote if the provider fails."""
        try:
            return await self.fetch_quote(symbol)
        except UpstreamUnavailableError as e:
            logger.warning(f"Quote unavailable for {symbol}, using fallback: {e}")
            return Quote.fallback(normalize_symbol(symbol))

    async def search(self, query: str, limit: int = 10) -> list[Quote]:
        """Search symbols and price each hit. Unpriceable hits are dropped."""
        query = query.strip()
        if not query or limit <= 0:
            return []

        key = f"search:{query.lower()}:{limit}"
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        try:
            matches = await self._call(
                f"Search for {query!r}", self.provider.search_symbols(query, limit)
            )
        except UpstreamUnavailableError as e:
            logger.warning(f"Stock search failed for {query!r}: {e}")
            return []

        quotes = await asyncio.gather(*(self.get_quote(m.symbol) for m in matches[:limit]))
        results = [q for q in quotes if not q.is_fallback]
        self._cache[key] = tuple(results)
        return results

    async def top_movers(self, limit: int = 10) -> list[Quote]:
        """Today's top gainers, or an empty list if unavailable."""
        if limit <= 0:
            return []

        key = f"movers:{limit}"
        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        try:
            quotes = await self._call("Top movers", self.provider.top_movers(limit))
        except UpstreamUnavailableError as e:
            logger.warning(f"Top movers unavailable: {e}")
            return []

        results = list(quotes)[:limit]
        self._cache[key] = tuple(results)
        return results

    async def close(self) -> None:
        await self.provider.close()
