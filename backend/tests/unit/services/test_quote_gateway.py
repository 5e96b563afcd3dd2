"""Unit tests for QuoteGateway caching and degradation."""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from stockdeck.core.exceptions import APIError, SymbolNotFoundError, UpstreamUnavailableError
from stockdeck.providers.base import Quote, QuoteProviderInterface, SymbolMatch
from stockdeck.providers.polygon import PolygonQuoteProvider
from stockdeck.services.quote_gateway import QuoteCacheConfig, QuoteGateway

AAPL = Quote("AAPL", "Apple Inc.", 190.0, 2.0, 1.06, "Technology")
MSFT = Quote("MSFT", "Microsoft Corporation", 410.0, -4.1, -0.99, "Technology")


class FakeClock:
    """Manually advanced clock for TTLCache."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def provider():
    mock = MagicMock(spec=QuoteProviderInterface)
    mock.provider_name = "fake"
    mock.get_quote = AsyncMock(return_value=AAPL)
    mock.search_symbols = AsyncMock(return_value=[])
    mock.top_movers = AsyncMock(return_value=[])
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway(provider, clock):
    return QuoteGateway(provider, QuoteCacheConfig(ttl=60, maxsize=100, timeout=1.0), timer=clock)


class TestGetQuote:
    """Tests for get_quote / fetch_quote."""

    @pytest.mark.asyncio
    async def test_returns_provider_quote(self, gateway, provider):
        quote = await gateway.get_quote("aapl")

        assert quote == AAPL
        assert not quote.is_fallback
        provider.get_quote.assert_awaited_once_with("AAPL")

    @pytest.mark.asyncio
    async def test_cached_within_ttl(self, gateway, provider, clock):
        """
        Arrange: One successful fetch
        Act: Fetch again 59s later
        Assert: Provider called only once
        """
        await gateway.get_quote("AAPL")
        clock.advance(59)
        await gateway.get_quote("AAPL")

        assert provider.get_quote.await_count == 1

    @pytest.mark.asyncio
    async def test_expires_by_absolute_age(self, gateway, provider, clock):
        """Reads do not extend the entry's lifetime."""
        await gateway.get_quote("AAPL")
        clock.advance(30)
        await gateway.get_quote("AAPL")
        clock.advance(31)
        await gateway.get_quote("AAPL")

        assert provider.get_quote.await_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [APIError("boom"), SymbolNotFoundError("nope")])
    async def test_failure_returns_tagged_fallback(self, gateway, provider, error):
        provider.get_quote.side_effect = error

        quote = await gateway.get_quote("aapl")

        assert quote.is_fallback is True
        assert quote.symbol == "AAPL"
        assert quote.change == 0.0
        assert quote.sector == "Unknown"

    @pytest.mark.asyncio
    async def test_fallback_not_cached(self, gateway, provider):
        provider.get_quote.side_effect = [APIError("down"), AAPL]

        first = await gateway.get_quote("AAPL")
        second = await gateway.get_quote("AAPL")

        assert first.is_fallback
        assert second == AAPL

    @pytest.mark.asyncio
    async def test_fetch_quote_raises_on_failure(self, gateway, provider):
        provider.get_quote.side_effect = APIError("down")

        with pytest.raises(UpstreamUnavailableError):
            await gateway.fetch_quote("AAPL")

    @pytest.mark.asyncio
    async def test_timeout_is_upstream_unavailable(self, provider):
        async def slow(symbol):
            await asyncio.sleep(1)
            return AAPL

        provider.get_quote.side_effect = slow
        gateway = QuoteGateway(provider, QuoteCacheConfig(timeout=0.01))

        with pytest.raises(UpstreamUnavailableError, match="timed out"):
            await gateway.fetch_quote("AAPL")
        assert (await gateway.get_quote("AAPL")).is_fallback


class TestSearch:
    """Tests for search()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query_returns_empty(self, gateway, provider, query):
        assert await gateway.search(query, 10) == []
        provider.search_symbols.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_zero_limit_returns_empty(self, gateway, provider):
        assert await gateway.search("apple", 0) == []

    @pytest.mark.asyncio
    async def test_prices_each_match(self, gateway, provider):
        provider.search_symbols.return_value = [
            SymbolMatch("AAPL", "Apple Inc."),
            SymbolMatch("MSFT", "Microsoft Corporation"),
        ]
        provider.get_quote.side_effect = lambda s: {"AAPL": AAPL, "MSFT": MSFT}[s]

        results = await gateway.search("a", 5)

        assert [q.symbol for q in results] == ["AAPL", "MSFT"]
        provider.search_symbols.assert_awaited_once_with("a", 5)

    @pytest.mark.asyncio
    async def test_unpriceable_matches_dropped(self, gateway, provider):
        provider.search_symbols.return_value = [
            SymbolMatch("AAPL", "Apple Inc."),
            SymbolMatch("ZZZZ", "Gone Corp."),
        ]

        async def quote(symbol):
            if symbol == "ZZZZ":
                raise SymbolNotFoundError(symbol)
            return AAPL

        provider.get_quote.side_effect = quote

        results = await gateway.search("a", 5)

        assert [q.symbol for q in results] == ["AAPL"]

    @pytest.mark.asyncio
    async def test_provider_failure_returns_empty(self, gateway, provider):
        provider.search_symbols.side_effect = APIError("down")
        assert await gateway.search("apple", 5) == []

    @pytest.mark.asyncio
    async def test_results_cached(self, gateway, provider):
        provider.search_symbols.return_value = [SymbolMatch("AAPL", "Apple Inc.")]

        await gateway.search("Apple", 5)
        await gateway.search("apple", 5)

        assert provider.search_symbols.await_count == 1


class TestTopMovers:
    """Tests for top_movers()."""

    @pytest.mark.asyncio
    async def test_returns_and_caches(self, gateway, provider, clock):
        provider.top_movers.return_value = [AAPL, MSFT]

        first = await gateway.top_movers(2)
        second = await gateway.top_movers(2)
        clock.advance(61)
        await gateway.top_movers(2)

        assert first == second == [AAPL, MSFT]
        assert provider.top_movers.await_count == 2

    @pytest.mark.asyncio
    async def test_failure_returns_empty(self, gateway, provider):
        provider.top_movers.side_effect = APIError("down")
        assert await gateway.top_movers(5) == []

    @pytest.mark.asyncio
    async def test_truncates_to_limit(self, gateway, provider):
        provider.top_movers.return_value = [AAPL, MSFT]
        assert await gateway.top_movers(1) == [AAPL]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_clear_forces_refetch(self, gateway, provider):
        await gateway.get_quote("AAPL")
        gateway.clear()
        await gateway.get_quote("AAPL")
        assert provider.get_quote.await_count == 2

    @pytest.mark.asyncio
    async def test_close_closes_provider(self, gateway, provider):
        await gateway.close()
        provider.close.assert_awaited_once()


class TestUnexpectedProviderErrors:
    """Provider bugs and malformed payloads degrade like any upstream failure."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [ValueError("bad float"), TypeError("None"), KeyError("c")])
    async def test_quote_error_returns_fallback(self, gateway, provider, error):
        provider.get_quote.side_effect = error

        quote = await gateway.get_quote("aapl")

        assert quote.is_fallback is True
        assert quote.symbol == "AAPL"
        assert quote.price == 0.0

    @pytest.mark.asyncio
    async def test_fetch_quote_wraps_unexpected_error(self, gateway, provider):
        provider.get_quote.side_effect = ValueError("could not convert string to float")

        with pytest.raises(UpstreamUnavailableError, match="failed") as exc_info:
            await gateway.fetch_quote("AAPL")
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_search_error_returns_empty(self, gateway, provider):
        provider.search_symbols.side_effect = TypeError("'NoneType' object is not iterable")
        assert await gateway.search("apple", 5) == []

    @pytest.mark.asyncio
    async def test_top_movers_error_returns_empty(self, gateway, provider):
        provider.top_movers.side_effect = ValueError("could not convert string to float: 'n/a'")
        assert await gateway.top_movers(5) == []

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, gateway, provider):
        provider.get_quote.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await gateway.get_quote("AAPL")


def _polygon_gateway(routes: dict[str, httpx.Response]) -> QuoteGateway:
    def handler(request: httpx.Request) -> httpx.Response:
        return routes.get(request.url.path, httpx.Response(404))

    client = httpx.AsyncClient(base_url="https://polygon.test", transport=httpx.MockTransport(handler))
    provider = PolygonQuoteProvider(
        api_key="key", base_url="https://polygon.test", timeout=1.0, client=client
    )
    return QuoteGateway(provider, QuoteCacheConfig(timeout=1.0))


class TestMalformedPolygonPayloads:
    """End to end: Polygon payloads that fail to parse still degrade."""

    @pytest.mark.asyncio
    async def test_null_previous_close_returns_fallback(self):
        gateway = _polygon_gateway({
            "/v2/last/trade/AAPL": httpx.Response(200, json={"results": {}}),
            "/v2/aggs/ticker/AAPL/prev": httpx.Response(200, json={"results": [{"c": None}]}),
            "/v3/reference/tickers/AAPL": httpx.Response(200, json={"results": {}}),
        })

        quote = await gateway.get_quote("AAPL")

        assert quote.is_fallback is True
        assert quote.symbol == "AAPL"

    @pytest.mark.asyncio
    async def test_non_numeric_change_percent_returns_empty(self):
        gateway = _polygon_gateway({
            "/v2/snapshot/locale/us/markets/stocks/gainers": httpx.Response(
                200,
                json={"tickers": [{"ticker": "AAPL", "lastTrade": {"p": 190.0},
                                   "todaysChange": 2.0, "todaysChangePerc": "n/a"}]},
            ),
        })

        assert await gateway.top_movers(5) == []
