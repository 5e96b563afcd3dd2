"""Unit tests for strategy engine clients."""
import json

import httpx
import pytest

from stockdeck.core.exceptions import UpstreamUnavailableError
from stockdeck.services.strategy_engine import HttpStrategyEngine, LoggingStrategyEngine


def _engine(handler) -> HttpStrategyEngine:
    client = httpx.AsyncClient(
        base_url="http://engine.local", transport=httpx.MockTransport(handler)
    )
    return HttpStrategyEngine(base_url="http://engine.local", client=client)


class TestLoggingStrategyEngine:
    @pytest.mark.asyncio
    async def test_records_and_acknowledges(self):
        engine = LoggingStrategyEngine()

        result = await engine.activate("ma-cross", "AAPL")

        assert result.acknowledged is True
        assert engine.activations == [("ma-cross", "AAPL")]


class TestHttpStrategyEngine:
    """Tests for HttpStrategyEngine over a mocked transport."""

    @pytest.mark.asyncio
    async def test_posts_activation(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"message": "queued"})

        engine = _engine(handler)

        result = await engine.activate("ma-cross", "AAPL")

        assert result.acknowledged is True
        assert result.message == "queued"
        assert requests[0].method == "POST"
        assert requests[0].url.path == "/strategies/ma-cross/activate"
        assert json.loads(requests[0].content) == {"symbol": "AAPL"}
        await engine.close()

    @pytest.mark.asyncio
    async def test_strategy_id_escaped_in_path(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(204)

        engine = _engine(handler)

        result = await engine.activate("team/ma cross?v=2", "AAPL")

        assert result.strategy_id == "team/ma cross?v=2"
        assert requests[0].url.raw_path == b"/strategies/team%2Fma%20cross%3Fv%3D2/activate"
        assert not requests[0].url.query

    @pytest.mark.asyncio
    async def test_empty_body_is_acknowledged(self):
        engine = _engine(lambda request: httpx.Response(204))

        result = await engine.activate("rsi-momentum", "MSFT")

        assert result.acknowledged is True
        assert result.message is None

    @pytest.mark.asyncio
    async def test_http_error_is_upstream_unavailable(self):
        engine = _engine(lambda request: httpx.Response(503))

        with pytest.raises(UpstreamUnavailableError):
            await engine.activate("ma-cross", "AAPL")

    @pytest.mark.asyncio
    async def test_connection_error_is_upstream_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        engine = _engine(handler)

        with pytest.raises(UpstreamUnavailableError):
            await engine.activate("ma-cross", "AAPL")

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        engine = _engine(lambda request: httpx.Response(200))
        await engine.close()
        await engine.close()
