"""Strategy execution engine clients.

Applying a strategy to a stock is recorded locally first; the engine is then
told that the (strategy, symbol) pair is active. That notification is a
one-way, best-effort call: DeckService logs failures and never rolls back.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from urllib.parse import quote

import httpx

from stockdeck.core.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class ActivationResult:
    """Acknowledgement returned by the strategy engine.

    Attributes:
        strategy_id: Strategy that was activated
        symbol: Symbol it was activated for
        acknowledged: True when the engine accepted the activation
        message: Optional detail from the engine
    """
    strategy_id: str
    symbol: str
    acknowledged: bool
    message: str | None = None


class StrategyEngineInterface(ABC):
    """Contract for strategy execution collaborators."""

    @abstractmethod
    async def activate(self, strategy_id: str, symbol: str) -> ActivationResult:
        """Tell the engine a strategy is now active for a symbol.

        Raises:
            UpstreamUnavailableError: If the engine cannot be reached
        """
        pass

    async def close(self) -> None:
        return None


class LoggingStrategyEngine(StrategyEngineInterface):
    """Engine stand-in used when no engine URL is configured.

    Records activations in memory and acknowledges them immediately.
    """

    def __init__(self):
        self.activations: list[tuple[str, str]] = []

    async def activate(self, strategy_id: str, symbol: str) -> ActivationResult:
        self.activations.append((strategy_id, symbol))
        logger.info(f"Strategy {strategy_id} activated for {symbol} (no engine configured)")
        return ActivationResult(strategy_id=strategy_id, symbol=symbol, acknowledged=True)


class HttpStrategyEngine(StrategyEngineInterface):
    """Strategy engine reached over HTTP.

    POSTs ``{"symbol": ...}`` to ``{base_url}/strategies/{strategy_id}/activate``,
    with the strategy id percent-encoded as a single path segment.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def activate(self, strategy_id: str, symbol: str) -> ActivationResult:
        client = await self._get_client()
        try:
            response = await client.post(
                f"/strategies/{quote(strategy_id, safe='')}/activate",
                json={"symbol": symbol},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(
                f"Strategy engine rejected or missed activation of {strategy_id} for {symbol}: {e}"
            ) from e

        message = None
        if response.content:
            try:
                message = response.json().get("message")
            except (ValueError, AttributeError):
                message = None

        return ActivationResult(
            strategy_id=strategy_id,
            symbol=symbol,
            acknowledged=True,
            message=message,
        )
