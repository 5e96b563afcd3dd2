"""Deck and stock aggregate service.

DeckService is the only component that mutates decks and the stocks inside
them. Every mutation:

1. resolves the caller's tier through the injected EntitlementTable,
2. takes the in-process lock for the aggregate (deck id, or owner id when
   creating a deck),
3. opens one transaction, re-reads the current counts and checks them
   against the tier limits, and
4. writes, so the check and the write commit or roll back together.

On PostgreSQL the deck row is additionally locked with SELECT ... FOR UPDATE
so that several API processes serialise on the same aggregate.

Quote refreshes after ``add_stock`` and strategy-engine notifications after
``apply_strategy`` run as background tasks. Their failures are logged and
never undo the mutation that triggered them.
"""
import asyncio
import weakref
from collections.abc import AsyncIterator, Coroutine, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockdeck.core.config import get_settings
from stockdeck.core.entitlements import (
    EntitlementProfile,
    EntitlementTable,
    Limit,
    TierLike,
)
from stockdeck.core.exceptions import (
    DataValidationError,
    DeckNotFoundError,
    DuplicateStrategyError,
    DuplicateSymbolError,
    LimitExceededError,
    NotFoundError,
    StockNotFoundError,
    UpstreamUnavailableError,
)
from stockdeck.models.base import utc_now
from stockdeck.models.deck import Deck, DeckType
from stockdeck.models.deck_stock import DeckStock, StockStatus
from stockdeck.providers.base import Quote
from stockdeck.repositories.base import DuplicateError, RepositoryError
from stockdeck.repositories.deck_repository import DeckRepository
from stockdeck.repositories.deck_stock_repository import DeckStockRepository
from stockdeck.repositories.notification_repository import NotificationRepository
from stockdeck.services import deck_analytics
from stockdeck.services.deck_analytics import DashboardStats, Recommendation
from stockdeck.services.quote_gateway import QuoteGateway
from stockdeck.services.strategy_engine import StrategyEngineInterface
from stockdeck.utils.structured_logging import get_logger
from stockdeck.utils.validation import normalize_tags, require_symbol

logger = get_logger(__name__)

DECK_UPDATE_FIELDS = frozenset({"name", "description", "deck_type", "is_public", "settings"})
STOCK_UPDATE_FIELDS = frozenset(
    {"notes", "target_price", "stop_loss", "position_size", "tags", "status"}
)
PRICE_FIELDS = ("target_price", "stop_loss", "position_size")


@dataclass
class DeckSpec:
    """Input for creating a deck."""
    name: str
    deck_type: DeckType | str = DeckType.WATCHLIST
    description: str | None = None
    is_public: bool = False
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass
class StockMeta:
    """Optional metadata supplied when adding a stock."""
    notes: str | None = None
    target_price: float | None = None
    stop_loss: float | None = None
    position_size: float | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class DeckSummary:
    """A deck with its current stock count."""
    deck: Deck
    stock_count: int


@dataclass
class RefreshResult:
    """Outcome of a performance refresh.

    ``stale`` is True when the quote provider could not be reached; the
    stock's snapshot was left untouched and ``warning`` says why.
    """
    stock: DeckStock
    stale: bool = False
    warning: str | None = None


@dataclass
class QuotedStock:
    """A stock paired with its current (possibly fallback) quote."""
    stock: DeckStock
    quote: Quote


def _parse_deck_type(value: DeckType | str) -> str:
    try:
        return DeckType(value).value
    except ValueError:
        allowed = ", ".join(t.value for t in DeckType)
        raise DataValidationError(f"Invalid deck type {value!r}. Valid values: {allowed}")


def _parse_status(value: StockStatus | str) -> str:
    try:
        return StockStatus(value).value
    except ValueError:
        allowed = ", ".join(s.value for s in StockStatus)
        raise DataValidationError(f"Invalid stock status {value!r}. Valid values: {allowed}")


def _require_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise DataValidationError("Deck name must not be empty")
    if len(name) > 100:
        raise DataValidationError("Deck name must be at most 100 characters")
    return name


def _check_non_negative(field_name: str, value: float | None) -> None:
    if value is not None and value < 0:
        raise DataValidationError(f"{field_name} must not be negative")


class DeckService:
    """
    Aggregate store for decks and their stocks.

    Each public method opens its own short-lived session from
    ``session_factory``; the session is never held across a quote provider
    or strategy engine call.

    Example:
        >>> service = DeckService(session_factory, table, gateway, engine)
        >>> deck = await service.create_deck(1, DataTier.FREEMIUM, DeckSpec(name="Watchlist"))
        >>> await service.add_stock(1, deck.id, DataTier.FREEMIUM, "AAPL")
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        entitlements: EntitlementTable,
        quote_gateway: QuoteGateway,
        strategy_engine: StrategyEngineInterface,
        refresh_on_add: bool = True,
        search_default_limit: int | None = None,
    ):
        self.session_factory = session_factory
        self.entitlements = entitlements
        self.quote_gateway = quote_gateway
        self.strategy_engine = strategy_engine
        self.refresh_on_add = refresh_on_add
        self.search_default_limit = (
            get_settings().search_default_limit
            if search_default_limit is None
            else search_default_limit
        )

        self._locks: weakref.WeakValueDictionary[tuple[str, int], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._background: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Infrastructure
    # ------------------------------------------------------------------

    def _lock(self, kind: str, key: int) -> asyncio.Lock:
        lock = self._locks.get((kind, key))
        if lock is None:
            lock = asyncio.Lock()
            self._locks[(kind, key)] = lock
        return lock

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            async with session.begin():
                yield session

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain_background(self) -> None:
        """Wait for every pending background refresh/notification."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def cancel_background(self) -> None:
        """Cancel pending background work (application shutdown)."""
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _enforce(
        self,
        limit_name: str,
        limit: Limit,
        current: int,
        profile: EntitlementProfile,
        **context: Any,
    ) -> None:
        if limit.allows(current):
            return
        logger.info(
            "Tier limit reached",
            limit=limit_name,
            limit_value=limit.to_json(),
            current=current,
            tier=profile.tier,
            **context,
        )
        raise LimitExceededError(
            limit_name=limit_name,
            limit=limit.to_json(),
            current=current,
            tier=profile.tier,
            tier_name=profile.name,
        )

    @staticmethod
    async def _owned_deck(
        session: AsyncSession, owner_id: int, deck_id: int, for_update: bool = False
    ) -> Deck:
        deck = await DeckRepository(session).get_by_id_and_user(
            deck_id, owner_id, for_update=for_update
        )
        if deck is None:
            raise DeckNotFoundError(deck_id)
        return deck

    @staticmethod
    async def _existing_stock(session: AsyncSession, deck_id: int, symbol: str) -> DeckStock:
        stock = await DeckStockRepository(session).get_by_symbol(deck_id, symbol)
        if stock is None:
            raise StockNotFoundError(deck_id, symbol)
        return stock

    # ------------------------------------------------------------------
    # Decks
    # ------------------------------------------------------------------

    async def create_deck(self, owner_id: int, tier: TierLike, spec: DeckSpec) -> Deck:
        """Create a deck for ``owner_id``.

        Raises:
            UnknownTierError: If the tier is not in the entitlement table
            DataValidationError: If the name is empty or the type is unknown
            LimitExceededError: If the owner already has ``max_decks`` decks
        """
        profile = self.entitlements.resolve(tier)
        name = _require_name(spec.name)
        deck_type = _parse_deck_type(spec.deck_type)

        async with self._lock("owner", owner_id):
            async with self._transaction() as session:
                repo = DeckRepository(session)
                current = await repo.count_by_user(owner_id)
                self._enforce("max_decks", profile.max_decks, current, profile, user_id=owner_id)

                now = utc_now()
                deck = await repo.create(
                    user_id=owner_id,
                    name=name,
                    description=spec.description,
                    deck_type=deck_type,
                    is_public=spec.is_public,
                    settings=dict(spec.settings or {}),
                    created_at=now,
                    updated_at=now,
                )

        logger.info("Deck created", deck_id=deck.id, user_id=owner_id, tier=profile.tier)
        return deck

    async def get_deck(self, owner_id: int, deck_id: int) -> Deck:
        async with self._transaction() as session:
            return await self._owned_deck(session, owner_id, deck_id)

    async def list_decks(self, owner_id: int) -> list[DeckSummary]:
        """All decks of a user, oldest first, with stock counts."""
        async with self._transaction() as session:
            decks = await DeckRepository(session).get_by_user(owner_id)
            counts = await DeckStockRepository(session).count_by_decks([d.id for d in decks])
        return [DeckSummary(deck=d, stock_count=counts.get(d.id, 0)) for d in decks]

    async def update_deck(self, owner_id: int, deck_id: int, patch: Mapping[str, Any]) -> Deck:
        """Partially update deck attributes. No entitlement check applies.

        Raises:
            DeckNotFoundError: If the deck does not exist for this owner
            DataValidationError: For unknown fields, empty names or bad types
        """
        unknown = set(patch) - DECK_UPDATE_FIELDS
        if unknown:
            raise DataValidationError(f"Cannot update deck fields: {', '.join(sorted(unknown))}")

        changes = dict(patch)
        if "name" in changes:
            changes["name"] = _require_name(changes["name"])
        if "deck_type" in changes:
            changes["deck_type"] = _parse_deck_type(changes["deck_type"])
        if "settings" in changes:
            changes["settings"] = dict(changes["settings"] or {})

        async with self._lock("deck", deck_id):
            async with self._transaction() as session:
                deck = await self._owned_deck(session, owner_id, deck_id, for_update=True)
                deck.update_from_dict(changes)
                deck.updated_at = utc_now()
                return await DeckRepository(session).save(deck)

    async def delete_deck(self, owner_id: int, deck_id: int) -> int:
        """Delete a deck and every stock in it as one transaction.

        Children are collected and deleted first, then the deck; readers see
        either the whole aggregate or none of it.

        Returns:
            Number of stocks removed with the deck

        Raises:
            DeckNotFoundError: If the deck does not exist for this owner
        """
        async with self._lock("deck", deck_id):
            async with self._transaction() as session:
                deck = await self._owned_deck(session, owner_id, deck_id, for_update=True)
                removed = await DeckStockRepository(session).delete_by_deck(deck.id)
                await DeckRepository(session).delete(deck)

        logger.info("Deck deleted", deck_id=deck_id, user_id=owner_id, stocks_removed=removed)
        return removed

    # ------------------------------------------------------------------
    # Stocks
    # ------------------------------------------------------------------

    async def list_stocks(self, owner_id: int, deck_id: int) -> list[DeckStock]:
        async with self._transaction() as session:
            await self._owned_deck(session, owner_id, deck_id)
            return list(await DeckStockRepository(session).get_by_deck(deck_id))

    async def list_stocks_with_quotes(self, owner_id: int, deck_id: int) -> list[QuotedStock]:
        """Stocks of a deck enriched with gateway quotes (fallbacks marked)."""
        stocks = await self.list_stocks(owner_id, deck_id)
        quotes = await asyncio.gather(
            *(self.quote_gateway.get_quote(stock.symbol) for stock in stocks)
        )
        return [QuotedStock(stock=s, quote=q) for s, q in zip(stocks, quotes)]

    async def get_stock(self, owner_id: int, deck_id: int, symbol: str) -> DeckStock:
        symbol = require_symbol(symbol)
        async with self._transaction() as session:
            await self._owned_deck(session, owner_id, deck_id)
            return await self._existing_stock(session, deck_id, symbol)

    async def add_stock(
        self,
        owner_id: int,
        deck_id: int,
        tier: TierLike,
        symbol: str,
        meta: StockMeta | None = None,
    ) -> DeckStock:
        """Add ``symbol`` to a deck with status ``watching``.

        A quote refresh is scheduled in the background; its failure does not
        affect the result.

        Raises:
            UnknownTierError: If the tier is not in the entitlement table
            DataValidationError: If the symbol or metadata is malformed
            DeckNotFoundError: If the deck does not exist for this owner
            DuplicateSymbolError: If the symbol is already in the deck
            LimitExceededError: If the deck holds ``max_stocks_per_deck`` stocks
        """
        profile = self.entitlements.resolve(tier)
        symbol = require_symbol(symbol)
        meta = meta or StockMeta()
        for name in PRICE_FIELDS:
            _check_non_negative(name, getattr(meta, name))

        try:
            async with self._lock("deck", deck_id):
                async with self._transaction() as session:
                    deck = await self._owned_deck(session, owner_id, deck_id, for_update=True)
                    stocks = DeckStockRepository(session)

                    if await stocks.get_by_symbol(deck_id, symbol) is not None:
                        logger.info("Duplicate symbol rejected", deck_id=deck_id, symbol=symbol)
                        raise DuplicateSymbolError(deck_id, symbol)

                    current = await stocks.count_by_deck(deck_id)
                    self._enforce(
                        "max_stocks_per_deck",
                        profile.max_stocks_per_deck,
                        current,
                        profile,
                        deck_id=deck_id,
                    )

                    now = utc_now()
                    stock = await stocks.create(
                        deck_id=deck_id,
                        symbol=symbol,
                        status=StockStatus.WATCHING.value,
                        notes=meta.notes,
                        target_price=meta.target_price,
                        stop_loss=meta.stop_loss,
                        position_size=meta.position_size,
                        tags=normalize_tags(meta.tags),
                        applied_strategy_ids=[],
                        performance_snapshot=None,
                        created_at=now,
                        last_updated_at=now,
                    )
                    deck.updated_at = now
        except DuplicateError:
            # Unique (deck_id, symbol) constraint hit by a writer in another process
            raise DuplicateSymbolError(deck_id, symbol)

        logger.info("Stock added", deck_id=deck_id, symbol=symbol, tier=profile.tier)
        if self.refresh_on_add:
            self._spawn(self._refresh_in_background(owner_id, deck_id, symbol))
        return stock

    async def apply_strategy(
        self,
        owner_id: int,
        deck_id: int,
        symbol: str,
        tier: TierLike,
        strategy_id: str,
    ) -> DeckStock:
        """Append ``strategy_id`` to a stock's applied strategies.

        The first strategy moves a ``watching`` stock to ``strategy_applied``.
        The strategy engine is then notified in the background.

        Raises:
            UnknownTierError: If the tier is not in the entitlement table
            DataValidationError: If the strategy id is blank
            DeckNotFoundError / StockNotFoundError: If the target is missing
            DuplicateStrategyError: If the strategy is already applied
            LimitExceededError: If ``max_strategies_per_stock`` is reached
        """
        profile = self.entitlements.resolve(tier)
        symbol = require_symbol(symbol)
        strategy_id = (strategy_id or "").strip()
        if not strategy_id:
            raise DataValidationError("Strategy id must not be empty")

        async with self._lock("deck", deck_id):
            async with self._transaction() as session:
                deck = await self._owned_deck(session, owner_id, deck_id, for_update=True)
                stock = await self._existing_stock(session, deck_id, symbol)

                applied = list(stock.applied_strategy_ids or [])
                if strategy_id in applied:
                    logger.info(
                        "Duplicate strategy rejected", symbol=symbol, strategy_id=strategy_id
                    )
                    raise DuplicateStrategyError(symbol, strategy_id)

                self._enforce(
                    "max_strategies_per_stock",
                    profile.max_strategies_per_stock,
                    len(applied),
                    profile,
                    deck_id=deck_id,
                    symbol=symbol,
                )

                now = utc_now()
                stock.applied_strategy_ids = applied + [strategy_id]
                if not applied and stock.status == StockStatus.WATCHING.value:
                    stock.status = StockStatus.STRATEGY_APPLIED.value
                stock.last_updated_at = now
                deck.updated_at = now
                stock = await DeckStockRepository(session).save(stock)

        logger.info("Strategy applied", deck_id=deck_id, symbol=symbol, strategy_id=strategy_id)
        self._spawn(self._notify_strategy_engine(strategy_id, symbol))
        return stock

    async def update_stock(
        self,
        owner_id: int,
        deck_id: int,
        symbol: str,
        patch: Mapping[str, Any],
    ) -> DeckStock:
        """Partially update a stock's metadata and status.

        No entitlement re-check happens here. Any valid status may be set on
        any tier, including statuses implying premium tracking; data created
        under a higher tier is kept after a downgrade.

        Raises:
            DeckNotFoundError / StockNotFoundError: If the target is missing
            DataValidationError: For unknown fields, bad statuses or negative prices
        """
        symbol = require_symbol(symbol)
        unknown = set(patch) - STOCK_UPDATE_FIELDS
        if unknown:
            raise DataValidationError(f"Cannot update stock fields: {', '.join(sorted(unknown))}")

        changes = dict(patch)
        for name in PRICE_FIELDS:
            if name in changes:
                _check_non_negative(name, changes[name])
        if "status" in changes:
            changes["status"] = _parse_status(changes["status"])
        if "tags" in changes:
            changes["tags"] = normalize_tags(changes["tags"])

        async with self._lock("deck", deck_id):
            async with self._transaction() as session:
                deck = await self._owned_deck(session, owner_id, deck_id, for_update=True)
                stock = await self._existing_stock(session, deck_id, symbol)
                previous_status = stock.status

                stock.update_from_dict(changes)
                now = utc_now()
                stock.last_updated_at = now
                deck.updated_at = now
                stock = await DeckStockRepository(session).save(stock)

        if stock.status != previous_status:
            logger.info(
                "Stock status changed",
                deck_id=deck_id,
                symbol=symbol,
                from_status=previous_status,
                to_status=stock.status,
            )
        return stock

    async def remove_stock(self, owner_id: int, deck_id: int, symbol: str) -> None:
        """Remove a stock from a deck.

        Raises:
            DeckNotFoundError / StockNotFoundError: If the target is missing
        """
        symbol = require_symbol(symbol)
        async with self._lock("deck", deck_id):
            async with self._transaction() as session:
                deck = await self._owned_deck(session, owner_id, deck_id, for_update=True)
                stock = await self._existing_stock(session, deck_id, symbol)
                await DeckStockRepository(session).delete(stock)
                deck.updated_at = utc_now()

        logger.info("Stock removed", deck_id=deck_id, symbol=symbol)

    # ------------------------------------------------------------------
    # Performance
    # ------------------------------------------------------------------

    async def refresh_performance(self, owner_id: int, deck_id: int, symbol: str) -> RefreshResult:
        """Fetch a fresh quote and store it as the stock's performance snapshot.

        The first successful refresh records the entry price; later ones
        also compute ``return_percent`` against it. If the provider is down
        the snapshot is left as it was and the result is marked stale.

        Raises:
            DeckNotFoundError / StockNotFoundError: If the target is missing,
                including when it was removed while the quote was in flight
        """
        symbol = require_symbol(symbol)
        stock = await self.get_stock(owner_id, deck_id, symbol)

        try:
            quote = await self.quote_gateway.fetch_quote(symbol)
        except UpstreamUnavailableError as e:
            logger.warning("Performance data stale", deck_id=deck_id, symbol=symbol, error=str(e))
            return RefreshResult(stock=stock, stale=True, warning=f"Performance data stale: {e}")

        async with self._lock("deck", deck_id):
            async with self._transaction() as session:
                # Re-check: the stock may have been removed during the quote call
                await self._owned_deck(session, owner_id, deck_id, for_update=True)
                stock = await self._existing_stock(session, deck_id, symbol)

                now = utc_now()
                stock.performance_snapshot = deck_analytics.next_snapshot(
                    stock.performance_snapshot, quote.price, now
                )
                stock.last_updated_at = now
                stock = await DeckStockRepository(session).save(stock)

        return RefreshResult(stock=stock)

    async def _refresh_in_background(self, owner_id: int, deck_id: int, symbol: str) -> None:
        try:
            await self.refresh_performance(owner_id, deck_id, symbol)
        except NotFoundError:
            logger.debug("Skipped refresh of removed stock", deck_id=deck_id, symbol=symbol)
        except RepositoryError as e:
            logger.warning("Background refresh failed", deck_id=deck_id, symbol=symbol, error=str(e))

    async def _notify_strategy_engine(self, strategy_id: str, symbol: str) -> None:
        try:
            result = await self.strategy_engine.activate(strategy_id, symbol)
        except UpstreamUnavailableError as e:
            logger.warning(
                "Strategy engine notification failed",
                strategy_id=strategy_id,
                symbol=symbol,
                error=str(e),
            )
            return
        if not result.acknowledged:
            logger.warning(
                "Strategy engine did not acknowledge activation",
                strategy_id=strategy_id,
                symbol=symbol,
                message=result.message,
            )

    # ------------------------------------------------------------------
    # Market views
    # ------------------------------------------------------------------

    def search_limit(self, tier: TierLike, limit: int | None = None) -> int:
        """Effective search size: requested (or configured default) capped by tier."""
        requested = limit if limit is not None else self.search_default_limit
        return self.entitlements.resolve(tier).clamp_results(requested)

    async def search(self, tier: TierLike, query: str, limit: int | None = None) -> list[Quote]:
        """Search stocks; the result size is capped by the tier's search limit."""
        return await self.quote_gateway.search(query, self.search_limit(tier, limit))

    async def recommend(self, owner_id: int, tier: TierLike, limit: int = 6) -> list[Recommendation]:
        """Top movers the user does not already hold, best first."""
        profile = self.entitlements.resolve(tier)
        limit = profile.clamp_results(limit)

        async with self._transaction() as session:
            held = {s.symbol for s in await DeckStockRepository(session).get_by_user(owner_id)}

        movers = await self.quote_gateway.top_movers(limit + len(held))
        candidates = deck_analytics.build_recommendations(movers)
        return deck_analytics.rank(candidates, held)[:limit]

    async def dashboard_stats(self, owner_id: int) -> DashboardStats:
        async with self._transaction() as session:
            decks = await DeckRepository(session).get_by_user(owner_id)
            stocks = await DeckStockRepository(session).get_by_user(owner_id)
            unread = await NotificationRepository(session).count_unread(owner_id)
        return deck_analytics.dashboard_stats(len(decks), stocks, unread)
