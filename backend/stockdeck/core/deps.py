"""Dependency injection for FastAPI endpoints.

This module provides dependency functions for common resources like the
acting user and tier, the entitlement table, and the process-wide service
singletons.
"""
import asyncio
import logging
from typing import Annotated

from fastapi import Depends
from fastapi import HTTPException
from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker

from stockdeck.core.config import Settings, get_settings
from stockdeck.core.database import get_db_session, get_session_factory
from stockdeck.core.entitlements import EntitlementTable, default_entitlement_table
from stockdeck.providers.base import QuoteProviderInterface
from stockdeck.providers.mock import MockQuoteProvider
from stockdeck.providers.polygon import PolygonQuoteProvider
from stockdeck.providers.yahoo import YahooQuoteProvider
from stockdeck.services.deck_service import DeckService
from stockdeck.services.notification_service import NotificationService
from stockdeck.services.quote_gateway import QuoteCacheConfig, QuoteGateway
from stockdeck.services.strategy_engine import (
    HttpStrategyEngine,
    LoggingStrategyEngine,
    StrategyEngineInterface,
)
from stockdeck.utils.validation import is_valid_symbol, normalize_symbol

logger = logging.getLogger(__name__)

# Type aliases for cleaner dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_settings)]


async def get_current_user_id() -> int:
    """Get current user ID dependency.

    Authentication is handled outside this service; every request acts as
    the configured demo user.

    Returns:
        int: User ID from ``DEFAULT_USER_ID``
    """
    return get_settings().default_user_id


async def get_current_tier() -> int:
    """Get the subscription tier of the current user.

    Tier changes come from an external billing system; here the tier is the
    configured ``DEFAULT_USER_TIER``. Unknown tiers are rejected by the
    entitlement table when an operation resolves them.
    """
    return get_settings().default_user_tier


def get_entitlement_table() -> EntitlementTable:
    """Get the immutable tier schedule shared by all requests."""
    return default_entitlement_table()


async def get_validated_symbol(symbol: str) -> str:
    """Validate and normalize stock symbol.

    FastAPI dependency that validates symbol format and normalizes it.

    Args:
        symbol: Raw symbol from URL path

    Returns:
        Normalized symbol (uppercase, trimmed)

    Raises:
        HTTPException: 422 if symbol format is invalid
    """
    symbol = normalize_symbol(symbol)
    if not is_valid_symbol(symbol):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid symbol format: {symbol}",
        )
    return symbol


def build_quote_provider(settings: Settings) -> QuoteProviderInterface:
    """Create the quote provider selected by MARKET_DATA_PROVIDER.

    - "polygon": PolygonQuoteProvider (requires POLYGON_API_KEY)
    - "yahoo": YahooQuoteProvider (free, real data)
    - "mock": MockQuoteProvider (testing, fake data)

    Raises:
        ValueError: If provider type is unknown
    """
    if settings.market_data_provider == "polygon":
        if not settings.polygon_api_key:
            logger.warning("POLYGON_API_KEY is not set; quotes will fall back")
        logger.info("Using PolygonQuoteProvider for quotes")
        return PolygonQuoteProvider(
            api_key=settings.polygon_api_key,
            base_url=settings.polygon_base_url,
            timeout=settings.quote_timeout,
        )

    elif settings.market_data_provider == "yahoo":
        logger.info("Using YahooQuoteProvider for quotes")
        return YahooQuoteProvider()

    elif settings.market_data_provider == "mock":
        logger.info("Using MockQuoteProvider for quotes")
        return MockQuoteProvider()

    else:
        raise ValueError(
            f"Unknown market data provider: {settings.market_data_provider}. "
            "Valid options: 'polygon', 'yahoo', 'mock'"
        )


def build_strategy_engine(settings: Settings) -> StrategyEngineInterface:
    if settings.strategy_engine_url:
        logger.info(f"Using HttpStrategyEngine at {settings.strategy_engine_url}")
        return HttpStrategyEngine(
            base_url=settings.strategy_engine_url,
            timeout=settings.strategy_engine_timeout,
        )
    logger.info("No STRATEGY_ENGINE_URL configured; strategy activations are only logged")
    return LoggingStrategyEngine()


# Process-wide singletons. DeckService owns the per-deck locks, so every
# request must share one instance.
_quote_gateway: QuoteGateway | None = None
_strategy_engine: StrategyEngineInterface | None = None
_deck_service: DeckService | None = None
_singleton_lock = asyncio.Lock()


async def get_quote_gateway() -> QuoteGateway:
    """Get the shared QuoteGateway (lazily created, cache shared across requests)."""
    global _quote_gateway
    if _quote_gateway is None:
        async with _singleton_lock:
            if _quote_gateway is None:
                settings = get_settings()
                _quote_gateway = QuoteGateway(
                    build_quote_provider(settings),
                    QuoteCacheConfig(
                        ttl=settings.quote_cache_ttl,
                        maxsize=settings.quote_cache_size,
                        timeout=settings.quote_timeout,
                    ),
                )
    return _quote_gateway


async def get_strategy_engine() -> StrategyEngineInterface:
    global _strategy_engine
    if _strategy_engine is None:
        async with _singleton_lock:
            if _strategy_engine is None:
                _strategy_engine = build_strategy_engine(get_settings())
    return _strategy_engine


async def get_deck_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    entitlements: EntitlementTable = Depends(get_entitlement_table),
    quote_gateway: QuoteGateway = Depends(get_quote_gateway),
    strategy_engine: StrategyEngineInterface = Depends(get_strategy_engine),
) -> DeckService:
    """Get the shared DeckService.

    Sessions are created internally by DeckService for each operation,
    ensuring connections are not held during quote or engine calls.
    """
    global _deck_service
    if _deck_service is None:
        async with _singleton_lock:
            if _deck_service is None:
                _deck_service = DeckService(
                    session_factory=session_factory,
                    entitlements=entitlements,
                    quote_gateway=quote_gateway,
                    strategy_engine=strategy_engine,
                )
    return _deck_service


async def get_notification_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> NotificationService:
    return NotificationService(session_factory)


async def cleanup_services() -> None:
    """Release the service singletons on application shutdown.

    Cancels pending background refreshes and closes provider and engine
    HTTP clients. Called by the FastAPI lifespan manager.
    """
    global _quote_gateway, _strategy_engine, _deck_service
    if _deck_service is not None:
        await _deck_service.cancel_background()
        _deck_service = None
    if _quote_gateway is not None:
        await _quote_gateway.close()
        _quote_gateway = None
    if _strategy_engine is not None:
        await _strategy_engine.close()
        _strategy_engine = None
