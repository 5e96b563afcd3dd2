"""Shared pytest fixtures for testing infrastructure.

CRITICAL: Environment variables MUST be set before ANY imports.
"""
import os
import tempfile

# ===============================================================================
# CRITICAL: Set test environment variables FIRST, before ANY other imports!
# The module-level engine in stockdeck.core.database is built from these.
# Each test still gets its own database file through the fixtures below.
# ===============================================================================
_TEST_DB_DIR = tempfile.mkdtemp(prefix="stockdeck-tests-")
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{_TEST_DB_DIR}/stockdeck.db"

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["DATABASE_ECHO"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["MARKET_DATA_PROVIDER"] = "mock"
os.environ["STRATEGY_ENGINE_URL"] = ""

# Now import everything else AFTER environment is configured
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.ext.asyncio import create_async_engine

from stockdeck.core.config import Settings, get_settings
from stockdeck.core.database import Base, get_db_session, get_session_factory
from stockdeck.core.database import make_session_factory
from stockdeck.core.deps import (
    get_current_tier,
    get_deck_service,
    get_notification_service,
    get_quote_gateway,
    get_strategy_engine,
)
from stockdeck.core.entitlements import DataTier, EntitlementTable, default_entitlement_table
from stockdeck.providers.mock import MockQuoteProvider
from stockdeck.services.deck_service import DeckService
from stockdeck.services.notification_service import NotificationService
from stockdeck.services.quote_gateway import QuoteGateway
from stockdeck.services.strategy_engine import LoggingStrategyEngine
from stockdeck.utils.structured_logging import configure_structured_logging


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings.

    Returns:
        Settings: Test configuration
    """
    return Settings(
        environment="test",
        database_url=TEST_DATABASE_URL,
        database_echo=False,
        log_level="WARNING",
        market_data_provider="mock",
        debug=True,
    )


@pytest.fixture(scope="session", autouse=True)
def configure_logging(test_settings: Settings):
    """Configure structured logging for tests."""
    configure_structured_logging(log_level=test_settings.log_level)


@pytest_asyncio.fixture
async def test_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Per-test SQLite database file with every table created.

    A file (not ``:memory:``) so concurrent sessions get their own
    connections, as they would against PostgreSQL.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging and inspecting rows directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def entitlements() -> EntitlementTable:
    return default_entitlement_table()


@pytest.fixture
def mock_provider() -> MockQuoteProvider:
    return MockQuoteProvider()


@pytest.fixture
def quote_gateway(mock_provider: MockQuoteProvider) -> QuoteGateway:
    return QuoteGateway(mock_provider)


@pytest.fixture
def strategy_engine() -> LoggingStrategyEngine:
    return LoggingStrategyEngine()


@pytest_asyncio.fixture
async def deck_service(
    session_factory, entitlements, quote_gateway, strategy_engine
) -> AsyncGenerator[DeckService, None]:
    """DeckService over the per-test database.

    Background refresh after add_stock is off so tests stay deterministic;
    tests that exercise it build their own service.
    """
    service = DeckService(
        session_factory=session_factory,
        entitlements=entitlements,
        quote_gateway=quote_gateway,
        strategy_engine=strategy_engine,
        refresh_on_add=False,
    )
    yield service
    await service.cancel_background()


@pytest.fixture
def notification_service(session_factory) -> NotificationService:
    return NotificationService(session_factory)


@pytest.fixture
def api_tier() -> dict[str, int]:
    """Mutable holder for the tier the API acts under; tests may change it."""
    return {"tier": int(DataTier.MARKET_HOURS_PRO)}


@pytest.fixture
def app(
    test_settings,
    session_factory,
    deck_service,
    notification_service,
    quote_gateway,
    strategy_engine,
    api_tier,
):
    """Create FastAPI test application with dependency overrides."""
    from stockdeck.main import app as main_app

    async def _get_test_db_session():
        async with session_factory() as session:
            yield session
            await session.commit()

    main_app.dependency_overrides[get_settings] = lambda: test_settings
    main_app.dependency_overrides[get_db_session] = _get_test_db_session
    main_app.dependency_overrides[get_session_factory] = lambda: session_factory
    main_app.dependency_overrides[get_deck_service] = lambda: deck_service
    main_app.dependency_overrides[get_notification_service] = lambda: notification_service
    main_app.dependency_overrides[get_quote_gateway] = lambda: quote_gateway
    main_app.dependency_overrides[get_strategy_engine] = lambda: strategy_engine
    main_app.dependency_overrides[get_current_tier] = lambda: api_tier["tier"]

    yield main_app

    main_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client.

    Yields:
        AsyncClient: Async test client
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
