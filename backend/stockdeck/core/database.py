"""Async database configuration and session management.
"""
import logging
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.ext.asyncio import create_async_engine

from stockdeck.core.config import Settings
from stockdeck.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def engine_options(settings: Settings) -> dict[str, Any]:
    """Build create_async_engine keyword arguments for the configured backend.

    Pool sizing and asyncpg server settings only apply to PostgreSQL; SQLite
    (local runs, tests) uses SQLAlchemy's defaults.
    """
    options: dict[str, Any] = {"echo": settings.database_echo}
    if settings.is_sqlite:
        return options

    options.update(
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=settings.database_pool_pre_ping,
        pool_recycle=settings.database_pool_recycle,
        connect_args={
            "server_settings": {
                "application_name": settings.app_name,
            },
            "command_timeout": settings.database_command_timeout,
        },
    )
    return options


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create the session factory used by services and request handlers."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_async_engine(settings.database_url, **engine_options(settings))

AsyncSessionLocal = make_session_factory(engine)

# Import Base class and all models to register them with metadata
from stockdeck.models import Base  # noqa: E402


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get async database session with proper error handling.

    Yields:
        AsyncSession: Database session
    """
    session = AsyncSessionLocal()
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Database error: {e}")
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Unexpected error: {e}")
        raise
    finally:
        await session.close()


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Dependency to get the async session factory.

    DeckService opens one short-lived session per operation, so it is given
    the factory rather than a request-scoped session.

    Returns:
        async_sessionmaker: Factory for creating AsyncSession instances
    """
    return AsyncSessionLocal


async def create_all_tables() -> None:
    """Create tables from model metadata.

    Used for SQLite development databases. PostgreSQL schemas are managed by
    Alembic migrations.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_db_health() -> dict[str, str]:
    """Check database connection health.

    Returns:
        dict: Health check result with status and details
    """
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1 as health_check"))
            health_value = result.scalar()

            if health_value == 1:
                return {
                    "status": "healthy",
                    "message": "Database connection successful",
                    "database_url": settings.database_url.split("@")[-1],  # Hide credentials
                }
            return {
                "status": "unhealthy",
                "message": "Database query returned unexpected result",
            }
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return {"status": "unhealthy", "message": f"Database connection failed: {str(e)}"}
    except OSError as e:
        logger.error(f"Database unreachable during health check: {e}")
        return {"status": "unhealthy", "message": f"Database unreachable: {str(e)}"}


async def close_db() -> None:
    """Close database connections gracefully.

    Call this during application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed successfully")
