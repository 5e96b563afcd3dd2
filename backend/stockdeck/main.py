"""Main FastAPI application with async support and middleware.
"""
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from stockdeck.api.v1 import dashboard
from stockdeck.api.v1 import deck_stocks
from stockdeck.api.v1 import decks
from stockdeck.api.v1 import health
from stockdeck.api.v1 import market
from stockdeck.api.v1 import notifications
from stockdeck.api.v1 import strategies
from stockdeck.api.v1 import tiers
from stockdeck.core.config import get_settings
from stockdeck.core.database import close_db, create_all_tables, get_session_factory
from stockdeck.core.deps import cleanup_services
from stockdeck.core.docs import API_CONTACT
from stockdeck.core.docs import API_DESCRIPTION
from stockdeck.core.docs import API_TITLE
from stockdeck.core.docs import API_VERSION
from stockdeck.core.docs import OPENAPI_TAGS
from stockdeck.core.docs import custom_openapi_schema
from stockdeck.core.docs import get_swagger_ui_html_config
from stockdeck.core.exceptions import (
    DataValidationError,
    DuplicateEntityError,
    LimitExceededError,
    NotFoundError,
)
from stockdeck.core.rate_limit import limiter
from stockdeck.repositories.strategy_repository import StrategyRepository
from stockdeck.utils.structured_logging import configure_structured_logging
from stockdeck.utils.structured_logging import get_logger

configure_structured_logging(log_level=get_settings().log_level)
logger = get_logger(__name__)


async def seed_strategy_catalog() -> None:
    """Insert the default strategies that are not present yet."""
    session_factory = get_session_factory()
    async with session_factory() as session:
        async with session.begin():
            added = await StrategyRepository(session).seed_defaults()
    if added:
        logger.info("Seeded strategy catalog", added=added)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Handles startup and shutdown events for the FastAPI application.
    """
    settings = get_settings()

    # Startup
    logger.info(
        "Starting Stock Deck API",
        environment=settings.environment,
        market_data_provider=settings.market_data_provider,
    )

    try:
        # PostgreSQL schemas are managed by Alembic (alembic upgrade head);
        # SQLite databases are created from the model metadata.
        if settings.is_sqlite:
            await create_all_tables()
        await seed_strategy_catalog()

        logger.info("Application initialized successfully")

        yield

    finally:
        # Shutdown
        logger.info("Shutting down Stock Deck API")
        await cleanup_services()
        await close_db()
        logger.info("Application shutdown complete")


def register_exception_handlers(app: FastAPI) -> None:
    """Map the domain exception taxonomy onto HTTP responses."""
    settings = get_settings()

    @app.exception_handler(LimitExceededError)
    async def limit_exceeded_handler(request: Request, exc: LimitExceededError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={
                "error": "Limit Exceeded",
                "detail": str(exc),
                "limit": exc.limit_name,
                "limit_value": exc.limit,
                "current": exc.current,
                "tier": exc.tier,
                "tier_name": exc.tier_name,
            },
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": "Not Found", "detail": str(exc)},
        )

    @app.exception_handler(DuplicateEntityError)
    async def duplicate_handler(request: Request, exc: DuplicateEntityError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"error": "Conflict", "detail": str(exc)},
        )

    @app.exception_handler(DataValidationError)
    async def validation_handler(request: Request, exc: DataValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "Validation Error", "detail": str(exc)},
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions."""
        logger.error(
            "Unhandled exception occurred",
            exc_info=exc,
            path=str(request.url),
            method=request.method,
        )

        if settings.is_development:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal Server Error",
                    "detail": str(exc),
                    "type": type(exc).__name__,
                },
            )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal Server Error",
                "detail": "An unexpected error occurred",
            },
        )


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        contact=API_CONTACT,
        openapi_tags=OPENAPI_TAGS,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
        debug=settings.debug,
        lifespan=lifespan,
        swagger_ui_parameters=get_swagger_ui_html_config()["swagger_ui_parameters"]
        if settings.is_development
        else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    # Add rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    # Include routers
    prefix = settings.api_v1_prefix
    app.include_router(health.router, prefix=prefix, tags=["health"])
    app.include_router(decks.router, prefix=f"{prefix}/decks", tags=["decks"])
    app.include_router(deck_stocks.router, prefix=f"{prefix}/decks", tags=["deck-stocks"])
    app.include_router(market.router, prefix=f"{prefix}/market", tags=["market"])
    app.include_router(
        notifications.router, prefix=f"{prefix}/notifications", tags=["notifications"]
    )
    app.include_router(strategies.router, prefix=f"{prefix}/strategies", tags=["strategies"])
    app.include_router(tiers.router, prefix=f"{prefix}/tiers", tags=["tiers"])
    app.include_router(dashboard.router, prefix=f"{prefix}/dashboard", tags=["dashboard"])

    # Set custom OpenAPI schema with shared error responses
    if settings.is_development:
        app.openapi = lambda: custom_openapi_schema(app)

    return app


# Create application instance
app = create_app()


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Root endpoint.

    Returns:
        dict: Welcome message with links
    """
    settings = get_settings()
    return {
        "message": "Stock Deck API",
        "version": API_VERSION,
        "docs": "/docs" if settings.is_development else "disabled",
        "health": f"{settings.api_v1_prefix}/health",
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "stockdeck.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
