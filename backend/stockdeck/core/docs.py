"""FastAPI documentation configuration and metadata.

OpenAPI descriptions, tags and shared error responses for the Stock Deck API.
"""
from typing import Any

from fastapi.openapi.utils import get_openapi

# API Metadata
API_TITLE = "Stock Deck API"
API_DESCRIPTION = """
## Stock Deck API

Organize stocks into **decks** (watchlists, portfolios, strategy and research
collections) under a **subscription tier** that bounds how much each user
may create.

### Tiers

| Tier | Decks | Stocks per deck | Strategies per stock | Search results |
|------|-------|-----------------|----------------------|----------------|
| 1 Freemium | 1 | 3 | 1 | 5 |
| 2 Market Hours Pro | 3 | 15 | 2 | 10 |
| 3 Sector Specialist | 5 | 25 | 3 | 10 |
| 4 Weekend Warrior | 10 | 50 | 5 | 25 |
| 5 Dark Pool Insider | 20 | 100 | 10 | 25 |
| 6 Algorithmic Trader | 50 | 250 | 25 | 50 |
| 7 Institutional Elite | unlimited | unlimited | unlimited | unlimited |

Limits are checked at the moment of each mutation. Downgrading never deletes
data; it only blocks further growth.

### Market Data

Quotes are cached for a short interval. When the market data provider is
unavailable, quotes are returned with `is_fallback: true` and performance
refreshes report `stale: true` instead of failing.

### Error Handling

- **403**: Tier limit reached (body names the limit, its value, the current count and the tier)
- **404**: Deck, stock, notification or tier not found
- **409**: Symbol or strategy already present
- **422**: Invalid input
- **5xx**: Server errors

### API Versioning

Current version: **v1** - All endpoints are prefixed with `/api/v1`
"""

API_VERSION = "1.0.0"
API_CONTACT = {
    "name": "Stock Deck",
}

# OpenAPI Tags
OPENAPI_TAGS: list[dict[str, Any]] = [
    {
        "name": "health",
        "description": "**System Health & Monitoring**\n\n"
        "Endpoints for monitoring application health and database connectivity.",
    },
    {
        "name": "decks",
        "description": "**Decks**\n\n"
        "Create, list, update and delete decks, and read deck performance analytics.",
    },
    {
        "name": "deck-stocks",
        "description": "**Stocks in Decks**\n\n"
        "Add, update and remove stocks, apply strategies and refresh performance snapshots.",
    },
    {
        "name": "market",
        "description": "**Market Data**\n\n"
        "Quotes, stock search (capped by tier) and recommendations.",
    },
    {
        "name": "notifications",
        "description": "**Notifications**\n\nUser notifications, newest first.",
    },
    {
        "name": "strategies",
        "description": "**Strategy Catalog**\n\nStrategies available to apply to stocks.",
    },
    {
        "name": "tiers",
        "description": "**Subscription Tiers**\n\n"
        "Entitlement profiles and the current user's usage.",
    },
    {
        "name": "dashboard",
        "description": "**Dashboard**\n\nCounters shown on the dashboard.",
    },
]

# Response Examples
COMMON_RESPONSES = {
    403: {
        "description": "Forbidden - Tier limit reached",
        "content": {
            "application/json": {
                "example": {
                    "error": "Limit Exceeded",
                    "detail": "max_stocks_per_deck limit of 3 reached for tier Freemium (current: 3)",
                    "limit": "max_stocks_per_deck",
                    "limit_value": 3,
                    "current": 3,
                    "tier": 1,
                    "tier_name": "Freemium",
                }
            }
        },
    },
    404: {
        "description": "Not Found - Resource not found",
        "content": {
            "application/json": {
                "example": {"error": "Not Found", "detail": "Deck 42 not found"}
            }
        },
    },
    409: {
        "description": "Conflict - Entity already present",
        "content": {
            "application/json": {
                "example": {
                    "error": "Conflict",
                    "detail": "Stock AAPL already exists in deck 1",
                }
            }
        },
    },
    422: {
        "description": "Validation Error - Request validation failed",
        "content": {
            "application/json": {
                "example": {"error": "Validation Error", "detail": "Deck name must not be empty"}
            }
        },
    },
    500: {
        "description": "Internal Server Error - Server encountered an error",
        "content": {
            "application/json": {
                "example": {
                    "error": "Internal Server Error",
                    "detail": "An unexpected error occurred",
                }
            }
        },
    },
}


def custom_openapi_schema(app) -> dict[str, Any]:
    """Generate custom OpenAPI schema with shared error responses.

    Args:
        app: FastAPI application instance

    Returns:
        Dict[str, Any]: Custom OpenAPI schema
    """
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=API_TITLE,
        version=API_VERSION,
        description=API_DESCRIPTION,
        routes=app.routes,
        tags=OPENAPI_TAGS,
        contact=API_CONTACT,
    )

    openapi_schema["servers"] = [
        {"url": "http://localhost:8000", "description": "Local Development Server"},
    ]

    openapi_schema["components"] = openapi_schema.get("components", {})
    openapi_schema["components"]["responses"] = COMMON_RESPONSES

    app.openapi_schema = openapi_schema
    return app.openapi_schema


def get_swagger_ui_html_config() -> dict[str, Any]:
    """Get Swagger UI HTML configuration.

    Returns:
        Dict[str, Any]: Swagger UI configuration
    """
    return {
        "swagger_ui_parameters": {
            "deepLinking": True,
            "displayRequestDuration": True,
            "docExpansion": "list",
            "filter": True,
            "tryItOutEnabled": True,
        },
    }
