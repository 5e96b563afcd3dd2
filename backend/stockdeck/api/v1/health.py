"""Health check endpoints for monitoring application status.
"""
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter
from fastapi import HTTPException
from fastapi import status

from stockdeck.core.config import get_settings
from stockdeck.core.database import check_db_health

router = APIRouter()


@router.get(
    "/health",
    response_model=dict[str, Any],
    summary="Comprehensive Health Check",
    description="Returns application status and database connectivity. "
    "Market data availability is reported but never makes the service unhealthy, "
    "since quotes degrade to fallbacks.",
    operation_id="get_health_status",
    responses={
        200: {"description": "Service is healthy"},
        503: {"description": "Service is unhealthy"},
    },
)
async def health_check() -> dict[str, Any]:
    """Comprehensive health check endpoint.

    Raises:
        HTTPException: If the database check fails (status 503)
    """
    settings = get_settings()
    health_data: dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": "1.0.0",
        "environment": settings.environment,
        "checks": {
            "application": {"status": "healthy", "message": "Application ready"},
        },
    }

    database = await check_db_health()
    health_data["checks"]["database"] = database
    if database["status"] != "healthy":
        health_data["status"] = "unhealthy"

    health_data["checks"]["market_data"] = {
        "status": "configured",
        "provider": settings.market_data_provider,
    }

    if health_data["status"] == "unhealthy":
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=health_data)

    return health_data


@router.get(
    "/health/live",
    response_model=dict[str, str],
    summary="Liveness Probe",
    description="Returns 200 OK when the application process is alive.",
    operation_id="get_liveness",
)
async def liveness_check() -> dict[str, str]:
    return {"status": "alive", "timestamp": datetime.now(UTC).isoformat()}
