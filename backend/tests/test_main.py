"""Tests for the main FastAPI application.
"""
import pytest
from fastapi import status
from httpx import AsyncClient

from stockdeck.main import app
from stockdeck.main import create_app


class TestMainApplication:
    """Test the main FastAPI application configuration and endpoints."""

    def test_create_app(self):
        """Test application factory function."""
        test_app = create_app()
        assert test_app is not None
        assert test_app.title == "Stock Deck API"
        assert test_app.version == "1.0.0"

    def test_routes_registered(self):
        """Test every router is mounted under the v1 prefix."""
        paths = {route.path for route in app.routes}
        for path in (
            "/api/v1/health",
            "/api/v1/decks",
            "/api/v1/decks/{deck_id}/stocks",
            "/api/v1/decks/{deck_id}/stocks/{symbol}/strategies",
            "/api/v1/market/search",
            "/api/v1/notifications",
            "/api/v1/strategies",
            "/api/v1/tiers/me",
            "/api/v1/dashboard/stats",
        ):
            assert path in paths

    @pytest.mark.asyncio
    async def test_root_endpoint_async(self, async_client: AsyncClient):
        """Test the root endpoint with async client."""
        response = await async_client.get("/")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()

        assert data["message"] == "Stock Deck API"
        assert data["version"] == "1.0.0"
        assert data["health"] == "/api/v1/health"

    @pytest.mark.asyncio
    async def test_cors_headers(self, async_client: AsyncClient):
        """Test CORS headers are properly configured."""
        response = await async_client.options(
            "/api/v1/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.status_code in [status.HTTP_200_OK, status.HTTP_204_NO_CONTENT]

    @pytest.mark.asyncio
    async def test_nonexistent_endpoint(self, async_client: AsyncClient):
        """Test that nonexistent endpoints return 404."""
        response = await async_client.get("/nonexistent")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_app_middleware_configured(self):
        """Test that middleware is properly configured."""
        from starlette.middleware.cors import CORSMiddleware
        middleware_classes = [middleware.cls for middleware in app.user_middleware]
        assert CORSMiddleware in middleware_classes
