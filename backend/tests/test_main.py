"""
Tests for main application
"""
import pytest
from httpx import AsyncClient


class TestHealthCheck:
    """Tests for health check endpoint"""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        """Test health check returns healthy status"""
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert "app" in data


class TestAppConfiguration:
    """Tests for application configuration"""

    @pytest.mark.asyncio
    async def test_cors_headers(self, client: AsyncClient):
        """Test CORS preflight for a configured origin"""
        response = await client.options(
            "/api/audits",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            }
        )

        assert response.headers.get("access-control-allow-origin") == "http://localhost:3000"

    @pytest.mark.asyncio
    async def test_api_routes_mounted(self, client: AsyncClient):
        """Test that API routes are properly mounted"""
        response = await client.get("/api/audits")
        assert response.status_code == 200

        response = await client.get("/api/catalog/standards")
        assert response.status_code == 200

        response = await client.get("/api/nonexistent")
        assert response.status_code in [404, 405]


class TestSettings:
    """Tests for settings validation"""

    def test_prod_rejects_debug(self):
        from app.core.config import Settings

        with pytest.raises(ValueError):
            Settings(ENV="prod", DEBUG=True, CORS_ORIGINS="https://audits.example.com")

    def test_prod_rejects_localhost_origins(self):
        from app.core.config import Settings

        with pytest.raises(ValueError):
            Settings(ENV="prod", DEBUG=False, CORS_ORIGINS="http://localhost:3000")
