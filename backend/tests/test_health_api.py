"""Tests for health check and metrics endpoints"""

import pytest
from fastapi import status
from httpx import AsyncClient
from unittest.mock import AsyncMock, patch

from marine_workorders.exceptions import StoreUnavailable


@pytest.mark.asyncio
class TestBasicHealthCheck:
    """Test basic health check endpoint"""

    async def test_basic_health_check(self, async_client: AsyncClient):
        """Test GET /health endpoint"""
        response = await async_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()

        assert data["status"] == "healthy"
        assert "timestamp" in data


@pytest.mark.asyncio
class TestDetailedHealthCheck:
    """Test detailed health check endpoint"""

    async def test_detailed_health_check(self, async_client: AsyncClient):
        """Test GET /api/v1/health endpoint"""
        response = await async_client.get("/api/v1/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()

        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["tenant_id"] == "test-tenant"
        assert set(data["services"]) == {"store", "storage"}

    async def test_store_down_is_degraded(self, async_client: AsyncClient, store):
        with patch.object(store, "read", AsyncMock(side_effect=StoreUnavailable("read", "Connection refused"))):
            response = await async_client.get("/api/v1/health")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["services"]["store"].startswith("disconnected")


@pytest.mark.asyncio
class TestMetricsEndpoint:
    """Test Prometheus exposition"""

    async def test_metrics_after_transition(self, async_client: AsyncClient, engine, work_order_id):
        await engine.transition(work_order_id, "IN_PROGRESS")

        response = await async_client.get("/metrics")

        assert response.status_code == status.HTTP_200_OK
        assert "work_order_transitions_total" in response.text
        assert 'to_status="IN_PROGRESS"' in response.text


@pytest.mark.asyncio
class TestRoot:
    """Test root endpoint"""

    async def test_root(self, async_client: AsyncClient):
        response = await async_client.get("/")

        assert response.json()["status"] == "running"
