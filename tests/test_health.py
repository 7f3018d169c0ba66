"""Tests for health check endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from workforce_portal.config import DeliveryConfig

HEALTH_MODULE = "workforce_portal.api.v1.endpoints.health"


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_ping(client: AsyncClient):
    response = await client.get("/api/v1/ping")

    assert response.json() == {"message": "pong"}


@pytest.mark.asyncio
async def test_detailed_health_reports_delivery_dependencies(client: AsyncClient):
    config = DeliveryConfig(
        device_token_batch_size=150,
        max_devices_per_push=3,
        backup_push_notification_results=True,
        fcm_project_id="test-project",
    )

    with (
        patch(f"{HEALTH_MODULE}.check_database_connection", AsyncMock(return_value=True)),
        patch(f"{HEALTH_MODULE}.check_redis_connection", AsyncMock(return_value=True)),
        patch(f"{HEALTH_MODULE}.get_firebase_app", return_value=MagicMock()),
        patch(f"{HEALTH_MODULE}.get_delivery_config", return_value=config),
    ):
        response = await client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "healthy"
    assert data["redis"] == "healthy"
    assert data["firebase"] == "healthy"
    assert data["delivery"] == {
        "device_token_batch_size": 150,
        "max_devices_per_push": 3,
        "backup_push_notification_results": True,
        "fcm_project_configured": True,
    }


@pytest.mark.asyncio
async def test_detailed_health_degraded_without_firebase(client: AsyncClient):
    """Topic management is unavailable until the Admin SDK is initialized."""
    with (
        patch(f"{HEALTH_MODULE}.check_database_connection", AsyncMock(return_value=True)),
        patch(f"{HEALTH_MODULE}.check_redis_connection", AsyncMock(return_value=True)),
        patch(
            f"{HEALTH_MODULE}.get_firebase_app",
            side_effect=RuntimeError("Firebase not initialized"),
        ),
    ):
        response = await client.get("/api/v1/health/detailed")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["firebase"] == "uninitialized"
    assert data["database"] == "healthy"


@pytest.mark.asyncio
async def test_detailed_health_degraded_when_redis_down(client: AsyncClient):
    with (
        patch(f"{HEALTH_MODULE}.check_database_connection", AsyncMock(return_value=True)),
        patch(f"{HEALTH_MODULE}.check_redis_connection", AsyncMock(return_value=False)),
        patch(f"{HEALTH_MODULE}.get_firebase_app", return_value=MagicMock()),
    ):
        response = await client.get("/api/v1/health/detailed")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["redis"] == "unhealthy"
