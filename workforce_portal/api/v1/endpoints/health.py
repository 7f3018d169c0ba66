"""Health check endpoints for the notification service."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from workforce_portal.config import get_delivery_config, settings
from workforce_portal.core.firebase import get_firebase_app
from workforce_portal.core.redis_client import check_redis_connection
from workforce_portal.database import check_database_connection

router = APIRouter()


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str
    version: str
    environment: str


class DeliverySettingsResponse(BaseModel):
    """Delivery limits the engine is currently running with."""

    device_token_batch_size: int
    max_devices_per_push: int
    backup_push_notification_results: bool
    fcm_project_configured: bool


class DetailedHealthResponse(HealthResponse):
    """Readiness response covering every delivery dependency."""

    database: str
    redis: str
    firebase: str
    delivery: DeliverySettingsResponse


def _firebase_status() -> str:
    # Topic subscribe/unsubscribe need the Admin SDK app
    try:
        get_firebase_app()
    except RuntimeError:
        return "uninitialized"
    return "healthy"


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        environment=settings.environment,
    )


@router.get(
    "/health/detailed",
    response_model=DetailedHealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Detailed health check",
)
async def detailed_health_check() -> DetailedHealthResponse:
    """
    Report the database, Redis and Firebase Admin state plus delivery limits.

    The service is `degraded` when any dependency is unavailable.
    """
    db_healthy = await check_database_connection()
    redis_healthy = await check_redis_connection()
    firebase = _firebase_status()
    config = get_delivery_config()

    healthy = db_healthy and redis_healthy and firebase == "healthy"

    return DetailedHealthResponse(
        status="healthy" if healthy else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        database="healthy" if db_healthy else "unhealthy",
        redis="healthy" if redis_healthy else "unhealthy",
        firebase=firebase,
        delivery=DeliverySettingsResponse(
            device_token_batch_size=config.device_token_batch_size,
            max_devices_per_push=config.max_devices_per_push,
            backup_push_notification_results=config.backup_push_notification_results,
            fcm_project_configured=bool(config.fcm_project_id),
        ),
    )


@router.get(
    "/ping",
    status_code=status.HTTP_200_OK,
    tags=["Health"],
    summary="Simple ping",
)
async def ping() -> dict[str, str]:
    return {"message": "pong"}
