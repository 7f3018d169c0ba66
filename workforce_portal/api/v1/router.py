"""API v1 router configuration."""

from fastapi import APIRouter

from workforce_portal.api.v1.endpoints import health, notifications

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(notifications.router, tags=["Notifications"])
