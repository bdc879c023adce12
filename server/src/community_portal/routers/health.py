from datetime import datetime, timezone

import redis
from fastapi import APIRouter, Depends, HTTPException

from community_portal.backends.portal_api_client import PortalApiClient, PortalApiError
from community_portal.config import config
from community_portal.services.portal_api_service import get_portal_api
from community_portal.state import get_redis

health = APIRouter()

SERVICE_NAME = "community-portal"


def _base_status() -> dict:
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": config.get("environment") or "development",
    }


@health.get("/health")
async def health_check():
    """Basic health check endpoint"""
    return _base_status()


@health.get("/health/detailed")
async def detailed_health_check(
    redis_client: redis.Redis = Depends(get_redis),
    api: PortalApiClient = Depends(get_portal_api),
):
    """Health check including the draft store and the portal backend"""
    health_status = _base_status()
    health_status["checks"] = {}

    try:
        redis_client.ping()
        health_status["checks"]["redis"] = "healthy"
    except redis.RedisError as e:
        health_status["checks"]["redis"] = f"unhealthy: {str(e)}"
        health_status["status"] = "unhealthy"

    try:
        await api.ping()
        health_status["checks"]["backend"] = "healthy"
    except PortalApiError as e:
        health_status["checks"]["backend"] = f"unhealthy: {e.message}"
        health_status["status"] = "unhealthy"

    if not config.get("session_secret_key"):
        health_status["checks"]["environment"] = "missing: SESSION_SECRET_KEY"
        health_status["status"] = "unhealthy"
    else:
        health_status["checks"]["environment"] = "healthy"

    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
