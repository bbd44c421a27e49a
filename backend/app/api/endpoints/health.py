"""
Router de healthcheck et test de connectivité
Vérifie la santé de l'API et du broker Celery (Redis)
"""

from datetime import datetime, timezone

import redis.asyncio as aioredis
from fastapi import APIRouter, HTTPException, status

from app.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check simple de l'API
    """
    return {
        "status": "healthy",
        "service": "backend",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/health/broker")
async def health_check_broker():
    """
    Vérifie la connectivité au broker Celery (Redis)
    """
    try:
        redis_client = aioredis.from_url(
            settings.CELERY_BROKER_URL,
            encoding="utf-8",
            decode_responses=True,
        )
        await redis_client.ping()
        info = await redis_client.info()
        await redis_client.aclose()

        return {
            "status": "healthy",
            "service": "redis",
            "connected": True,
            "redis_version": info.get("redis_version"),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "status": "unhealthy",
                "service": "redis",
                "connected": False,
                "error": str(e),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
