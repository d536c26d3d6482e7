"""
Cafe Engine — Health endpoint
"""
import asyncio
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from cafe_engine.clients.backend import BackendClient, get_backend
from cafe_engine.core.config import get_settings
from cafe_engine.core.redis_client import ping_redis

settings = get_settings()
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(backend: BackendClient = Depends(get_backend)):
    deps: dict[str, str] = {}
    healthy = True

    try:
        await asyncio.wait_for(backend.ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps["backend_api"] = "ok"
    except Exception as e:
        deps["backend_api"] = f"error: {str(e)[:100]}"
        healthy = False

    if settings.STATE_BACKEND == "redis":
        try:
            await ping_redis()
            deps["redis"] = "ok"
        except Exception as e:
            deps["redis"] = f"error: {str(e)[:100]}"
            healthy = False

    return JSONResponse(
        content={
            "status": "healthy" if healthy else "degraded",
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "dependencies": deps,
        },
        status_code=200 if healthy else 503,
    )
