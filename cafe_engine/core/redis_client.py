"""
Cafe Engine — Redis client

Holds the till float, its ledger, the expense reset marker and idempotency
replays. Only used when STATE_BACKEND is "redis".
"""
import asyncio

import redis.asyncio as aioredis
from cafe_engine.core.config import get_settings

settings = get_settings()
_redis: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.HEALTH_CHECK_TIMEOUT,
            socket_timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    return _redis


async def ping_redis(timeout: float | None = None) -> None:
    await asyncio.wait_for(get_redis().ping(), timeout=timeout or settings.HEALTH_CHECK_TIMEOUT)


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
