"""
Cafe Engine — Idempotency Key Middleware

A retried checkout must not settle twice or move the till float twice:
  - Key seen     → replay the stored response (no settlement)
  - Key unseen   → run the handler, store an accepted response in Redis
"""
import json
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from cafe_engine.core.config import get_settings
from cafe_engine.core.redis_client import get_redis

settings = get_settings()

IDEMPOTENCY_PREFIX = "idempotent:"
IDEMPOTENT_ROUTES = {
    ("POST", "/orders/checkout"),
    ("POST", "/payroll/generate"),
}


def _cache_key(request: Request, idem_key: str) -> str:
    return f"{IDEMPOTENCY_PREFIX}{request.url.path}:{idem_key}"


def _replay(stored: str) -> Response:
    entry = json.loads(stored)
    return Response(
        content=entry["body"],
        status_code=entry["status_code"],
        media_type=entry.get("media_type") or "application/json",
        headers={"X-Idempotency-Replay": "true"},
    )


class IdempotencyMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        idem_key = request.headers.get("Idempotency-Key")
        if not idem_key or (request.method, request.url.path) not in IDEMPOTENT_ROUTES:
            return await call_next(request)

        redis = get_redis()
        cache_key = _cache_key(request, idem_key)

        stored = await redis.get(cache_key)
        if stored:
            return _replay(stored)

        response = await call_next(request)
        body = b"".join([chunk async for chunk in response.body_iterator])

        # rejected requests (short cash, empty float, ...) stay retryable
        if response.status_code < 400:
            await redis.setex(
                cache_key,
                settings.IDEMPOTENCY_KEY_TTL_SECONDS,
                json.dumps({
                    "body": body.decode("utf-8", errors="replace"),
                    "status_code": response.status_code,
                    "media_type": response.media_type,
                }),
            )

        return Response(
            content=body,
            status_code=response.status_code,
            media_type=response.media_type,
            headers=dict(response.headers),
        )
