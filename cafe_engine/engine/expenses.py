"""
Cafe Engine — Expense disbursement reset gate

Expenses carry a ``disbursed`` flag that is cleared every calendar day. The
gate triggers the backend reset at most once per day, remembering when it last
checked.
"""
import logging
from datetime import datetime, timezone

import redis.asyncio as aioredis

from cafe_engine.clients.backend import BackendClient
from cafe_engine.core.config import get_settings
from cafe_engine.core.redis_client import get_redis

settings = get_settings()
logger = logging.getLogger(__name__)


def should_reset(last_check: datetime | None, now: datetime) -> bool:
    if last_check is None:
        return True
    start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if last_check.tzinfo is None and start_of_today.tzinfo is not None:
        last_check = last_check.replace(tzinfo=start_of_today.tzinfo)
    return last_check < start_of_today


class DisbursementResetGate:
    """Remembers the last check in Redis, or in memory when ``redis`` is False."""

    def __init__(self, redis: aioredis.Redis | bool | None = None, key: str | None = None):
        self._redis = redis
        self.key = key or settings.EXPENSE_RESET_KEY
        self._last_check: datetime | None = None

    @property
    def _store(self) -> aioredis.Redis | None:
        if self._redis is False:
            return None
        return self._redis or get_redis()

    async def last_check(self) -> datetime | None:
        store = self._store
        if store is None:
            return self._last_check
        raw = await store.get(self.key)
        return datetime.fromisoformat(raw) if raw else None

    async def _remember(self, when: datetime) -> None:
        store = self._store
        if store is None:
            self._last_check = when
        else:
            await store.set(self.key, when.isoformat())

    async def check_and_reset(self, backend: BackendClient, now: datetime | None = None) -> bool:
        """Reset today's disbursements if nobody has yet. Returns True if it reset."""
        now = now or datetime.now(timezone.utc)
        if not should_reset(await self.last_check(), now):
            return False
        await backend.reset_disbursement()
        await self._remember(now)
        logger.info("Expense disbursements reset for %s", now.date().isoformat())
        return True


_gate: DisbursementResetGate | None = None


def get_reset_gate() -> DisbursementResetGate:
    global _gate
    if _gate is None:
        _gate = DisbursementResetGate(redis=False if settings.STATE_BACKEND == "memory" else None)
    return _gate
