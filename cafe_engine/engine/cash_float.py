"""
Cafe Engine — Cash float store

The till balance is owned by the service, not by each POS terminal, so every
terminal settles against the same number. Movements are appended to a ledger
so the balance can be audited.

  - InMemoryCashFloat: one process, serialized with an asyncio.Lock
  - RedisCashFloat:    INCRBYFLOAT + ledger RPUSH in one MULTI/EXEC
"""
import asyncio
import json
import logging
from datetime import datetime, timezone

import redis.asyncio as aioredis

from cafe_engine.core.config import get_settings
from cafe_engine.core.money import round_money
from cafe_engine.core.redis_client import get_redis
from cafe_engine.engine.settlement import SettlementResult

settings = get_settings()
logger = logging.getLogger(__name__)


def _ledger_entry(kind: str, amount: float, balance: float | None, reference: str | None) -> dict:
    return {
        "kind": kind,
        "amount": amount,
        "balance": balance,
        "reference": reference,
        "at": datetime.now(timezone.utc).isoformat(),
    }


class CashFloat:
    """Interface shared by the till stores."""

    async def balance(self) -> float:
        raise NotImplementedError

    async def apply(self, result: SettlementResult, reference: str | None = None) -> float:
        raise NotImplementedError

    async def reset(self, amount: float) -> float:
        raise NotImplementedError

    async def ledger(self, limit: int = 50) -> list[dict]:
        raise NotImplementedError


class InMemoryCashFloat(CashFloat):
    def __init__(self, start: float | None = None):
        self._balance = settings.CASH_FLOAT_START if start is None else start
        self._ledger: list[dict] = []
        self._lock = asyncio.Lock()

    async def balance(self) -> float:
        return self._balance

    async def apply(self, result: SettlementResult, reference: str | None = None) -> float:
        async with self._lock:
            self._balance += result.float_delta
            self._ledger.append(_ledger_entry("sale", result.float_delta, self._balance, reference))
            balance = self._balance
        logger.info("Till float %+.2f → %.2f (%s)", result.float_delta, balance, reference)
        return balance

    async def reset(self, amount: float) -> float:
        async with self._lock:
            self._balance = amount
            self._ledger.append(_ledger_entry("reset", amount, amount, None))
        logger.info("Till float reset to %.2f", amount)
        return amount

    async def ledger(self, limit: int = 50) -> list[dict]:
        return list(self._ledger[-limit:])


class RedisCashFloat(CashFloat):
    def __init__(
        self,
        redis: aioredis.Redis | None = None,
        key: str | None = None,
        ledger_key: str | None = None,
        start: float | None = None,
    ):
        self._redis = redis
        self.key = key or settings.CASH_FLOAT_KEY
        self.ledger_key = ledger_key or settings.CASH_FLOAT_LEDGER_KEY
        self.start = settings.CASH_FLOAT_START if start is None else start

    @property
    def redis(self) -> aioredis.Redis:
        return self._redis or get_redis()

    async def _ensure_initialized(self) -> None:
        created = await self.redis.set(self.key, self.start, nx=True)
        if created:
            await self.redis.rpush(
                self.ledger_key, json.dumps(_ledger_entry("open", self.start, self.start, None))
            )
            logger.info("Till float opened at %.2f", self.start)

    async def balance(self) -> float:
        await self._ensure_initialized()
        return round_money(float(await self.redis.get(self.key)))

    async def apply(self, result: SettlementResult, reference: str | None = None) -> float:
        await self._ensure_initialized()
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.incrbyfloat(self.key, result.float_delta)
            pipe.rpush(
                self.ledger_key,
                json.dumps(_ledger_entry("sale", result.float_delta, None, reference)),
            )
            new_balance, _ = await pipe.execute()
        balance = round_money(float(new_balance))
        logger.info("Till float %+.2f → %.2f (%s)", result.float_delta, balance, reference)
        return balance

    async def reset(self, amount: float) -> float:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(self.key, amount)
            pipe.rpush(self.ledger_key, json.dumps(_ledger_entry("reset", amount, amount, None)))
            await pipe.execute()
        logger.info("Till float reset to %.2f", amount)
        return amount

    async def ledger(self, limit: int = 50) -> list[dict]:
        raw = await self.redis.lrange(self.ledger_key, -limit, -1)
        return [json.loads(entry) for entry in raw]


_cash_float: CashFloat | None = None


def get_cash_float() -> CashFloat:
    global _cash_float
    if _cash_float is None:
        if settings.STATE_BACKEND == "memory":
            _cash_float = InMemoryCashFloat()
        else:
            _cash_float = RedisCashFloat()
    return _cash_float
