"""
Idempotency-Key replay for checkout, against an in-process stand-in for Redis.
"""
import httpx
import pytest
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from cafe_engine.middleware import idempotency
from cafe_engine.middleware.idempotency import IdempotencyMiddleware


class DictRedis:
    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl


@pytest.fixture
def store(monkeypatch):
    fake = DictRedis()
    monkeypatch.setattr(idempotency, "get_redis", lambda: fake)
    return fake


@pytest.fixture
def checkout_app():
    app = FastAPI()
    app.add_middleware(IdempotencyMiddleware)
    app.state.settled = 0

    @app.post("/orders/checkout", status_code=201)
    async def checkout(cash_tendered: float = 0):
        if cash_tendered < 100:
            return JSONResponse(status_code=400, content={"error": "insufficient_cash"})
        app.state.settled += 1
        return {"receipt_number": f"R-{app.state.settled:04d}"}

    @app.post("/orders/quote")
    async def quote():
        app.state.settled += 1
        return {"ok": True}

    return app


async def post(app, path, key=None, **params):
    headers = {"Idempotency-Key": key} if key else {}
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        return await client.post(path, params=params, headers=headers)


@pytest.mark.asyncio
async def test_retry_replays_the_first_checkout(checkout_app, store):
    first = await post(checkout_app, "/orders/checkout", key="abc", cash_tendered=300)
    retry = await post(checkout_app, "/orders/checkout", key="abc", cash_tendered=300)
    assert first.status_code == retry.status_code == 201
    assert retry.json() == first.json() == {"receipt_number": "R-0001"}
    assert retry.headers["X-Idempotency-Replay"] == "true"
    assert checkout_app.state.settled == 1
    assert list(store.ttls.values()) == [86400]


@pytest.mark.asyncio
async def test_rejected_checkout_is_not_cached(checkout_app, store):
    rejected = await post(checkout_app, "/orders/checkout", key="k1", cash_tendered=50)
    assert rejected.status_code == 400
    assert store.data == {}
    accepted = await post(checkout_app, "/orders/checkout", key="k1", cash_tendered=300)
    assert accepted.status_code == 201


@pytest.mark.asyncio
async def test_requests_without_key_or_outside_paths_pass_through(checkout_app, store):
    await post(checkout_app, "/orders/checkout", cash_tendered=300)
    await post(checkout_app, "/orders/checkout", cash_tendered=300)
    await post(checkout_app, "/orders/quote", key="abc")
    await post(checkout_app, "/orders/quote", key="abc")
    assert checkout_app.state.settled == 4
    assert store.data == {}
