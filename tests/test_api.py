"""
HTTP surface, with the REST backend mocked and the till held in memory.
"""
import json
from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from cafe_engine.clients.backend import BackendClient, get_backend
from cafe_engine.engine.cash_float import InMemoryCashFloat, get_cash_float
from cafe_engine.engine.expenses import DisbursementResetGate, get_reset_gate
from cafe_engine.main import app


class FakeBackend:
    """Routes ``(method, path)`` to canned JSON and records what was sent."""

    def __init__(self, menu_payload):
        self.calls: list[tuple[str, str, dict | None]] = []
        self.routes = {
            ("GET", "/api/menu"): (200, menu_payload),
            ("POST", "/api/orders"): (201, {"success": True, "data": {"receiptNumber": "R-0001"}}),
            ("GET", "/api/health"): (200, {"status": "ok"}),
            ("GET", "/api/staff/s1"): (200, {"data": {"_id": "s1", "name": "Ana Cruz",
                                                      "dailyRate": 800, "allowances": 500}}),
            ("GET", "/api/time-logs/staff/s1/hours"): (200, {"data": {
                "totalHours": 176, "regularHours": 168, "overtimeHours": 8,
                "logs": [{"_id": "log-1"}, {"_id": "log-2"}],
            }}),
            ("GET", "/api/payroll/staff/s1"): (200, {"data": []}),
            ("POST", "/api/payroll"): (201, {"data": {"_id": "p1"}}),
        }

    def sent(self, method: str, path: str) -> list[dict | None]:
        return [body for m, p, body in self.calls if (m, p) == (method, path)]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, request.url.path, body))
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": f"No route {request.url.path}"})
        status_code, payload = route
        if isinstance(payload, type) and issubclass(payload, Exception):
            raise payload("backend stalled", request=request)
        return httpx.Response(status_code, json=payload)


@pytest.fixture
def fake_backend(menu_payload):
    return FakeBackend(menu_payload)


@pytest.fixture
def till():
    return InMemoryCashFloat(500.0)


@pytest.fixture
def gate():
    return DisbursementResetGate(redis=False)


@pytest_asyncio.fixture
async def client(fake_backend, till, gate):
    backend = BackendClient(base_url="http://backend.test", transport=httpx.MockTransport(fake_backend))
    app.dependency_overrides[get_backend] = lambda: backend
    app.dependency_overrides[get_cash_float] = lambda: till
    app.dependency_overrides[get_reset_gate] = lambda: gate
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    await backend.aclose()


LATTES = [{"item_id": "latte", "size": "Large", "quantity": 2}]


# ─── Orders ────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_quote(client):
    resp = await client.post("/orders/quote", json={"lines": LATTES, "discount_applied": True})
    assert resp.status_code == 200
    data = resp.json()
    assert data["totals"]["subtotal"] == 300.0
    assert data["totals"]["discount"] == 30.0
    assert data["totals"]["total"] == 270.0
    assert data["totals"]["formatted"]["total"] == "₱270.00"
    assert 6 <= data["estimated_prep_minutes"] <= 9


@pytest.mark.asyncio
async def test_cash_checkout_moves_the_float(client, fake_backend, till):
    resp = await client.post("/orders/checkout", json={
        "lines": LATTES, "discount_applied": True,
        "payment_method": "cash", "cash_tendered": 300,
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["receipt_number"] == "R-0001"
    assert data["change"] == 30.0
    assert data["cash_float"] == 770.0
    assert await till.balance() == 770.0

    [sent] = fake_backend.sent("POST", "/api/orders")
    assert sent["totals"] == {"subtotal": 300.0, "discount": 30.0, "total": 270.0,
                              "cashReceived": 300.0, "change": 30.0}
    assert sent["status"] == "received"


@pytest.mark.asyncio
async def test_card_checkout_leaves_the_float(client, till):
    resp = await client.post("/orders/checkout", json={"lines": LATTES, "payment_method": "card"})
    assert resp.status_code == 201
    assert resp.json()["cash_float"] is None
    assert await till.balance() == 500.0


@pytest.mark.asyncio
async def test_pending_checkout_is_saved_unpaid(client, fake_backend):
    resp = await client.post("/orders/checkout", json={
        "lines": LATTES, "payment_method": "pending", "order_type": "chatbot",
    })
    assert resp.status_code == 201
    [sent] = fake_backend.sent("POST", "/api/orders")
    assert (sent["status"], sent["paymentMethod"], sent["orderType"]) == ("pending", "pending", "chatbot")


@pytest.mark.asyncio
async def test_change_beyond_float_is_refused_before_saving(client, fake_backend, till):
    resp = await client.post("/orders/checkout", json={
        "lines": LATTES, "payment_method": "cash", "cash_tendered": 1000,
    })
    assert resp.status_code == 400
    assert resp.json()["error"] == "insufficient_float"
    assert fake_backend.sent("POST", "/api/orders") == []
    assert await till.balance() == 500.0


@pytest.mark.asyncio
async def test_short_cash_is_refused(client):
    resp = await client.post("/orders/checkout", json={
        "lines": LATTES, "payment_method": "cash", "cash_tendered": 100,
    })
    assert resp.status_code == 400
    assert resp.json()["error"] == "insufficient_cash"


@pytest.mark.asyncio
async def test_failed_save_leaves_the_float(client, fake_backend, till):
    fake_backend.routes[("POST", "/api/orders")] = (500, {"message": "db down"})
    resp = await client.post("/orders/checkout", json={
        "lines": LATTES, "payment_method": "cash", "cash_tendered": 300,
    })
    assert resp.status_code == 502
    assert resp.json()["detail"] == "db down"
    assert await till.balance() == 500.0


@pytest.mark.asyncio
async def test_backend_timeout_is_504(client, fake_backend):
    fake_backend.routes[("GET", "/api/menu")] = (200, httpx.ReadTimeout)
    resp = await client.post("/orders/quote", json={"lines": LATTES})
    assert resp.status_code == 504
    assert resp.json()["error"] == "backend_timeout"


@pytest.mark.asyncio
async def test_unknown_item_and_size(client):
    resp = await client.post("/orders/quote", json={"lines": [{"item_id": "espresso"}]})
    assert (resp.status_code, resp.json()["error"]) == (400, "unknown_menu_item")
    resp = await client.post("/orders/quote", json={"lines": [{"item_id": "latte", "size": "Venti"}]})
    assert (resp.status_code, resp.json()["error"]) == (400, "invalid_size")


@pytest.mark.asyncio
async def test_empty_order_is_a_request_error(client):
    resp = await client.post("/orders/quote", json={"lines": []})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_status_update(client, fake_backend):
    fake_backend.routes[("PATCH", "/api/orders/o1")] = (200, {"data": {"_id": "o1", "status": "preparing"}})
    resp = await client.post("/orders/o1/status", json={"current_status": "received", "status": "preparing"})
    assert resp.status_code == 200
    assert fake_backend.sent("PATCH", "/api/orders/o1") == [{"status": "preparing"}]

    resp = await client.post("/orders/o1/status", json={"current_status": "received", "status": "completed"})
    assert (resp.status_code, resp.json()["error"]) == (400, "invalid_status_transition")


@pytest.mark.asyncio
async def test_status_update_for_missing_order(client):
    resp = await client.post("/orders/nope/status", json={"current_status": "ready", "status": "completed"})
    assert resp.status_code == 404


# ─── Till ──────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_float_reset_and_read(client):
    resp = await client.post("/cash-float/reset", json={"amount": 2000})
    assert resp.json() == {"balance": 2000.0, "formatted": "₱2,000.00"}
    resp = await client.get("/cash-float", params={"ledger_limit": 5})
    data = resp.json()
    assert data["balance"] == 2000.0
    assert [entry["kind"] for entry in data["ledger"]] == ["reset"]


# ─── Payroll ───────────────────────────────────────────────────────────────────
PAYROLL = {"staff_id": "s1", "payroll_period": "2024-05", "late_minutes": 30}


@pytest.mark.asyncio
async def test_payroll_preview(client):
    resp = await client.post("/payroll/preview", json=PAYROLL)
    assert resp.status_code == 200
    data = resp.json()
    assert data["breakdown"]["net_pay"] == 18250.0
    assert data["net_pay_formatted"] == "₱18,250.00"


@pytest.mark.asyncio
async def test_payroll_preview_with_override(client):
    resp = await client.post("/payroll/preview", json={**PAYROLL, "override": {"total_hours": 8, "overtime_hours": 0}})
    assert resp.json()["breakdown"]["net_pay"] == 800 + 500 - 50


@pytest.mark.asyncio
async def test_payroll_preview_pairs_punches_when_totals_are_missing(client, fake_backend):
    fake_backend.routes[("GET", "/api/time-logs/staff/s1/hours")] = (200, {"data": {"logs": []}})
    fake_backend.routes[("GET", "/api/time-logs/staff/s1")] = (200, {"data": [
        {"_id": "in-1", "staffId": "s1", "type": "clockIn", "timestamp": "2024-05-06T08:00:00Z"},
        {"_id": "out-1", "staffId": "s1", "type": "clockOut", "timestamp": "2024-05-06T18:00:00Z"},
    ]})
    resp = await client.post("/payroll/preview", json=PAYROLL)
    assert resp.status_code == 200
    breakdown = resp.json()["breakdown"]
    assert (breakdown["total_hours"], breakdown["overtime_hours"]) == (10, 2)
    assert breakdown["net_pay"] == 8 * 100 + 2 * 125 + 500 - 50


@pytest.mark.asyncio
async def test_payroll_period_must_be_a_month(client):
    resp = await client.post("/payroll/preview", json={**PAYROLL, "payroll_period": "2024-13"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_generate_first_payslip(client, fake_backend):
    resp = await client.post("/payroll/generate", json=PAYROLL)
    assert resp.status_code == 201
    assert resp.json()["version"] == 1
    [sent] = fake_backend.sent("POST", "/api/payroll")
    assert sent["payrollPeriod"] == "2024-05-01"
    assert sent["netPay"] == 18250.0
    assert sent["timeLogs"] == ["log-1", "log-2"]


@pytest.mark.asyncio
async def test_existing_payslip_needs_regenerate(client, fake_backend):
    fake_backend.routes[("GET", "/api/payroll/staff/s1")] = (200, {"data": [{
        "staffId": {"_id": "s1"}, "payrollPeriod": "2024-05-01T00:00:00.000Z",
        "netPay": 17000, "version": 1, "createdAt": "2024-05-31T10:00:00Z",
    }]})
    resp = await client.post("/payroll/generate", json=PAYROLL)
    assert (resp.status_code, resp.json()["error"]) == (400, "invalid_payroll_input")
    assert fake_backend.sent("POST", "/api/payroll") == []

    resp = await client.post("/payroll/generate", json={**PAYROLL, "regenerate": True})
    assert resp.status_code == 201
    assert (resp.json()["version"], resp.json()["supersedes"]) == (2, 1)


# ─── Inventory ─────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_inventory_evaluate(client):
    resp = await client.post("/inventory/evaluate", json=[
        {"_id": "milk", "name": "Whole Milk", "unit": "L",
         "inventory": [{"quantity": 3, "expirationDate": "not a date"}]},
    ])
    assert resp.status_code == 200
    [result] = resp.json()
    assert result["status"] == "Low Stock"
    assert [alert["type"] for alert in result["alerts"]] == ["stock"]


@pytest.mark.asyncio
async def test_inventory_alerts_from_backend(client, fake_backend):
    fake_backend.routes[("GET", "/api/items")] = (200, {"data": [
        {"_id": "beans", "name": "Beans", "inventory": [{"quantity": 20, "expirationDate": "2020-01-01"}]},
    ]})
    resp = await client.get("/inventory/alerts")
    [alert] = resp.json()
    assert alert["type"] == "expiration"
    assert "expired" in alert["message"]


@pytest.mark.asyncio
async def test_inventory_alerts_skip_malformed_items(client, fake_backend):
    fake_backend.routes[("GET", "/api/items")] = (200, {"data": [
        {"_id": "milk", "name": "Milk", "inventory": [{"quantity": "n/a"}]},
        {"_id": "beans", "name": "Beans", "inventory": [{"quantity": 20, "expirationDate": "2020-01-01"}]},
    ]})
    resp = await client.get("/inventory/alerts")
    assert resp.status_code == 200
    assert [alert["id"] for alert in resp.json()] == ["beans-0"]


# ─── Reports, staff, expenses ─────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_daily_revenue(client, fake_backend):
    now = datetime.now(timezone.utc).isoformat()
    fake_backend.routes[("GET", "/api/orders")] = (200, {"data": [
        {"createdAt": now, "paymentMethod": "cash", "totals": {"total": 270}, "items": []},
        {"createdAt": now, "paymentMethod": "pending", "totals": {"total": 99}, "items": []},
    ]})
    resp = await client.get("/revenue/daily")
    data = resp.json()
    assert data["total_revenue"] == 270.0
    assert data["order_count"] == 1


@pytest.mark.asyncio
async def test_staff_validation(client, fake_backend):
    fake_backend.routes[("GET", "/api/staff")] = (200, {"data": [
        {"_id": "s9", "name": "Ben", "pinCode": "1234", "status": "Active"},
    ]})
    resp = await client.post("/staff/validate", json={"staff": {
        "name": "Ana", "email": "ana@cafe.ph", "phone": "09123456789", "pinCode": "1234",
    }})
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"] == "invalid_staff"
    assert data["errors"] == {"pinCode": "PIN code already in use by another staff member"}


@pytest.mark.asyncio
async def test_valid_staff_form_ignores_malformed_roster_rows(client, fake_backend):
    fake_backend.routes[("GET", "/api/staff")] = (200, {"data": [
        {"_id": "s8", "name": "Cara", "pinCode": "1234", "dailyRate": "lots"},
        {"_id": "s9", "name": "Ben", "pinCode": "5678", "status": "Active"},
    ]})
    resp = await client.post("/staff/validate", json={"staff": {
        "name": "Ana", "email": "ana@cafe.ph", "phone": "09123456789", "pinCode": "1234",
    }})
    assert resp.status_code == 200
    assert resp.json() == {"valid": True, "errors": {}}


@pytest.mark.asyncio
async def test_expense_reset_once_per_day(client, fake_backend):
    fake_backend.routes[("POST", "/api/expenses/reset-disbursement")] = (200, {"modifiedCount": 2})
    first = await client.post("/expenses/reset-check")
    second = await client.post("/expenses/reset-check")
    assert first.json()["reset"] is True
    assert second.json()["reset"] is False
    assert len(fake_backend.sent("POST", "/api/expenses/reset-disbursement")) == 1


# ─── Health ────────────────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_health(client, fake_backend):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["dependencies"] == {"backend_api": "ok"}

    fake_backend.routes[("GET", "/api/health")] = (500, {"message": "down"})
    resp = await client.get("/health")
    assert resp.status_code == 503
    assert resp.json()["status"] == "degraded"
