"""
Cafe Engine — REST backend client

Thin async wrapper over the café backend (menu, orders, staff, time-logs,
payroll, expenses, items). Transport failures become BackendError subclasses;
nothing is retried here. A malformed record in a list is skipped and logged
so it cannot take the rest of the list down with it.
"""
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from cafe_engine.core.config import get_settings
from cafe_engine.core.errors import BackendError, BackendTimeoutError, BackendUnavailableError
from cafe_engine.schemas.inventory import InventoryItem
from cafe_engine.schemas.menu import MenuItem
from cafe_engine.schemas.payroll import HoursSummary, TimeLog
from cafe_engine.schemas.staff import Staff

settings = get_settings()
logger = logging.getLogger(__name__)


def _unwrap(body: Any) -> Any:
    """Most endpoints answer ``{"success": true, "data": ...}``; some answer bare."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def _parse_each(model: type[BaseModel], raw_items: Any, kind: str) -> list:
    parsed = []
    for raw in raw_items or []:
        try:
            parsed.append(model.model_validate(raw))
        except ValidationError as exc:
            name = raw.get("name") or raw.get("_id") if isinstance(raw, dict) else raw
            logger.warning("Skipping malformed %s %r: %s", kind, name, exc.errors()[0]["msg"])
    return parsed


class BackendClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        token = settings.BACKEND_API_TOKEN if token is None else token
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.BACKEND_API_URL,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            headers=headers,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException:
            raise BackendTimeoutError(f"Backend did not respond in time: {method} {path}")
        except httpx.RequestError as exc:
            raise BackendUnavailableError(f"Backend unreachable: {exc}")

        if not response.is_success:
            try:
                body = response.json()
                detail = body.get("message") or body.get("detail") or body.get("error")
            except ValueError:
                detail = None
            raise BackendError(
                detail or f"{method} {path} failed with {response.status_code}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise BackendError(f"{method} {path} returned a non-JSON body", response.status_code)

    # ── Menu ──────────────────────────────────────────────────────────────────

    async def fetch_menu(self) -> list[MenuItem]:
        body = await self._request("GET", "/api/menu")
        raw_items = body.get("items", []) if isinstance(body, dict) else body or []
        return _parse_each(MenuItem, raw_items, "menu item")

    # ── Orders ────────────────────────────────────────────────────────────────

    async def create_order(self, payload: dict) -> dict:
        return _unwrap(await self._request("POST", "/api/orders", json=payload)) or {}

    async def update_order(self, order_id: str, payload: dict) -> dict:
        return _unwrap(await self._request("PATCH", f"/api/orders/{order_id}", json=payload)) or {}

    async def list_orders(self, **params) -> list[dict]:
        return _unwrap(await self._request("GET", "/api/orders", params=params)) or []

    # ── Staff & time logs ─────────────────────────────────────────────────────

    async def list_staff(self) -> list[Staff]:
        return _parse_each(Staff, _unwrap(await self._request("GET", "/api/staff")), "staff record")

    async def get_staff(self, staff_id: str) -> Staff:
        return Staff.model_validate(_unwrap(await self._request("GET", f"/api/staff/{staff_id}")))

    async def get_staff_hours(self, staff_id: str, start_date: str, end_date: str) -> HoursSummary | None:
        """Backend-computed hours, or None when the backend sent no totals."""
        data = _unwrap(await self._request(
            "GET",
            f"/api/time-logs/staff/{staff_id}/hours",
            params={"startDate": start_date, "endDate": end_date},
        )) or {}
        if data.get("totalHours") is None:
            return None
        logs = data.get("logs")
        log_ids = [log.get("_id") for log in logs if isinstance(log, dict) and log.get("_id")] \
            if isinstance(logs, list) else []
        return HoursSummary(
            total_hours=data.get("totalHours") or 0,
            regular_hours=data.get("regularHours") or 0,
            overtime_hours=data.get("overtimeHours") or 0,
            log_ids=log_ids,
        )

    async def list_time_logs(self, staff_id: str, start_date: str, end_date: str) -> list[TimeLog]:
        data = _unwrap(await self._request(
            "GET",
            f"/api/time-logs/staff/{staff_id}",
            params={"startDate": start_date, "endDate": end_date},
        )) or []
        return _parse_each(TimeLog, data, "time log")

    # ── Payroll ───────────────────────────────────────────────────────────────

    async def create_payroll(self, payload: dict) -> dict:
        return _unwrap(await self._request("POST", "/api/payroll", json=payload)) or {}

    async def list_payroll(self, staff_id: str, start_date: str | None = None, end_date: str | None = None) -> list[dict]:
        params = {k: v for k, v in (("startDate", start_date), ("endDate", end_date)) if v}
        return _unwrap(await self._request("GET", f"/api/payroll/staff/{staff_id}", params=params)) or []

    # ── Expenses ──────────────────────────────────────────────────────────────

    async def reset_disbursement(self) -> Any:
        return await self._request("POST", "/api/expenses/reset-disbursement")

    # ── Inventory ─────────────────────────────────────────────────────────────

    async def list_items(self) -> list[InventoryItem]:
        return _parse_each(InventoryItem, _unwrap(await self._request("GET", "/api/items")), "inventory item")

    # ── Health ────────────────────────────────────────────────────────────────

    async def ping(self) -> None:
        await self._request("GET", "/api/health")


_backend: BackendClient | None = None


def get_backend() -> BackendClient:
    global _backend
    if _backend is None:
        _backend = BackendClient()
    return _backend


async def close_backend():
    global _backend
    if _backend:
        await _backend.aclose()
        _backend = None
