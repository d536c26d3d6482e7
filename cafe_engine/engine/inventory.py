"""
Cafe Engine — Inventory status / expiry evaluator

Quantity and status are derived from the batches on every evaluation. Every
batch gets an expiration alert no matter how far out it is. A batch with a
missing or unreadable date is skipped and logged, never fatal.
"""
import logging
import math
from datetime import date, datetime, time, timezone
from typing import Any, Iterable

from cafe_engine.core.config import get_settings
from cafe_engine.core.money import as_number
from cafe_engine.schemas.inventory import (
    Batch,
    InventoryAlert,
    InventoryEvaluation,
    InventoryItem,
    StockStatus,
)

settings = get_settings()
logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def stock_status(total_quantity: float, low_threshold: int | None = None) -> StockStatus:
    low_threshold = settings.LOW_STOCK_THRESHOLD if low_threshold is None else low_threshold
    if total_quantity == 0:
        return StockStatus.OUT_OF_STOCK
    if total_quantity <= low_threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def parse_expiration(value: Any) -> datetime | None:
    """Return an aware datetime, or None when the value is missing or unreadable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_left(expiration: datetime, now: datetime) -> int:
    return math.ceil((expiration - now).total_seconds() / SECONDS_PER_DAY)


def expiration_message(item_name: str, remaining: int, expiration: datetime) -> str:
    stamp = expiration.date().isoformat()
    if remaining >= 0:
        return f"{item_name} batch expiring in {remaining} day(s) ({stamp})"
    return f"{item_name} batch expired {abs(remaining)} day(s) ago ({stamp})"


def _expiration_alert(item: InventoryItem, index: int, batch: Batch, now: datetime) -> InventoryAlert | None:
    expiration = parse_expiration(batch.expiration_date)
    if expiration is None:
        logger.warning(
            "Invalid expiration date %r for batch %s of %s; skipping alert",
            batch.expiration_date, batch.id or index, item.name,
        )
        return None
    remaining = days_left(expiration, now)
    return InventoryAlert(
        type="expiration",
        id=f"{item.id or item.name}-{batch.id or index}",
        message=expiration_message(item.name, remaining, expiration),
        days_left=remaining,
        date=expiration.isoformat(),
    )


def evaluate(item: InventoryItem, now: datetime | None = None) -> InventoryEvaluation:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    total_quantity = sum(as_number(batch.quantity, "batch quantity") for batch in item.inventory)
    status = stock_status(total_quantity)

    alerts: list[InventoryAlert] = []
    if status != StockStatus.IN_STOCK:
        state = "out of stock" if status == StockStatus.OUT_OF_STOCK else "low on stock"
        alerts.append(InventoryAlert(
            type="stock",
            id=item.id or item.name,
            message=f"{item.name} is {state} ({total_quantity:g} {item.unit} remaining)",
            date=now.isoformat(),
        ))

    for index, batch in enumerate(item.inventory):
        alert = _expiration_alert(item, index, batch, now)
        if alert is not None:
            alerts.append(alert)

    return InventoryEvaluation(
        id=item.id,
        name=item.name,
        total_quantity=total_quantity,
        status=status,
        alerts=alerts,
    )


def evaluate_all(items: Iterable[InventoryItem], now: datetime | None = None) -> list[InventoryEvaluation]:
    now = now or datetime.now(timezone.utc)
    return [evaluate(item, now) for item in items]
