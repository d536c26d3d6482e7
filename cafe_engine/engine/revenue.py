"""
Cafe Engine — Revenue reporter

Summarizes persisted orders over a daily, weekly or monthly window. Orders
still awaiting payment are not revenue.
"""
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Iterable

from pydantic import BaseModel, Field

from cafe_engine.core.money import as_number

PERIODS = ("daily", "weekly", "monthly")
TOP_ITEMS = 5


class TopItem(BaseModel):
    name: str
    quantity: int
    revenue: float


class RevenueSummary(BaseModel):
    period: str
    start: datetime
    end: datetime
    total_revenue: float = 0.0
    order_count: int = 0
    items_sold: int = 0
    average_order_value: float = 0.0
    revenue_by_payment: dict[str, float] = Field(default_factory=dict)
    revenue_by_source: dict[str, float] = Field(default_factory=dict)
    hourly_distribution: dict[int, float] | None = None
    top_items: list[TopItem] = Field(default_factory=list)


def period_range(period: str, now: datetime) -> tuple[datetime, datetime]:
    """Window start for a period; weeks start on Sunday. Unknown periods mean today."""
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "weekly":
        # isoweekday: Monday=1 .. Sunday=7
        start -= timedelta(days=now.isoweekday() % 7)
    elif period == "monthly":
        start = start.replace(day=1)
    return start, now


def _created_at(order: dict[str, Any]) -> datetime | None:
    raw = order.get("createdAt")
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str):
        try:
            return datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def summarize_revenue(orders: Iterable[dict[str, Any]], period: str, now: datetime) -> RevenueSummary:
    start, end = period_range(period, now)
    summary = RevenueSummary(period=period, start=start, end=end)

    by_payment: dict[str, float] = defaultdict(float)
    by_source: dict[str, float] = defaultdict(float)
    hourly: dict[int, float] = defaultdict(float)
    item_stats: dict[str, dict[str, float]] = defaultdict(lambda: {"quantity": 0, "revenue": 0.0})

    for order in orders:
        if order.get("paymentMethod") == "pending":
            continue
        created = _created_at(order)
        if created is None:
            continue
        if created.tzinfo is None and start.tzinfo is not None:
            created = created.replace(tzinfo=start.tzinfo)
        if not start <= created <= end:
            continue

        total = as_number((order.get("totals") or {}).get("total"), "order total")
        summary.total_revenue += total
        summary.order_count += 1
        by_payment[order.get("paymentMethod") or "unknown"] += total
        by_source[order.get("orderType") or "pos"] += total
        hourly[created.hour] += total

        for item in order.get("items") or []:
            quantity = int(as_number(item.get("quantity"), "item quantity"))
            summary.items_sold += quantity
            stats = item_stats[item.get("name") or "unknown"]
            stats["quantity"] += quantity
            stats["revenue"] += as_number(item.get("price"), "item price") * quantity

    summary.average_order_value = (
        summary.total_revenue / summary.order_count if summary.order_count else 0.0
    )
    summary.revenue_by_payment = dict(by_payment)
    summary.revenue_by_source = dict(by_source)
    summary.hourly_distribution = dict(hourly) if period == "daily" else None
    summary.top_items = sorted(
        (TopItem(name=name, quantity=int(s["quantity"]), revenue=s["revenue"]) for name, s in item_stats.items()),
        key=lambda top: top.revenue,
        reverse=True,
    )[:TOP_ITEMS]
    return summary
