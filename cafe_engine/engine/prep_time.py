"""
Cafe Engine — Preparation-time estimator

The estimate is advisory customer messaging for the kiosk and chatbot; it
does not drive the kitchen.
"""
import math
import random
from datetime import datetime

from cafe_engine.engine.ordering import total_quantity
from cafe_engine.schemas.order import Order, OrderStatus

BASE_MINUTES = 5
LARGE_ORDER_QUANTITY = 5
LARGE_ORDER_EXTRA_MINUTES = 2
MAX_VARIANCE_MINUTES = 3
PREPARING_AFTER_MINUTES = 2


def estimate_prep_minutes(order: Order, rng: random.Random | None = None) -> int:
    """
    5 minutes, plus 1 per distinct item name, plus 2 when more than 5 units
    are ordered, plus 0-3 minutes of variance drawn from ``rng``.
    """
    rng = rng or random
    minutes = BASE_MINUTES
    minutes += len({line.item.name for line in order.lines})
    if total_quantity(order) > LARGE_ORDER_QUANTITY:
        minutes += LARGE_ORDER_EXTRA_MINUTES
    return minutes + rng.randint(0, MAX_VARIANCE_MINUTES)


def track_order_status(
    placed_at: datetime,
    estimated_minutes: int,
    now: datetime,
    current_status: OrderStatus = OrderStatus.RECEIVED,
) -> tuple[OrderStatus, int]:
    """Derive the customer-facing status of a chatbot order from elapsed time."""
    elapsed = math.floor((now - placed_at).total_seconds() / 60)
    remaining = estimated_minutes - elapsed
    if remaining <= 0:
        return OrderStatus.READY, remaining
    if elapsed >= PREPARING_AFTER_MINUTES:
        return OrderStatus.PREPARING, remaining
    return current_status, remaining


def status_message(order_number: str, status: OrderStatus, minutes_remaining: int) -> str:
    if status == OrderStatus.RECEIVED:
        return (
            f"Your order #{order_number} has been received and will be prepared soon! "
            f"Estimated wait time: {minutes_remaining} minutes."
        )
    if status == OrderStatus.PREPARING:
        wait = minutes_remaining if minutes_remaining > 0 else "a few"
        return (
            f"Your order #{order_number} is being prepared right now! "
            f"It should be ready in about {wait} minutes."
        )
    if status == OrderStatus.READY:
        return (
            f"Great news! Your order #{order_number} is ready for pickup. "
            "Please show this message to our staff."
        )
    return f"Your order #{order_number} status is: {status.value}"
