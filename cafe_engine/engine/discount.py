"""
Cafe Engine — Discount policy

Senior citizen / PWD discount: a flat percentage of the subtotal. Discounts do
not stack and no category is exempt.
"""
from cafe_engine.core.config import get_settings
from cafe_engine.schemas.order import Totals

settings = get_settings()


def apply_discount(subtotal: float, is_applied: bool, rate: float | None = None) -> Totals:
    rate = settings.DISCOUNT_RATE if rate is None else rate
    discount = subtotal * rate if is_applied else 0.0
    return Totals(subtotal=subtotal, discount=discount, total=subtotal - discount)
