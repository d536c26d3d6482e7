"""
Cafe Engine — Money primitives

Arithmetic is done on unrounded floats; rounding happens once, where a value
leaves the engine (display, receipts, backend payloads).
"""
import logging
import math
from typing import Any

from cafe_engine.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def round_money(value: float) -> float:
    return round(float(value), 2)


def format_peso(value: float, symbol: str | None = None) -> str:
    """Format an amount as ``₱1,234.50``; negatives become ``-₱12.00``."""
    symbol = settings.CURRENCY_SYMBOL if symbol is None else symbol
    amount = round_money(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def as_number(value: Any, field: str = "value") -> float:
    """
    Coerce a loosely-typed numeric field to a finite float.

    Missing, blank, non-numeric, NaN and infinite values become 0 so one
    malformed record cannot abort a whole list or payroll run.
    """
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Non-numeric %s %r treated as 0", field, value)
        return 0.0
    if not math.isfinite(number):
        logger.warning("Non-finite %s %r treated as 0", field, value)
        return 0.0
    return number


def finite_or_zero(value: float) -> float:
    return value if math.isfinite(value) else 0.0
