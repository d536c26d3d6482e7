"""
Cafe Engine — Order line aggregator

Every operation takes an Order and returns a new one. The menu catalog is
never touched; each line keeps the unit price it was added with, so a catalog
refresh mid-order does not reprice lines already on the ticket.
"""
import logging
from datetime import datetime, timezone

from cafe_engine.core.errors import (
    InvalidQuantityError,
    InvalidSizeError,
    InvalidStatusTransitionError,
)
from cafe_engine.core.money import round_money
from cafe_engine.engine.discount import apply_discount
from cafe_engine.schemas.menu import MenuItem
from cafe_engine.schemas.order import (
    LineKey,
    Order,
    OrderLine,
    OrderStatus,
    PaymentMethod,
    Totals,
)

logger = logging.getLogger(__name__)

# ── Status transition map ─────────────────────────────────────────────────────
NEXT_STATUS: dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING:   OrderStatus.RECEIVED,
    OrderStatus.RECEIVED:  OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY:     OrderStatus.COMPLETED,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _touch(order: Order, lines: list[OrderLine], **changes) -> Order:
    return order.model_copy(update={"lines": lines, "updated_at": _now(), **changes})


def _resolve_price(item: MenuItem, size: str) -> float:
    if size not in item.pricing:
        raise InvalidSizeError(item.name, size, item.sizes)
    return item.pricing[size]


def add_line(
    order: Order,
    item: MenuItem,
    size: str | None = None,
    qty: int = 1,
    modifiers: list[str] | None = None,
) -> Order:
    """
    Add ``qty`` of ``item`` in ``size`` to the order.

    Without a size the item's default applies: ``"base"`` when offered,
    otherwise the first declared size. Adding an (item, size) pair that is
    already on the order bumps that line instead of creating a duplicate.
    """
    if qty < 1:
        raise InvalidQuantityError(f"Quantity must be at least 1, got {qty}")
    size = item.default_size if size is None else size
    unit_price = _resolve_price(item, size)

    lines = list(order.lines)
    for index, line in enumerate(lines):
        if line.key == (item.id, size):
            lines[index] = line.model_copy(update={"quantity": line.quantity + qty})
            return _touch(order, lines)

    lines.append(OrderLine(
        item=item,
        selected_size=size,
        quantity=qty,
        unit_price=unit_price,
        modifiers=list(modifiers or []),
    ))
    return _touch(order, lines)


def find_line(order: Order, line_ref: LineKey) -> OrderLine | None:
    return next((line for line in order.lines if line.key == tuple(line_ref)), None)


def update_quantity(order: Order, line_ref: LineKey, delta: int) -> Order:
    """Adjust a line's quantity; it never drops below 1 (use void_line to remove)."""
    lines = [
        line.model_copy(update={"quantity": max(1, line.quantity + delta)})
        if line.key == tuple(line_ref) else line
        for line in order.lines
    ]
    return _touch(order, lines)


def update_size(order: Order, line_ref: LineKey, new_size: str) -> Order:
    """
    Switch a line to another size, re-reading the unit price for that size.

    If the order already has a line for the same item in ``new_size`` the two
    lines are merged.
    """
    line = find_line(order, line_ref)
    if line is None:
        return order
    unit_price = _resolve_price(line.item, new_size)
    if new_size == line.selected_size:
        return order

    lines = list(order.lines)
    position = lines.index(line)
    target = find_line(order, (line.item.id, new_size))
    if target is None:
        lines[position] = line.model_copy(
            update={"selected_size": new_size, "unit_price": unit_price}
        )
    else:
        lines[lines.index(target)] = target.model_copy(
            update={"quantity": target.quantity + line.quantity}
        )
        del lines[position]
    return _touch(order, lines)


def void_line(order: Order, line_ref: LineKey) -> Order:
    """Remove a line. Voiding a line that is not on the order is a no-op."""
    lines = [line for line in order.lines if line.key != tuple(line_ref)]
    if len(lines) == len(order.lines):
        return order
    return _touch(order, lines)


def toggle_discount(order: Order, applied: bool) -> Order:
    return order.model_copy(update={"discount_applied": applied, "updated_at": _now()})


def subtotal(order: Order) -> float:
    return sum(line.line_total for line in order.lines)


def compute_totals(order: Order) -> Totals:
    return apply_discount(subtotal(order), order.discount_applied)


def total_quantity(order: Order) -> int:
    return sum(line.quantity for line in order.lines)


def advance_status(order: Order, new_status: OrderStatus, now: datetime | None = None) -> Order:
    """
    Move an order one step along pending → received → preparing → ready → completed.

    ``completed_at`` is stamped once, on the transition into ``completed``.
    """
    expected = NEXT_STATUS.get(order.status)
    if expected is None or new_status != expected:
        raise InvalidStatusTransitionError(
            f"Cannot move order from '{order.status.value}' to '{new_status.value}'"
        )
    now = now or _now()
    changes: dict = {"status": new_status, "updated_at": now}
    if new_status == OrderStatus.COMPLETED and order.completed_at is None:
        changes["completed_at"] = now
    return order.model_copy(update=changes)


def to_backend_payload(
    order: Order,
    cash_received: float = 0.0,
    change: float = 0.0,
) -> dict:
    """Build the ``POST /api/orders`` body; totals are a rounded snapshot."""
    totals = compute_totals(order).rounded()
    status = OrderStatus.PENDING if order.payment_method == PaymentMethod.PENDING else order.status
    return {
        "items": [
            {
                "name": line.item.name,
                "price": line.unit_price,
                "quantity": line.quantity,
                "selectedSize": line.selected_size,
                "modifiers": list(line.modifiers),
            }
            for line in order.lines
        ],
        "totals": {
            "subtotal": totals.subtotal,
            "discount": totals.discount,
            "total": totals.total,
            "cashReceived": round_money(cash_received),
            "change": round_money(change),
        },
        "paymentMethod": order.payment_method.value,
        "orderType": order.order_type.value,
        "status": status.value,
    }
