"""
Cafe Engine — Checkout service

Flow:
  1. Resolve line selections against the menu snapshot
  2. Price the order and settle payment against the shared till float
  3. Persist the order through the backend
  4. Only then move the till float
"""
import logging
import random

from cafe_engine.clients.backend import BackendClient
from cafe_engine.core.errors import UnknownMenuItemError
from cafe_engine.core.money import format_peso
from cafe_engine.engine.cash_float import CashFloat
from cafe_engine.engine.ordering import add_line, compute_totals, to_backend_payload
from cafe_engine.engine.prep_time import estimate_prep_minutes
from cafe_engine.engine.settlement import settle
from cafe_engine.schemas.menu import MenuItem
from cafe_engine.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    LineSelection,
    Order,
    OrderStatus,
    OrderType,
    PaymentMethod,
    QuoteRequest,
    QuoteResponse,
    Totals,
    TotalsResponse,
)

logger = logging.getLogger(__name__)


def build_order(
    selections: list[LineSelection],
    menu: dict[str, MenuItem],
    discount_applied: bool = False,
    payment_method: PaymentMethod = PaymentMethod.PENDING,
    order_type: OrderType = OrderType.POS,
) -> Order:
    order = Order(
        discount_applied=discount_applied,
        payment_method=payment_method,
        order_type=order_type,
        status=OrderStatus.PENDING if payment_method == PaymentMethod.PENDING else OrderStatus.RECEIVED,
    )
    for selection in selections:
        item = menu.get(selection.item_id)
        if item is None:
            raise UnknownMenuItemError(f"Menu item '{selection.item_id}' not found")
        order = add_line(order, item, selection.size, selection.quantity, selection.modifiers)
    return order.model_copy(update={"created_at": order.updated_at})


def totals_response(totals: Totals) -> TotalsResponse:
    rounded = totals.rounded()
    return TotalsResponse(
        subtotal=rounded.subtotal,
        discount=rounded.discount,
        total=rounded.total,
        formatted={
            "subtotal": format_peso(rounded.subtotal),
            "discount": format_peso(rounded.discount),
            "total": format_peso(rounded.total),
        },
    )


async def _menu_by_id(backend: BackendClient) -> dict[str, MenuItem]:
    return {item.id: item for item in await backend.fetch_menu()}


async def quote(
    payload: QuoteRequest,
    backend: BackendClient,
    rng: random.Random | None = None,
) -> QuoteResponse:
    order = build_order(payload.lines, await _menu_by_id(backend), payload.discount_applied)
    return QuoteResponse(
        totals=totals_response(compute_totals(order)),
        estimated_prep_minutes=estimate_prep_minutes(order, rng),
    )


async def checkout(
    payload: CheckoutRequest,
    backend: BackendClient,
    cash_float: CashFloat,
    rng: random.Random | None = None,
) -> CheckoutResponse:
    """
    Settle and persist an order.

    The till float only moves after the backend accepted the order; if
    persistence fails the exception propagates and the float is untouched.
    """
    order = build_order(
        payload.lines,
        await _menu_by_id(backend),
        payload.discount_applied,
        payload.payment_method,
        payload.order_type,
    )
    totals = compute_totals(order)
    amount_due = totals.rounded().total

    result = None
    if payload.payment_method != PaymentMethod.PENDING:
        result = settle(amount_due, payload.payment_method, payload.cash_tendered, await cash_float.balance())

    created = await backend.create_order(to_backend_payload(
        order,
        cash_received=result.cash_received if result else 0.0,
        change=result.change if result else 0.0,
    ))
    receipt_number = created.get("receiptNumber")

    balance = None
    if result is not None and result.float_delta:
        balance = await cash_float.apply(result, reference=receipt_number)
    logger.info(
        "Order %s settled: %s %.2f (change %.2f)",
        receipt_number, payload.payment_method.value, amount_due, result.change if result else 0.0,
    )

    return CheckoutResponse(
        receipt_number=receipt_number,
        totals=totals_response(totals),
        payment_method=payload.payment_method,
        cash_received=result.cash_received if result else 0.0,
        change=result.change if result else 0.0,
        cash_float=balance,
        estimated_prep_minutes=estimate_prep_minutes(order, rng),
    )
