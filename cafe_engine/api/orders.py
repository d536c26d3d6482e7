"""
Cafe Engine — Orders API
"""
from fastapi import APIRouter, Depends, status

from cafe_engine.clients.backend import BackendClient, get_backend
from cafe_engine.engine.cash_float import CashFloat, get_cash_float
from cafe_engine.engine.ordering import advance_status
from cafe_engine.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    Order,
    QuoteRequest,
    QuoteResponse,
    StatusUpdateRequest,
)
from cafe_engine.services import checkout as checkout_service

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/quote", response_model=QuoteResponse)
async def quote_order(payload: QuoteRequest, backend: BackendClient = Depends(get_backend)):
    """Price a prospective order and estimate its prep time. Nothing is persisted."""
    return await checkout_service.quote(payload, backend)


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def checkout_order(
    payload: CheckoutRequest,
    backend: BackendClient = Depends(get_backend),
    cash_float: CashFloat = Depends(get_cash_float),
):
    """
    Settle payment, persist the order, then move the till float.
    Idempotency enforced by IdempotencyMiddleware when an Idempotency-Key is sent.
    """
    return await checkout_service.checkout(payload, backend, cash_float)


@router.post("/{order_id}/status")
async def update_order_status(
    order_id: str,
    payload: StatusUpdateRequest,
    backend: BackendClient = Depends(get_backend),
):
    """Advance an order one kitchen stage; the transition is validated before patching."""
    advance_status(Order(status=payload.current_status), payload.status)
    body: dict = {"status": payload.status.value}
    if payload.payment_method is not None:
        body["paymentMethod"] = payload.payment_method.value
    updated = await backend.update_order(order_id, body)
    return {"order_id": order_id, "status": payload.status.value, "order": updated}
