"""
Cafe Engine — Payment settlement

Pure and re-entrant: settlement only validates and computes. Applying the
resulting float movement is the caller's job, and only after the order has
been persisted.
"""
from pydantic import BaseModel, ConfigDict

from cafe_engine.core.errors import (
    InsufficientCashError,
    InsufficientFloatError,
    InvalidPaymentMethodError,
)
from cafe_engine.schemas.order import PaymentMethod


class SettlementResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: PaymentMethod
    amount_due: float
    cash_received: float
    change: float
    float_delta: float

    def new_float(self, cash_float: float) -> float:
        return cash_float + self.float_delta


def settle_cash(total: float, cash_tendered: float, cash_float: float) -> SettlementResult:
    if cash_tendered < total:
        raise InsufficientCashError(total, cash_tendered)
    change = cash_tendered - total
    if change > cash_float:
        raise InsufficientFloatError(change, cash_float)
    return SettlementResult(
        method=PaymentMethod.CASH,
        amount_due=total,
        cash_received=cash_tendered,
        change=change,
        float_delta=cash_tendered - change,
    )


def settle(
    total: float,
    method: PaymentMethod,
    cash_tendered: float | None = None,
    cash_float: float = 0.0,
) -> SettlementResult:
    """Settle ``total`` by any method. Card and e-wallet never touch the till."""
    method = PaymentMethod(method)
    if method == PaymentMethod.PENDING:
        raise InvalidPaymentMethodError("A pending order cannot be settled; choose a payment method")
    if method == PaymentMethod.CASH:
        return settle_cash(total, cash_tendered if cash_tendered is not None else 0.0, cash_float)
    return SettlementResult(
        method=method,
        amount_due=total,
        cash_received=0.0,
        change=0.0,
        float_delta=0.0,
    )
