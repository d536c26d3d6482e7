"""
Cafe Engine — Order schemas
"""
from datetime import datetime
from enum import Enum as PyEnum

from pydantic import BaseModel, ConfigDict, Field

from cafe_engine.core.money import round_money
from cafe_engine.schemas.menu import MenuItem


class PaymentMethod(str, PyEnum):
    CASH = "cash"
    CARD = "card"
    E_WALLET = "e-wallet"
    PENDING = "pending"


class OrderStatus(str, PyEnum):
    PENDING = "pending"
    RECEIVED = "received"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"


class OrderType(str, PyEnum):
    COUNTER = "counter"
    POS = "pos"
    SELF_CHECKOUT = "self_checkout"
    CHATBOT = "chatbot"


LineKey = tuple[str, str]


class OrderLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    item: MenuItem
    selected_size: str
    quantity: int = Field(..., ge=1)
    unit_price: float
    modifiers: list[str] = Field(default_factory=list)

    @property
    def key(self) -> LineKey:
        return (self.item.id, self.selected_size)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: float
    discount: float
    total: float

    def rounded(self) -> "Totals":
        return Totals(
            subtotal=round_money(self.subtotal),
            discount=round_money(self.discount),
            total=round_money(self.total),
        )


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    lines: list[OrderLine] = Field(default_factory=list)
    payment_method: PaymentMethod = PaymentMethod.PENDING
    discount_applied: bool = False
    status: OrderStatus = OrderStatus.RECEIVED
    order_type: OrderType = OrderType.POS
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None


# ── API payloads ──────────────────────────────────────────────────────────────

class LineSelection(BaseModel):
    item_id: str
    size: str | None = None
    quantity: int = Field(1, ge=1, le=99)
    modifiers: list[str] = Field(default_factory=list)


class QuoteRequest(BaseModel):
    lines: list[LineSelection] = Field(..., min_length=1)
    discount_applied: bool = False


class TotalsResponse(BaseModel):
    subtotal: float
    discount: float
    total: float
    formatted: dict[str, str]


class QuoteResponse(BaseModel):
    totals: TotalsResponse
    estimated_prep_minutes: int


class CheckoutRequest(BaseModel):
    lines: list[LineSelection] = Field(..., min_length=1)
    discount_applied: bool = False
    payment_method: PaymentMethod
    cash_tendered: float | None = Field(None, ge=0)
    order_type: OrderType = OrderType.POS


class CheckoutResponse(BaseModel):
    receipt_number: str | None
    totals: TotalsResponse
    payment_method: PaymentMethod
    cash_received: float
    change: float
    cash_float: float | None
    estimated_prep_minutes: int


class StatusUpdateRequest(BaseModel):
    current_status: OrderStatus
    status: OrderStatus
    payment_method: PaymentMethod | None = None
