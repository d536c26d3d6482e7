"""
Cafe Engine — Till (cash float) API
"""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from cafe_engine.core.money import format_peso
from cafe_engine.engine.cash_float import CashFloat, get_cash_float

router = APIRouter(prefix="/cash-float", tags=["till"])


class FloatReset(BaseModel):
    amount: float = Field(..., ge=0)


@router.get("")
async def get_float(
    ledger_limit: int = Query(0, ge=0, le=500),
    cash_float: CashFloat = Depends(get_cash_float),
):
    balance = await cash_float.balance()
    body = {"balance": balance, "formatted": format_peso(balance)}
    if ledger_limit:
        body["ledger"] = await cash_float.ledger(ledger_limit)
    return body


@router.post("/reset")
async def reset_float(payload: FloatReset, cash_float: CashFloat = Depends(get_cash_float)):
    """Open the till with a counted amount (start of shift)."""
    balance = await cash_float.reset(payload.amount)
    return {"balance": balance, "formatted": format_peso(balance)}
