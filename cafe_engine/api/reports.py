"""
Cafe Engine — Revenue, staff and expense API
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from cafe_engine.clients.backend import BackendClient, get_backend
from cafe_engine.engine.expenses import DisbursementResetGate, get_reset_gate
from cafe_engine.engine.revenue import RevenueSummary, summarize_revenue
from cafe_engine.engine.staff import ensure_valid_staff
from cafe_engine.schemas.staff import (
    ExpenseResetResponse,
    StaffValidationRequest,
    StaffValidationResponse,
)

router = APIRouter(tags=["reports"])


@router.get("/revenue/{period}", response_model=RevenueSummary)
async def revenue(period: str, backend: BackendClient = Depends(get_backend)):
    """Revenue for ``daily``, ``weekly`` or ``monthly``; anything else reports today."""
    orders = await backend.list_orders(limit=1000)
    return summarize_revenue(orders, period, datetime.now(timezone.utc))


@router.post("/staff/validate", response_model=StaffValidationResponse)
async def validate_staff_form(payload: StaffValidationRequest, backend: BackendClient = Depends(get_backend)):
    """Check a staff form; an invalid form answers 422 with a field → message map."""
    ensure_valid_staff(payload.staff, await backend.list_staff(), payload.current_staff_id)
    return StaffValidationResponse(valid=True, errors={})


@router.post("/expenses/reset-check", response_model=ExpenseResetResponse)
async def expenses_reset_check(
    backend: BackendClient = Depends(get_backend),
    gate: DisbursementResetGate = Depends(get_reset_gate),
):
    """Clear yesterday's disbursement flags, at most once per calendar day."""
    reset = await gate.check_and_reset(backend)
    return ExpenseResetResponse(reset=reset, last_check=await gate.last_check())
