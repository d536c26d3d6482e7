"""
Cafe Engine — Payroll API
"""
from fastapi import APIRouter, Depends, status

from cafe_engine.clients.backend import BackendClient, get_backend
from cafe_engine.schemas.payroll import (
    PayrollGenerateRequest,
    PayrollPreviewRequest,
    PayrollPreviewResponse,
    PayrollRecord,
)
from cafe_engine.services import payroll as payroll_service

router = APIRouter(prefix="/payroll", tags=["payroll"])


@router.post("/preview", response_model=PayrollPreviewResponse)
async def preview_payroll(payload: PayrollPreviewRequest, backend: BackendClient = Depends(get_backend)):
    return await payroll_service.preview(payload, backend)


@router.post("/generate", response_model=PayrollRecord, status_code=status.HTTP_201_CREATED)
async def generate_payroll(payload: PayrollGenerateRequest, backend: BackendClient = Depends(get_backend)):
    """Write a payroll snapshot. Existing periods need ``regenerate: true``."""
    return await payroll_service.generate_payslip(payload, backend)
