"""
Cafe Engine — Payroll service

Pulls staff rates and time-log hours from the backend (pairing the raw logs
when it sends no totals), runs the calculator and writes payroll snapshots
back. A period that already has a record is only written again on an explicit
regeneration, which supersedes the old version.
"""
import calendar
import logging
from datetime import datetime, timezone

from cafe_engine.clients.backend import BackendClient
from cafe_engine.core.errors import PayrollInputError
from cafe_engine.core.money import as_number, format_peso
from cafe_engine.engine.payroll import (
    build_payroll_record,
    compute_net_pay,
    summarize_hours,
    to_backend_payload,
)
from cafe_engine.schemas.payroll import (
    Deductions,
    PayrollGenerateRequest,
    PayrollPreviewRequest,
    PayrollPreviewResponse,
    PayrollRecord,
)

logger = logging.getLogger(__name__)


def period_bounds(payroll_period: str) -> tuple[str, str]:
    """``"2024-05"`` → ``("2024-05-01", "2024-05-31")``."""
    year, month = (int(part) for part in payroll_period.split("-"))
    last_day = calendar.monthrange(year, month)[1]
    return f"{year:04d}-{month:02d}-01", f"{year:04d}-{month:02d}-{last_day:02d}"


def record_from_backend(raw: dict) -> PayrollRecord:
    period = str(raw.get("payrollPeriod") or "")[:7]
    staff = raw.get("staffId")
    staff_id = staff.get("_id") if isinstance(staff, dict) else staff
    created = raw.get("createdAt")
    deductions = raw.get("deductions") or {}
    return PayrollRecord(
        staff_id=str(staff_id),
        payroll_period=period,
        basic_pay=as_number(raw.get("basicPay"), "basicPay"),
        overtime_pay=as_number(raw.get("overtimePay"), "overtimePay"),
        total_hours_worked=as_number(raw.get("totalHoursWorked"), "totalHoursWorked"),
        overtime_hours=as_number(raw.get("overtimeHours"), "overtimeHours"),
        allowances=as_number(raw.get("allowances"), "allowances"),
        deductions=Deductions(
            late=as_number(deductions.get("late"), "late"),
            absence=as_number(deductions.get("absence"), "absence"),
        ),
        net_pay=as_number(raw.get("netPay"), "netPay"),
        time_logs=[log.get("_id") if isinstance(log, dict) else str(log) for log in raw.get("timeLogs") or []],
        version=int(raw.get("version") or 1),
        supersedes=raw.get("supersedes"),
        generated_at=datetime.fromisoformat(created.replace("Z", "+00:00")) if created else datetime.now(timezone.utc),
    )


async def preview(payload: PayrollPreviewRequest, backend: BackendClient) -> PayrollPreviewResponse:
    staff = await backend.get_staff(payload.staff_id)
    start, end = period_bounds(payload.payroll_period)
    hours = await backend.get_staff_hours(payload.staff_id, start, end)
    if hours is None:
        # no totals from the backend; pair the raw punches ourselves
        logs = await backend.list_time_logs(payload.staff_id, start, end)
        hours = summarize_hours(logs, staff_id=payload.staff_id)
    breakdown = compute_net_pay(
        daily_rate=staff.daily_rate,
        allowances=staff.allowances,
        hours=hours,
        override=payload.override,
        late_minutes=payload.late_minutes,
        absences=payload.absences,
    )
    return PayrollPreviewResponse(
        staff_id=payload.staff_id,
        payroll_period=payload.payroll_period,
        hours=hours,
        breakdown=breakdown,
        net_pay_formatted=format_peso(breakdown.net_pay),
    )


async def latest_record(backend: BackendClient, staff_id: str, payroll_period: str) -> PayrollRecord | None:
    start, end = period_bounds(payroll_period)
    records = [
        record_from_backend(raw)
        for raw in await backend.list_payroll(staff_id, start, end)
    ]
    records = [r for r in records if r.payroll_period == payroll_period]
    return max(records, key=lambda r: r.version) if records else None


async def generate_payslip(payload: PayrollGenerateRequest, backend: BackendClient) -> PayrollRecord:
    previous = await latest_record(backend, payload.staff_id, payload.payroll_period)
    if previous is not None and not payload.regenerate:
        raise PayrollInputError(
            f"Payroll for {payload.payroll_period} already generated (v{previous.version}); "
            "regenerate to supersede it"
        )

    result = await preview(payload, backend)
    record = build_payroll_record(
        staff_id=payload.staff_id,
        payroll_period=payload.payroll_period,
        breakdown=result.breakdown,
        log_ids=result.hours.log_ids,
        previous=previous,
    )
    await backend.create_payroll(to_backend_payload(record))
    logger.info(
        "Payroll v%d generated for staff %s (%s): net %.2f",
        record.version, record.staff_id, record.payroll_period, record.net_pay,
    )
    return record
