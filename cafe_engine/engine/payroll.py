"""
Cafe Engine — Payroll calculator

Pay is derived from a daily rate: the hourly rate is a standard shift's share
of it, overtime is paid at a premium, and late minutes and absences are
deducted. Components keep full precision for the payslip breakdown; only net
pay is rounded.
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable

from cafe_engine.core.config import get_settings
from cafe_engine.core.errors import PayrollInputError
from cafe_engine.core.money import as_number, finite_or_zero, round_money
from cafe_engine.schemas.payroll import (
    Deductions,
    HoursOverride,
    HoursSummary,
    PayBreakdown,
    PayrollRecord,
    Shift,
    TimeLog,
    TimeLogType,
)

settings = get_settings()
logger = logging.getLogger(__name__)


# ── Time logs → hours ─────────────────────────────────────────────────────────

def shift_hours(start: datetime, end: datetime, max_hours: float | None = None) -> float:
    """Hours between two punches, to 2 decimals, capped at one maximum shift."""
    max_hours = settings.MAX_SHIFT_HOURS if max_hours is None else max_hours
    hours = round((end - start).total_seconds() / 3600, 2)
    return min(hours, max_hours)


def pair_time_logs(logs: Iterable[TimeLog]) -> tuple[list[Shift], dict[str, TimeLog]]:
    """
    Pair clock-ins with the clock-out that follows them, per staff member.

    Returns the completed shifts and, per staff id, a trailing clock-in with no
    clock-out yet (an active session). A second clock-in before a clock-out
    replaces the first; a clock-out with no open clock-in is ignored.
    """
    threshold = settings.STANDARD_SHIFT_HOURS
    by_staff: dict[str, list[TimeLog]] = defaultdict(list)
    for log in logs:
        by_staff[log.staff_id].append(log)

    shifts: list[Shift] = []
    open_sessions: dict[str, TimeLog] = {}
    for staff_id, staff_logs in by_staff.items():
        last_in: TimeLog | None = None
        for log in sorted(staff_logs, key=lambda entry: entry.timestamp):
            if log.type == TimeLogType.CLOCK_IN:
                last_in = log
            elif last_in is not None:
                hours = shift_hours(last_in.timestamp, log.timestamp)
                overtime = max(0.0, hours - threshold)
                shifts.append(Shift(
                    clock_in=last_in,
                    clock_out=log,
                    hours=hours,
                    regular_hours=hours - overtime,
                    overtime_hours=overtime,
                ))
                last_in = None
            else:
                logger.warning("Clock-out %s for staff %s has no matching clock-in", log.id, staff_id)
        if last_in is not None:
            open_sessions[staff_id] = last_in
    return shifts, open_sessions


def summarize_hours(logs: Iterable[TimeLog], staff_id: str | None = None) -> HoursSummary:
    logs = [log for log in logs if staff_id is None or log.staff_id == staff_id]
    shifts, open_sessions = pair_time_logs(logs)
    active = open_sessions.get(staff_id) if staff_id else next(iter(open_sessions.values()), None)
    return HoursSummary(
        total_hours=sum(shift.hours for shift in shifts),
        regular_hours=sum(shift.regular_hours for shift in shifts),
        overtime_hours=sum(shift.overtime_hours for shift in shifts),
        log_ids=[log.id for log in logs if log.id],
        active_session=active,
    )


# ── Hours + rates → pay ───────────────────────────────────────────────────────

def resolve_hours(
    calculated: HoursSummary | None,
    override: HoursOverride | None = None,
) -> tuple[float, float]:
    """Manual hours win over time-log hours, field by field, whenever provided."""
    override = override or HoursOverride()
    total = override.total_hours
    if total is None:
        total = calculated.total_hours if calculated else 0.0
    overtime = override.overtime_hours
    if overtime is None:
        overtime = calculated.overtime_hours if calculated else 0.0
    return as_number(total, "total_hours"), as_number(overtime, "overtime_hours")


def compute_net_pay(
    daily_rate: float,
    allowances: float = 0.0,
    hours: HoursSummary | None = None,
    override: HoursOverride | None = None,
    late_minutes: float = 0.0,
    absences: int = 0,
) -> PayBreakdown:
    daily_rate = as_number(daily_rate, "daily_rate")
    allowances = as_number(allowances, "allowances")
    late_minutes = as_number(late_minutes, "late_minutes")
    absence_count = as_number(absences, "absences")
    total_hours, overtime_hours = resolve_hours(hours, override)

    for name, value in (
        ("daily_rate", daily_rate),
        ("allowances", allowances),
        ("late_minutes", late_minutes),
        ("absences", absence_count),
        ("total_hours", total_hours),
        ("overtime_hours", overtime_hours),
    ):
        if value < 0:
            raise PayrollInputError(f"{name} cannot be negative (got {value})")
    if not absence_count.is_integer():
        raise PayrollInputError(f"absences must be a whole number (got {absence_count})")

    hourly_rate = daily_rate / settings.STANDARD_SHIFT_HOURS
    # overtime from the logs can outrun an overridden total; regular hours bottom out at 0
    regular_hours = max(0.0, total_hours - overtime_hours)
    regular_pay = regular_hours * hourly_rate
    overtime_pay = overtime_hours * hourly_rate * settings.OVERTIME_MULTIPLIER
    late_deduction = late_minutes * (hourly_rate / 60)
    absence_deduction = absence_count * daily_rate

    net_pay = regular_pay + overtime_pay + allowances - late_deduction - absence_deduction

    return PayBreakdown(
        daily_rate=daily_rate,
        hourly_rate=hourly_rate,
        total_hours=total_hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        regular_pay=regular_pay,
        overtime_pay=overtime_pay,
        allowances=allowances,
        late_minutes=late_minutes,
        absences=int(absence_count),
        late_deduction=late_deduction,
        absence_deduction=absence_deduction,
        net_pay=round_money(finite_or_zero(net_pay)),
    )


# ── Snapshots ─────────────────────────────────────────────────────────────────

def build_payroll_record(
    staff_id: str,
    payroll_period: str,
    breakdown: PayBreakdown,
    log_ids: list[str] | None = None,
    previous: PayrollRecord | None = None,
    now: datetime | None = None,
) -> PayrollRecord:
    """
    Freeze a breakdown into a payroll record.

    Records are never recomputed when time logs change later. Regenerating
    yields a new version that names the one it supersedes.
    """
    if previous is not None and (previous.staff_id, previous.payroll_period) != (staff_id, payroll_period):
        raise PayrollInputError("A regenerated payroll must keep the same staff and period")
    return PayrollRecord(
        staff_id=staff_id,
        payroll_period=payroll_period,
        basic_pay=breakdown.regular_pay,
        overtime_pay=breakdown.overtime_pay,
        total_hours_worked=breakdown.total_hours,
        overtime_hours=breakdown.overtime_hours,
        allowances=breakdown.allowances,
        deductions=Deductions(late=breakdown.late_deduction, absence=breakdown.absence_deduction),
        net_pay=breakdown.net_pay,
        time_logs=list(log_ids or []),
        version=previous.version + 1 if previous else 1,
        supersedes=previous.version if previous else None,
        generated_at=now or datetime.now(timezone.utc),
    )


def to_backend_payload(record: PayrollRecord) -> dict:
    """Build the ``POST /api/payroll`` body."""
    return {
        "staffId": record.staff_id,
        "payrollPeriod": f"{record.payroll_period}-01",
        "basicPay": record.basic_pay,
        "overtimePay": record.overtime_pay,
        "totalHoursWorked": record.total_hours_worked,
        "overtimeHours": record.overtime_hours,
        "allowances": record.allowances,
        "deductions": {"late": record.deductions.late, "absence": record.deductions.absence},
        "netPay": record.net_pay,
        "timeLogs": list(record.time_logs),
        "version": record.version,
        "supersedes": record.supersedes,
    }
