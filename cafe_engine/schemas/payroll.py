"""
Cafe Engine — Payroll schemas
"""
from datetime import datetime
from enum import Enum as PyEnum

from pydantic import BaseModel, ConfigDict, Field


class TimeLogType(str, PyEnum):
    CLOCK_IN = "clockIn"
    CLOCK_OUT = "clockOut"


class TimeLog(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str | None = Field(None, alias="_id")
    staff_id: str = Field(..., alias="staffId")
    type: TimeLogType
    timestamp: datetime
    total_hours: float | None = Field(None, alias="totalHours")


class Shift(BaseModel):
    model_config = ConfigDict(frozen=True)

    clock_in: TimeLog
    clock_out: TimeLog
    hours: float
    regular_hours: float
    overtime_hours: float


class HoursSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    total_hours: float = Field(0.0, alias="totalHours")
    regular_hours: float = Field(0.0, alias="regularHours")
    overtime_hours: float = Field(0.0, alias="overtimeHours")
    log_ids: list[str] = Field(default_factory=list)
    active_session: TimeLog | None = None


class HoursOverride(BaseModel):
    """Manual hours entered when time logs are incomplete. None means "not overridden"."""

    model_config = ConfigDict(frozen=True)

    total_hours: float | None = None
    overtime_hours: float | None = None

    @classmethod
    def from_form(cls, total_hours=None, overtime_hours=None) -> "HoursOverride":
        """Form input leaves blank or zero fields meaning "use the time logs"."""

        def _field(value):
            if value is None or value == "":
                return None
            try:
                number = float(value)
            except (TypeError, ValueError):
                return None
            return number if number > 0 else None

        return cls(total_hours=_field(total_hours), overtime_hours=_field(overtime_hours))


class PayBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    daily_rate: float
    hourly_rate: float
    total_hours: float
    regular_hours: float
    overtime_hours: float
    regular_pay: float
    overtime_pay: float
    allowances: float
    late_minutes: float
    absences: int
    late_deduction: float
    absence_deduction: float
    net_pay: float

    @property
    def total_deductions(self) -> float:
        return self.late_deduction + self.absence_deduction

    @property
    def gross_pay(self) -> float:
        return self.regular_pay + self.overtime_pay + self.allowances


class Deductions(BaseModel):
    model_config = ConfigDict(frozen=True)

    late: float = 0.0
    absence: float = 0.0


class PayrollRecord(BaseModel):
    """Write-once payroll snapshot; regeneration creates a superseding version."""

    model_config = ConfigDict(frozen=True)

    staff_id: str
    payroll_period: str                     # YYYY-MM
    basic_pay: float
    overtime_pay: float
    total_hours_worked: float
    overtime_hours: float
    allowances: float
    deductions: Deductions
    net_pay: float
    time_logs: list[str] = Field(default_factory=list)
    version: int = 1
    supersedes: int | None = None
    generated_at: datetime

    @property
    def gross_pay(self) -> float:
        return self.basic_pay + self.overtime_pay + self.allowances

    @property
    def total_deductions(self) -> float:
        return self.deductions.late + self.deductions.absence


# ── API payloads ──────────────────────────────────────────────────────────────

class PayrollPreviewRequest(BaseModel):
    staff_id: str
    payroll_period: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    override: HoursOverride = Field(default_factory=HoursOverride)
    late_minutes: float = Field(0, ge=0)
    absences: int = Field(0, ge=0)


class PayrollGenerateRequest(PayrollPreviewRequest):
    regenerate: bool = False


class PayrollPreviewResponse(BaseModel):
    staff_id: str
    payroll_period: str
    hours: HoursSummary
    breakdown: PayBreakdown
    net_pay_formatted: str
