"""
Cafe Engine — Staff & expense-reset schemas
"""
from datetime import datetime
from enum import Enum as PyEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StaffStatus(str, PyEnum):
    ACTIVE = "Active"
    ON_LEAVE = "On Leave"
    INACTIVE = "Inactive"


def normalize_pin(value) -> str:
    """PINs are strings so leading zeros survive; bare ints are padded to 4 digits."""
    if value is None:
        return ""
    if isinstance(value, int):
        return f"{value:04d}"
    return str(value).strip()


class Staff(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(None, alias="_id")
    name: str = ""
    position: str | None = None
    phone: str = ""
    email: str = ""
    daily_rate: float = Field(0.0, alias="dailyRate")
    allowances: float = 0.0
    status: StaffStatus = StaffStatus.ACTIVE
    pin_code: str = Field("", alias="pinCode")
    sss_number: str | None = Field(None, alias="sssNumber")
    tin_number: str | None = Field(None, alias="tinNumber")
    phil_health_number: str | None = Field(None, alias="philHealthNumber")

    @field_validator("pin_code", mode="before")
    @classmethod
    def _pin_as_string(cls, v) -> str:
        return normalize_pin(v)


# ── API payloads ──────────────────────────────────────────────────────────────

class StaffValidationRequest(BaseModel):
    staff: Staff
    current_staff_id: str | None = None


class StaffValidationResponse(BaseModel):
    valid: bool
    errors: dict[str, str]


class ExpenseResetResponse(BaseModel):
    reset: bool
    last_check: datetime | None
