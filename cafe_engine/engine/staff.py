"""
Cafe Engine — Staff form validation

The PIN uniqueness check here only scans the staff list the caller fetched; it
gives quick feedback, the backend's unique constraint is what actually holds.
"""
import re
from typing import Iterable

from cafe_engine.core.errors import StaffValidationError
from cafe_engine.schemas.staff import Staff, StaffStatus, normalize_pin

PIN_RE = re.compile(r"^\d{4,6}$")
PHONE_RE = re.compile(r"^0\d{10}$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_pin_unique(pin_code: str, existing: Iterable[Staff], current_staff_id: str | None = None) -> bool:
    pin_code = normalize_pin(pin_code)
    return not any(
        member.pin_code == pin_code
        and member.status == StaffStatus.ACTIVE
        and (current_staff_id is None or member.id != current_staff_id)
        for member in existing
    )


def validate_staff(
    staff: Staff,
    existing: Iterable[Staff] = (),
    current_staff_id: str | None = None,
) -> dict[str, str]:
    """Return a field → message map; empty means the form is valid."""
    errors: dict[str, str] = {}

    if not staff.name.strip():
        errors["name"] = "Name is required"

    if not staff.email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_RE.match(staff.email):
        errors["email"] = "Invalid email format"

    pin = normalize_pin(staff.pin_code)
    if not pin:
        errors["pinCode"] = "PIN code is required"
    elif not PIN_RE.match(pin):
        errors["pinCode"] = "PIN must be 4-6 digits"
    elif not is_pin_unique(pin, existing, current_staff_id):
        errors["pinCode"] = "PIN code already in use by another staff member"

    if not staff.phone.strip():
        errors["phone"] = "Phone number is required"
    elif not PHONE_RE.match(staff.phone):
        errors["phone"] = "Invalid phone number format (e.g., 09123456789)"

    if staff.daily_rate < 0:
        errors["dailyRate"] = "Daily rate cannot be negative"

    return errors


def ensure_valid_staff(
    staff: Staff,
    existing: Iterable[Staff] = (),
    current_staff_id: str | None = None,
) -> Staff:
    errors = validate_staff(staff, existing, current_staff_id)
    if errors:
        raise StaffValidationError(errors)
    return staff
