"""
Cafe Engine — Exception taxonomy

Validation errors are recovered locally by rejecting the operation without
mutating state. Backend errors come from the REST collaborator and surface as
5xx responses. Data anomalies are never raised; they are neutralized and logged
where they are found.
"""


class EngineError(Exception):
    """Base class for every error raised by the engine."""

    code = "engine_error"


class EngineValidationError(EngineError):
    """An operation was rejected; no state was changed."""

    code = "validation_error"


class InvalidSizeError(EngineValidationError):
    code = "invalid_size"

    def __init__(self, item_name: str, size: str, available: list[str]):
        self.item_name = item_name
        self.size = size
        self.available = available
        super().__init__(
            f"Size '{size}' is not offered for '{item_name}'. "
            f"Available sizes: {', '.join(available) or 'none'}"
        )


class InvalidQuantityError(EngineValidationError):
    code = "invalid_quantity"


class UnknownMenuItemError(EngineValidationError):
    code = "unknown_menu_item"


class InsufficientCashError(EngineValidationError):
    code = "insufficient_cash"

    def __init__(self, amount_due: float, cash_tendered: float):
        self.amount_due = amount_due
        self.cash_tendered = cash_tendered
        super().__init__(
            f"Cash tendered ({cash_tendered:.2f}) is less than the amount due ({amount_due:.2f})"
        )


class InsufficientFloatError(EngineValidationError):
    code = "insufficient_float"

    def __init__(self, change: float, cash_float: float):
        self.change = change
        self.cash_float = cash_float
        super().__init__(
            f"Insufficient cash float ({cash_float:.2f}) to give {change:.2f} change"
        )


class InvalidPaymentMethodError(EngineValidationError):
    code = "invalid_payment_method"


class InvalidStatusTransitionError(EngineValidationError):
    code = "invalid_status_transition"


class PayrollInputError(EngineValidationError):
    code = "invalid_payroll_input"


class StaffValidationError(EngineValidationError):
    code = "invalid_staff"

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {msg}" for field, msg in errors.items()))


class BackendError(EngineError):
    """The REST backend rejected a request or returned garbage."""

    code = "backend_error"

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class BackendTimeoutError(BackendError):
    code = "backend_timeout"


class BackendUnavailableError(BackendError):
    code = "backend_unavailable"
