"""Typed exceptions raised by the payroll ledger engine.

Every exception carries a stable ``code`` so the HTTP adapter (and any other
caller) can branch on the error kind without parsing messages.
"""

from __future__ import annotations

from uuid import UUID


class PayrollError(Exception):
    """Base class for all payroll engine errors."""

    code: str = "PAYROLL_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class PayrollValidationError(PayrollError):
    """Malformed or out-of-range input, rejected before any computation."""

    code = "VALIDATION_ERROR"


class NotFoundError(PayrollError):
    """A referenced entity does not exist."""

    code = "NOT_FOUND"
    entity_type: str = "entity"

    def __init__(self, entity_id: UUID | str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_type} not found: {entity_id}")


class EmployeeNotFoundError(NotFoundError):
    entity_type = "Employee"


class PeriodNotFoundError(NotFoundError):
    entity_type = "Payroll period"


class LedgerNotFoundError(NotFoundError):
    entity_type = "Payroll ledger"


class ComponentNotFoundError(NotFoundError):
    entity_type = "Salary component"


class DuplicatePayrollError(PayrollError):
    """A ledger already exists for the (employee, period) pair."""

    code = "DUPLICATE_PAYROLL"

    def __init__(self, employee_id: UUID, payroll_period_id: UUID):
        self.employee_id = employee_id
        self.payroll_period_id = payroll_period_id
        super().__init__(
            f"Payroll already exists for employee {employee_id} "
            f"in period {payroll_period_id}"
        )


class InvalidTransitionError(PayrollError):
    """Raised when a ledger lifecycle transition is not allowed."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ClosedPeriodError(PayrollError):
    """New ledgers cannot be created against a CLOSED period."""

    code = "PERIOD_CLOSED"

    def __init__(self, payroll_period_id: UUID):
        self.payroll_period_id = payroll_period_id
        super().__init__(f"Payroll period {payroll_period_id} is closed")


class AuditImmutabilityError(PayrollError):
    """Audit rows are append-only."""

    code = "AUDIT_IMMUTABLE"

    def __init__(self, audit_id: UUID | None, operation: str):
        self.audit_id = audit_id
        self.operation = operation
        super().__init__(f"Payroll audit rows cannot be {operation}d (id={audit_id})")
