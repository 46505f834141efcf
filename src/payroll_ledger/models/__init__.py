"""ORM models for the payroll ledger engine."""

from payroll_ledger.models.base import Base, TimestampMixin, utcnow
from payroll_ledger.models.payroll import (
    AuditAction,
    LedgerStatus,
    PayrollAudit,
    PayrollLedger,
    PayrollLedgerComponent,
    PayrollPeriod,
    PeriodStatus,
    SalaryComponent,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "AuditAction",
    "LedgerStatus",
    "PayrollAudit",
    "PayrollLedger",
    "PayrollLedgerComponent",
    "PayrollPeriod",
    "PeriodStatus",
    "SalaryComponent",
]
