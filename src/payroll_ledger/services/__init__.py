"""Payroll ledger services."""

from payroll_ledger.services.audit_service import PayrollAuditTrail
from payroll_ledger.services.catalog_service import SalaryComponentCatalog
from payroll_ledger.services.ledger_service import (
    PayrollLedgerLifecycleManager,
    PeriodSummary,
    StatusTotals,
)
from payroll_ledger.services.period_service import PayrollPeriodRegistry, PeriodType
from payroll_ledger.services.state_machine import LedgerStateMachine

__all__ = [
    "PayrollAuditTrail",
    "SalaryComponentCatalog",
    "PayrollLedgerLifecycleManager",
    "PeriodSummary",
    "StatusTotals",
    "PayrollPeriodRegistry",
    "PeriodType",
    "LedgerStateMachine",
]
