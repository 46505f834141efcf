"""Payroll calculation engine."""

from payroll_ledger.calculators.engine import PayrollCalculator, PayrollEngine
from payroll_ledger.calculators.line_builder import ComponentLineBuilder
from payroll_ledger.calculators.tax_policy import (
    BracketTaxPolicy,
    FlatRateTaxPolicy,
    TaxBracket,
    TaxPolicy,
)
from payroll_ledger.calculators.types import (
    BatchCalculationResult,
    CalculationRequest,
    CalculationResult,
    ComponentType,
    EmployeeFailure,
    ResolvedComponent,
    SalaryComponentSnapshot,
)

__all__ = [
    "PayrollCalculator",
    "PayrollEngine",
    "ComponentLineBuilder",
    "BracketTaxPolicy",
    "FlatRateTaxPolicy",
    "TaxBracket",
    "TaxPolicy",
    "BatchCalculationResult",
    "CalculationRequest",
    "CalculationResult",
    "ComponentType",
    "EmployeeFailure",
    "ResolvedComponent",
    "SalaryComponentSnapshot",
]
