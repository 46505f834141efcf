"""Type definitions for the calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

if TYPE_CHECKING:
    from payroll_ledger.models import PayrollLedger, SalaryComponent


class ComponentType(str, Enum):
    """Salary component types."""

    ALLOWANCE = "ALLOWANCE"
    DEDUCTION = "DEDUCTION"
    TAX = "TAX"


@dataclass(frozen=True)
class SalaryComponentSnapshot:
    """Immutable copy of a catalog entry taken at calculation time."""

    salary_component_id: UUID
    name: str
    component_type: ComponentType
    amount: Decimal = Decimal("0")
    percentage: Decimal | None = None
    calculation_order: int = 0

    @classmethod
    def from_model(cls, component: SalaryComponent) -> SalaryComponentSnapshot:
        return cls(
            salary_component_id=component.salary_component_id,
            name=component.name,
            component_type=ComponentType(component.component_type),
            amount=component.amount if component.amount is not None else Decimal("0"),
            percentage=component.percentage,
            calculation_order=component.calculation_order,
        )


@dataclass
class CalculationRequest:
    """Raw pay inputs for one employee in one period."""

    employee_id: UUID | None
    payroll_period_id: UUID | None
    base_salary: Decimal | None = None
    overtime_hours: Decimal | None = None
    bonus_amount: Decimal | None = None
    component_overrides: dict[UUID, Decimal] = field(default_factory=dict)
    notes: str | None = None


@dataclass
class ResolvedComponent:
    """A component amount after override/percentage/fixed resolution."""

    salary_component_id: UUID
    component_name: str
    component_type: ComponentType
    amount: Decimal
    calculation_base: Decimal
    line_number: int
    percentage_applied: Decimal | None = None
    is_override: bool = False
    notes: str | None = None

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "salary_component_id": str(self.salary_component_id),
            "component_type": self.component_type.value,
            "amount": str(self.amount),
            "calculation_base": str(self.calculation_base),
            "percentage_applied": (
                str(self.percentage_applied) if self.percentage_applied is not None else None
            ),
            "is_override": self.is_override,
        }


@dataclass
class CalculationResult:
    """Fully itemized pay for one employee, before persistence."""

    employee_id: UUID
    payroll_period_id: UUID
    base_salary: Decimal
    overtime_hours: Decimal
    hourly_rate: Decimal
    overtime_pay: Decimal
    bonus_amount: Decimal
    gross_pay: Decimal
    total_deductions: Decimal
    total_taxes: Decimal
    net_pay: Decimal
    components: list[ResolvedComponent]
    fingerprint: str
    notes: str | None = None

    @property
    def total_allowances(self) -> Decimal:
        """Sum of ALLOWANCE lines (stored, not netted into net pay)."""
        return sum(
            (c.amount for c in self.components if c.component_type == ComponentType.ALLOWANCE),
            Decimal("0"),
        )


@dataclass
class EmployeeFailure:
    """One employee that could not be calculated in a batch."""

    employee_id: UUID
    code: str
    message: str


@dataclass
class BatchCalculationResult:
    """Partial-success report of a period batch calculation."""

    payroll_period_id: UUID
    ledgers: list[PayrollLedger] = field(default_factory=list)
    failures: list[EmployeeFailure] = field(default_factory=list)

    @property
    def failed_employee_ids(self) -> list[UUID]:
        return [f.employee_id for f in self.failures]

    @property
    def success_count(self) -> int:
        return len(self.ledgers)
