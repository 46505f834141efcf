"""Payroll calculation engine."""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.line_builder import ComponentLineBuilder
from payroll_ledger.calculators.tax_policy import FlatRateTaxPolicy, TaxPolicy
from payroll_ledger.calculators.types import (
    CalculationRequest,
    CalculationResult,
    ComponentType,
    ResolvedComponent,
    SalaryComponentSnapshot,
)
from payroll_ledger.config import Settings, get_settings
from payroll_ledger.directory import EmployeeDirectory
from payroll_ledger.exceptions import (
    ClosedPeriodError,
    DuplicatePayrollError,
    EmployeeNotFoundError,
    PayrollValidationError,
    PeriodNotFoundError,
)
from payroll_ledger.models import (
    LedgerStatus,
    PayrollLedger,
    PayrollLedgerComponent,
    PayrollPeriod,
    SalaryComponent,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def _has_cents_precision(value: Decimal) -> bool:
    return value == value.quantize(CENT)


class PayrollCalculator:
    """Pure payroll arithmetic.

    Calculation pipeline (stable order per employee):
    1) Hourly rate = base salary / standard monthly hours
    2) Overtime pay = hours * hourly rate * overtime multiplier
    3) Gross = base salary + overtime pay + bonus
    4) Resolve every catalog component against gross, in catalog order
    5) Totals per component type
    6) Net = gross - deductions - taxes

    ALLOWANCE lines are resolved and returned but are not netted into pay.
    The calculator touches no database or directory: the component snapshot
    and tax policy are passed in.
    """

    def __init__(
        self,
        standard_monthly_hours: Decimal = Decimal("160"),
        overtime_multiplier: Decimal = Decimal("1.5"),
        tax_policy: TaxPolicy | None = None,
    ):
        if standard_monthly_hours <= 0:
            raise ValueError("Standard monthly hours must be positive")
        self.standard_monthly_hours = standard_monthly_hours
        self.overtime_multiplier = overtime_multiplier
        self.tax_policy: TaxPolicy = tax_policy or FlatRateTaxPolicy()

    @classmethod
    def from_settings(
        cls, settings: Settings, tax_policy: TaxPolicy | None = None
    ) -> PayrollCalculator:
        return cls(
            standard_monthly_hours=settings.standard_monthly_hours,
            overtime_multiplier=settings.overtime_multiplier,
            tax_policy=tax_policy or FlatRateTaxPolicy(settings.flat_tax_rate),
        )

    @staticmethod
    def validate(request: CalculationRequest) -> None:
        """Reject malformed input before any computation or persistence.

        Money and hours are stored with two decimal places, so finer inputs
        are refused rather than silently truncated on save.
        """
        if request.employee_id is None:
            raise PayrollValidationError("Employee ID is required")
        if request.payroll_period_id is None:
            raise PayrollValidationError("Payroll period ID is required")
        for label, value in (
            ("Base salary", request.base_salary),
            ("Overtime hours", request.overtime_hours),
            ("Bonus amount", request.bonus_amount),
        ):
            if value is None:
                continue
            if value < 0:
                raise PayrollValidationError(f"{label} cannot be negative")
            if not _has_cents_precision(value):
                raise PayrollValidationError(
                    f"{label} cannot have more than 2 decimal places"
                )
        for component_id, amount in request.component_overrides.items():
            if amount is None or amount < 0:
                raise PayrollValidationError(
                    f"Override for component {component_id} cannot be negative"
                )

    def hourly_rate(self, base_salary: Decimal) -> Decimal:
        """Hourly equivalent of a monthly salary, rounded to cents."""
        return (base_salary / self.standard_monthly_hours).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    def overtime_pay(self, overtime_hours: Decimal | None, hourly_rate: Decimal | None) -> Decimal:
        """Overtime pay, rounded half-up to cents. Zero for no hours."""
        if overtime_hours is None or hourly_rate is None or overtime_hours <= 0:
            return ZERO
        return ComponentLineBuilder.round_to_cents(
            overtime_hours * hourly_rate * self.overtime_multiplier
        )

    def taxes(self, gross_pay: Decimal, employee_id: UUID | None = None) -> Decimal:
        """Tax owed on gross pay under the injected policy."""
        return self.tax_policy.calculate(gross_pay, employee_id)

    def deductions(
        self,
        gross_pay: Decimal,
        components: Iterable[SalaryComponentSnapshot],
        component_ids: Iterable[UUID] | None = None,
    ) -> Decimal:
        """Sum DEDUCTION components (optionally limited to ``component_ids``).

        Amounts are summed unrounded and rounded once at the end.
        """
        wanted = set(component_ids) if component_ids is not None else None
        total = Decimal("0")
        for component in components:
            if component.component_type != ComponentType.DEDUCTION:
                continue
            if wanted is not None and component.salary_component_id not in wanted:
                continue
            if component.percentage is not None:
                total += ComponentLineBuilder.percentage_of(gross_pay, component.percentage)
            else:
                total += component.amount
        return ComponentLineBuilder.round_to_cents(total)

    def compute(
        self,
        employee_id: UUID,
        payroll_period_id: UUID,
        base_salary: Decimal,
        components: Sequence[SalaryComponentSnapshot],
        overtime_hours: Decimal | None = None,
        bonus_amount: Decimal | None = None,
        overrides: Mapping[UUID, Decimal] | None = None,
        notes: str | None = None,
    ) -> CalculationResult:
        """Compute a fully itemized result from inputs and a catalog snapshot."""
        overtime_hours = overtime_hours if overtime_hours is not None else ZERO
        bonus_amount = bonus_amount if bonus_amount is not None else ZERO
        overrides = overrides or {}

        hourly_rate = self.hourly_rate(base_salary)
        overtime_pay = self.overtime_pay(overtime_hours, hourly_rate)
        gross_pay = ComponentLineBuilder.round_to_cents(base_salary + overtime_pay + bonus_amount)

        ordered = sorted(components, key=lambda c: (c.calculation_order, c.name))
        lines: list[ResolvedComponent] = [
            ComponentLineBuilder.resolve(component, gross_pay, line_number, overrides)
            for line_number, component in enumerate(ordered, start=1)
        ]

        unknown = set(overrides) - {c.salary_component_id for c in ordered}
        if unknown:
            logger.warning(
                "Ignoring overrides for inactive or unknown components: %s",
                ", ".join(sorted(str(u) for u in unknown)),
            )

        total_deductions = ComponentLineBuilder.total_for_type(lines, ComponentType.DEDUCTION)
        total_taxes = ComponentLineBuilder.total_for_type(lines, ComponentType.TAX)
        net_pay = ComponentLineBuilder.round_to_cents(gross_pay - total_deductions - total_taxes)

        fingerprint = ComponentLineBuilder.compute_fingerprint(
            {
                "employee_id": str(employee_id),
                "payroll_period_id": str(payroll_period_id),
                "base_salary": str(base_salary),
                "overtime_hours": str(overtime_hours),
                "bonus_amount": str(bonus_amount),
            },
            lines,
        )

        return CalculationResult(
            employee_id=employee_id,
            payroll_period_id=payroll_period_id,
            base_salary=base_salary,
            overtime_hours=overtime_hours,
            hourly_rate=hourly_rate,
            overtime_pay=overtime_pay,
            bonus_amount=bonus_amount,
            gross_pay=gross_pay,
            total_deductions=total_deductions,
            total_taxes=total_taxes,
            net_pay=net_pay,
            components=lines,
            fingerprint=fingerprint,
            notes=notes,
        )


def build_component_rows(result: CalculationResult) -> list[PayrollLedgerComponent]:
    """Turn resolved lines into unsaved ledger component rows."""
    return [
        PayrollLedgerComponent(
            salary_component_id=line.salary_component_id,
            line_number=line.line_number,
            component_name=line.component_name,
            component_type=line.component_type.value,
            amount=line.amount,
            calculation_base=line.calculation_base,
            percentage_applied=line.percentage_applied,
            is_override=line.is_override,
            notes=line.notes,
        )
        for line in result.components
    ]


def apply_result(ledger: PayrollLedger, result: CalculationResult) -> None:
    """Copy computed money fields onto a ledger (components excluded)."""
    ledger.base_salary = result.base_salary
    ledger.overtime_hours = result.overtime_hours
    ledger.overtime_pay = result.overtime_pay
    ledger.bonus_amount = result.bonus_amount
    ledger.gross_pay = result.gross_pay
    ledger.total_deductions = result.total_deductions
    ledger.total_taxes = result.total_taxes
    ledger.net_pay = result.net_pay


def build_ledger(result: CalculationResult) -> PayrollLedger:
    """Build an unsaved CALCULATED ledger with its component rows."""
    ledger = PayrollLedger(
        employee_id=result.employee_id,
        payroll_period_id=result.payroll_period_id,
        status=LedgerStatus.PENDING.value,
        version=1,
        notes=result.notes,
    )
    apply_result(ledger, result)
    ledger.components = build_component_rows(result)
    ledger.status = LedgerStatus.CALCULATED.value
    return ledger


class PayrollEngine:
    """Session-bound calculation: lookups and guards around the calculator.

    ``calculate`` resolves the employee, checks the period and duplicates,
    then delegates to ``PayrollCalculator`` with the component snapshot the
    caller passes in. Nothing is persisted here.
    """

    def __init__(
        self,
        session: AsyncSession,
        directory: EmployeeDirectory,
        calculator: PayrollCalculator | None = None,
    ):
        self.session = session
        self.directory = directory
        self.calculator = calculator or PayrollCalculator.from_settings(get_settings())

    def validate_calculation(self, request: CalculationRequest) -> None:
        PayrollCalculator.validate(request)

    async def calculate(
        self,
        request: CalculationRequest,
        components: Sequence[SalaryComponentSnapshot],
    ) -> PayrollLedger:
        """Calculate an unsaved ledger (status CALCULATED) for one employee."""
        self.validate_calculation(request)
        employee_id: UUID = request.employee_id
        payroll_period_id: UUID = request.payroll_period_id

        logger.info(
            "Calculating payroll for employee %s in period %s",
            employee_id,
            payroll_period_id,
        )

        await self.ensure_period_open(payroll_period_id)
        base_salary = await self.resolve_base_salary(employee_id, request.base_salary)

        if await self.ledger_exists(employee_id, payroll_period_id):
            raise DuplicatePayrollError(employee_id, payroll_period_id)

        result = self.calculator.compute(
            employee_id=employee_id,
            payroll_period_id=payroll_period_id,
            base_salary=base_salary,
            components=components,
            overtime_hours=request.overtime_hours,
            bonus_amount=request.bonus_amount,
            overrides=request.component_overrides,
            notes=request.notes,
        )
        return build_ledger(result)

    async def resolve_base_salary(
        self, employee_id: UUID, base_salary_override: Decimal | None
    ) -> Decimal:
        """Directory salary unless overridden; the employee must exist either way."""
        record = await self.directory.lookup(employee_id)
        if record is None or not record.active:
            raise EmployeeNotFoundError(employee_id)
        if base_salary_override is not None:
            return base_salary_override
        return ComponentLineBuilder.round_to_cents(record.base_salary)

    async def ensure_period_exists(self, payroll_period_id: UUID) -> PayrollPeriod:
        period = await self.session.get(PayrollPeriod, payroll_period_id)
        if period is None:
            raise PeriodNotFoundError(payroll_period_id)
        return period

    async def ensure_period_open(self, payroll_period_id: UUID) -> PayrollPeriod:
        period = await self.ensure_period_exists(payroll_period_id)
        if not period.is_open:
            raise ClosedPeriodError(payroll_period_id)
        return period

    async def ledger_exists(self, employee_id: UUID, payroll_period_id: UUID) -> bool:
        result = await self.session.execute(
            select(PayrollLedger.payroll_ledger_id).where(
                PayrollLedger.employee_id == employee_id,
                PayrollLedger.payroll_period_id == payroll_period_id,
            )
        )
        return result.first() is not None

    # === Standalone helpers ===

    def overtime_pay(self, overtime_hours: Decimal, hourly_rate: Decimal) -> Decimal:
        return self.calculator.overtime_pay(overtime_hours, hourly_rate)

    def taxes(self, gross_pay: Decimal, employee_id: UUID | None = None) -> Decimal:
        return self.calculator.taxes(gross_pay, employee_id)

    async def deductions(
        self, gross_pay: Decimal, employee_id: UUID, component_ids: list[UUID]
    ) -> Decimal:
        """Total of the given DEDUCTION components against ``gross_pay``."""
        if not component_ids:
            return ZERO
        result = await self.session.execute(
            select(SalaryComponent).where(
                SalaryComponent.salary_component_id.in_(component_ids)
            )
        )
        snapshots = [SalaryComponentSnapshot.from_model(c) for c in result.scalars().all()]
        return self.calculator.deductions(gross_pay, snapshots)
