"""Unit tests for the payroll calculator.

Pure arithmetic; no database involved.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_ledger.calculators.engine import PayrollCalculator, build_ledger
from payroll_ledger.calculators.line_builder import OVERRIDE_NOTE
from payroll_ledger.calculators.tax_policy import FlatRateTaxPolicy
from payroll_ledger.calculators.types import (
    CalculationRequest,
    ComponentType,
    SalaryComponentSnapshot,
)
from payroll_ledger.exceptions import PayrollValidationError


def _deduction(percentage: str = "10", order: int = 20) -> SalaryComponentSnapshot:
    return SalaryComponentSnapshot(
        salary_component_id=uuid4(),
        name="Pension",
        component_type=ComponentType.DEDUCTION,
        percentage=Decimal(percentage),
        calculation_order=order,
    )


def _tax(amount: str = "50.00", order: int = 10) -> SalaryComponentSnapshot:
    return SalaryComponentSnapshot(
        salary_component_id=uuid4(),
        name="Income Tax",
        component_type=ComponentType.TAX,
        amount=Decimal(amount),
        calculation_order=order,
    )


def _compute(calculator: PayrollCalculator, components, **kwargs):
    return calculator.compute(
        employee_id=kwargs.pop("employee_id", uuid4()),
        payroll_period_id=kwargs.pop("payroll_period_id", uuid4()),
        base_salary=kwargs.pop("base_salary", Decimal("4000.00")),
        components=components,
        **kwargs,
    )


class TestReferenceScenario:
    """Base 4000, 10 overtime hours, 200 bonus, 10% deduction, 50.00 tax."""

    def test_full_breakdown(self, calculator: PayrollCalculator):
        result = _compute(
            calculator,
            [_deduction(), _tax()],
            overtime_hours=Decimal("10"),
            bonus_amount=Decimal("200.00"),
        )

        assert result.hourly_rate == Decimal("25.00")
        assert result.overtime_pay == Decimal("375.00")
        assert result.gross_pay == Decimal("4575.00")
        assert result.total_deductions == Decimal("457.50")
        assert result.total_taxes == Decimal("50.00")
        assert result.net_pay == Decimal("4067.50")

    def test_net_and_gross_identities_hold(self, calculator: PayrollCalculator):
        result = _compute(
            calculator,
            [_deduction("7.5"), _tax("123.45")],
            base_salary=Decimal("3333.33"),
            overtime_hours=Decimal("3.5"),
            bonus_amount=Decimal("17.01"),
        )

        assert result.gross_pay == result.base_salary + result.overtime_pay + result.bonus_amount
        assert result.net_pay == result.gross_pay - result.total_deductions - result.total_taxes

    def test_lines_follow_calculation_order(self, calculator: PayrollCalculator):
        """Tax (order 10) resolves before the deduction (order 20)."""
        result = _compute(calculator, [_deduction(), _tax()])

        assert [line.component_type for line in result.components] == [
            ComponentType.TAX,
            ComponentType.DEDUCTION,
        ]
        assert [line.line_number for line in result.components] == [1, 2]

    def test_percentage_line_records_base_and_rate(self, calculator: PayrollCalculator):
        result = _compute(calculator, [_deduction()])
        line = result.components[0]

        assert line.calculation_base == result.gross_pay
        assert line.percentage_applied == Decimal("10")
        assert line.is_override is False


class TestOvertime:
    """Test overtime pay rounding and monotonicity."""

    def test_overtime_rounds_half_up(self, calculator: PayrollCalculator):
        # 1 * 0.125 * 1.5 = 0.1875
        assert calculator.overtime_pay(Decimal("1"), Decimal("0.125")) == Decimal("0.19")

    def test_hourly_rate_is_rounded_before_overtime(self, calculator: PayrollCalculator):
        # 1000 / 160 = 6.25; 1 * 6.25 * 1.5 = 9.375
        rate = calculator.hourly_rate(Decimal("1000"))
        assert rate == Decimal("6.25")
        assert calculator.overtime_pay(Decimal("1"), rate) == Decimal("9.38")

    def test_no_hours_means_no_overtime(self, calculator: PayrollCalculator):
        assert calculator.overtime_pay(Decimal("0"), Decimal("25.00")) == Decimal("0.00")
        assert calculator.overtime_pay(None, Decimal("25.00")) == Decimal("0.00")

    def test_overtime_is_monotonic_in_hours(self, calculator: PayrollCalculator):
        rate = calculator.hourly_rate(Decimal("3210.55"))
        previous = Decimal("-1")
        for quarter_hours in range(0, 80):
            pay = calculator.overtime_pay(Decimal(quarter_hours) / 4, rate)
            assert pay >= previous
            previous = pay

    def test_custom_multiplier(self):
        calculator = PayrollCalculator(overtime_multiplier=Decimal("2"))
        assert calculator.overtime_pay(Decimal("2"), Decimal("10.00")) == Decimal("40.00")


class TestOverrides:
    """Test per-component override amounts."""

    def test_zero_override_is_used_verbatim(self, calculator: PayrollCalculator):
        tax = _tax()
        result = _compute(
            calculator,
            [_deduction(), tax],
            overtime_hours=Decimal("10"),
            bonus_amount=Decimal("200.00"),
            overrides={tax.salary_component_id: Decimal("0")},
        )

        tax_line = next(c for c in result.components if c.component_type == ComponentType.TAX)
        assert tax_line.amount == Decimal("0.00")
        assert tax_line.is_override is True
        assert tax_line.notes == OVERRIDE_NOTE
        assert result.net_pay == Decimal("4117.50")

    def test_override_wins_over_percentage(self, calculator: PayrollCalculator):
        deduction = _deduction()
        result = _compute(
            calculator,
            [deduction],
            overrides={deduction.salary_component_id: Decimal("12.345")},
        )

        line = result.components[0]
        assert line.amount == Decimal("12.35")
        assert line.percentage_applied is None

    def test_unknown_override_is_ignored(self, calculator: PayrollCalculator, caplog):
        result = _compute(calculator, [_tax()], overrides={uuid4(): Decimal("99.00")})

        assert result.total_taxes == Decimal("50.00")
        assert "Ignoring overrides" in caplog.text


class TestAllowances:
    """Allowance lines are stored but do not change net pay."""

    def test_allowance_not_netted(self, calculator: PayrollCalculator):
        allowance = SalaryComponentSnapshot(
            salary_component_id=uuid4(),
            name="Housing",
            component_type=ComponentType.ALLOWANCE,
            amount=Decimal("300.00"),
            calculation_order=1,
        )
        with_allowance = _compute(calculator, [allowance, _deduction(), _tax()])
        without_allowance = _compute(calculator, [_deduction(), _tax()])

        assert with_allowance.total_allowances == Decimal("300.00")
        assert with_allowance.net_pay == without_allowance.net_pay
        assert with_allowance.total_deductions == without_allowance.total_deductions
        assert len(with_allowance.components) == 3


class TestValidation:
    """Test input validation runs before computation."""

    @pytest.mark.parametrize(
        "field_name,value,message",
        [
            ("base_salary", Decimal("-1"), "Base salary cannot be negative"),
            ("overtime_hours", Decimal("-0.5"), "Overtime hours cannot be negative"),
            ("bonus_amount", Decimal("-10"), "Bonus amount cannot be negative"),
            ("base_salary", Decimal("1000.004"), "Base salary cannot have more than 2 decimal places"),
            ("overtime_hours", Decimal("1.125"), "Overtime hours cannot have more than 2 decimal places"),
            ("bonus_amount", Decimal("0.004"), "Bonus amount cannot have more than 2 decimal places"),
        ],
    )
    def test_invalid_inputs_rejected(self, field_name, value, message):
        request = CalculationRequest(employee_id=uuid4(), payroll_period_id=uuid4())
        setattr(request, field_name, value)

        with pytest.raises(PayrollValidationError) as exc_info:
            PayrollCalculator.validate(request)

        assert exc_info.value.message == message
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_employee_id_required(self):
        request = CalculationRequest(employee_id=None, payroll_period_id=uuid4())
        with pytest.raises(PayrollValidationError, match="Employee ID is required"):
            PayrollCalculator.validate(request)

    def test_period_id_required(self):
        request = CalculationRequest(employee_id=uuid4(), payroll_period_id=None)
        with pytest.raises(PayrollValidationError, match="Payroll period ID is required"):
            PayrollCalculator.validate(request)

    def test_negative_override_rejected(self):
        request = CalculationRequest(
            employee_id=uuid4(),
            payroll_period_id=uuid4(),
            component_overrides={uuid4(): Decimal("-5")},
        )
        with pytest.raises(PayrollValidationError):
            PayrollCalculator.validate(request)

    def test_zero_inputs_are_valid(self):
        request = CalculationRequest(
            employee_id=uuid4(),
            payroll_period_id=uuid4(),
            base_salary=Decimal("0"),
            overtime_hours=Decimal("0"),
            bonus_amount=Decimal("0"),
        )
        PayrollCalculator.validate(request)

    def test_trailing_zeros_are_not_extra_precision(self):
        request = CalculationRequest(
            employee_id=uuid4(),
            payroll_period_id=uuid4(),
            base_salary=Decimal("4000.000"),
            overtime_hours=Decimal("7.50"),
        )
        PayrollCalculator.validate(request)


class TestHelpers:
    """Test standalone tax and deduction helpers."""

    def test_taxes_use_injected_policy(self):
        calculator = PayrollCalculator(tax_policy=FlatRateTaxPolicy(Decimal("0.20")))
        assert calculator.taxes(Decimal("4575.00")) == Decimal("915.00")

    def test_deductions_round_once_at_the_end(self, calculator: PayrollCalculator):
        # Each line is 2.5025; rounding per line would give 5.00
        first = _deduction("2.5")
        second = _deduction("2.5")
        total = calculator.deductions(Decimal("100.10"), [first, second])
        assert total == Decimal("5.01")

    def test_deductions_filter_by_ids_and_type(self, calculator: PayrollCalculator):
        pension = _deduction("10")
        other = _deduction("50")
        tax = _tax()
        total = calculator.deductions(
            Decimal("1000.00"),
            [pension, other, tax],
            component_ids=[pension.salary_component_id, tax.salary_component_id],
        )
        assert total == Decimal("100.00")


class TestFingerprint:
    """Test result fingerprints."""

    def test_same_inputs_same_fingerprint(self, calculator: PayrollCalculator):
        employee_id, period_id = uuid4(), uuid4()
        components = [_deduction(), _tax()]
        first = _compute(calculator, components, employee_id=employee_id, payroll_period_id=period_id)
        second = _compute(calculator, components, employee_id=employee_id, payroll_period_id=period_id)

        assert first.fingerprint == second.fingerprint
        assert len(first.fingerprint) == 32

    def test_different_salary_different_fingerprint(self, calculator: PayrollCalculator):
        employee_id, period_id = uuid4(), uuid4()
        components = [_deduction()]
        first = _compute(calculator, components, employee_id=employee_id, payroll_period_id=period_id)
        second = _compute(
            calculator,
            components,
            employee_id=employee_id,
            payroll_period_id=period_id,
            base_salary=Decimal("4000.01"),
        )

        assert first.fingerprint != second.fingerprint


class TestBuildLedger:
    """Test conversion of a result into an unsaved ledger."""

    def test_ledger_is_calculated_with_component_rows(self, calculator: PayrollCalculator):
        result = _compute(calculator, [_deduction(), _tax()], bonus_amount=Decimal("200.00"))
        ledger = build_ledger(result)

        assert ledger.status == "CALCULATED"
        assert ledger.version == 1
        assert ledger.net_pay == result.net_pay
        assert len(ledger.components) == 2
        assert {c.component_type for c in ledger.components} == {"TAX", "DEDUCTION"}
