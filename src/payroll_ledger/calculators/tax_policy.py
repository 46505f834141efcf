"""Pluggable tax policies.

The engine never hard-codes a rate: callers inject a ``TaxPolicy``. The flat
rate policy is a placeholder, not a statutory computation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol, Sequence, runtime_checkable
from uuid import UUID


@runtime_checkable
class TaxPolicy(Protocol):
    """Computes the tax owed on a gross pay amount."""

    def calculate(self, gross_pay: Decimal, employee_id: UUID | None = None) -> Decimal:
        ...


class FlatRateTaxPolicy:
    """Single rate applied to the whole gross pay."""

    def __init__(self, rate: Decimal = Decimal("0.20")):
        if rate < 0 or rate > 1:
            raise ValueError(f"Tax rate must be between 0 and 1, got {rate}")
        self.rate = rate

    def calculate(self, gross_pay: Decimal, employee_id: UUID | None = None) -> Decimal:
        if gross_pay <= 0:
            return Decimal("0.00")
        return (gross_pay * self.rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TaxBracket:
    """Marginal tax bracket."""

    min_amount: Decimal
    max_amount: Decimal | None  # None = no upper limit
    rate: Decimal  # As decimal, e.g., 0.22 for 22%


class BracketTaxPolicy:
    """Progressive marginal brackets for one jurisdiction."""

    def __init__(self, jurisdiction: str, brackets: Sequence[TaxBracket]):
        if not brackets:
            raise ValueError("At least one bracket is required")
        self.jurisdiction = jurisdiction
        self.brackets = sorted(brackets, key=lambda b: b.min_amount)

    def calculate(self, gross_pay: Decimal, employee_id: UUID | None = None) -> Decimal:
        if gross_pay <= 0:
            return Decimal("0.00")

        total_tax = Decimal("0")
        for bracket in self.brackets:
            if gross_pay <= bracket.min_amount:
                break
            upper = gross_pay if bracket.max_amount is None else min(gross_pay, bracket.max_amount)
            taxable_in_bracket = upper - bracket.min_amount
            if taxable_in_bracket > 0:
                total_tax += taxable_in_bracket * bracket.rate

        return total_tax.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
