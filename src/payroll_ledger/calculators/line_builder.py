"""Component line builder with deterministic hashing."""

from __future__ import annotations

import hashlib
import json
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Mapping
from uuid import UUID

from payroll_ledger.calculators.types import (
    ComponentType,
    ResolvedComponent,
    SalaryComponentSnapshot,
)

OVERRIDE_NOTE = "Override applied"


class ComponentLineBuilder:
    """Resolves catalog components into ledger lines.

    Resolution precedence for each component:
    - an explicit override amount, used verbatim
    - the component percentage, applied to the calculation base
    - the component fixed amount

    Every resolved amount is rounded half-up to cents.
    """

    OUTPUT_PRECISION = Decimal("0.01")
    HUNDRED = Decimal("100")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(ComponentLineBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def percentage_of(base: Decimal, percentage: Decimal) -> Decimal:
        """Unrounded ``base * percentage / 100``."""
        return base * (percentage / ComponentLineBuilder.HUNDRED)

    @staticmethod
    def resolve(
        component: SalaryComponentSnapshot,
        calculation_base: Decimal,
        line_number: int,
        overrides: Mapping[UUID, Decimal] | None = None,
    ) -> ResolvedComponent:
        """Resolve one component against the calculation base."""
        overrides = overrides or {}
        percentage_applied: Decimal | None = None
        is_override = False

        if component.salary_component_id in overrides:
            amount = overrides[component.salary_component_id]
            is_override = True
            notes = OVERRIDE_NOTE
        elif component.percentage is not None:
            amount = ComponentLineBuilder.percentage_of(calculation_base, component.percentage)
            percentage_applied = component.percentage
            notes = f"{component.percentage}% of {calculation_base}"
        else:
            amount = component.amount
            notes = None

        return ResolvedComponent(
            salary_component_id=component.salary_component_id,
            component_name=component.name,
            component_type=component.component_type,
            amount=ComponentLineBuilder.round_to_cents(amount),
            calculation_base=calculation_base,
            line_number=line_number,
            percentage_applied=percentage_applied,
            is_override=is_override,
            notes=notes,
        )

    @staticmethod
    def total_for_type(
        lines: Iterable[ResolvedComponent], component_type: ComponentType
    ) -> Decimal:
        """Sum resolved amounts of one component type."""
        return sum(
            (line.amount for line in lines if line.component_type == component_type),
            Decimal("0.00"),
        )

    @staticmethod
    def compute_fingerprint(inputs: dict[str, Any], lines: list[ResolvedComponent]) -> str:
        """Fingerprint of the inputs and resolved lines of one calculation."""
        payload = {
            "inputs": inputs,
            "lines": [line.to_canonical_dict() for line in lines],
        }
        json_str = json.dumps(payload, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]
