"""Seed script for the default salary component catalog.

Run with:
    python scripts/seed_components.py

Amounts start at zero; administrators set the real amounts or percentages
through the catalog API. Components that already exist (by name) are skipped.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.types import ComponentType
from payroll_ledger.database import get_session
from payroll_ledger.models import SalaryComponent
from payroll_ledger.services.catalog_service import SalaryComponentCatalog

# (name, type, is_taxable, is_mandatory, calculation_order, description)
DEFAULT_COMPONENTS: list[tuple[str, ComponentType, bool, bool, int, str]] = [
    ("House Rent Allowance", ComponentType.ALLOWANCE, True, False, 2, "Housing allowance"),
    ("Transport Allowance", ComponentType.ALLOWANCE, False, False, 3, "Transportation allowance"),
    ("Medical Allowance", ComponentType.ALLOWANCE, False, False, 4, "Medical benefits allowance"),
    ("Income Tax", ComponentType.TAX, False, True, 10, "Federal income tax"),
    ("Social Security Tax", ComponentType.TAX, False, True, 11, "Social security contribution"),
    ("Medicare Tax", ComponentType.TAX, False, True, 12, "Medicare contribution"),
    ("State Tax", ComponentType.TAX, False, False, 13, "State income tax"),
    ("Health Insurance", ComponentType.DEDUCTION, False, False, 20, "Health insurance premium"),
    ("Life Insurance", ComponentType.DEDUCTION, False, False, 21, "Life insurance premium"),
    ("Retirement Fund", ComponentType.DEDUCTION, False, False, 22, "Retirement savings contribution"),
    ("Union Dues", ComponentType.DEDUCTION, False, False, 23, "Union membership dues"),
    ("Loan Repayment", ComponentType.DEDUCTION, False, False, 24, "Employee loan repayment"),
]


async def seed_components(session: AsyncSession) -> int:
    """Create any missing default components. Returns the number created."""
    catalog = SalaryComponentCatalog(session)
    result = await session.execute(select(SalaryComponent.name))
    existing = set(result.scalars().all())

    created = 0
    for name, component_type, is_taxable, is_mandatory, order, description in DEFAULT_COMPONENTS:
        if name in existing:
            print(f"{name} already exists, skipping...")
            continue
        await catalog.create_component(
            name=name,
            component_type=component_type,
            amount=Decimal("0.00"),
            is_taxable=is_taxable,
            is_mandatory=is_mandatory,
            calculation_order=order,
            description=description,
        )
        print(f"Created {component_type.value} component {name}")
        created += 1
    return created


async def main():
    """Run seed script."""
    print("Seeding salary components...")

    async with get_session() as session:
        created = await seed_components(session)

    print(f"\nDone! {created} salary component(s) seeded.")


if __name__ == "__main__":
    asyncio.run(main())
