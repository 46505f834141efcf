"""Pytest fixtures for payroll ledger tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from payroll_ledger.calculators.engine import PayrollCalculator
from payroll_ledger.calculators.tax_policy import FlatRateTaxPolicy
from payroll_ledger.calculators.types import ComponentType
from payroll_ledger.database import create_engine_for_url, create_schema, make_session_factory
from payroll_ledger.directory import InMemoryEmployeeDirectory
from payroll_ledger.models import PayrollPeriod, SalaryComponent
from payroll_ledger.services.catalog_service import SalaryComponentCatalog
from payroll_ledger.services.ledger_service import PayrollLedgerLifecycleManager
from payroll_ledger.services.period_service import PayrollPeriodRegistry

# In-memory SQLite; a fresh database per test
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ALICE_ID = UUID("00000000-0000-0000-0000-00000000a11c")
BOB_ID = UUID("00000000-0000-0000-0000-000000000b0b")
# Not in the directory
CAROL_ID = UUID("00000000-0000-0000-0000-00000000ca01")
FORMER_EMPLOYEE_ID = UUID("00000000-0000-0000-0000-00000000f0e1")


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine with all tables."""
    engine = create_engine_for_url(TEST_DATABASE_URL)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    session_factory = make_session_factory(engine)
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def directory() -> InMemoryEmployeeDirectory:
    """Employee directory with two active employees and one inactive."""
    directory = InMemoryEmployeeDirectory()
    directory.add(ALICE_ID, Decimal("4000.00"))
    directory.add(BOB_ID, Decimal("3000.00"))
    directory.add(FORMER_EMPLOYEE_ID, Decimal("5000.00"), active=False)
    return directory


@pytest.fixture
def calculator() -> PayrollCalculator:
    return PayrollCalculator(
        standard_monthly_hours=Decimal("160"),
        overtime_multiplier=Decimal("1.5"),
        tax_policy=FlatRateTaxPolicy(Decimal("0.20")),
    )


@pytest.fixture
def catalog(session: AsyncSession) -> SalaryComponentCatalog:
    return SalaryComponentCatalog(session)


@pytest.fixture
def registry(session: AsyncSession) -> PayrollPeriodRegistry:
    return PayrollPeriodRegistry(session)


@pytest.fixture
def manager(
    session: AsyncSession,
    directory: InMemoryEmployeeDirectory,
    calculator: PayrollCalculator,
) -> PayrollLedgerLifecycleManager:
    return PayrollLedgerLifecycleManager(session, directory, calculator)


@pytest.fixture
async def open_period(registry: PayrollPeriodRegistry) -> PayrollPeriod:
    """An open monthly period."""
    return await registry.create_period(
        name="January 2026",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 1, 31),
        pay_date=date(2026, 2, 1),
    )


@pytest.fixture
async def standard_components(
    catalog: SalaryComponentCatalog,
) -> dict[str, SalaryComponent]:
    """One 10% deduction and one fixed 50.00 tax."""
    pension = await catalog.create_component(
        name="Pension",
        component_type=ComponentType.DEDUCTION,
        percentage=Decimal("10"),
        calculation_order=20,
    )
    income_tax = await catalog.create_component(
        name="Income Tax",
        component_type=ComponentType.TAX,
        amount=Decimal("50.00"),
        calculation_order=10,
    )
    return {"pension": pension, "income_tax": income_tax}
