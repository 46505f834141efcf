"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.engine import PayrollCalculator
from payroll_ledger.config import get_settings
from payroll_ledger.database import init_db
from payroll_ledger.directory import EmployeeDirectory
from payroll_ledger.services.catalog_service import SalaryComponentCatalog
from payroll_ledger.services.ledger_service import PayrollLedgerLifecycleManager
from payroll_ledger.services.period_service import PayrollPeriodRegistry


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency.

    Routes commit explicitly; anything left uncommitted is rolled back on close.
    """
    _, session_factory = init_db()
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_actor_id(
    x_actor_id: Annotated[str | None, Header()] = None
) -> str | None:
    """Extract the opaque acting user identifier from the X-Actor-ID header."""
    if x_actor_id is None or not x_actor_id.strip():
        return None
    return x_actor_id.strip()


def get_directory(request: Request) -> EmployeeDirectory:
    """Employee directory wired onto the application at startup."""
    return request.app.state.directory


DbSession = Annotated[AsyncSession, Depends(get_db_session)]
ActorId = Annotated[str | None, Depends(get_actor_id)]
Directory = Annotated[EmployeeDirectory, Depends(get_directory)]


def get_lifecycle_manager(db: DbSession, directory: Directory) -> PayrollLedgerLifecycleManager:
    calculator = PayrollCalculator.from_settings(get_settings())
    return PayrollLedgerLifecycleManager(db, directory, calculator)


def get_period_registry(db: DbSession) -> PayrollPeriodRegistry:
    return PayrollPeriodRegistry(db)


def get_catalog(db: DbSession) -> SalaryComponentCatalog:
    return SalaryComponentCatalog(db)


LifecycleManager = Annotated[PayrollLedgerLifecycleManager, Depends(get_lifecycle_manager)]
PeriodRegistry = Annotated[PayrollPeriodRegistry, Depends(get_period_registry)]
Catalog = Annotated[SalaryComponentCatalog, Depends(get_catalog)]
