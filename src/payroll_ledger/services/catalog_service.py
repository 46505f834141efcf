"""Salary component catalog service."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.types import ComponentType, SalaryComponentSnapshot
from payroll_ledger.exceptions import ComponentNotFoundError, PayrollValidationError
from payroll_ledger.models import PayrollLedgerComponent, SalaryComponent, utcnow

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "name",
    "component_type",
    "amount",
    "percentage",
    "is_taxable",
    "is_mandatory",
    "calculation_order",
    "description",
    "active",
)

# Columns that may be changed but never cleared
REQUIRED_FIELDS = (
    "component_type",
    "is_taxable",
    "is_mandatory",
    "calculation_order",
    "active",
)


class SalaryComponentCatalog:
    """Manages the ordered set of reusable pay-adjustment rules.

    Components that any ledger line references are deactivated rather than
    deleted, so historical ledgers keep pointing at a real row.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_active(self) -> list[SalaryComponent]:
        result = await self.session.execute(
            select(SalaryComponent)
            .where(SalaryComponent.active.is_(True))
            .order_by(SalaryComponent.calculation_order, SalaryComponent.name)
        )
        return list(result.scalars().all())

    async def active_components_ordered(self) -> list[SalaryComponentSnapshot]:
        """Frozen snapshots of active components in calculation order."""
        return [SalaryComponentSnapshot.from_model(c) for c in await self.list_active()]

    async def get_component(self, salary_component_id: UUID) -> SalaryComponent:
        component = await self.session.get(SalaryComponent, salary_component_id)
        if component is None:
            raise ComponentNotFoundError(salary_component_id)
        return component

    async def list_components(
        self, page: int = 0, page_size: int = 50
    ) -> list[SalaryComponent]:
        result = await self.session.execute(
            select(SalaryComponent)
            .order_by(SalaryComponent.calculation_order, SalaryComponent.name)
            .offset(page * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all())

    async def list_by_type(
        self, component_type: ComponentType, active_only: bool = True
    ) -> list[SalaryComponent]:
        stmt = select(SalaryComponent).where(
            SalaryComponent.component_type == component_type.value
        )
        if active_only:
            stmt = stmt.where(SalaryComponent.active.is_(True))
        result = await self.session.execute(
            stmt.order_by(SalaryComponent.calculation_order, SalaryComponent.name)
        )
        return list(result.scalars().all())

    async def create_component(
        self,
        name: str,
        component_type: ComponentType,
        amount: Decimal = Decimal("0.00"),
        percentage: Decimal | None = None,
        is_taxable: bool = False,
        is_mandatory: bool = False,
        calculation_order: int = 0,
        description: str | None = None,
        active: bool = True,
    ) -> SalaryComponent:
        """Add a component to the catalog."""
        self._validate(name, amount, percentage)
        await self._ensure_name_free(name)

        component = SalaryComponent(
            name=name.strip(),
            component_type=ComponentType(component_type).value,
            amount=amount,
            percentage=percentage,
            is_taxable=is_taxable,
            is_mandatory=is_mandatory,
            calculation_order=calculation_order,
            description=description,
            active=active,
        )
        self.session.add(component)
        await self.session.flush()
        logger.info(
            "Created salary component %s (%s) with id %s",
            component.name,
            component.component_type,
            component.salary_component_id,
        )
        return component

    async def update_component(
        self, salary_component_id: UUID, **changes: Any
    ) -> SalaryComponent:
        """Apply field changes. Existing ledger lines are not touched."""
        component = await self.get_component(salary_component_id)

        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise PayrollValidationError(
                f"Unknown salary component fields: {', '.join(sorted(unknown))}"
            )

        cleared = sorted(f for f in REQUIRED_FIELDS if f in changes and changes[f] is None)
        if cleared:
            raise PayrollValidationError(
                f"Salary component fields cannot be empty: {', '.join(cleared)}"
            )

        name = changes.get("name", component.name)
        amount = changes.get("amount", component.amount)
        percentage = changes.get("percentage", component.percentage)
        self._validate(name, amount, percentage)
        if "name" in changes:
            changes["name"] = name = name.strip()
        if name != component.name:
            await self._ensure_name_free(name)

        for field_name, value in changes.items():
            if field_name == "component_type":
                value = ComponentType(value).value
            setattr(component, field_name, value)
        component.updated_at = utcnow()

        await self.session.flush()
        logger.info("Updated salary component %s", salary_component_id)
        return component

    async def deactivate_component(self, salary_component_id: UUID) -> SalaryComponent:
        component = await self.get_component(salary_component_id)
        component.active = False
        component.updated_at = utcnow()
        await self.session.flush()
        logger.info("Deactivated salary component %s", salary_component_id)
        return component

    async def delete_component(self, salary_component_id: UUID) -> bool:
        """Hard-delete an unreferenced component.

        Returns True when the row was removed. A component referenced by any
        ledger line is deactivated instead and False is returned.
        """
        component = await self.get_component(salary_component_id)

        references = await self.session.scalar(
            select(func.count())
            .select_from(PayrollLedgerComponent)
            .where(PayrollLedgerComponent.salary_component_id == salary_component_id)
        )
        if references:
            logger.info(
                "Salary component %s is referenced by %d ledger line(s); deactivating",
                salary_component_id,
                references,
            )
            await self.deactivate_component(salary_component_id)
            return False

        await self.session.delete(component)
        await self.session.flush()
        logger.info("Deleted salary component %s", salary_component_id)
        return True

    @staticmethod
    def _validate(name: str | None, amount: Decimal | None, percentage: Decimal | None) -> None:
        if not name or not name.strip():
            raise PayrollValidationError("Component name is required")
        if amount is None or amount < 0:
            raise PayrollValidationError("Component amount cannot be negative")
        if percentage is not None and (percentage < 0 or percentage > 100):
            raise PayrollValidationError("Component percentage must be between 0 and 100")

    async def _ensure_name_free(self, name: str) -> None:
        existing = await self.session.scalar(
            select(SalaryComponent.salary_component_id).where(
                SalaryComponent.name == name.strip()
            )
        )
        if existing is not None:
            raise PayrollValidationError(f"Salary component name already exists: {name}")
