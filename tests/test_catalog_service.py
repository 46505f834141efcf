"""Tests for the salary component catalog."""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.types import CalculationRequest, ComponentType
from payroll_ledger.exceptions import ComponentNotFoundError, PayrollValidationError
from payroll_ledger.models import PayrollPeriod, SalaryComponent
from payroll_ledger.services.catalog_service import SalaryComponentCatalog
from payroll_ledger.services.ledger_service import PayrollLedgerLifecycleManager

from tests.conftest import ALICE_ID


class TestCreateComponent:
    """Test catalog validation on create."""

    async def test_create_fixed_component(self, catalog: SalaryComponentCatalog):
        component = await catalog.create_component(
            name="Union Dues",
            component_type=ComponentType.DEDUCTION,
            amount=Decimal("25.00"),
            calculation_order=23,
        )

        assert component.salary_component_id is not None
        assert component.component_type == "DEDUCTION"
        assert component.active is True

    async def test_name_must_be_unique(self, catalog: SalaryComponentCatalog):
        await catalog.create_component(name="Medicare", component_type=ComponentType.TAX)

        with pytest.raises(PayrollValidationError, match="already exists"):
            await catalog.create_component(name="Medicare", component_type=ComponentType.TAX)

    async def test_name_required(self, catalog: SalaryComponentCatalog):
        with pytest.raises(PayrollValidationError):
            await catalog.create_component(name="  ", component_type=ComponentType.TAX)

    async def test_negative_amount_rejected(self, catalog: SalaryComponentCatalog):
        with pytest.raises(PayrollValidationError):
            await catalog.create_component(
                name="Bad", component_type=ComponentType.DEDUCTION, amount=Decimal("-1")
            )

    @pytest.mark.parametrize("percentage", [Decimal("-0.01"), Decimal("100.01")])
    async def test_percentage_out_of_range_rejected(
        self, catalog: SalaryComponentCatalog, percentage
    ):
        with pytest.raises(PayrollValidationError):
            await catalog.create_component(
                name="Bad", component_type=ComponentType.DEDUCTION, percentage=percentage
            )


class TestQueries:
    """Test ordering and filters."""

    async def test_active_components_ordered(
        self,
        catalog: SalaryComponentCatalog,
        standard_components: dict[str, SalaryComponent],
    ):
        inactive = await catalog.create_component(
            name="Old Levy", component_type=ComponentType.TAX, calculation_order=1
        )
        await catalog.deactivate_component(inactive.salary_component_id)

        snapshots = await catalog.active_components_ordered()

        assert [s.name for s in snapshots] == ["Income Tax", "Pension"]
        assert snapshots[1].percentage == Decimal("10")

    async def test_list_by_type(
        self,
        catalog: SalaryComponentCatalog,
        standard_components: dict[str, SalaryComponent],
    ):
        taxes = await catalog.list_by_type(ComponentType.TAX)
        assert [c.name for c in taxes] == ["Income Tax"]

    async def test_list_components_pages(
        self,
        catalog: SalaryComponentCatalog,
        standard_components: dict[str, SalaryComponent],
    ):
        first_page = await catalog.list_components(page=0, page_size=1)
        second_page = await catalog.list_components(page=1, page_size=1)

        assert len(first_page) == 1
        assert len(second_page) == 1
        assert first_page[0].name != second_page[0].name

    async def test_get_missing_component(self, catalog: SalaryComponentCatalog):
        with pytest.raises(ComponentNotFoundError):
            await catalog.get_component(uuid4())


class TestUpdateAndDelete:
    """Test catalog edits and referential history."""

    async def test_update_component(
        self,
        catalog: SalaryComponentCatalog,
        standard_components: dict[str, SalaryComponent],
    ):
        pension = standard_components["pension"]
        updated = await catalog.update_component(
            pension.salary_component_id, percentage=Decimal("12.5")
        )

        assert updated.percentage == Decimal("12.5")
        assert updated.updated_at is not None

    async def test_update_rejects_unknown_fields(
        self,
        catalog: SalaryComponentCatalog,
        standard_components: dict[str, SalaryComponent],
    ):
        with pytest.raises(PayrollValidationError, match="Unknown"):
            await catalog.update_component(
                standard_components["pension"].salary_component_id, colour="red"
            )

    async def test_rename_strips_whitespace(
        self,
        catalog: SalaryComponentCatalog,
        standard_components: dict[str, SalaryComponent],
    ):
        renamed = await catalog.update_component(
            standard_components["pension"].salary_component_id, name="  Retirement Plan  "
        )

        assert renamed.name == "Retirement Plan"

    async def test_rename_to_padded_existing_name_rejected(
        self,
        catalog: SalaryComponentCatalog,
        standard_components: dict[str, SalaryComponent],
    ):
        with pytest.raises(PayrollValidationError, match="already exists"):
            await catalog.update_component(
                standard_components["pension"].salary_component_id, name=" Income Tax "
            )

    @pytest.mark.parametrize("field_name", ["component_type", "active", "calculation_order"])
    async def test_required_fields_cannot_be_cleared(
        self,
        catalog: SalaryComponentCatalog,
        standard_components: dict[str, SalaryComponent],
        field_name: str,
    ):
        with pytest.raises(PayrollValidationError, match=field_name):
            await catalog.update_component(
                standard_components["pension"].salary_component_id, **{field_name: None}
            )

    async def test_delete_unreferenced_component(
        self,
        catalog: SalaryComponentCatalog,
        standard_components: dict[str, SalaryComponent],
    ):
        pension_id = standard_components["pension"].salary_component_id

        assert await catalog.delete_component(pension_id) is True
        with pytest.raises(ComponentNotFoundError):
            await catalog.get_component(pension_id)

    async def test_delete_referenced_component_deactivates(
        self,
        session: AsyncSession,
        catalog: SalaryComponentCatalog,
        manager: PayrollLedgerLifecycleManager,
        open_period: PayrollPeriod,
        standard_components: dict[str, SalaryComponent],
    ):
        ledger = await manager.create(
            CalculationRequest(
                employee_id=ALICE_ID, payroll_period_id=open_period.payroll_period_id
            )
        )
        pension = standard_components["pension"]

        assert await catalog.delete_component(pension.salary_component_id) is False

        component = await catalog.get_component(pension.salary_component_id)
        assert component.active is False
        # Existing ledger lines are untouched
        names = {line.component_name for line in ledger.components}
        assert "Pension" in names
