"""Tests for the payroll period registry."""

import logging
from datetime import date
from uuid import uuid4

import pytest

from payroll_ledger.calculators.types import CalculationRequest
from payroll_ledger.exceptions import PayrollValidationError, PeriodNotFoundError
from payroll_ledger.models import PayrollPeriod
from payroll_ledger.services.ledger_service import PayrollLedgerLifecycleManager
from payroll_ledger.services.period_service import PayrollPeriodRegistry, PeriodType

from tests.conftest import ALICE_ID


class TestCreatePeriod:
    """Test period validation."""

    async def test_create_period_is_open(self, registry: PayrollPeriodRegistry):
        period = await registry.create_period(
            name="Week 1",
            start_date=date(2026, 1, 1),
            end_date=date(2026, 1, 7),
            period_type=PeriodType.WEEKLY,
        )

        assert period.status == "OPEN"
        assert period.period_type == "WEEKLY"
        assert period.is_open is True

    async def test_end_before_start_rejected(self, registry: PayrollPeriodRegistry):
        with pytest.raises(PayrollValidationError, match="End date"):
            await registry.create_period(
                name="Backwards",
                start_date=date(2026, 2, 1),
                end_date=date(2026, 1, 1),
            )

    async def test_pay_date_before_end_rejected(self, registry: PayrollPeriodRegistry):
        with pytest.raises(PayrollValidationError, match="Pay date"):
            await registry.create_period(
                name="Early pay",
                start_date=date(2026, 1, 1),
                end_date=date(2026, 1, 31),
                pay_date=date(2026, 1, 30),
            )

    async def test_overlap_is_allowed_with_warning(
        self, registry: PayrollPeriodRegistry, open_period: PayrollPeriod, caplog
    ):
        with caplog.at_level(logging.WARNING):
            period = await registry.create_period(
                name="Mid January",
                start_date=date(2026, 1, 15),
                end_date=date(2026, 2, 14),
            )

        assert period.payroll_period_id != open_period.payroll_period_id
        assert "overlaps 1 existing period" in caplog.text


class TestQueries:
    """Test period lookups."""

    async def test_get_missing_period(self, registry: PayrollPeriodRegistry):
        with pytest.raises(PeriodNotFoundError):
            await registry.get_period(uuid4())

    async def test_current_period(self, registry: PayrollPeriodRegistry, open_period: PayrollPeriod):
        found = await registry.current_period(date(2026, 1, 15))
        assert found is not None
        assert found.payroll_period_id == open_period.payroll_period_id

        assert await registry.current_period(date(2025, 12, 31)) is None

    async def test_list_open_periods_excludes_closed(
        self, registry: PayrollPeriodRegistry, open_period: PayrollPeriod
    ):
        closed = await registry.create_period(
            name="December 2025",
            start_date=date(2025, 12, 1),
            end_date=date(2025, 12, 31),
        )
        await registry.close_period(closed.payroll_period_id)

        open_ids = [p.payroll_period_id for p in await registry.list_open_periods()]
        assert open_ids == [open_period.payroll_period_id]
        assert len(await registry.list_periods()) == 2


class TestUpdateCloseDelete:
    """Test period mutations."""

    async def test_update_period(self, registry: PayrollPeriodRegistry, open_period: PayrollPeriod):
        updated = await registry.update_period(
            open_period.payroll_period_id, description="Regular monthly run"
        )
        assert updated.description == "Regular monthly run"
        assert updated.updated_at is not None

    async def test_update_validates_dates(
        self, registry: PayrollPeriodRegistry, open_period: PayrollPeriod
    ):
        with pytest.raises(PayrollValidationError):
            await registry.update_period(open_period.payroll_period_id, end_date=date(2025, 12, 1))

    async def test_close_period_twice(self, registry: PayrollPeriodRegistry, open_period: PayrollPeriod):
        closed = await registry.close_period(open_period.payroll_period_id)
        again = await registry.close_period(open_period.payroll_period_id)

        assert closed.status == "CLOSED"
        assert again.status == "CLOSED"

    async def test_delete_unused_period(self, registry: PayrollPeriodRegistry, open_period: PayrollPeriod):
        await registry.delete_period(open_period.payroll_period_id)

        with pytest.raises(PeriodNotFoundError):
            await registry.get_period(open_period.payroll_period_id)

    async def test_delete_period_with_ledgers_refused(
        self,
        registry: PayrollPeriodRegistry,
        manager: PayrollLedgerLifecycleManager,
        open_period: PayrollPeriod,
    ):
        await manager.create(
            CalculationRequest(
                employee_id=ALICE_ID, payroll_period_id=open_period.payroll_period_id
            )
        )

        with pytest.raises(PayrollValidationError, match="cannot be deleted"):
            await registry.delete_period(open_period.payroll_period_id)
