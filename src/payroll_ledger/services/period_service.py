"""Payroll period registry."""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.exceptions import (
    PayrollValidationError,
    PeriodNotFoundError,
)
from payroll_ledger.models import PayrollLedger, PayrollPeriod, PeriodStatus, utcnow

logger = logging.getLogger(__name__)


class PeriodType(str, Enum):
    """Payroll period cadence."""

    MONTHLY = "MONTHLY"
    BI_WEEKLY = "BI_WEEKLY"
    WEEKLY = "WEEKLY"
    CUSTOM = "CUSTOM"


UPDATABLE_FIELDS = ("name", "start_date", "end_date", "period_type", "pay_date", "description")


class PayrollPeriodRegistry:
    """Creates, queries, and closes payroll periods.

    Overlapping periods are allowed; creating one logs a warning.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_period(self, payroll_period_id: UUID) -> PayrollPeriod:
        period = await self.session.get(PayrollPeriod, payroll_period_id)
        if period is None:
            raise PeriodNotFoundError(payroll_period_id)
        return period

    async def list_periods(self, page: int = 0, page_size: int = 50) -> list[PayrollPeriod]:
        result = await self.session.execute(
            select(PayrollPeriod)
            .order_by(PayrollPeriod.start_date.desc(), PayrollPeriod.name)
            .offset(page * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all())

    async def list_open_periods(self) -> list[PayrollPeriod]:
        result = await self.session.execute(
            select(PayrollPeriod)
            .where(PayrollPeriod.status == PeriodStatus.OPEN.value)
            .order_by(PayrollPeriod.start_date)
        )
        return list(result.scalars().all())

    async def current_period(self, on_date: date | None = None) -> PayrollPeriod | None:
        """The most recently started period containing ``on_date`` (default today)."""
        on_date = on_date or date.today()
        result = await self.session.execute(
            select(PayrollPeriod)
            .where(
                PayrollPeriod.start_date <= on_date,
                PayrollPeriod.end_date >= on_date,
            )
            .order_by(PayrollPeriod.start_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_period(
        self,
        name: str,
        start_date: date,
        end_date: date,
        period_type: PeriodType = PeriodType.MONTHLY,
        pay_date: date | None = None,
        description: str | None = None,
    ) -> PayrollPeriod:
        self._validate(name, start_date, end_date, pay_date)

        overlapping = await self._overlapping(start_date, end_date)
        if overlapping:
            logger.warning(
                "Payroll period %s (%s to %s) overlaps %d existing period(s)",
                name,
                start_date,
                end_date,
                len(overlapping),
            )

        period = PayrollPeriod(
            name=name.strip(),
            start_date=start_date,
            end_date=end_date,
            period_type=PeriodType(period_type).value,
            status=PeriodStatus.OPEN.value,
            pay_date=pay_date,
            description=description,
        )
        self.session.add(period)
        await self.session.flush()
        logger.info("Created payroll period %s (%s)", period.name, period.payroll_period_id)
        return period

    async def update_period(self, payroll_period_id: UUID, **changes: Any) -> PayrollPeriod:
        period = await self.get_period(payroll_period_id)

        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise PayrollValidationError(
                f"Unknown payroll period fields: {', '.join(sorted(unknown))}"
            )

        self._validate(
            changes.get("name", period.name),
            changes.get("start_date", period.start_date),
            changes.get("end_date", period.end_date),
            changes.get("pay_date", period.pay_date),
        )
        for field_name, value in changes.items():
            if field_name == "period_type" and value is not None:
                value = PeriodType(value).value
            setattr(period, field_name, value)
        period.updated_at = utcnow()

        await self.session.flush()
        logger.info("Updated payroll period %s", payroll_period_id)
        return period

    async def close_period(self, payroll_period_id: UUID) -> PayrollPeriod:
        """Close a period. Closing twice is a no-op."""
        period = await self.get_period(payroll_period_id)
        if period.status == PeriodStatus.CLOSED.value:
            return period
        period.status = PeriodStatus.CLOSED.value
        period.updated_at = utcnow()
        await self.session.flush()
        logger.info("Closed payroll period %s", payroll_period_id)
        return period

    async def delete_period(self, payroll_period_id: UUID) -> None:
        """Delete a period that no ledger references."""
        period = await self.get_period(payroll_period_id)
        ledger_count = await self.session.scalar(
            select(func.count())
            .select_from(PayrollLedger)
            .where(PayrollLedger.payroll_period_id == payroll_period_id)
        )
        if ledger_count:
            raise PayrollValidationError(
                f"Payroll period {payroll_period_id} has {ledger_count} ledger(s) "
                "and cannot be deleted"
            )
        await self.session.delete(period)
        await self.session.flush()
        logger.info("Deleted payroll period %s", payroll_period_id)

    @staticmethod
    def _validate(
        name: str | None, start_date: date, end_date: date, pay_date: date | None
    ) -> None:
        if not name or not name.strip():
            raise PayrollValidationError("Payroll period name is required")
        if start_date is None or end_date is None:
            raise PayrollValidationError("Payroll period start and end dates are required")
        if end_date < start_date:
            raise PayrollValidationError("End date must be on or after start date")
        if pay_date is not None and pay_date < end_date:
            raise PayrollValidationError("Pay date must be on or after end date")

    async def _overlapping(self, start_date: date, end_date: date) -> list[PayrollPeriod]:
        result = await self.session.execute(
            select(PayrollPeriod).where(
                PayrollPeriod.start_date <= end_date,
                PayrollPeriod.end_date >= start_date,
            )
        )
        return list(result.scalars().all())
