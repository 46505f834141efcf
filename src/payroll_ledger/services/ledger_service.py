"""Payroll ledger lifecycle manager - orchestrates calculation, persistence, and audit."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.calculators.engine import (
    PayrollCalculator,
    PayrollEngine,
    apply_result,
    build_component_rows,
)
from payroll_ledger.calculators.types import (
    BatchCalculationResult,
    CalculationRequest,
    EmployeeFailure,
    SalaryComponentSnapshot,
)
from payroll_ledger.directory import EmployeeDirectory
from payroll_ledger.exceptions import (
    DuplicatePayrollError,
    InvalidTransitionError,
    LedgerNotFoundError,
    PayrollError,
    PayrollValidationError,
)
from payroll_ledger.models import (
    AuditAction,
    LedgerStatus,
    PayrollAudit,
    PayrollLedger,
    PayrollPeriod,
    utcnow,
)
from payroll_ledger.services.audit_service import PayrollAuditTrail
from payroll_ledger.services.catalog_service import SalaryComponentCatalog
from payroll_ledger.services.state_machine import LedgerStateMachine

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass
class StatusTotals:
    """Counts and money totals for ledgers in one status."""

    count: int = 0
    gross_pay: Decimal = ZERO
    total_deductions: Decimal = ZERO
    total_taxes: Decimal = ZERO
    net_pay: Decimal = ZERO

    def add(self, other: StatusTotals) -> None:
        self.count += other.count
        self.gross_pay += other.gross_pay
        self.total_deductions += other.total_deductions
        self.total_taxes += other.total_taxes
        self.net_pay += other.net_pay


@dataclass
class PeriodSummary:
    """Aggregate view of one period's ledgers (data only, no rendering)."""

    payroll_period_id: UUID
    period_name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    by_status: dict[str, StatusTotals] = field(default_factory=dict)
    totals: StatusTotals = field(default_factory=StatusTotals)


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(Decimal("0.01"))


class PayrollLedgerLifecycleManager:
    """Service for managing payroll ledger lifecycle.

    Operations:
    - create: Calculate and persist a ledger (CALCULATED)
    - approve / reject: Decide on a CALCULATED ledger
    - mark_paid: Record payment of an APPROVED ledger
    - recalculate: Recompute a non-paid ledger in place, bumping its version
    - update_ledger: Change inputs or notes of a non-paid ledger and recompute
    - delete: Remove a non-paid ledger, leaving its audit trail behind
    - calculate_for_period: Batch create with per-employee failure isolation

    Each single-ledger mutation writes one audit row in the same unit of work.
    """

    def __init__(
        self,
        session: AsyncSession,
        directory: EmployeeDirectory,
        calculator: PayrollCalculator | None = None,
    ):
        self.session = session
        self.engine = PayrollEngine(session, directory, calculator)
        self.catalog = SalaryComponentCatalog(session)
        self.audit = PayrollAuditTrail(session)

    # === Queries ===

    async def get_ledger(self, payroll_ledger_id: UUID) -> PayrollLedger:
        ledger = await self.session.get(PayrollLedger, payroll_ledger_id)
        if ledger is None:
            raise LedgerNotFoundError(payroll_ledger_id)
        return ledger

    async def list_ledgers(self, page: int = 0, page_size: int = 50) -> list[PayrollLedger]:
        result = await self.session.execute(
            select(PayrollLedger)
            .order_by(PayrollLedger.created_at.desc(), PayrollLedger.payroll_ledger_id)
            .offset(page * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all())

    async def count_ledgers(self) -> int:
        return await self.session.scalar(select(func.count()).select_from(PayrollLedger)) or 0

    async def list_by_employee(self, employee_id: UUID) -> list[PayrollLedger]:
        result = await self.session.execute(
            select(PayrollLedger)
            .where(PayrollLedger.employee_id == employee_id)
            .order_by(PayrollLedger.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_by_period(self, payroll_period_id: UUID) -> list[PayrollLedger]:
        result = await self.session.execute(
            select(PayrollLedger)
            .where(PayrollLedger.payroll_period_id == payroll_period_id)
            .order_by(PayrollLedger.created_at)
        )
        return list(result.scalars().all())

    async def list_by_status(self, status: LedgerStatus) -> list[PayrollLedger]:
        result = await self.session.execute(
            select(PayrollLedger)
            .where(PayrollLedger.status == LedgerStatus(status).value)
            .order_by(PayrollLedger.created_at)
        )
        return list(result.scalars().all())

    async def audit_trail(self, payroll_ledger_id: UUID) -> list[PayrollAudit]:
        """Audit rows for a ledger, oldest first. Works for deleted ledgers too."""
        return await self.audit.list_for_ledger(payroll_ledger_id)

    async def summarize_period(self, payroll_period_id: UUID) -> PeriodSummary:
        period = await self.engine.ensure_period_exists(payroll_period_id)

        result = await self.session.execute(
            select(
                PayrollLedger.status,
                func.count(),
                func.sum(PayrollLedger.gross_pay),
                func.sum(PayrollLedger.total_deductions),
                func.sum(PayrollLedger.total_taxes),
                func.sum(PayrollLedger.net_pay),
            )
            .where(PayrollLedger.payroll_period_id == payroll_period_id)
            .group_by(PayrollLedger.status)
        )

        summary = PeriodSummary(
            payroll_period_id=payroll_period_id,
            period_name=period.name,
            start_date=period.start_date,
            end_date=period.end_date,
        )
        for status, count, gross, deductions, taxes, net in result.all():
            totals = StatusTotals(
                count=count,
                gross_pay=_money(gross),
                total_deductions=_money(deductions),
                total_taxes=_money(taxes),
                net_pay=_money(net),
            )
            summary.by_status[status] = totals
            summary.totals.add(totals)
        return summary

    async def summarize_date_range(self, start_date: date, end_date: date) -> list[PeriodSummary]:
        """One summary per period overlapping [start_date, end_date], earliest first."""
        if end_date < start_date:
            raise PayrollValidationError("End date must be on or after start date")

        result = await self.session.execute(
            select(PayrollPeriod.payroll_period_id)
            .where(
                PayrollPeriod.start_date <= end_date,
                PayrollPeriod.end_date >= start_date,
            )
            .order_by(PayrollPeriod.start_date, PayrollPeriod.name)
        )
        return [
            await self.summarize_period(payroll_period_id)
            for payroll_period_id in result.scalars().all()
        ]

    # === Mutations ===

    async def create(
        self,
        request: CalculationRequest,
        actor_id: str | None = None,
        components: Sequence[SalaryComponentSnapshot] | None = None,
    ) -> PayrollLedger:
        """Calculate and persist a ledger for one employee in one period.

        Raises:
            PayrollValidationError: Malformed input
            EmployeeNotFoundError / PeriodNotFoundError: Missing references
            ClosedPeriodError: Period is closed
            DuplicatePayrollError: Ledger already exists for the pair
        """
        if components is None:
            components = await self.catalog.active_components_ordered()

        ledger = await self.engine.calculate(request, components)
        ledger.created_by = actor_id

        try:
            async with self.session.begin_nested():
                self.session.add(ledger)
                await self.session.flush()
        except IntegrityError as exc:
            # Lost a race with a concurrent create for the same pair
            logger.warning(
                "Unique constraint rejected ledger for employee %s in period %s",
                ledger.employee_id,
                ledger.payroll_period_id,
            )
            raise DuplicatePayrollError(ledger.employee_id, ledger.payroll_period_id) from exc

        await self.audit.record(
            ledger.payroll_ledger_id,
            AuditAction.CREATED,
            actor_id=actor_id,
            reason="Payroll calculated",
            old_status=LedgerStatus.PENDING.value,
            new_status=ledger.status,
        )
        logger.info(
            "Created payroll ledger %s for employee %s: gross=%s net=%s",
            ledger.payroll_ledger_id,
            ledger.employee_id,
            ledger.gross_pay,
            ledger.net_pay,
        )
        return ledger

    async def approve(
        self,
        payroll_ledger_id: UUID,
        reason: str | None = None,
        actor_id: str | None = None,
    ) -> PayrollLedger:
        ledger = await self.get_ledger(payroll_ledger_id)
        from_status = ledger.status
        LedgerStateMachine.validate_transition(
            from_status,
            LedgerStatus.APPROVED.value,
            "Only calculated ledgers can be approved",
        )

        ledger.status = LedgerStatus.APPROVED.value
        ledger.approved_by = actor_id
        ledger.approved_at = utcnow()
        ledger.updated_at = utcnow()
        await self.session.flush()

        await self.audit.record(
            ledger.payroll_ledger_id,
            AuditAction.APPROVED,
            actor_id=actor_id,
            reason=reason or "Payroll approved",
            old_status=from_status,
            new_status=ledger.status,
        )
        logger.info("Approved payroll ledger %s by %s", payroll_ledger_id, actor_id)
        return ledger

    async def reject(
        self,
        payroll_ledger_id: UUID,
        reason: str | None = None,
        actor_id: str | None = None,
    ) -> PayrollLedger:
        ledger = await self.get_ledger(payroll_ledger_id)
        from_status = ledger.status
        LedgerStateMachine.validate_transition(
            from_status,
            LedgerStatus.REJECTED.value,
            "Only calculated ledgers can be rejected",
        )

        ledger.status = LedgerStatus.REJECTED.value
        ledger.rejected_by = actor_id
        ledger.rejected_at = utcnow()
        ledger.updated_at = utcnow()
        await self.session.flush()

        await self.audit.record(
            ledger.payroll_ledger_id,
            AuditAction.REJECTED,
            actor_id=actor_id,
            reason=reason or "Payroll rejected",
            old_status=from_status,
            new_status=ledger.status,
        )
        logger.info("Rejected payroll ledger %s by %s", payroll_ledger_id, actor_id)
        return ledger

    async def mark_paid(
        self,
        payroll_ledger_id: UUID,
        payment_reference: str,
        actor_id: str | None = None,
    ) -> PayrollLedger:
        if not payment_reference or not payment_reference.strip():
            raise PayrollValidationError("Payment reference is required")

        ledger = await self.get_ledger(payroll_ledger_id)
        from_status = ledger.status
        LedgerStateMachine.validate_transition(
            from_status,
            LedgerStatus.PAID.value,
            "Only approved ledgers can be marked as paid",
        )

        ledger.status = LedgerStatus.PAID.value
        ledger.payment_reference = payment_reference.strip()
        ledger.paid_by = actor_id
        ledger.paid_at = utcnow()
        ledger.updated_at = utcnow()
        await self.session.flush()

        await self.audit.record(
            ledger.payroll_ledger_id,
            AuditAction.PAID,
            actor_id=actor_id,
            reason=f"Payroll marked as paid. Reference: {ledger.payment_reference}",
            old_status=from_status,
            new_status=ledger.status,
        )
        logger.info(
            "Marked payroll ledger %s as paid (reference %s)",
            payroll_ledger_id,
            ledger.payment_reference,
        )
        return ledger

    async def recalculate(
        self,
        payroll_ledger_id: UUID,
        actor_id: str | None = None,
        reason: str | None = None,
    ) -> PayrollLedger:
        """Recompute a ledger in place from its stored inputs.

        The ledger id is kept, ``version`` is bumped, and component rows are
        replaced from the current catalog. Overrides from the original
        calculation are not retained. The period must still be open and the
        employee still active.
        """
        ledger = await self.get_ledger(payroll_ledger_id)
        from_status = await self._recompute(
            ledger,
            base_salary=ledger.base_salary,
            overtime_hours=ledger.overtime_hours,
            bonus_amount=ledger.bonus_amount,
            notes=ledger.notes,
        )

        await self.audit.record(
            ledger.payroll_ledger_id,
            AuditAction.UPDATED,
            actor_id=actor_id,
            reason=reason or f"Payroll recalculated (version {ledger.version})",
            old_status=from_status,
            new_status=ledger.status,
        )
        logger.info(
            "Recalculated payroll ledger %s to version %d: net=%s",
            payroll_ledger_id,
            ledger.version,
            ledger.net_pay,
        )
        return ledger

    async def update_ledger(
        self,
        payroll_ledger_id: UUID,
        actor_id: str | None = None,
        reason: str | None = None,
        base_salary: Decimal | None = None,
        overtime_hours: Decimal | None = None,
        bonus_amount: Decimal | None = None,
        notes: str | None = None,
    ) -> PayrollLedger:
        """Change a ledger's pay inputs or notes and recompute it.

        Inputs left as None keep their stored value. The result goes back to
        CALCULATED, so an approved ledger needs approving again.
        """
        ledger = await self.get_ledger(payroll_ledger_id)
        request = CalculationRequest(
            employee_id=ledger.employee_id,
            payroll_period_id=ledger.payroll_period_id,
            base_salary=base_salary if base_salary is not None else ledger.base_salary,
            overtime_hours=(
                overtime_hours if overtime_hours is not None else ledger.overtime_hours
            ),
            bonus_amount=bonus_amount if bonus_amount is not None else ledger.bonus_amount,
            notes=notes if notes is not None else ledger.notes,
        )
        self.engine.validate_calculation(request)

        from_status = await self._recompute(
            ledger,
            base_salary=request.base_salary,
            overtime_hours=request.overtime_hours,
            bonus_amount=request.bonus_amount,
            notes=request.notes,
        )

        await self.audit.record(
            ledger.payroll_ledger_id,
            AuditAction.UPDATED,
            actor_id=actor_id,
            reason=reason or "Payroll ledger updated",
            old_status=from_status,
            new_status=ledger.status,
        )
        logger.info(
            "Updated payroll ledger %s to version %d: net=%s",
            payroll_ledger_id,
            ledger.version,
            ledger.net_pay,
        )
        return ledger

    async def _recompute(
        self,
        ledger: PayrollLedger,
        base_salary: Decimal,
        overtime_hours: Decimal,
        bonus_amount: Decimal,
        notes: str | None,
    ) -> str:
        """Rebuild a non-paid ledger against the current catalog.

        Applies the same period and employee guards as ``create``. Returns the
        status the ledger had before.
        """
        from_status = ledger.status
        if not LedgerStateMachine.can_recalculate(from_status):
            raise InvalidTransitionError(
                from_status,
                LedgerStatus.CALCULATED.value,
                "Paid ledgers cannot be recalculated",
            )
        await self.engine.ensure_period_open(ledger.payroll_period_id)
        base_salary = await self.engine.resolve_base_salary(ledger.employee_id, base_salary)

        components = await self.catalog.active_components_ordered()
        result = self.engine.calculator.compute(
            employee_id=ledger.employee_id,
            payroll_period_id=ledger.payroll_period_id,
            base_salary=base_salary,
            components=components,
            overtime_hours=overtime_hours,
            bonus_amount=bonus_amount,
            notes=notes,
        )

        # Old rows must be gone before new rows hit the (ledger, component) constraint
        ledger.components.clear()
        await self.session.flush()

        apply_result(ledger, result)
        ledger.components.extend(build_component_rows(result))
        ledger.notes = notes
        ledger.status = LedgerStatus.CALCULATED.value
        ledger.version += 1
        ledger.approved_by = None
        ledger.approved_at = None
        ledger.rejected_by = None
        ledger.rejected_at = None
        ledger.updated_at = utcnow()
        await self.session.flush()
        return from_status

    async def delete(
        self,
        payroll_ledger_id: UUID,
        actor_id: str | None = None,
        reason: str | None = None,
    ) -> None:
        ledger = await self.get_ledger(payroll_ledger_id)
        if not LedgerStateMachine.can_delete(ledger.status):
            raise InvalidTransitionError(
                ledger.status, "DELETED", "Paid ledgers cannot be deleted"
            )

        await self.audit.record(
            ledger.payroll_ledger_id,
            AuditAction.DELETED,
            actor_id=actor_id,
            reason=reason or "Payroll ledger deleted",
            old_status=ledger.status,
            new_status=None,
        )
        await self.session.delete(ledger)
        await self.session.flush()
        logger.info("Deleted payroll ledger %s by %s", payroll_ledger_id, actor_id)

    # === Batch ===

    async def calculate_for_period(
        self,
        payroll_period_id: UUID,
        employee_ids: Sequence[UUID],
        actor_id: str | None = None,
    ) -> BatchCalculationResult:
        """Create ledgers for many employees in one open period.

        The period must exist and be open, otherwise the whole batch raises.
        Each employee runs in its own savepoint: a failure is logged and
        reported in ``failures`` without affecting the others.
        """
        period = await self.engine.ensure_period_open(payroll_period_id)
        components = await self.catalog.active_components_ordered()
        batch = BatchCalculationResult(payroll_period_id=payroll_period_id)

        logger.info(
            "Processing payroll for period %s: %d employee(s)",
            period.name,
            len(employee_ids),
        )

        for employee_id in employee_ids:
            request = CalculationRequest(
                employee_id=employee_id,
                payroll_period_id=payroll_period_id,
            )
            try:
                async with self.session.begin_nested():
                    ledger = await self.create(request, actor_id, components)
                    await self.audit.record(
                        ledger.payroll_ledger_id,
                        AuditAction.PROCESSED,
                        actor_id=actor_id,
                        reason=f"Payroll processed for period: {period.name}",
                        old_status=ledger.status,
                        new_status=ledger.status,
                    )
            except PayrollError as exc:
                logger.warning(
                    "Payroll calculation failed for employee %s in period %s: %s",
                    employee_id,
                    payroll_period_id,
                    exc.message,
                )
                batch.failures.append(
                    EmployeeFailure(employee_id=employee_id, code=exc.code, message=exc.message)
                )
                continue
            batch.ledgers.append(ledger)

        logger.info(
            "Processed payroll for period %s: %d succeeded, %d failed",
            period.name,
            batch.success_count,
            len(batch.failures),
        )
        return batch
