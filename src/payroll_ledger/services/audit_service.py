"""Append-only audit trail for payroll ledger lifecycle events."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_ledger.models import AuditAction, PayrollAudit

logger = logging.getLogger(__name__)


class PayrollAuditTrail:
    """Writes and reads ``payroll_audit`` rows.

    Rows are only ever added. Updates and deletes are rejected by ORM
    listeners on ``PayrollAudit``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        payroll_ledger_id: UUID,
        action: AuditAction,
        actor_id: str | None = None,
        reason: str | None = None,
        old_status: str | None = None,
        new_status: str | None = None,
    ) -> PayrollAudit:
        """Add one audit row in the caller's unit of work."""
        last_sequence = await self.session.scalar(
            select(func.max(PayrollAudit.sequence)).where(
                PayrollAudit.payroll_ledger_id == payroll_ledger_id
            )
        )
        entry = PayrollAudit(
            payroll_ledger_id=payroll_ledger_id,
            sequence=(last_sequence or 0) + 1,
            action=action.value,
            old_status=old_status,
            new_status=new_status,
            reason=reason,
            actor_id=actor_id,
        )
        self.session.add(entry)
        await self.session.flush()
        logger.debug(
            "Audit %s recorded for ledger %s by %s",
            action.value,
            payroll_ledger_id,
            actor_id,
        )
        return entry

    async def list_for_ledger(self, payroll_ledger_id: UUID) -> list[PayrollAudit]:
        """Audit rows for one ledger in the order they were written."""
        result = await self.session.execute(
            select(PayrollAudit)
            .where(PayrollAudit.payroll_ledger_id == payroll_ledger_id)
            .order_by(PayrollAudit.sequence)
        )
        return list(result.scalars().all())
