"""Salary component, payroll period, ledger, and audit models."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_ledger.exceptions import AuditImmutabilityError
from payroll_ledger.models.base import Base, TimestampMixin, utcnow

logger = logging.getLogger(__name__)


class LedgerStatus(str, Enum):
    """Payroll ledger lifecycle status values."""

    PENDING = "PENDING"
    CALCULATED = "CALCULATED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"


class PeriodStatus(str, Enum):
    """Payroll period status values."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class AuditAction(str, Enum):
    """Audit trail action tags."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    PROCESSED = "PROCESSED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"
    DELETED = "DELETED"


# ===== Salary Component Catalog =====


class SalaryComponent(Base, TimestampMixin):
    """Reusable pay-adjustment rule (allowance, deduction, or tax)."""

    __tablename__ = "salary_component"

    salary_component_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    component_type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    percentage: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    is_taxable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    calculation_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("name", name="salary_component_name_unique"),
        CheckConstraint(
            "component_type IN ('ALLOWANCE', 'DEDUCTION', 'TAX')",
            name="salary_component_type_check",
        ),
        CheckConstraint("amount >= 0", name="salary_component_amount_check"),
        CheckConstraint(
            "percentage IS NULL OR (percentage >= 0 AND percentage <= 100)",
            name="salary_component_percentage_check",
        ),
        Index("ix_salary_component_active_order", "active", "calculation_order"),
    )


# ===== Payroll Periods =====


class PayrollPeriod(Base, TimestampMixin):
    """Named date range that payroll ledgers are attributed to."""

    __tablename__ = "payroll_period"

    payroll_period_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    period_type: Mapped[str] = mapped_column(String(20), nullable=False, default="MONTHLY")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="OPEN")
    pay_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="payroll_period_dates_check"),
        CheckConstraint(
            "pay_date IS NULL OR pay_date >= end_date",
            name="payroll_period_pay_date_check",
        ),
        CheckConstraint(
            "status IN ('OPEN', 'CLOSED')",
            name="payroll_period_status_check",
        ),
        CheckConstraint(
            "period_type IN ('MONTHLY', 'BI_WEEKLY', 'WEEKLY', 'CUSTOM')",
            name="payroll_period_type_check",
        ),
        Index("ix_payroll_period_dates", "start_date", "end_date"),
    )

    @property
    def is_open(self) -> bool:
        return self.status == "OPEN"

    def contains(self, on_date: date) -> bool:
        """Check if ``on_date`` falls inside this period (inclusive)."""
        return self.start_date <= on_date <= self.end_date


# ===== Payroll Ledger =====


class PayrollLedger(Base, TimestampMixin):
    """Persisted result of one calculation for one (employee, period) pair."""

    __tablename__ = "payroll_ledger"

    payroll_ledger_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(nullable=False)
    payroll_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_period.payroll_period_id"),
        nullable=False,
    )

    # Inputs
    base_salary: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(8, 2), nullable=False, default=Decimal("0.00")
    )
    bonus_amount: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )

    # Results
    overtime_pay: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    gross_pay: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    total_deductions: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    total_taxes: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )
    net_pay: Mapped[Decimal] = mapped_column(
        Numeric(15, 2), nullable=False, default=Decimal("0.00")
    )

    # Lifecycle
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    payment_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "employee_id",
            "payroll_period_id",
            name="payroll_ledger_employee_period_unique",
        ),
        CheckConstraint(
            "status IN ('PENDING', 'CALCULATED', 'APPROVED', 'REJECTED', 'PAID')",
            name="payroll_ledger_status_check",
        ),
        CheckConstraint(
            "status = 'PAID' OR payment_reference IS NULL",
            name="payroll_ledger_payment_reference_check",
        ),
        CheckConstraint("version >= 1", name="payroll_ledger_version_check"),
        Index("ix_payroll_ledger_status", "status"),
        Index("ix_payroll_ledger_period", "payroll_period_id"),
    )

    # Relationships
    payroll_period: Mapped[PayrollPeriod] = relationship(lazy="selectin")
    components: Mapped[list[PayrollLedgerComponent]] = relationship(
        back_populates="ledger",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PayrollLedgerComponent.line_number",
    )


class PayrollLedgerComponent(Base, TimestampMixin):
    """Resolved amount of one salary component inside one ledger."""

    __tablename__ = "payroll_ledger_component"

    payroll_ledger_component_id: Mapped[UUID] = mapped_column(
        primary_key=True, default=uuid4
    )
    payroll_ledger_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_ledger.payroll_ledger_id", ondelete="CASCADE"),
        nullable=False,
    )
    salary_component_id: Mapped[UUID] = mapped_column(
        ForeignKey("salary_component.salary_component_id"),
        nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)

    # Snapshot of the catalog entry at calculation time
    component_name: Mapped[str] = mapped_column(String(100), nullable=False)
    component_type: Mapped[str] = mapped_column(String(20), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    calculation_base: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    percentage_applied: Mapped[Decimal | None] = mapped_column(
        Numeric(5, 2), nullable=True
    )
    is_override: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "payroll_ledger_id",
            "salary_component_id",
            name="payroll_ledger_component_unique",
        ),
        Index("ix_payroll_ledger_component_salary", "salary_component_id"),
    )

    # Relationships
    ledger: Mapped[PayrollLedger] = relationship(back_populates="components")


# ===== Audit Trail =====


class PayrollAudit(Base):
    """Append-only record of one ledger lifecycle event.

    There is deliberately no foreign key to ``payroll_ledger``: the DELETED
    row must survive the ledger it describes.
    """

    __tablename__ = "payroll_audit"

    payroll_audit_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    payroll_ledger_id: Mapped[UUID] = mapped_column(nullable=False)
    # 1, 2, 3... per ledger in insertion order
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    old_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "action IN ('CREATED', 'UPDATED', 'PROCESSED', 'APPROVED', "
            "'REJECTED', 'PAID', 'DELETED')",
            name="payroll_audit_action_check",
        ),
        UniqueConstraint(
            "payroll_ledger_id", "sequence", name="payroll_audit_ledger_sequence_unique"
        ),
        CheckConstraint("sequence >= 1", name="payroll_audit_sequence_check"),
    )


@event.listens_for(PayrollAudit, "before_update")
def _block_audit_update(mapper, connection, target: PayrollAudit) -> None:
    logger.error(
        "Blocked update of payroll audit row %s", target.payroll_audit_id
    )
    raise AuditImmutabilityError(target.payroll_audit_id, "update")


@event.listens_for(PayrollAudit, "before_delete")
def _block_audit_delete(mapper, connection, target: PayrollAudit) -> None:
    logger.error(
        "Blocked delete of payroll audit row %s", target.payroll_audit_id
    )
    raise AuditImmutabilityError(target.payroll_audit_id, "delete")
