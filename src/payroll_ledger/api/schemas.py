"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from payroll_ledger.calculators.types import ComponentType
from payroll_ledger.services.ledger_service import PeriodSummary
from payroll_ledger.services.period_service import PeriodType


class ErrorResponse(BaseModel):
    """Error body returned for domain errors."""

    detail: str
    code: str


# ============================================================================
# Salary component schemas
# ============================================================================


class ComponentCreate(BaseModel):
    """Schema for adding a salary component to the catalog."""

    name: str
    component_type: ComponentType
    amount: Decimal = Decimal("0.00")
    percentage: Decimal | None = None
    is_taxable: bool = False
    is_mandatory: bool = False
    calculation_order: int = 0
    description: str | None = None
    active: bool = True


class ComponentUpdate(BaseModel):
    """Partial update of a salary component; omitted fields are unchanged."""

    name: str | None = None
    component_type: ComponentType | None = None
    amount: Decimal | None = None
    percentage: Decimal | None = None
    is_taxable: bool | None = None
    is_mandatory: bool | None = None
    calculation_order: int | None = None
    description: str | None = None
    active: bool | None = None


class ComponentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    salary_component_id: UUID
    name: str
    component_type: str
    amount: Decimal
    percentage: Decimal | None = None
    is_taxable: bool
    is_mandatory: bool
    calculation_order: int
    description: str | None = None
    active: bool
    created_at: datetime
    updated_at: datetime | None = None


class ComponentDeleteResponse(BaseModel):
    salary_component_id: UUID
    deleted: bool
    deactivated: bool


# ============================================================================
# Payroll period schemas
# ============================================================================


class PeriodCreate(BaseModel):
    """Schema for creating a payroll period (created OPEN)."""

    name: str
    start_date: date
    end_date: date
    period_type: PeriodType = PeriodType.MONTHLY
    pay_date: date | None = None
    description: str | None = None


class PeriodUpdate(BaseModel):
    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    period_type: PeriodType | None = None
    pay_date: date | None = None
    description: str | None = None


class PeriodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payroll_period_id: UUID
    name: str
    start_date: date
    end_date: date
    period_type: str
    status: str
    pay_date: date | None = None
    description: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class StatusTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    count: int
    gross_pay: Decimal
    total_deductions: Decimal
    total_taxes: Decimal
    net_pay: Decimal


class PeriodSummaryResponse(BaseModel):
    """Per-status counts and money totals for one period."""

    model_config = ConfigDict(from_attributes=True)

    payroll_period_id: UUID
    period_name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    by_status: dict[str, StatusTotalsResponse]
    totals: StatusTotalsResponse

    @classmethod
    def from_summary(cls, summary: PeriodSummary) -> "PeriodSummaryResponse":
        return cls(
            payroll_period_id=summary.payroll_period_id,
            period_name=summary.period_name,
            start_date=summary.start_date,
            end_date=summary.end_date,
            by_status={
                name: StatusTotalsResponse.model_validate(totals)
                for name, totals in summary.by_status.items()
            },
            totals=StatusTotalsResponse.model_validate(summary.totals),
        )


class DateRangeSummaryResponse(BaseModel):
    """Summaries of every period overlapping a date range."""

    start_date: date
    end_date: date
    periods: list[PeriodSummaryResponse]
    totals: StatusTotalsResponse


# ============================================================================
# Payroll ledger schemas
# ============================================================================


class LedgerCreate(BaseModel):
    """Pay inputs for one employee in one period.

    ``base_salary`` overrides the directory salary when given.
    ``component_overrides`` maps salary component ids to verbatim amounts.
    """

    employee_id: UUID
    payroll_period_id: UUID
    base_salary: Decimal | None = None
    overtime_hours: Decimal | None = None
    bonus_amount: Decimal | None = None
    component_overrides: dict[UUID, Decimal] = Field(default_factory=dict)
    notes: str | None = None


class LedgerUpdate(BaseModel):
    """New pay inputs for an existing ledger; omitted fields keep their value."""

    base_salary: Decimal | None = None
    overtime_hours: Decimal | None = None
    bonus_amount: Decimal | None = None
    notes: str | None = None
    reason: str | None = None


class LedgerComponentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payroll_ledger_component_id: UUID
    salary_component_id: UUID
    line_number: int
    component_name: str
    component_type: str
    amount: Decimal
    calculation_base: Decimal
    percentage_applied: Decimal | None = None
    is_override: bool
    notes: str | None = None


class LedgerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payroll_ledger_id: UUID
    employee_id: UUID
    payroll_period_id: UUID
    base_salary: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    bonus_amount: Decimal
    gross_pay: Decimal
    total_deductions: Decimal
    total_taxes: Decimal
    net_pay: Decimal
    status: str
    version: int
    payment_reference: str | None = None
    notes: str | None = None
    created_by: str | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    paid_by: str | None = None
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
    components: list[LedgerComponentResponse] = Field(default_factory=list)


class LedgerListResponse(BaseModel):
    items: list[LedgerResponse]
    total: int
    page: int
    page_size: int


class DecisionRequest(BaseModel):
    """Approve/reject body."""

    reason: str | None = None


class PaymentRequest(BaseModel):
    payment_reference: str


class RecalculateRequest(BaseModel):
    reason: str | None = None


class AuditEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payroll_audit_id: UUID
    payroll_ledger_id: UUID
    sequence: int
    action: str
    old_status: str | None = None
    new_status: str | None = None
    reason: str | None = None
    actor_id: str | None = None
    created_at: datetime


# ============================================================================
# Batch processing schemas
# ============================================================================


class BatchProcessRequest(BaseModel):
    employee_ids: list[UUID] = Field(min_length=1)


class EmployeeFailureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    code: str
    message: str


class BatchProcessResponse(BaseModel):
    """Partial-success report: created ledgers plus per-employee failures."""

    payroll_period_id: UUID
    ledgers: list[LedgerResponse]
    failures: list[EmployeeFailureResponse]
    success_count: int
    failure_count: int
