"""Payroll ledger API endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response, status

from payroll_ledger.api.dependencies import ActorId, DbSession, LifecycleManager
from payroll_ledger.api.schemas import (
    AuditEntryResponse,
    DecisionRequest,
    ErrorResponse,
    LedgerCreate,
    LedgerListResponse,
    LedgerResponse,
    LedgerUpdate,
    PaymentRequest,
    RecalculateRequest,
)
from payroll_ledger.calculators.types import CalculationRequest
from payroll_ledger.models import LedgerStatus

router = APIRouter(prefix="/payroll/ledgers", tags=["ledgers"])


# ============================================================================
# Create & query
# ============================================================================


@router.post(
    "",
    response_model=LedgerResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def create_ledger(
    db: DbSession,
    manager: LifecycleManager,
    actor_id: ActorId,
    payload: LedgerCreate,
) -> LedgerResponse:
    """Calculate and persist a ledger for one employee in one period."""
    ledger = await manager.create(
        CalculationRequest(
            employee_id=payload.employee_id,
            payroll_period_id=payload.payroll_period_id,
            base_salary=payload.base_salary,
            overtime_hours=payload.overtime_hours,
            bonus_amount=payload.bonus_amount,
            component_overrides=dict(payload.component_overrides),
            notes=payload.notes,
        ),
        actor_id,
    )
    await db.commit()
    return LedgerResponse.model_validate(ledger)


@router.get("", response_model=LedgerListResponse)
async def list_ledgers(
    manager: LifecycleManager,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> LedgerListResponse:
    ledgers = await manager.list_ledgers(page=page - 1, page_size=page_size)
    total = await manager.count_ledgers()
    return LedgerListResponse(
        items=[LedgerResponse.model_validate(ledger) for ledger in ledgers],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/employee/{employee_id}", response_model=list[LedgerResponse])
async def list_ledgers_by_employee(
    manager: LifecycleManager,
    employee_id: Annotated[UUID, Path()],
) -> list[LedgerResponse]:
    ledgers = await manager.list_by_employee(employee_id)
    return [LedgerResponse.model_validate(ledger) for ledger in ledgers]


@router.get("/period/{payroll_period_id}", response_model=list[LedgerResponse])
async def list_ledgers_by_period(
    manager: LifecycleManager,
    payroll_period_id: Annotated[UUID, Path()],
) -> list[LedgerResponse]:
    ledgers = await manager.list_by_period(payroll_period_id)
    return [LedgerResponse.model_validate(ledger) for ledger in ledgers]


@router.get("/status/{ledger_status}", response_model=list[LedgerResponse])
async def list_ledgers_by_status(
    manager: LifecycleManager,
    ledger_status: Annotated[LedgerStatus, Path()],
) -> list[LedgerResponse]:
    ledgers = await manager.list_by_status(ledger_status)
    return [LedgerResponse.model_validate(ledger) for ledger in ledgers]


@router.get(
    "/{payroll_ledger_id}",
    response_model=LedgerResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_ledger(
    manager: LifecycleManager,
    payroll_ledger_id: Annotated[UUID, Path()],
) -> LedgerResponse:
    ledger = await manager.get_ledger(payroll_ledger_id)
    return LedgerResponse.model_validate(ledger)


@router.get("/{payroll_ledger_id}/audit", response_model=list[AuditEntryResponse])
async def get_ledger_audit_trail(
    manager: LifecycleManager,
    payroll_ledger_id: Annotated[UUID, Path()],
) -> list[AuditEntryResponse]:
    """Audit history, oldest first. Still available after the ledger is deleted."""
    entries = await manager.audit_trail(payroll_ledger_id)
    return [AuditEntryResponse.model_validate(entry) for entry in entries]


# ============================================================================
# Lifecycle transitions
# ============================================================================


@router.post(
    "/{payroll_ledger_id}/approve",
    response_model=LedgerResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def approve_ledger(
    db: DbSession,
    manager: LifecycleManager,
    actor_id: ActorId,
    payroll_ledger_id: Annotated[UUID, Path()],
    payload: DecisionRequest | None = None,
) -> LedgerResponse:
    reason = payload.reason if payload else None
    ledger = await manager.approve(payroll_ledger_id, reason, actor_id)
    await db.commit()
    return LedgerResponse.model_validate(ledger)


@router.post(
    "/{payroll_ledger_id}/reject",
    response_model=LedgerResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def reject_ledger(
    db: DbSession,
    manager: LifecycleManager,
    actor_id: ActorId,
    payroll_ledger_id: Annotated[UUID, Path()],
    payload: DecisionRequest | None = None,
) -> LedgerResponse:
    reason = payload.reason if payload else None
    ledger = await manager.reject(payroll_ledger_id, reason, actor_id)
    await db.commit()
    return LedgerResponse.model_validate(ledger)


@router.post(
    "/{payroll_ledger_id}/paid",
    response_model=LedgerResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def mark_ledger_paid(
    db: DbSession,
    manager: LifecycleManager,
    actor_id: ActorId,
    payroll_ledger_id: Annotated[UUID, Path()],
    payload: PaymentRequest,
) -> LedgerResponse:
    ledger = await manager.mark_paid(payroll_ledger_id, payload.payment_reference, actor_id)
    await db.commit()
    return LedgerResponse.model_validate(ledger)


@router.put(
    "/{payroll_ledger_id}",
    response_model=LedgerResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def update_ledger(
    db: DbSession,
    manager: LifecycleManager,
    actor_id: ActorId,
    payroll_ledger_id: Annotated[UUID, Path()],
    payload: LedgerUpdate,
) -> LedgerResponse:
    """Change pay inputs or notes and recompute; the ledger returns to CALCULATED."""
    ledger = await manager.update_ledger(
        payroll_ledger_id,
        actor_id=actor_id,
        reason=payload.reason,
        base_salary=payload.base_salary,
        overtime_hours=payload.overtime_hours,
        bonus_amount=payload.bonus_amount,
        notes=payload.notes,
    )
    await db.commit()
    return LedgerResponse.model_validate(ledger)


@router.post(
    "/{payroll_ledger_id}/recalculate",
    response_model=LedgerResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def recalculate_ledger(
    db: DbSession,
    manager: LifecycleManager,
    actor_id: ActorId,
    payroll_ledger_id: Annotated[UUID, Path()],
    payload: RecalculateRequest | None = None,
) -> LedgerResponse:
    reason = payload.reason if payload else None
    ledger = await manager.recalculate(payroll_ledger_id, actor_id, reason)
    await db.commit()
    return LedgerResponse.model_validate(ledger)


@router.delete(
    "/{payroll_ledger_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def delete_ledger(
    db: DbSession,
    manager: LifecycleManager,
    actor_id: ActorId,
    payroll_ledger_id: Annotated[UUID, Path()],
) -> Response:
    await manager.delete(payroll_ledger_id, actor_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
