"""Payroll period API endpoints, including batch processing and summaries."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, Query, Response, status

from payroll_ledger.api.dependencies import ActorId, DbSession, LifecycleManager, PeriodRegistry
from payroll_ledger.api.schemas import (
    BatchProcessRequest,
    BatchProcessResponse,
    EmployeeFailureResponse,
    ErrorResponse,
    LedgerResponse,
    PeriodCreate,
    PeriodResponse,
    PeriodSummaryResponse,
    PeriodUpdate,
)

router = APIRouter(prefix="/payroll/periods", tags=["periods"])


@router.post(
    "",
    response_model=PeriodResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ErrorResponse}},
)
async def create_period(
    db: DbSession,
    registry: PeriodRegistry,
    payload: PeriodCreate,
) -> PeriodResponse:
    period = await registry.create_period(
        name=payload.name,
        start_date=payload.start_date,
        end_date=payload.end_date,
        period_type=payload.period_type,
        pay_date=payload.pay_date,
        description=payload.description,
    )
    await db.commit()
    return PeriodResponse.model_validate(period)


@router.get("", response_model=list[PeriodResponse])
async def list_periods(
    registry: PeriodRegistry,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> list[PeriodResponse]:
    periods = await registry.list_periods(page=page - 1, page_size=page_size)
    return [PeriodResponse.model_validate(p) for p in periods]


@router.get("/open", response_model=list[PeriodResponse])
async def list_open_periods(registry: PeriodRegistry) -> list[PeriodResponse]:
    periods = await registry.list_open_periods()
    return [PeriodResponse.model_validate(p) for p in periods]


@router.get(
    "/current",
    response_model=PeriodResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_current_period(
    registry: PeriodRegistry,
    on_date: date | None = None,
) -> PeriodResponse:
    """Period containing ``on_date`` (today when omitted)."""
    period = await registry.current_period(on_date)
    if period is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No payroll period covers the requested date",
        )
    return PeriodResponse.model_validate(period)


@router.get(
    "/{payroll_period_id}",
    response_model=PeriodResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_period(
    registry: PeriodRegistry,
    payroll_period_id: Annotated[UUID, Path()],
) -> PeriodResponse:
    period = await registry.get_period(payroll_period_id)
    return PeriodResponse.model_validate(period)


@router.put(
    "/{payroll_period_id}",
    response_model=PeriodResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def update_period(
    db: DbSession,
    registry: PeriodRegistry,
    payroll_period_id: Annotated[UUID, Path()],
    payload: PeriodUpdate,
) -> PeriodResponse:
    period = await registry.update_period(
        payroll_period_id, **payload.model_dump(exclude_unset=True)
    )
    await db.commit()
    return PeriodResponse.model_validate(period)


@router.post(
    "/{payroll_period_id}/close",
    response_model=PeriodResponse,
    responses={404: {"model": ErrorResponse}},
)
async def close_period(
    db: DbSession,
    registry: PeriodRegistry,
    payroll_period_id: Annotated[UUID, Path()],
) -> PeriodResponse:
    period = await registry.close_period(payroll_period_id)
    await db.commit()
    return PeriodResponse.model_validate(period)


@router.delete(
    "/{payroll_period_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def delete_period(
    db: DbSession,
    registry: PeriodRegistry,
    payroll_period_id: Annotated[UUID, Path()],
) -> Response:
    await registry.delete_period(payroll_period_id)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Batch processing & summaries
# ============================================================================


@router.post(
    "/{payroll_period_id}/process",
    response_model=BatchProcessResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def process_period(
    db: DbSession,
    manager: LifecycleManager,
    actor_id: ActorId,
    payroll_period_id: Annotated[UUID, Path()],
    payload: BatchProcessRequest,
) -> BatchProcessResponse:
    """Calculate ledgers for many employees; failures are reported, not raised."""
    batch = await manager.calculate_for_period(payroll_period_id, payload.employee_ids, actor_id)
    await db.commit()
    return BatchProcessResponse(
        payroll_period_id=batch.payroll_period_id,
        ledgers=[LedgerResponse.model_validate(ledger) for ledger in batch.ledgers],
        failures=[EmployeeFailureResponse.model_validate(f) for f in batch.failures],
        success_count=batch.success_count,
        failure_count=len(batch.failures),
    )


@router.get(
    "/{payroll_period_id}/summary",
    response_model=PeriodSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def summarize_period(
    manager: LifecycleManager,
    payroll_period_id: Annotated[UUID, Path()],
) -> PeriodSummaryResponse:
    summary = await manager.summarize_period(payroll_period_id)
    return PeriodSummaryResponse.from_summary(summary)
