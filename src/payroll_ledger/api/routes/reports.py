"""Payroll reporting endpoints (aggregates only, no document rendering)."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Query

from payroll_ledger.api.dependencies import LifecycleManager
from payroll_ledger.api.schemas import (
    DateRangeSummaryResponse,
    ErrorResponse,
    PeriodSummaryResponse,
    StatusTotalsResponse,
)
from payroll_ledger.services.ledger_service import StatusTotals

router = APIRouter(prefix="/payroll/reports", tags=["reports"])


@router.get(
    "/summary/daterange",
    response_model=DateRangeSummaryResponse,
    responses={422: {"model": ErrorResponse}},
)
async def summarize_date_range(
    manager: LifecycleManager,
    start_date: Annotated[date, Query()],
    end_date: Annotated[date, Query()],
) -> DateRangeSummaryResponse:
    """Per-period summaries for every period overlapping the range."""
    summaries = await manager.summarize_date_range(start_date, end_date)

    totals = StatusTotals()
    for summary in summaries:
        totals.add(summary.totals)

    return DateRangeSummaryResponse(
        start_date=start_date,
        end_date=end_date,
        periods=[PeriodSummaryResponse.from_summary(summary) for summary in summaries],
        totals=StatusTotalsResponse.model_validate(totals),
    )
