"""
Finance reporting API.

Profit/loss summary for a named range and profit/loss series for the
current year or month. Engine failures map to an opaque 500.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from servicecrm.adapters.clock import SystemClock
from servicecrm.adapters.sqlite.repos import SQLiteRecordStore
from servicecrm.api.deps import Session, get_clock, get_record_store, require_section
from servicecrm.api.schemas import FinanceSummaryResponse, ProfitLossGraphResponse
from servicecrm.components.finance import (
    SeriesInput,
    SummaryInput,
    compute_series,
    compute_summary,
)
from servicecrm.domain.errors import DataUnavailable

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/summary", response_model=FinanceSummaryResponse)
def get_summary(
    range_: str = Query("today", alias="range"),
    store: SQLiteRecordStore = Depends(get_record_store),
    clock: SystemClock = Depends(get_clock),
    session: Session = Depends(require_section("finances")),
) -> FinanceSummaryResponse:
    """
    Totals and profit/loss for today, this week or this month.

    `range` echoes the requested value; unknown values are computed as today.
    """
    try:
        result = compute_summary(SummaryInput(range=range_), store=store, time_port=clock)
    except DataUnavailable:
        logger.exception("Financial summary failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch financial summary.",
        ) from None

    return FinanceSummaryResponse(
        totalQuotation=float(result.total_quotation),
        totalExpense=float(result.total_expense),
        totalExpectedExpense=float(result.total_expected_expense),
        profitLoss=float(result.profit_loss),
        range=range_,
        start=result.start,
        end=result.end,
    )


@router.get("/profit-loss-graph", response_model=ProfitLossGraphResponse)
def get_profit_loss_graph(
    mode: str = Query("year"),
    store: SQLiteRecordStore = Depends(get_record_store),
    clock: SystemClock = Depends(get_clock),
    session: Session = Depends(require_section("finances")),
) -> ProfitLossGraphResponse:
    """Per-month (mode=year) or per-day (mode=month) profit/loss."""
    try:
        result = compute_series(SeriesInput(mode=mode), store=store, time_port=clock)
    except DataUnavailable:
        logger.exception("Profit/loss graph failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch profit/loss graph data.",
        ) from None

    return ProfitLossGraphResponse(labels=list(result.labels), data=list(result.data))
