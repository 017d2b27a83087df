"""
Finance component - Profit/loss summary and time-bucketed series.

Computes revenue (quotation grand totals) against cost (expense amounts)
over calendar periods of the reporting timezone.

Invariants:
- profit_loss == total_quotation - total_expense, exact, in summary mode
- Missing monetary values count as 0
- Series values are rounded per bucket only
- labels and data have equal length, chronological order
- A failed or cancelled read aborts the whole computation (DataUnavailable)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any, TypeVar

from servicecrm.domain.errors import DataUnavailable

from ._periods import resolve_series_buckets, resolve_summary_range, round_half_up
from .models import (
    Bucket,
    CancellationToken,
    Period,
    SeriesInput,
    SeriesOutput,
    SummaryInput,
    SummaryOutput,
)
from .ports import RecordStorePort, TimePort

logger = logging.getLogger(__name__)

T = TypeVar("T")

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Coerce a stored monetary value to Decimal; None counts as 0."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _read(
    fetch: Callable[[datetime, datetime], Sequence[T]],
    period: Period,
    cancel: CancellationToken | None,
) -> Sequence[T]:
    if cancel is not None and cancel.cancelled:
        raise DataUnavailable("Finance computation cancelled")
    try:
        return fetch(period.start, period.exclusive_end)
    except TimeoutError as e:
        raise DataUnavailable("Record store read timed out") from e


def _sum(values: Iterable[Any]) -> Decimal:
    return sum((to_decimal(v) for v in values), ZERO)


# --- Component Entry Points ---


def compute_summary(
    inp: SummaryInput,
    *,
    store: RecordStorePort,
    time_port: TimePort,
    cancel: CancellationToken | None = None,
) -> SummaryOutput:
    """
    Profit/loss for a named range ("today", "week", "month").

    Unknown range names fall back to "today"; the output reports the
    resolved name and sets `fallback`.

    Raises:
        DataUnavailable: if either store read fails or the token is cancelled.
    """
    now = time_port.now_local()
    resolved, period, fell_back = resolve_summary_range(inp.range, now)
    if fell_back:
        logger.info("Unknown summary range %r, using %r", inp.range, resolved)

    quotations = _read(store.list_quotations, period, cancel)
    expenses = _read(store.list_expenses, period, cancel)

    total_quotation = _sum(q.grand_total for q in quotations)
    total_expected = _sum(q.expected_expense for q in quotations)
    total_expense = _sum(e.amount for e in expenses)

    return SummaryOutput(
        total_quotation=total_quotation,
        total_expense=total_expense,
        total_expected_expense=total_expected,
        profit_loss=total_quotation - total_expense,
        range=resolved,
        start=period.start,
        end=period.end,
        fallback=fell_back,
    )


def _assign(buckets: Sequence[Bucket], created_at: datetime) -> int | None:
    for i, bucket in enumerate(buckets):
        if bucket.period.contains(created_at):
            return i
    return None


def compute_series(
    inp: SeriesInput,
    *,
    store: RecordStorePort,
    time_port: TimePort,
    cancel: CancellationToken | None = None,
) -> SeriesOutput:
    """
    Profit/loss per month of the current year ("year") or per day of the
    current month ("month").

    One read per record type covers the whole span; records are assigned
    to buckets here. Unknown modes get the "month" series.

    Raises:
        DataUnavailable: if either store read fails or the token is cancelled.
    """
    now = time_port.now_local()
    resolved, buckets, fell_back = resolve_series_buckets(inp.mode, now)
    if fell_back:
        logger.info("Unknown series mode %r, using %r", inp.mode, resolved)

    span = Period(start=buckets[0].period.start, end=buckets[-1].period.end, closed=True)
    quotations = _read(store.list_quotations, span, cancel)
    expenses = _read(store.list_expenses, span, cancel)

    revenue = [ZERO] * len(buckets)
    cost = [ZERO] * len(buckets)

    for q in quotations:
        idx = _assign(buckets, q.created_at)
        if idx is not None:
            revenue[idx] += to_decimal(q.grand_total)

    for e in expenses:
        idx = _assign(buckets, e.created_at)
        if idx is not None:
            cost[idx] += to_decimal(e.amount)

    return SeriesOutput(
        mode=resolved,
        labels=tuple(b.label for b in buckets),
        data=tuple(round_half_up(r - c) for r, c in zip(revenue, cost, strict=True)),
        fallback=fell_back,
    )


def run(
    inp: SummaryInput | SeriesInput,
    *,
    store: RecordStorePort,
    time_port: TimePort,
    cancel: CancellationToken | None = None,
) -> SummaryOutput | SeriesOutput:
    """
    Main entry point for the finance component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, SummaryInput):
        return compute_summary(inp, store=store, time_port=time_port, cancel=cancel)
    elif isinstance(inp, SeriesInput):
        return compute_series(inp, store=store, time_port=time_port, cancel=cancel)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
