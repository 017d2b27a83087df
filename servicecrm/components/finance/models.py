"""
Finance component input/output models.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

# --- Cancellation ---


class CancellationToken:
    """Caller-owned flag checked before each store read."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


# --- Periods ---


@dataclass(frozen=True)
class Period:
    """
    A time interval over record creation timestamps.

    Half-open [start, end) unless `closed`, in which case `end` is the last
    instant of the period and is itself included.
    """

    start: datetime
    end: datetime
    closed: bool = False

    def contains(self, ts: datetime) -> bool:
        if self.closed:
            return self.start <= ts <= self.end
        return self.start <= ts < self.end

    @property
    def exclusive_end(self) -> datetime:
        """End boundary usable in a half-open store query."""
        if self.closed:
            return self.end + timedelta(microseconds=1)
        return self.end


@dataclass(frozen=True)
class Bucket:
    label: str
    period: Period


# --- Input Models ---


@dataclass(frozen=True)
class SummaryInput:
    """Input for a single-range profit/loss summary."""

    range: str = "today"


@dataclass(frozen=True)
class SeriesInput:
    """Input for a bucketed profit/loss series."""

    mode: str = "year"


# --- Output Models ---


@dataclass(frozen=True)
class SummaryOutput:
    total_quotation: Decimal
    total_expense: Decimal
    total_expected_expense: Decimal
    profit_loss: Decimal
    range: str
    start: datetime
    end: datetime
    fallback: bool = False


@dataclass(frozen=True)
class SeriesOutput:
    mode: str
    labels: tuple[str, ...]
    data: tuple[int, ...]
    fallback: bool = False
