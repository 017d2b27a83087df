"""
Finance component - Profit/loss reporting over quotations and expenses.
"""

from ._periods import (
    SERIES_MODES,
    SUMMARY_RANGES,
    end_of_month,
    month_buckets,
    resolve_series_buckets,
    resolve_summary_range,
    round_half_up,
    start_of_day,
    start_of_month,
    start_of_week,
    year_buckets,
)
from .component import compute_series, compute_summary, run, to_decimal
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

__all__ = [
    # Entry points
    "run",
    "compute_summary",
    "compute_series",
    # Models
    "Bucket",
    "CancellationToken",
    "Period",
    "SeriesInput",
    "SeriesOutput",
    "SummaryInput",
    "SummaryOutput",
    # Ports
    "RecordStorePort",
    "TimePort",
    # Period helpers
    "SERIES_MODES",
    "SUMMARY_RANGES",
    "end_of_month",
    "month_buckets",
    "resolve_series_buckets",
    "resolve_summary_range",
    "round_half_up",
    "start_of_day",
    "start_of_month",
    "start_of_week",
    "to_decimal",
    "year_buckets",
]
