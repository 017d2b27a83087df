"""
Calendar period resolution for finance reporting.

All boundaries are computed on the wall clock of the reporting timezone
(taken from the tzinfo of `now`), so a local day is local midnight to local
midnight regardless of DST shifts.

Key behaviors:
- Summary ranges: today, week (Monday start), calendar month; half-open
- Year series: 12 month buckets; the last bucket ends at its own month end
- Month series: one bucket per day; the last bucket ends at the month end
- Unknown series modes get the month series; an empty mode means year

Labels use fixed English month names, independent of the process locale.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from decimal import ROUND_FLOOR, Decimal

from .models import Bucket, Period

SUMMARY_RANGES = ("today", "week", "month")
SERIES_MODES = ("year", "month")

MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


# --- Boundaries ---


def _at_midnight(day: date, like: datetime) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=like.tzinfo)


def start_of_day(now: datetime) -> datetime:
    return _at_midnight(now.date(), now)


def start_of_week(now: datetime) -> datetime:
    """Monday 00:00 of the week containing `now`."""
    return _at_midnight(now.date() - timedelta(days=now.weekday()), now)


def start_of_month(now: datetime) -> datetime:
    return _at_midnight(now.date().replace(day=1), now)


def start_of_next_month(now: datetime) -> datetime:
    if now.month == 12:
        return _at_midnight(date(now.year + 1, 1, 1), now)
    return _at_midnight(date(now.year, now.month + 1, 1), now)


def end_of_month(now: datetime) -> datetime:
    """Last representable instant of the month containing `now`."""
    return start_of_next_month(now) - timedelta(microseconds=1)


def days_in_month(now: datetime) -> int:
    return calendar.monthrange(now.year, now.month)[1]


# --- Summary ranges ---


def resolve_summary_range(name: str, now: datetime) -> tuple[str, Period, bool]:
    """
    Resolve a named range to a concrete period.

    Returns (resolved_name, period, fell_back). Unknown names resolve to
    "today" with fell_back=True.
    """
    fell_back = name not in SUMMARY_RANGES
    resolved = "today" if fell_back else name

    if resolved == "week":
        start = start_of_week(now)
        end = _at_midnight(start.date() + timedelta(days=7), now)
    elif resolved == "month":
        start = start_of_month(now)
        end = start_of_next_month(now)
    else:
        start = start_of_day(now)
        end = _at_midnight(now.date() + timedelta(days=1), now)

    return resolved, Period(start=start, end=end), fell_back


# --- Series buckets ---


def year_buckets(now: datetime) -> list[Bucket]:
    """Month buckets for the calendar year of `now`, labelled Jan..Dec."""
    starts = [_at_midnight(date(now.year, month, 1), now) for month in range(1, 13)]
    buckets = []
    for i, start in enumerate(starts):
        if i + 1 < len(starts):
            period = Period(start=start, end=starts[i + 1])
        else:
            period = Period(start=start, end=end_of_month(start), closed=True)
        buckets.append(Bucket(label=MONTH_ABBR[start.month - 1], period=period))
    return buckets


def month_buckets(now: datetime) -> list[Bucket]:
    """Day buckets for the calendar month of `now`, labelled "D MMM"."""
    first = now.date().replace(day=1)
    count = days_in_month(now)
    buckets = []
    for offset in range(count):
        day = first + timedelta(days=offset)
        start = _at_midnight(day, now)
        if offset + 1 < count:
            period = Period(start=start, end=_at_midnight(day + timedelta(days=1), now))
        else:
            period = Period(start=start, end=end_of_month(start), closed=True)
        buckets.append(Bucket(label=f"{day.day} {MONTH_ABBR[day.month - 1]}", period=period))
    return buckets


def resolve_series_buckets(mode: str, now: datetime) -> tuple[str, list[Bucket], bool]:
    """
    An empty mode means "year". Any other value that is not "year" gets the
    day-wise series of the current month, with fell_back=True when the mode
    is not a known one.
    """
    requested = mode or "year"
    fell_back = requested not in SERIES_MODES
    if requested == "year":
        return "year", year_buckets(now), fell_back
    return "month", month_buckets(now), fell_back


# --- Rounding ---


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return int((value + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))
