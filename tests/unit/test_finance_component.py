"""
Tests for the finance component (profit/loss summary and series).
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import fields
from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from servicecrm.adapters.memory import InMemoryRecordStore
from servicecrm.components.finance import (
    CancellationToken,
    SeriesInput,
    SummaryInput,
    compute_series,
    compute_summary,
    run,
)
from servicecrm.domain.entities import ExpenseRecord, QuotationRecord
from servicecrm.domain.errors import DataUnavailable

# --- Helpers ---


def quotation(created_at: datetime, grand_total: str | None, expected: str | None = None) -> QuotationRecord:
    return QuotationRecord(
        client_id=uuid4(),
        grand_total=Decimal(grand_total) if grand_total is not None else None,
        expected_expense=Decimal(expected) if expected is not None else None,
        created_at=created_at,
    )


def expense(created_at: datetime, amount: str | None) -> ExpenseRecord:
    return ExpenseRecord(
        amount=Decimal(amount) if amount is not None else None,
        category="LABOR",
        created_at=created_at,
    )


class CountingStore(InMemoryRecordStore):
    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def list_quotations(self, start: datetime, end: datetime) -> Sequence[QuotationRecord]:
        self.calls.append("quotations")
        return super().list_quotations(start, end)

    def list_expenses(self, start: datetime, end: datetime) -> Sequence[ExpenseRecord]:
        self.calls.append("expenses")
        return super().list_expenses(start, end)


class FailingStore(CountingStore):
    def __init__(self, fail_on: str, error: Exception) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.error = error

    def list_quotations(self, start: datetime, end: datetime) -> Sequence[QuotationRecord]:
        if self.fail_on == "quotations":
            raise self.error
        return super().list_quotations(start, end)

    def list_expenses(self, start: datetime, end: datetime) -> Sequence[ExpenseRecord]:
        if self.fail_on == "expenses":
            raise self.error
        return super().list_expenses(start, end)


MARCH_15 = datetime(2024, 3, 15, 10, 0, tzinfo=UTC)


# --- Summary ---


class TestSummary:
    def test_month_scenario(self, store, clock) -> None:
        store.save_quotation(quotation(MARCH_15, "10000"))
        store.save_expense(expense(MARCH_15, "4000"))

        result = compute_summary(SummaryInput(range="month"), store=store, time_port=clock)

        assert result.total_quotation == Decimal("10000")
        assert result.total_expense == Decimal("4000")
        assert result.profit_loss == Decimal("6000")
        assert result.range == "month"
        assert result.start == datetime(2024, 3, 1, tzinfo=UTC)
        assert result.end == datetime(2024, 4, 1, tzinfo=UTC)

    def test_expected_expense_is_summed(self, store, clock) -> None:
        store.save_quotation(quotation(MARCH_15, "500", expected="120"))
        store.save_quotation(quotation(MARCH_15, "700", expected="80.50"))

        result = compute_summary(SummaryInput(range="today"), store=store, time_port=clock)

        assert result.total_expected_expense == Decimal("200.50")
        assert result.total_quotation == Decimal("1200")

    def test_missing_values_count_as_zero(self, store, clock) -> None:
        store.save_quotation(quotation(MARCH_15, None, expected=None))
        store.save_quotation(quotation(MARCH_15, "300"))
        store.save_expense(expense(MARCH_15, None))

        result = compute_summary(SummaryInput(range="today"), store=store, time_port=clock)

        assert result.total_quotation == Decimal("300")
        assert result.total_expected_expense == Decimal("0")
        assert result.total_expense == Decimal("0")
        assert result.profit_loss == Decimal("300")

    def test_no_rounding(self, store, clock) -> None:
        store.save_quotation(quotation(MARCH_15, "100.40"))
        store.save_expense(expense(MARCH_15, "0.15"))

        result = compute_summary(SummaryInput(range="today"), store=store, time_port=clock)

        assert result.profit_loss == Decimal("100.25")
        assert result.profit_loss == result.total_quotation - result.total_expense

    def test_records_outside_range_excluded(self, store, clock) -> None:
        store.save_quotation(quotation(datetime(2024, 2, 29, 23, 59, tzinfo=UTC), "999"))
        store.save_quotation(quotation(datetime(2024, 4, 1, 0, 0, tzinfo=UTC), "999"))
        store.save_quotation(quotation(datetime(2024, 3, 1, 0, 0, tzinfo=UTC), "1"))

        result = compute_summary(SummaryInput(range="month"), store=store, time_port=clock)

        assert result.total_quotation == Decimal("1")

    def test_week_range(self, store, clock) -> None:
        store.save_expense(expense(datetime(2024, 3, 11, 0, 0, tzinfo=UTC), "50"))  # Monday
        store.save_expense(expense(datetime(2024, 3, 10, 23, 59, tzinfo=UTC), "70"))  # Sunday

        result = compute_summary(SummaryInput(range="week"), store=store, time_port=clock)

        assert result.total_expense == Decimal("50")
        assert result.profit_loss == Decimal("-50")

    def test_unknown_range_falls_back_to_today(self, store, clock) -> None:
        store.save_quotation(quotation(MARCH_15, "10"))
        store.save_quotation(quotation(datetime(2024, 3, 14, 10, 0, tzinfo=UTC), "20"))

        result = compute_summary(SummaryInput(range="fortnight"), store=store, time_port=clock)

        assert result.range == "today"
        assert result.fallback is True
        assert result.total_quotation == Decimal("10")
        assert result.start == datetime(2024, 3, 15, tzinfo=UTC)

    def test_today_uses_local_midnight(self, store, make_clock) -> None:
        tz = ZoneInfo("Asia/Kolkata")
        clock = make_clock(datetime(2024, 3, 15, 9, 0, tzinfo=tz))
        # 00:30 IST on the 15th, still the 14th in UTC
        store.save_expense(expense(datetime(2024, 3, 14, 19, 0, tzinfo=UTC), "40"))
        # 23:30 IST on the 14th
        store.save_expense(expense(datetime(2024, 3, 14, 18, 0, tzinfo=UTC), "60"))

        result = compute_summary(SummaryInput(range="today"), store=store, time_port=clock)

        assert result.total_expense == Decimal("40")

    def test_empty_store(self, store, clock) -> None:
        result = compute_summary(SummaryInput(), store=store, time_port=clock)
        assert result.profit_loss == Decimal("0")
        assert result.range == "today"


# --- Series ---


class TestSeries:
    def test_year_has_twelve_zero_buckets_when_empty(self, store, clock) -> None:
        result = compute_series(SeriesInput(mode="year"), store=store, time_port=clock)

        assert len(result.labels) == 12
        assert len(result.data) == len(result.labels)
        assert result.data == (0,) * 12

    def test_year_scenario(self, store, clock) -> None:
        june = datetime(2024, 6, 10, 12, 0, tzinfo=UTC)
        store.save_quotation(quotation(june, "5000"))
        store.save_expense(expense(june, "2000"))

        result = compute_series(SeriesInput(mode="year"), store=store, time_port=clock)

        assert result.labels[5] == "Jun"
        assert result.data[5] == 3000
        assert [v for i, v in enumerate(result.data) if i != 5] == [0] * 11

    def test_year_excludes_other_years(self, store, clock) -> None:
        store.save_quotation(quotation(datetime(2023, 12, 31, 23, 0, tzinfo=UTC), "100"))
        store.save_quotation(quotation(datetime(2025, 1, 1, 0, 0, tzinfo=UTC), "100"))

        result = compute_series(SeriesInput(mode="year"), store=store, time_port=clock)

        assert result.data == (0,) * 12

    def test_year_last_instant_lands_in_december(self, store, clock) -> None:
        store.save_quotation(quotation(datetime(2024, 12, 31, 23, 59, 59, 999999, tzinfo=UTC), "10"))
        store.save_quotation(quotation(datetime(2024, 12, 1, 0, 0, tzinfo=UTC), "5"))
        store.save_expense(expense(datetime(2024, 11, 30, 23, 59, 59, tzinfo=UTC), "7"))

        result = compute_series(SeriesInput(mode="year"), store=store, time_port=clock)

        assert result.data[11] == 15
        assert result.data[10] == -7

    def test_month_bucket_count(self, store, make_clock) -> None:
        clock = make_clock(datetime(2024, 2, 20, tzinfo=UTC))
        result = compute_series(SeriesInput(mode="month"), store=store, time_port=clock)
        assert len(result.labels) == 29
        assert len(result.data) == 29
        assert result.labels[0] == "1 Feb"

    def test_month_values_by_day(self, store, clock) -> None:
        store.save_quotation(quotation(datetime(2024, 3, 1, 8, 0, tzinfo=UTC), "100"))
        store.save_expense(expense(datetime(2024, 3, 1, 9, 0, tzinfo=UTC), "30"))
        store.save_expense(expense(datetime(2024, 3, 31, 23, 59, tzinfo=UTC), "45"))

        result = compute_series(SeriesInput(mode="month"), store=store, time_port=clock)

        assert result.data[0] == 70
        assert result.data[-1] == -45
        assert sum(result.data) == 25

    def test_rounding_per_bucket(self, store, clock) -> None:
        store.save_quotation(quotation(datetime(2024, 1, 5, tzinfo=UTC), "10.50"))
        store.save_quotation(quotation(datetime(2024, 2, 5, tzinfo=UTC), "10.25"))
        store.save_expense(expense(datetime(2024, 3, 5, tzinfo=UTC), "0.50"))

        result = compute_series(SeriesInput(mode="year"), store=store, time_port=clock)

        assert result.data[:3] == (11, 10, 0)
        assert all(isinstance(v, int) for v in result.data)

    def test_null_amounts_are_zero(self, store, clock) -> None:
        store.save_quotation(quotation(MARCH_15, None))
        store.save_expense(expense(MARCH_15, None))

        result = compute_series(SeriesInput(mode="year"), store=store, time_port=clock)

        assert result.data == (0,) * 12

    def test_unknown_mode_gets_month_series(self, store, clock) -> None:
        store.save_quotation(quotation(datetime(2024, 3, 2, 9, 0, tzinfo=UTC), "80"))

        result = compute_series(SeriesInput(mode="week"), store=store, time_port=clock)

        assert result.mode == "month"
        assert result.fallback is True
        assert len(result.labels) == 31
        assert result.labels[:2] == ("1 Mar", "2 Mar")
        assert result.data[1] == 80

    def test_empty_mode_means_year(self, store, clock) -> None:
        result = compute_series(SeriesInput(mode=""), store=store, time_port=clock)
        assert result.mode == "year"
        assert result.fallback is False
        assert len(result.labels) == 12

    def test_series_output_carries_labels_and_data_only(self, store, clock) -> None:
        result = compute_series(SeriesInput(mode="month"), store=store, time_port=clock)
        assert [f.name for f in fields(result)] == ["mode", "labels", "data", "fallback"]

    def test_one_read_per_record_type(self, clock) -> None:
        counting = CountingStore()
        compute_series(SeriesInput(mode="month"), store=counting, time_port=clock)
        assert counting.calls == ["quotations", "expenses"]


# --- Failures ---


class TestFailures:
    @pytest.mark.parametrize("fail_on", ["quotations", "expenses"])
    def test_store_failure_aborts_summary(self, clock, fail_on: str) -> None:
        failing = FailingStore(fail_on, DataUnavailable("store down"))
        with pytest.raises(DataUnavailable):
            compute_summary(SummaryInput(range="month"), store=failing, time_port=clock)

    @pytest.mark.parametrize("fail_on", ["quotations", "expenses"])
    def test_store_failure_aborts_series(self, clock, fail_on: str) -> None:
        failing = FailingStore(fail_on, DataUnavailable("store down"))
        failing.save_quotation(quotation(MARCH_15, "100"))
        with pytest.raises(DataUnavailable):
            compute_series(SeriesInput(mode="year"), store=failing, time_port=clock)

    def test_timeout_becomes_data_unavailable(self, clock) -> None:
        failing = FailingStore("expenses", TimeoutError("slow"))
        with pytest.raises(DataUnavailable):
            compute_series(SeriesInput(mode="month"), store=failing, time_port=clock)

    def test_failure_is_not_retried(self, clock) -> None:
        failing = FailingStore("expenses", DataUnavailable("store down"))
        with pytest.raises(DataUnavailable):
            compute_summary(SummaryInput(range="today"), store=failing, time_port=clock)
        assert failing.calls == ["quotations"]

    def test_cancelled_token_stops_before_any_read(self, clock) -> None:
        counting = CountingStore()
        token = CancellationToken()
        token.cancel()

        with pytest.raises(DataUnavailable):
            compute_summary(SummaryInput(), store=counting, time_port=clock, cancel=token)
        with pytest.raises(DataUnavailable):
            compute_series(SeriesInput(), store=counting, time_port=clock, cancel=token)

        assert counting.calls == []

    def test_uncancelled_token_is_harmless(self, store, clock) -> None:
        token = CancellationToken()
        result = compute_summary(SummaryInput(), store=store, time_port=clock, cancel=token)
        assert result.profit_loss == Decimal("0")


# --- Dispatch ---


class TestRun:
    def test_dispatches_by_input_type(self, store, clock) -> None:
        assert run(SummaryInput(), store=store, time_port=clock).range == "today"
        assert len(run(SeriesInput(), store=store, time_port=clock).labels) == 12

    def test_unknown_input_rejected(self, store, clock) -> None:
        with pytest.raises(ValueError):
            run("summary", store=store, time_port=clock)  # type: ignore[arg-type]
