"""
Finance component port definitions.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from servicecrm.domain.entities import ExpenseRecord, QuotationRecord


class RecordStorePort(Protocol):
    """Range-filtered reads over quotation and expense records.

    Both reads return records whose created_at lies in [start, end).
    Implementations raise DataUnavailable when the store cannot be read.
    """

    def list_quotations(self, start: datetime, end: datetime) -> Sequence[QuotationRecord]:
        ...

    def list_expenses(self, start: datetime, end: datetime) -> Sequence[ExpenseRecord]:
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_local(self) -> datetime:
        """Get current time, timezone-aware, in the reporting timezone."""
        ...
