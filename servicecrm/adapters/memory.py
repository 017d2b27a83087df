from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from servicecrm.domain.entities import ExpenseRecord, QuotationRecord


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=UTC)


class InMemoryRecordStore:
    """In-memory quotation/expense store for testing/dev."""

    def __init__(self) -> None:
        self._quotations: dict[UUID, QuotationRecord] = {}
        self._expenses: dict[UUID, ExpenseRecord] = {}

    def save_quotation(self, quotation: QuotationRecord) -> QuotationRecord:
        self._quotations[quotation.id] = quotation
        return quotation

    def save_expense(self, expense: ExpenseRecord) -> ExpenseRecord:
        self._expenses[expense.id] = expense
        return expense

    def get_quotation(self, quotation_id: UUID) -> QuotationRecord | None:
        return self._quotations.get(quotation_id)

    def latest_expense_display_id(self) -> str | None:
        numbered = [e for e in self._expenses.values() if e.display_id]
        if not numbered:
            return None
        return max(numbered, key=lambda e: _aware(e.created_at)).display_id

    def list_quotations(self, start: datetime, end: datetime) -> Sequence[QuotationRecord]:
        return sorted(
            (q for q in self._quotations.values() if start <= _aware(q.created_at) < end),
            key=lambda q: _aware(q.created_at),
        )

    def list_expenses(self, start: datetime, end: datetime) -> Sequence[ExpenseRecord]:
        return sorted(
            (e for e in self._expenses.values() if start <= _aware(e.created_at) < end),
            key=lambda e: _aware(e.created_at),
        )

    def search_quotations(
        self, search: str = "", status: str | None = None, limit: int = 10, offset: int = 0
    ) -> tuple[list[QuotationRecord], int]:
        term = search.lower()
        matches = [
            q
            for q in self._quotations.values()
            if (not term or term in q.name.lower()) and (not status or q.status == status)
        ]
        matches.sort(key=lambda q: _aware(q.created_at), reverse=True)
        return matches[offset : offset + limit], len(matches)

    def search_expenses(
        self, search: str = "", limit: int = 10, offset: int = 0
    ) -> tuple[list[ExpenseRecord], int]:
        matches = [e for e in self._expenses.values() if self._expense_matches(e, search)]
        matches.sort(key=lambda e: _aware(e.created_at), reverse=True)
        return matches[offset : offset + limit], len(matches)

    def _expense_matches(self, expense: ExpenseRecord, search: str) -> bool:
        if not search:
            return True
        term = search.lower()
        quotation = self._quotations.get(expense.quotation_id) if expense.quotation_id else None
        return (
            term in expense.description.lower()
            or term in expense.requester.lower()
            or (quotation is not None and term in quotation.name.lower())
            or expense.category == search.upper()
        )
