import logging
import re
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Protocol
from uuid import UUID, uuid4

from servicecrm.domain.entities import (
    ExpenseCategory,
    ExpenseRecord,
    PaymentType,
    QuotationRecord,
    QuotationStatus,
)

logger = logging.getLogger(__name__)

EXPENSE_PREFIX = "EXPENSE"
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
_SERIAL = re.compile(r"^\d+")


class RecordRepoPort(Protocol):
    def save_quotation(self, quotation: QuotationRecord) -> QuotationRecord: ...

    def save_expense(self, expense: ExpenseRecord) -> ExpenseRecord: ...

    def get_quotation(self, quotation_id: UUID) -> QuotationRecord | None: ...

    def latest_expense_display_id(self) -> str | None: ...

    def search_quotations(
        self, search: str = "", status: str | None = None, limit: int = 10, offset: int = 0
    ) -> tuple[Sequence[QuotationRecord], int]: ...

    def search_expenses(
        self, search: str = "", limit: int = 10, offset: int = 0
    ) -> tuple[Sequence[ExpenseRecord], int]: ...


class ClockPort(Protocol):
    def now_utc(self) -> datetime: ...

    def now_local(self) -> datetime: ...


class QuotationNotFound(LookupError):
    pass


def next_expense_display_id(latest: str | None, now: datetime) -> str:
    """
    Next serial of the form EXPENSE/<MonthName>/<NNNN>.

    The serial continues from `latest` when it belongs to the month of `now`,
    otherwise it restarts at 0001. Month names are English regardless of locale.
    """
    prefix = f"{EXPENSE_PREFIX}/{MONTH_NAMES[now.month - 1]}/"
    serial = 1
    if latest and latest.startswith(prefix):
        match = _SERIAL.match(latest[len(prefix):])
        if match:
            serial = int(match.group(0)) + 1
    return f"{prefix}{serial:04d}"


class RecordService:
    def __init__(self, repo: RecordRepoPort, clock: ClockPort):
        self.repo = repo
        self.clock = clock

    def create_quotation(
        self,
        client_id: UUID,
        name: str,
        grand_total: Decimal | None,
        expected_expense: Decimal | None = None,
        status: QuotationStatus = "DRAFT",
        ticket_id: UUID | None = None,
    ) -> QuotationRecord:
        quotation = QuotationRecord(
            id=uuid4(),
            client_id=client_id,
            name=name,
            grand_total=grand_total,
            expected_expense=expected_expense,
            status=status,
            ticket_id=ticket_id,
            created_at=self.clock.now_utc(),
        )
        self.repo.save_quotation(quotation)
        logger.info("Created quotation %s for client %s", quotation.id, client_id)
        return quotation

    def create_expense(
        self,
        amount: Decimal,
        category: ExpenseCategory,
        description: str,
        quotation_id: UUID,
        requester: str,
        payment_type: PaymentType,
        approval_name: str | None = None,
    ) -> ExpenseRecord:
        """
        Record an expense against an existing quotation.

        The expense is filed under the quotation's ticket.

        Raises:
            QuotationNotFound: if the quotation does not exist.
        """
        quotation = self.repo.get_quotation(quotation_id)
        if quotation is None:
            raise QuotationNotFound(f"Quotation {quotation_id} not found")

        display_id = next_expense_display_id(
            self.repo.latest_expense_display_id(), self.clock.now_local()
        )
        expense = ExpenseRecord(
            id=uuid4(),
            amount=amount,
            category=category,
            description=description,
            requester=requester,
            payment_type=payment_type,
            approval_name=approval_name,
            quotation_id=quotation_id,
            ticket_id=quotation.ticket_id,
            display_id=display_id,
            created_at=self.clock.now_utc(),
        )
        self.repo.save_expense(expense)
        logger.info("Created expense %s (%s, %s)", display_id, category, payment_type)
        return expense

    def search_quotations(
        self, search: str = "", status: str | None = None, page: int = 1, limit: int = 10
    ) -> tuple[Sequence[QuotationRecord], int]:
        """Newest first. Returns one page and the total number of matches."""
        offset = (page - 1) * limit
        return self.repo.search_quotations(search, status=status, limit=limit, offset=offset)

    def search_expenses(
        self, search: str = "", page: int = 1, limit: int = 10
    ) -> tuple[Sequence[ExpenseRecord], int]:
        """Newest first. Returns one page and the total number of matches."""
        offset = (page - 1) * limit
        return self.repo.search_expenses(search, limit=limit, offset=offset)
