import sqlite3
from collections.abc import Sequence
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from servicecrm.domain.entities import ExpenseRecord, QuotationRecord, Role, User
from servicecrm.domain.errors import DataUnavailable


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def format_ts(dt: datetime) -> str:
    """UTC, fixed width, so stored timestamps order lexically."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def parse_ts(s: str) -> datetime:
    return datetime.fromisoformat(s)


def _dec(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def _parse_dec(s: str | None) -> Decimal | None:
    return Decimal(s) if s is not None else None


def _uuid(s: str | None) -> UUID | None:
    return UUID(s) if s else None


def _like(term: str) -> str:
    """Substring LIKE pattern with wildcards in `term` escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SQLiteQuotationRepo:
    def __init__(self, db_path: str, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def save(self, quotation: QuotationRecord) -> QuotationRecord:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO quotations (
                    id, client_id, name, grand_total, expected_expense,
                    status, ticket_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    client_id=excluded.client_id,
                    name=excluded.name,
                    grand_total=excluded.grand_total,
                    expected_expense=excluded.expected_expense,
                    status=excluded.status,
                    ticket_id=excluded.ticket_id
            """,
                (
                    str(quotation.id),
                    str(quotation.client_id),
                    quotation.name,
                    _dec(quotation.grand_total),
                    _dec(quotation.expected_expense),
                    quotation.status,
                    str(quotation.ticket_id) if quotation.ticket_id else None,
                    format_ts(quotation.created_at),
                ),
            )
            conn.commit()
            return quotation
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_id(self, quotation_id: UUID) -> QuotationRecord | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM quotations WHERE id = ?", (str(quotation_id),)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def list_range(self, start: datetime, end: datetime) -> list[QuotationRecord]:
        """Quotations with created_at in [start, end), oldest first."""
        try:
            conn = self._get_conn()
            try:
                rows = conn.execute(
                    "SELECT * FROM quotations WHERE created_at >= ? AND created_at < ? "
                    "ORDER BY created_at ASC",
                    (format_ts(start), format_ts(end)),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Quotation read failed: {e}") from e
        return [self._map_row(r) for r in rows]

    def search(
        self,
        search: str = "",
        status: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[QuotationRecord], int]:
        """Page of quotations, newest first, with the total match count."""
        query = "SELECT * FROM quotations WHERE 1=1"
        params: list[str | int] = []
        if search:
            query += " AND name LIKE ? ESCAPE '\\'"
            params.append(_like(search))
        if status:
            query += " AND status = ?"
            params.append(status)

        try:
            conn = self._get_conn()
            try:
                row = conn.execute(f"SELECT COUNT(*) as cnt FROM ({query})", params).fetchone()
                total = row["cnt"] if row else 0

                query += " ORDER BY created_at DESC LIMIT ? OFFSET ?"
                rows = conn.execute(query, [*params, limit, offset]).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Quotation read failed: {e}") from e
        return [self._map_row(r) for r in rows], total

    def _map_row(self, row: dict[str, Any]) -> QuotationRecord:
        return QuotationRecord(
            id=UUID(row["id"]),
            client_id=UUID(row["client_id"]),
            name=row["name"] or "",
            grand_total=_parse_dec(row["grand_total"]),
            expected_expense=_parse_dec(row["expected_expense"]),
            status=row["status"],
            ticket_id=_uuid(row["ticket_id"]),
            created_at=parse_ts(row["created_at"]),
        )


class SQLiteExpenseRepo:
    def __init__(self, db_path: str, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def save(self, expense: ExpenseRecord) -> ExpenseRecord:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO expenses (
                    id, amount, category, description, requester, payment_type,
                    approval_name, quotation_id, ticket_id, display_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    amount=excluded.amount,
                    category=excluded.category,
                    description=excluded.description,
                    requester=excluded.requester,
                    payment_type=excluded.payment_type,
                    approval_name=excluded.approval_name,
                    quotation_id=excluded.quotation_id,
                    ticket_id=excluded.ticket_id,
                    display_id=excluded.display_id
            """,
                (
                    str(expense.id),
                    _dec(expense.amount),
                    expense.category,
                    expense.description,
                    expense.requester,
                    expense.payment_type,
                    expense.approval_name,
                    str(expense.quotation_id) if expense.quotation_id else None,
                    str(expense.ticket_id) if expense.ticket_id else None,
                    expense.display_id,
                    format_ts(expense.created_at),
                ),
            )
            conn.commit()
            return expense
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def latest_display_id(self) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT display_id FROM expenses WHERE display_id IS NOT NULL "
                "ORDER BY created_at DESC LIMIT 1"
            ).fetchone()
            return row["display_id"] if row else None
        finally:
            conn.close()

    def list_range(self, start: datetime, end: datetime) -> list[ExpenseRecord]:
        """Expenses with created_at in [start, end), oldest first."""
        try:
            conn = self._get_conn()
            try:
                rows = conn.execute(
                    "SELECT * FROM expenses WHERE created_at >= ? AND created_at < ? "
                    "ORDER BY created_at ASC",
                    (format_ts(start), format_ts(end)),
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Expense read failed: {e}") from e
        return [self._map_row(r) for r in rows]

    def search(
        self,
        search: str = "",
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[ExpenseRecord], int]:
        """
        Page of expenses, newest first, with the total match count.

        `search` matches description, requester or quotation name
        (case-insensitive substring) or the category exactly.
        """
        query = (
            "SELECT e.* FROM expenses e "
            "LEFT JOIN quotations q ON q.id = e.quotation_id WHERE 1=1"
        )
        params: list[str | int] = []
        if search:
            pattern = _like(search)
            query += (
                " AND (e.description LIKE ? ESCAPE '\\' OR e.requester LIKE ? ESCAPE '\\'"
                " OR q.name LIKE ? ESCAPE '\\' OR e.category = ?)"
            )
            params.extend([pattern, pattern, pattern, search.upper()])

        try:
            conn = self._get_conn()
            try:
                row = conn.execute(f"SELECT COUNT(*) as cnt FROM ({query})", params).fetchone()
                total = row["cnt"] if row else 0

                query += " ORDER BY e.created_at DESC LIMIT ? OFFSET ?"
                rows = conn.execute(query, [*params, limit, offset]).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DataUnavailable(f"Expense read failed: {e}") from e
        return [self._map_row(r) for r in rows], total

    def _map_row(self, row: dict[str, Any]) -> ExpenseRecord:
        return ExpenseRecord(
            id=UUID(row["id"]),
            amount=_parse_dec(row["amount"]),
            category=row["category"],
            description=row["description"] or "",
            requester=row["requester"] or "",
            payment_type=row["payment_type"],
            approval_name=row["approval_name"],
            quotation_id=_uuid(row["quotation_id"]),
            ticket_id=_uuid(row["ticket_id"]),
            display_id=row["display_id"],
            created_at=parse_ts(row["created_at"]),
        )


class SQLiteRecordStore:
    """Record store read/write surface over the quotation and expense tables."""

    def __init__(self, db_path: str, timeout: float = 5.0):
        self.quotations = SQLiteQuotationRepo(db_path, timeout=timeout)
        self.expenses = SQLiteExpenseRepo(db_path, timeout=timeout)

    def save_quotation(self, quotation: QuotationRecord) -> QuotationRecord:
        return self.quotations.save(quotation)

    def save_expense(self, expense: ExpenseRecord) -> ExpenseRecord:
        return self.expenses.save(expense)

    def get_quotation(self, quotation_id: UUID) -> QuotationRecord | None:
        return self.quotations.get_by_id(quotation_id)

    def latest_expense_display_id(self) -> str | None:
        return self.expenses.latest_display_id()

    def list_quotations(self, start: datetime, end: datetime) -> Sequence[QuotationRecord]:
        return self.quotations.list_range(start, end)

    def list_expenses(self, start: datetime, end: datetime) -> Sequence[ExpenseRecord]:
        return self.expenses.list_range(start, end)

    def search_quotations(
        self, search: str = "", status: str | None = None, limit: int = 10, offset: int = 0
    ) -> tuple[list[QuotationRecord], int]:
        return self.quotations.search(search, status=status, limit=limit, offset=offset)

    def search_expenses(
        self, search: str = "", limit: int = 10, offset: int = 0
    ) -> tuple[list[ExpenseRecord], int]:
        return self.expenses.search(search, limit=limit, offset=offset)


class SQLiteUserRepo:
    def __init__(self, db_path: str, timeout: float = 5.0):
        self.db_path = db_path
        self.timeout = timeout

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = dict_factory
        return conn

    def save(self, user: User) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO users (
                    id, email, name, password_hash, role, status, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email=excluded.email,
                    name=excluded.name,
                    password_hash=excluded.password_hash,
                    role=excluded.role,
                    status=excluded.status
            """,
                (
                    str(user.id),
                    user.email,
                    user.name,
                    user.password_hash,
                    user.role.value,
                    user.status,
                    format_ts(user.created_at),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def get_by_email(self, email: str) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def get_by_id(self, user_id: UUID) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (str(user_id),)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> User:
        return User(
            id=UUID(row["id"]),
            email=row["email"],
            name=row["name"] or "",
            password_hash=row["password_hash"],
            role=Role(row["role"]),
            status=row["status"],
            created_at=parse_ts(row["created_at"]),
        )
