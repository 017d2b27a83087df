import sqlite3

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT UNIQUE NOT NULL,
    name TEXT,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL,
    status TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS quotations (
    id TEXT PRIMARY KEY,
    client_id TEXT NOT NULL,
    name TEXT,
    grand_total TEXT,
    expected_expense TEXT,
    status TEXT NOT NULL,
    ticket_id TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_quotations_created_at ON quotations(created_at);
CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    amount TEXT,
    category TEXT NOT NULL,
    description TEXT,
    requester TEXT,
    payment_type TEXT,
    approval_name TEXT,
    quotation_id TEXT REFERENCES quotations(id),
    ticket_id TEXT,
    display_id TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_expenses_created_at ON expenses(created_at);
"""


def ensure_schema(db_path: str) -> None:
    """Create tables if they do not exist. Idempotent."""
    conn = sqlite3.connect(db_path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()
