from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums / Literals ---


class Role(str, Enum):
    """Closed set of roles carried by an authenticated session."""

    ADMIN = "ADMIN"
    BACKEND = "BACKEND"
    RM = "RM"
    MST = "MST"
    ACCOUNTS = "ACCOUNTS"


ExpenseCategory = Literal["LABOR", "TRANSPORT", "MATERIAL", "OTHER"]
QuotationStatus = Literal["DRAFT", "SENT", "ACCEPTED", "REJECTED", "ARCHIVED"]
PaymentType = Literal["VCASH", "REST", "ONLINE"]
UserStatus = Literal["active", "disabled"]


def utc_now() -> datetime:
    return datetime.now(UTC)


# --- User & Auth ---


class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    name: str = ""
    password_hash: str
    role: Role
    status: UserStatus = "active"
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def initials(self) -> str:
        if self.name.strip():
            return "".join(part[0] for part in self.name.split()).upper()
        if self.email:
            return self.email[:2].upper()
        return "NA"


# --- Finance records ---


class QuotationRecord(BaseModel):
    """A priced proposal sent to a client. grand_total is the revenue figure."""

    id: UUID = Field(default_factory=uuid4)
    client_id: UUID
    name: str = ""
    grand_total: Decimal | None = None
    expected_expense: Decimal | None = None
    status: QuotationStatus = "DRAFT"
    ticket_id: UUID | None = None
    created_at: datetime = Field(default_factory=utc_now)


class ExpenseRecord(BaseModel):
    """A cost incurred against a quotation or ticket. amount is the cost figure."""

    id: UUID = Field(default_factory=uuid4)
    amount: Decimal | None = None
    category: ExpenseCategory = "OTHER"
    description: str = ""
    requester: str = ""
    payment_type: PaymentType | None = None
    approval_name: str | None = None
    quotation_id: UUID | None = None
    ticket_id: UUID | None = None
    display_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
