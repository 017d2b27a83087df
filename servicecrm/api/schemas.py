from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from servicecrm.domain.entities import ExpenseCategory, PaymentType, QuotationStatus

# --- Auth ---


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class UserInfo(BaseModel):
    userId: str
    email: str
    role: str
    name: str
    initials: str


class LoginResponse(BaseModel):
    success: bool
    token: str
    user: UserInfo


# --- Finances ---


class FinanceSummaryResponse(BaseModel):
    totalQuotation: float
    totalExpense: float
    totalExpectedExpense: float
    profitLoss: float
    range: str
    start: datetime
    end: datetime


class ProfitLossGraphResponse(BaseModel):
    labels: list[str]
    data: list[int]


# --- Navigation / Access ---


class NavItemModel(BaseModel):
    name: str
    href: str


class NavigationResponse(BaseModel):
    role: str
    items: list[NavItemModel]


class AccessCheckResponse(BaseModel):
    path: str
    allowed: bool


# --- Records ---


class QuotationCreateRequest(BaseModel):
    client_id: UUID
    name: str = Field(min_length=1)
    grand_total: Decimal | None = Field(default=None, ge=0)
    expected_expense: Decimal | None = Field(default=None, ge=0)
    status: QuotationStatus = "DRAFT"
    ticket_id: UUID | None = None


class QuotationResponse(BaseModel):
    id: UUID
    client_id: UUID
    name: str
    grand_total: float | None
    expected_expense: float | None
    status: QuotationStatus
    ticket_id: UUID | None
    created_at: datetime


class ExpenseCreateRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    description: str = Field(min_length=1)
    category: ExpenseCategory
    quotation_id: UUID
    requester: str = Field(min_length=1)
    payment_type: PaymentType
    approval_name: str | None = None


class ExpenseResponse(BaseModel):
    id: UUID
    display_id: str | None
    amount: float | None
    category: ExpenseCategory
    description: str
    requester: str
    payment_type: PaymentType | None
    approval_name: str | None
    quotation_id: UUID | None
    ticket_id: UUID | None
    created_at: datetime


class PaginationModel(BaseModel):
    page: int
    limit: int
    total: int


class QuotationListResponse(BaseModel):
    quotations: list[QuotationResponse]
    pagination: PaginationModel


class ExpenseListResponse(BaseModel):
    expenses: list[ExpenseResponse]
    pagination: PaginationModel
