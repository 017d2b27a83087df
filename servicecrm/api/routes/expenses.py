from fastapi import APIRouter, Depends, HTTPException, Query, status

from servicecrm.api.deps import Session, get_record_service, require_section
from servicecrm.api.schemas import (
    ExpenseCreateRequest,
    ExpenseListResponse,
    ExpenseResponse,
    PaginationModel,
)
from servicecrm.domain.entities import ExpenseRecord
from servicecrm.domain.errors import DataUnavailable
from servicecrm.services.records import QuotationNotFound, RecordService

router = APIRouter()


def _to_response(e: ExpenseRecord) -> ExpenseResponse:
    return ExpenseResponse(
        id=e.id,
        display_id=e.display_id,
        amount=float(e.amount) if e.amount is not None else None,
        category=e.category,
        description=e.description,
        requester=e.requester,
        payment_type=e.payment_type,
        approval_name=e.approval_name,
        quotation_id=e.quotation_id,
        ticket_id=e.ticket_id,
        created_at=e.created_at,
    )


@router.get("", response_model=ExpenseListResponse)
def list_expenses(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query(""),
    service: RecordService = Depends(get_record_service),
    session: Session = Depends(require_section("expenses")),
) -> ExpenseListResponse:
    """
    Expenses, newest first.

    `search` matches description, requester or quotation name, or the
    category exactly (any case).
    """
    try:
        records, total = service.search_expenses(search, page=page, limit=limit)
    except DataUnavailable:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch expenses.",
        ) from None
    return ExpenseListResponse(
        expenses=[_to_response(e) for e in records],
        pagination=PaginationModel(page=page, limit=limit, total=total),
    )


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def create_expense(
    body: ExpenseCreateRequest,
    service: RecordService = Depends(get_record_service),
    session: Session = Depends(require_section("expenses")),
) -> ExpenseResponse:
    try:
        expense = service.create_expense(
            amount=body.amount,
            category=body.category,
            description=body.description,
            quotation_id=body.quotation_id,
            requester=body.requester,
            payment_type=body.payment_type,
            approval_name=body.approval_name,
        )
    except QuotationNotFound:
        raise HTTPException(status_code=404, detail="Quotation not found") from None
    return _to_response(expense)
