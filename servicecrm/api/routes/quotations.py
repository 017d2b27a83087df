import logging
from typing import get_args

from fastapi import APIRouter, Depends, HTTPException, Query, status

from servicecrm.api.deps import Session, get_record_service, require_section
from servicecrm.api.schemas import (
    PaginationModel,
    QuotationCreateRequest,
    QuotationListResponse,
    QuotationResponse,
)
from servicecrm.domain.entities import QuotationRecord, QuotationStatus
from servicecrm.domain.errors import DataUnavailable
from servicecrm.services.records import RecordService

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(q: QuotationRecord) -> QuotationResponse:
    return QuotationResponse(
        id=q.id,
        client_id=q.client_id,
        name=q.name,
        grand_total=float(q.grand_total) if q.grand_total is not None else None,
        expected_expense=float(q.expected_expense) if q.expected_expense is not None else None,
        status=q.status,
        ticket_id=q.ticket_id,
        created_at=q.created_at,
    )


@router.get("", response_model=QuotationListResponse)
def list_quotations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: str = Query(""),
    status_: str = Query("", alias="status"),
    service: RecordService = Depends(get_record_service),
    session: Session = Depends(require_section("quotations")),
) -> QuotationListResponse:
    """Quotations, newest first. An unknown `status` filter is ignored."""
    status_filter = status_ if status_ in get_args(QuotationStatus) else None
    if status_ and status_filter is None:
        logger.warning("Ignoring unknown quotation status filter %r", status_)
    try:
        records, total = service.search_quotations(
            search, status=status_filter, page=page, limit=limit
        )
    except DataUnavailable:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch quotations.",
        ) from None
    return QuotationListResponse(
        quotations=[_to_response(q) for q in records],
        pagination=PaginationModel(page=page, limit=limit, total=total),
    )


@router.post("", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
def create_quotation(
    body: QuotationCreateRequest,
    service: RecordService = Depends(get_record_service),
    session: Session = Depends(require_section("quotations")),
) -> QuotationResponse:
    quotation = service.create_quotation(
        client_id=body.client_id,
        name=body.name,
        grand_total=body.grand_total,
        expected_expense=body.expected_expense,
        status=body.status,
        ticket_id=body.ticket_id,
    )
    return _to_response(quotation)
