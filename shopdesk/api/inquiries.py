"""Inquiry endpoints: public contact form and tenant-scoped follow-up"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from shopdesk.api.deps import Principal, authenticate, require_admin
from shopdesk.database import get_db
from shopdesk.errors import ValidationError
from shopdesk.middleware.monitoring import get_request_id
from shopdesk.middleware.rate_limit import get_rate_limit, limiter
from shopdesk.models.inquiry import Inquiry
from shopdesk.schemas.common import Envelope, ListEnvelope
from shopdesk.schemas.inquiry import InquiryCreate, InquiryResponse, InquirySummary, InquiryUpdate
from shopdesk.utils.logger import logger
from shopdesk.utils.session_tokens import TokenService, get_token_service
from shopdesk.utils.tenancy import get_owned_or_404, resolve_center_id, scope_query

router = APIRouter(prefix="/inquiries", tags=["inquiries"])


@router.post("", response_model=Envelope[InquiryResponse], status_code=201)
@limiter.limit(get_rate_limit("inquiry_submit"))
def submit_inquiry(
    request: Request,
    data: InquiryCreate,
    center: Optional[str] = Query(None, description="Center code"),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    """Leave a contact request. No session required."""
    request_id = get_request_id(request)
    principal = authenticate(request, db, tokens)
    center_id = resolve_center_id(
        db,
        principal_center_id=principal.center_id if principal else None,
        center_code=center,
    )
    if not center_id:
        raise ValidationError("No center is available for this submission.")

    inquiry = Inquiry(center_id=center_id, contacted=False, **data.model_dump())
    db.add(inquiry)
    db.commit()
    db.refresh(inquiry)

    logger.info(
        f"Inquiry submitted: {inquiry.id}",
        extra={"request_id": request_id, "center_id": center_id, "action": "inquiry.submitted"},
    )
    return {"requestId": request_id, "data": InquiryResponse.model_validate(inquiry)}


@router.get("", response_model=ListEnvelope[InquirySummary])
def list_inquiries(
    request: Request,
    contacted: Optional[bool] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    """List inquiries of the caller's center, newest first."""
    query = scope_query(db.query(Inquiry), Inquiry, principal)
    if contacted is not None:
        query = query.filter(Inquiry.contacted == contacted)
    inquiries = query.order_by(Inquiry.created_at.desc()).offset(offset).limit(limit).all()
    return {
        "requestId": get_request_id(request),
        "data": [InquirySummary.from_row(i) for i in inquiries],
    }


@router.get("/{inquiry_id}", response_model=Envelope[InquiryResponse])
def get_inquiry(
    inquiry_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    inquiry = get_owned_or_404(db, Inquiry, inquiry_id, principal)
    return {"requestId": get_request_id(request), "data": InquiryResponse.model_validate(inquiry)}


@router.patch("/{inquiry_id}", response_model=Envelope[InquiryResponse])
def update_inquiry(
    inquiry_id: str,
    request: Request,
    data: InquiryUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    """
    Mark an inquiry contacted and/or edit its note.

    Changing the note stamps ``note_updated_at``.
    """
    request_id = get_request_id(request)
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No fields to update.")

    inquiry = get_owned_or_404(db, Inquiry, inquiry_id, principal)
    if "contacted" in updates:
        inquiry.contacted = bool(updates["contacted"])
    if "note" in updates:
        inquiry.note = updates["note"] or ""
        inquiry.note_updated_at = datetime.utcnow()

    db.commit()
    db.refresh(inquiry)

    logger.info(
        f"Inquiry updated: {inquiry_id}",
        extra={"request_id": request_id, "user_id": principal.id, "center_id": inquiry.center_id},
    )
    return {"requestId": request_id, "data": InquiryResponse.model_validate(inquiry)}


@router.delete("/{inquiry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inquiry(
    inquiry_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    inquiry = get_owned_or_404(db, Inquiry, inquiry_id, principal)
    db.delete(inquiry)
    db.commit()

    logger.info(
        f"Inquiry deleted: {inquiry_id}",
        extra={"request_id": get_request_id(request), "user_id": principal.id, "center_id": principal.center_id},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
