"""Account request endpoints: public submission, super-admin review"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from shopdesk.api.deps import Principal, require_super_admin
from shopdesk.database import get_db
from shopdesk.middleware.monitoring import get_request_id
from shopdesk.middleware.rate_limit import get_rate_limit, limiter
from shopdesk.schemas.account_request import (
    AccountRequestCreate,
    AccountRequestDecision,
    AccountRequestDecisionResponse,
    AccountRequestResponse,
)
from shopdesk.schemas.admin_user import AdminUserResponse
from shopdesk.schemas.common import Envelope, ListEnvelope
from shopdesk.services import account_requests as workflow

router = APIRouter(prefix="/admin/requests", tags=["account-requests"])


@router.post("", response_model=Envelope[AccountRequestResponse], status_code=201)
@limiter.limit(get_rate_limit("account_request"))
def submit_account_request(
    request: Request,
    body: AccountRequestCreate,
    db: Session = Depends(get_db),
):
    """Ask for an admin account. No session required."""
    account_request = workflow.submit(db, body.center_name, body.username, body.password)
    return {
        "requestId": get_request_id(request),
        "data": AccountRequestResponse.model_validate(account_request),
    }


@router.get("", response_model=ListEnvelope[AccountRequestResponse])
def list_account_requests(
    request: Request,
    status: Optional[str] = Query(None, description="pending | approved | rejected"),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_super_admin),
):
    """List account requests, newest first (super-admin only)."""
    rows = workflow.list_requests(db, status=status)
    return {
        "requestId": get_request_id(request),
        "data": [AccountRequestResponse.model_validate(r) for r in rows],
    }


@router.patch("/{request_id}", response_model=AccountRequestDecisionResponse)
def decide_account_request(
    request_id: str,
    request: Request,
    body: AccountRequestDecision,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
):
    """
    Approve or reject a pending request (super-admin only).

    ``{"action": "approve", "center_id": ...}`` creates the account in that
    center; ``{"action": "reject"}`` only closes the request.
    """
    decision = workflow.decide(
        db,
        request_id=request_id,
        action=body.action,
        center_id=body.center_id,
        decided_by=principal.id,
    )
    return {
        "requestId": get_request_id(request),
        "data": AccountRequestResponse.model_validate(decision.request),
        "user": AdminUserResponse.model_validate(decision.user) if decision.user is not None else None,
    }
