"""Account request workflow.

A self-service submission (center name, username, password) becomes either a
live admin account or a closed record::

    pending ──approve──> approved   (terminal)
       └─────reject────> rejected   (terminal)

Approval creates the account and closes the request in one transaction. The
status change is a conditional update guarded by ``status = 'pending'``, so
of two concurrent decisions exactly one wins and the other gets ``Conflict``.
Account creation is idempotent by username: an account that an interrupted
approval already created for this very request (same username, password
hash and center) is adopted on retry instead of duplicated.
"""
from datetime import datetime
from typing import List, NamedTuple, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shopdesk.errors import Conflict, NotFound, ValidationError
from shopdesk.middleware.monitoring import record_account_request_event
from shopdesk.models.admin_request import (
    REQUEST_APPROVED,
    REQUEST_PENDING,
    REQUEST_REJECTED,
    AdminRequest,
)
from shopdesk.models.admin_user import AdminUser
from shopdesk.models.center import Center
from shopdesk.utils.logger import logger
from shopdesk.utils.passwords import hash_password
from shopdesk.utils.webhook import send_webhook

ACTION_APPROVE = "approve"
ACTION_REJECT = "reject"

REQUEST_STATUSES = (REQUEST_PENDING, REQUEST_APPROVED, REQUEST_REJECTED)


class Decision(NamedTuple):
    """Outcome of :func:`decide`. ``user`` is set for approvals only."""
    request: AdminRequest
    user: Optional[AdminUser] = None


def _find_user_by_username(db: Session, username: str) -> Optional[AdminUser]:
    return db.query(AdminUser).filter(AdminUser.username == username).first()


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

def submit(db: Session, center_name: str, username: str, password: str) -> AdminRequest:
    """Record a pending account request.

    The password is hashed before the row is built; plaintext is never stored.

    Raises:
        ValidationError: if any field is empty.
        Conflict: if an account with this username already exists.
    """
    center_name = (center_name or "").strip()
    username = (username or "").strip()
    password = password or ""

    if not center_name or not username or not password:
        raise ValidationError("Center name, username and password are required.")

    if _find_user_by_username(db, username) is not None:
        raise Conflict("This username is already in use.")

    request = AdminRequest(
        username=username,
        password_hash=hash_password(password),
        center_name=center_name,
        status=REQUEST_PENDING,
    )
    db.add(request)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(request)

    logger.info(f"Account request submitted: {request.id}", extra={"action": "account_request.submitted"})
    record_account_request_event("submitted")
    send_webhook("account_request.submitted", {
        "request_id": request.id,
        "username": request.username,
        "center_name": request.center_name,
    })
    return request


def list_requests(db: Session, status: Optional[str] = None) -> List[AdminRequest]:
    """Requests newest first, optionally filtered by status"""
    query = db.query(AdminRequest)
    if status:
        if status not in REQUEST_STATUSES:
            raise ValidationError("status must be one of: pending, approved, rejected")
        query = query.filter(AdminRequest.status == status)
    return query.order_by(AdminRequest.requested_at.desc()).all()


# ---------------------------------------------------------------------------
# Decision
# ---------------------------------------------------------------------------

def decide(
    db: Session,
    request_id: str,
    action: str,
    center_id: Optional[str],
    decided_by: Optional[str],
) -> Decision:
    """Approve or reject a pending request.

    Only super-admins reach this function (enforced by the route's guard).

    Raises:
        NotFound: unknown request id.
        Conflict: request is no longer pending, username taken, or a
            concurrent decision won.
        ValidationError: unknown action, or approve without a valid center.
    """
    action = (action or "").strip().lower()

    request = db.query(AdminRequest).filter(AdminRequest.id == request_id).first()
    if request is None:
        raise NotFound(f"Account request {request_id} not found")

    if request.status != REQUEST_PENDING:
        raise Conflict(f"Account request is already {request.status}.")

    if action == ACTION_APPROVE:
        return _approve(db, request, (center_id or "").strip(), decided_by)
    if action == ACTION_REJECT:
        return _reject(db, request, decided_by)

    raise ValidationError("action must be 'approve' or 'reject'.")


def _close_request(db: Session, request: AdminRequest, values: dict) -> None:
    """Conditional pending -> terminal update; raises Conflict if another decision won."""
    updated = (
        db.query(AdminRequest)
        .filter(AdminRequest.id == request.id, AdminRequest.status == REQUEST_PENDING)
        .update(values, synchronize_session=False)
    )
    if updated != 1:
        raise Conflict("Account request was decided by someone else.")


def _approve(db: Session, request: AdminRequest, center_id: str, decided_by: Optional[str]) -> Decision:
    if not center_id:
        raise ValidationError("Select a center to approve this request.")

    if db.query(Center).filter(Center.id == center_id).first() is None:
        raise ValidationError(f"Unknown center: {center_id}")

    # Uniqueness check completes before any insert is issued
    user = _find_user_by_username(db, request.username)
    if user is not None:
        leftover = (
            user.password_hash == request.password_hash
            and user.center_id == center_id
            and user.is_active
        )
        if not leftover:
            raise Conflict("This username is already in use.")
        logger.warning(
            f"Adopting account {user.id} left by an interrupted approval of {request.id}",
            extra={"user_id": user.id, "center_id": center_id, "action": "account_request.recover"},
        )
    else:
        # Reuse the hash taken at submission; no plaintext round-trip, no re-hash
        user = AdminUser(
            username=request.username,
            password_hash=request.password_hash,
            center_id=center_id,
            is_active=True,
            is_superadmin=False,
        )
        db.add(user)

    try:
        db.flush()
        _close_request(db, request, {
            "status": REQUEST_APPROVED,
            "approved_at": datetime.utcnow(),
            "approved_by": decided_by,
            "center_id": center_id,
        })
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("This username is already in use.")
    except (Conflict, SQLAlchemyError):
        db.rollback()
        raise

    db.refresh(request)
    db.refresh(user)

    logger.info(
        f"Account request approved: {request.id}",
        extra={"user_id": user.id, "center_id": center_id, "action": "account_request.approved"},
    )
    record_account_request_event("approved")
    send_webhook("account_request.approved", {
        "request_id": request.id,
        "username": request.username,
        "center_id": center_id,
        "decided_by": decided_by,
    })
    return Decision(request=request, user=user)


def _reject(db: Session, request: AdminRequest, decided_by: Optional[str]) -> Decision:
    try:
        _close_request(db, request, {
            "status": REQUEST_REJECTED,
            "approved_at": datetime.utcnow(),
            "approved_by": decided_by,
        })
        db.commit()
    except (Conflict, SQLAlchemyError):
        db.rollback()
        raise

    db.refresh(request)

    logger.info(f"Account request rejected: {request.id}", extra={"action": "account_request.rejected"})
    record_account_request_event("rejected")
    send_webhook("account_request.rejected", {
        "request_id": request.id,
        "username": request.username,
        "decided_by": decided_by,
    })
    return Decision(request=request)
