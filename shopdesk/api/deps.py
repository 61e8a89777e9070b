"""API dependencies for authentication and authorization.

Session extractor + authorization guard
---------------------------------------
Every protected route depends on :func:`require_admin` or
:func:`require_super_admin`. Both read the ``admin_session`` cookie, verify
it with the :class:`~shopdesk.utils.session_tokens.TokenService` and then
re-read the account row so that deactivation and super-admin changes apply
to the very next request. There is no ambient authentication state.

Outcomes:
    no principal                      -> 401 Unauthenticated
    principal, not super-admin        -> 403 Forbidden (super-admin routes only)

Every verification failure (expired, tampered, wrong role, unknown or
inactive user, database error during the lookup) collapses into "no
principal"; nothing about the cause reaches the client.
"""
from typing import NamedTuple, Optional

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopdesk.config import settings
from shopdesk.database import get_db
from shopdesk.errors import Forbidden, Unauthenticated
from shopdesk.middleware.monitoring import record_auth_failure
from shopdesk.models.admin_user import AdminUser
from shopdesk.utils.logger import logger
from shopdesk.utils.session_tokens import TokenService, get_token_service

ROLE_ADMIN = "admin"
ROLE_SUPERADMIN = "superadmin"


class Principal(NamedTuple):
    """Resolved identity for one request. Never persisted."""
    id: Optional[str]            # admin_users.id; None for the legacy shared-code session
    role: str                    # admin | superadmin
    center_id: Optional[str]     # tenant the principal is confined to
    username: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_superadmin(self) -> bool:
        return self.role == ROLE_SUPERADMIN


# ---------------------------------------------------------------------------
# Session extractor
# ---------------------------------------------------------------------------

def get_session_token(request: Request) -> Optional[str]:
    """Return the raw session cookie value, or None when absent/empty."""
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


# ---------------------------------------------------------------------------
# Guard (plain functions: return a principal or None, never raise)
# ---------------------------------------------------------------------------

def authenticate(request: Request, db: Session, tokens: TokenService) -> Optional[Principal]:
    """Resolve the request to a principal, or None."""
    token = get_session_token(request)
    if not token:
        return None

    verification = tokens.verify(token)
    if not verification.ok:
        record_auth_failure(verification.failure.value)
        return None

    claims = verification.claims
    if claims.user_id is None:
        # Legacy shared-code session: no identity, no tenant
        return Principal(id=None, role=ROLE_ADMIN, center_id=claims.center_id)

    try:
        user = db.query(AdminUser).filter(AdminUser.id == claims.user_id).first()
    except SQLAlchemyError:
        logger.error(
            "Admin lookup failed during authentication",
            extra={"request_id": getattr(request.state, "request_id", None), "user_id": claims.user_id},
            exc_info=True,
        )
        db.rollback()
        record_auth_failure("lookup_error")
        return None

    if user is None or not user.is_active:
        record_auth_failure("inactive_or_missing")
        return None

    return Principal(
        id=user.id,
        role=ROLE_SUPERADMIN if user.is_superadmin else ROLE_ADMIN,
        center_id=user.center_id,
        username=user.username,
        email=user.email,
    )


def authenticate_super_admin(request: Request, db: Session, tokens: TokenService) -> Optional[Principal]:
    """Like :func:`authenticate`, but only a current super-admin yields a principal."""
    principal = authenticate(request, db, tokens)
    if principal is None or not principal.is_superadmin:
        return None
    return principal


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

def require_admin(
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Principal:
    """Require any authenticated admin (tenant-admin or super-admin)."""
    principal = authenticate(request, db, tokens)
    if principal is None:
        raise Unauthenticated()
    request.state.principal = principal
    return principal


def require_super_admin(
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> Principal:
    """Require a super-admin. Logged-in tenant admins get 403, anonymous callers 401."""
    principal = authenticate(request, db, tokens)
    if principal is None:
        raise Unauthenticated()
    if not principal.is_superadmin:
        logger.info(
            "Super-admin route refused",
            extra={"request_id": getattr(request.state, "request_id", None), "user_id": principal.id},
        )
        raise Forbidden("Super-admin role required.")
    request.state.principal = principal
    return principal
