"""Session endpoints: login, legacy code login, logout, current principal"""
import hmac

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session

from shopdesk.api.deps import Principal, require_admin
from shopdesk.config import settings
from shopdesk.database import get_db
from shopdesk.errors import ConfigurationError, Unauthenticated, ValidationError
from shopdesk.middleware.monitoring import get_request_id, record_auth_failure
from shopdesk.middleware.rate_limit import get_rate_limit, limiter
from shopdesk.models.admin_user import AdminUser
from shopdesk.schemas.admin_user import CodeLoginRequest, LoginRequest, SessionUser
from shopdesk.schemas.common import Envelope, MessageResponse
from shopdesk.utils.logger import logger
from shopdesk.utils.passwords import verify_password
from shopdesk.utils.session_tokens import TokenService, get_token_service

router = APIRouter(prefix="/admin", tags=["session"])


def _set_session_cookie(response: Response, token: str, max_age: int) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
    )


def _clear_session_cookie(response: Response) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value="",
        max_age=0,
        expires=0,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
    )


@router.post("/login", response_model=Envelope[SessionUser])
@limiter.limit(get_rate_limit("login"))
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    """
    Sign in with email or username and password.

    Sets the ``admin_session`` cookie. Unknown user, inactive user and wrong
    password all produce the same 401.
    """
    request_id = get_request_id(request)
    identifier = body.identifier.strip()
    if not identifier or not body.password:
        raise ValidationError("Enter your username (or email) and password.")

    candidates = (
        db.query(AdminUser)
        .filter(or_(AdminUser.email == identifier, AdminUser.username == identifier))
        .all()
    )
    user = next(
        (u for u in candidates if u.is_active and verify_password(body.password, u.password_hash)),
        None,
    )
    if user is None:
        record_auth_failure("bad_credentials")
        logger.info("Login refused", extra={"request_id": request_id, "action": "login"})
        raise Unauthenticated("Invalid username or password.")

    token = tokens.issue(user_id=user.id, center_id=user.center_id, remember=body.remember)
    _set_session_cookie(response, token, tokens.ttl_for(body.remember))

    logger.info(
        f"Admin signed in: {user.id}",
        extra={"request_id": request_id, "user_id": user.id, "center_id": user.center_id, "action": "login"},
    )
    return {
        "requestId": request_id,
        "data": SessionUser(
            id=user.id,
            email=user.email,
            username=user.username,
            center_id=user.center_id,
            is_superadmin=bool(user.is_superadmin),
        ),
    }


@router.post("/auth", response_model=MessageResponse)
@limiter.limit(get_rate_limit("code_login"))
def code_login(
    request: Request,
    response: Response,
    body: CodeLoginRequest,
    tokens: TokenService = Depends(get_token_service),
):
    """
    Legacy bootstrap login with the shared ``ADMIN_CODE``.

    The resulting session has no user and no center, so every tenant-scoped
    route refuses it; it only passes the plain admin check.
    """
    request_id = get_request_id(request)
    if not settings.ADMIN_CODE:
        raise ConfigurationError("ADMIN_CODE is not set")

    if not body.code or not hmac.compare_digest(body.code.encode(), settings.ADMIN_CODE.encode()):
        record_auth_failure("bad_code")
        raise Unauthenticated("The code is not valid.")

    token = tokens.issue_legacy()
    _set_session_cookie(response, token, tokens.ttl_for(False))

    logger.info("Legacy code session issued", extra={"request_id": request_id, "action": "code_login"})
    return {"requestId": request_id, "message": "Authenticated."}


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request, response: Response):
    """Overwrite the session cookie with an empty, already-expired value."""
    _clear_session_cookie(response)
    return {"requestId": get_request_id(request), "message": "Signed out."}


@router.get("/me", response_model=Envelope[SessionUser])
def me(request: Request, principal: Principal = Depends(require_admin)):
    """Return the signed-in principal."""
    return {
        "requestId": get_request_id(request),
        "data": SessionUser(
            id=principal.id,
            email=principal.email,
            username=principal.username,
            center_id=principal.center_id,
            is_superadmin=principal.is_superadmin,
        ),
    }
