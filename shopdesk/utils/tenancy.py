"""Tenant scoping helpers.

Any read or write an ``admin`` principal performs against a tenant-owned
table must be filtered by ``center_id == principal.center_id``; super-admins
are exempt. The database layer has no notion of tenants, so every call site
that touches a tenant-owned table goes through one of these helpers.

Lookups by id always use the compound ``(id, center_id)`` key: a row owned by
another center is reported as *not found*, never as *forbidden*, so ids from
other tenants cannot be enumerated.
"""
from typing import Optional, Type, TypeVar

from sqlalchemy.orm import Query, Session

from shopdesk.api.deps import Principal
from shopdesk.config import settings
from shopdesk.errors import Forbidden, NotFound, ValidationError
from shopdesk.models.center import Center
from shopdesk.utils.logger import logger

ModelT = TypeVar("ModelT")

FALLBACK_DEFAULT_CENTER_CODE = "default"


def require_center(principal: Principal) -> Optional[str]:
    """Return the center an admin is confined to, or None for a super-admin.

    Raises:
        Forbidden: for an admin principal without a center (legacy
            shared-code session). No default tenant is guessed.
    """
    if principal.is_superadmin:
        return None
    if not principal.center_id:
        raise Forbidden("This session is not bound to a center.")
    return principal.center_id


def scope_query(query: Query, model: Type[ModelT], principal: Principal) -> Query:
    """Restrict ``query`` to rows of the principal's center"""
    center_id = require_center(principal)
    if center_id is None:
        return query
    return query.filter(model.center_id == center_id)


def get_owned_or_404(db: Session, model: Type[ModelT], object_id: str, principal: Principal) -> ModelT:
    """Load one tenant-owned row by ``(id, center_id)``.

    Raises:
        NotFound: if the row does not exist or belongs to another center.
        Forbidden: for a center-less admin session.
    """
    query = scope_query(db.query(model).filter(model.id == object_id), model, principal)
    row = query.first()
    if row is None:
        raise NotFound(f"{model.__name__} {object_id} not found")
    return row


def center_for_write(db: Session, principal: Principal, requested_center_id: Optional[str] = None) -> str:
    """Pick the center a new tenant-owned row is written into.

    Admins always write into their own center, whatever they asked for.
    Super-admins may target any existing center and default to their own.
    """
    center_id = require_center(principal)
    if center_id is not None:
        return center_id

    target = requested_center_id or principal.center_id
    if not target:
        raise ValidationError("center_id is required.")
    if db.query(Center).filter(Center.id == target).first() is None:
        raise ValidationError(f"Unknown center: {target}")
    return target


def get_center_id_by_code(db: Session, code: str) -> Optional[str]:
    center = db.query(Center).filter(Center.code == code).first()
    return center.id if center else None


def resolve_center_id(
    db: Session,
    principal_center_id: Optional[str] = None,
    center_code: Optional[str] = None,
) -> Optional[str]:
    """Choose the center for a public submission.

    Order: the caller's own center, the ``center`` code supplied with the
    request, ``DEFAULT_CENTER_CODE``, the only center that is not the
    placeholder ``default`` one, the ``default`` center, the oldest center.
    """
    if principal_center_id:
        return principal_center_id

    code = (center_code or "").strip()
    if code:
        by_param = get_center_id_by_code(db, code)
        if by_param:
            return by_param
        logger.info("Unknown center code on public submission", extra={"action": "resolve_center"})

    default_code = (settings.DEFAULT_CENTER_CODE or "").strip()
    if default_code:
        by_default = get_center_id_by_code(db, default_code)
        if by_default:
            return by_default

    centers = db.query(Center).order_by(Center.created_at.asc()).all()
    non_default = [c for c in centers if c.code != FALLBACK_DEFAULT_CENTER_CODE]
    if len(non_default) == 1:
        return non_default[0].id

    by_fallback = get_center_id_by_code(db, FALLBACK_DEFAULT_CENTER_CODE)
    if by_fallback:
        return by_fallback

    return centers[0].id if centers else None
