"""Admin user and center endpoints"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopdesk.api.deps import Principal, require_admin, require_super_admin
from shopdesk.database import get_db
from shopdesk.errors import Conflict, NotFound, ValidationError
from shopdesk.middleware.monitoring import get_request_id
from shopdesk.models.admin_user import AdminUser
from shopdesk.models.center import Center
from shopdesk.schemas.admin_user import AdminUserCreate, AdminUserResponse, AdminUserUpdate, CenterResponse
from shopdesk.schemas.common import Envelope, ListEnvelope, MessageResponse
from shopdesk.utils.logger import logger
from shopdesk.utils.passwords import hash_password
from shopdesk.utils.tenancy import center_for_write, require_center, scope_query

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Admin users
# ---------------------------------------------------------------------------

@router.get("/users", response_model=ListEnvelope[AdminUserResponse])
def list_admin_users(
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    """List the admin users of the caller's center (every center for super-admins)."""
    query = scope_query(db.query(AdminUser), AdminUser, principal)
    users = query.order_by(AdminUser.created_at.desc()).all()
    return {
        "requestId": get_request_id(request),
        "data": [AdminUserResponse.model_validate(u) for u in users],
    }


@router.post("/users", response_model=Envelope[AdminUserResponse], status_code=201)
def create_admin_user(
    request: Request,
    data: AdminUserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    """
    Create an admin user.

    Tenant admins always create users in their own center; super-admins may
    pass ``center_id``. New users are never super-admins.
    """
    center_id = center_for_write(db, principal, data.center_id)

    clauses = []
    if data.username:
        clauses.append(AdminUser.username == data.username)
    if data.email:
        clauses.append(AdminUser.email == data.email)
    if db.query(AdminUser).filter(or_(*clauses)).first() is not None:
        raise Conflict("This username or email is already in use.")

    user = AdminUser(
        email=data.email,
        username=data.username,
        password_hash=hash_password(data.password),
        center_id=center_id,
        is_active=True,
        is_superadmin=False,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("This username or email is already in use.")
    db.refresh(user)

    logger.info(
        f"Created admin user: {user.id}",
        extra={"request_id": get_request_id(request), "user_id": user.id, "center_id": center_id},
    )
    return {"requestId": get_request_id(request), "data": AdminUserResponse.model_validate(user)}


@router.patch("/users/{user_id}", response_model=Envelope[AdminUserResponse])
def update_admin_user(
    user_id: str,
    request: Request,
    data: AdminUserUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
):
    """Reset a password or change the super-admin / active flags (super-admin only)."""
    user = db.query(AdminUser).filter(AdminUser.id == user_id).first()
    if not user:
        raise NotFound(f"Admin user {user_id} not found")

    changed = False
    if data.password:
        user.password_hash = hash_password(data.password)
        changed = True
    if data.is_superadmin is not None:
        user.is_superadmin = data.is_superadmin
        changed = True
    if data.is_active is not None:
        user.is_active = data.is_active
        changed = True

    if not changed:
        raise ValidationError("Nothing to update.")

    db.commit()
    db.refresh(user)

    logger.info(
        f"Updated admin user: {user_id}",
        extra={"request_id": get_request_id(request), "user_id": principal.id, "action": "update_user"},
    )
    return {"requestId": get_request_id(request), "data": AdminUserResponse.model_validate(user)}


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_admin_user(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_super_admin),
):
    """Delete an admin user (super-admin only)."""
    user = db.query(AdminUser).filter(AdminUser.id == user_id).first()
    if not user:
        raise NotFound(f"Admin user {user_id} not found")

    db.delete(user)
    db.commit()

    logger.info(
        f"Deleted admin user: {user_id}",
        extra={"request_id": get_request_id(request), "user_id": principal.id, "action": "delete_user"},
    )
    return {"requestId": get_request_id(request), "message": "Deleted."}


# ---------------------------------------------------------------------------
# Centers
# ---------------------------------------------------------------------------

@router.get("/centers", response_model=ListEnvelope[CenterResponse])
def list_own_centers(
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    """The caller's own center (every center for super-admins)."""
    query = db.query(Center)
    center_id = require_center(principal)
    if center_id is not None:
        query = query.filter(Center.id == center_id)
    centers = query.order_by(Center.name.asc()).all()
    return {"requestId": get_request_id(request), "data": [CenterResponse.model_validate(c) for c in centers]}


@router.get("/centers/all", response_model=ListEnvelope[CenterResponse])
def list_all_centers(
    request: Request,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_super_admin),
):
    """All centers, for the approval center picker (super-admin only)."""
    centers = db.query(Center).order_by(Center.name.asc()).all()
    return {"requestId": get_request_id(request), "data": [CenterResponse.model_validate(c) for c in centers]}
