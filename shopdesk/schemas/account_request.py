"""Account request schemas"""
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from shopdesk.schemas.admin_user import AdminUserResponse


class AccountRequestCreate(BaseModel):
    """Self-service submission. Emptiness is checked by the workflow, not here."""

    center_name: str = Field("", validation_alias=AliasChoices("center_name", "centerName"))
    username: str = ""
    password: str = ""


class AccountRequestDecision(BaseModel):
    action: str = Field("", description="approve | reject")
    center_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("center_id", "centerId"),
        description="Center to bind the new account to (required for approve)",
    )


class AccountRequestResponse(BaseModel):
    """An account request as shown to reviewers (never the password hash)"""

    id: str
    username: str
    center_name: str
    status: str                          # pending | approved | rejected
    requested_at: datetime
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    center_id: Optional[str] = None

    class Config:
        from_attributes = True


class AccountRequestDecisionResponse(BaseModel):
    requestId: str
    data: AccountRequestResponse
    user: Optional[AdminUserResponse] = None   # set on approve
