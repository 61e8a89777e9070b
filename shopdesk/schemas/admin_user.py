"""AdminUser, session and center schemas"""
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator


class LoginRequest(BaseModel):
    identifier: str = Field("", description="Email address or username")
    password: str = ""
    remember: bool = Field(False, description="Extend the session from 7 to 30 days")


class CodeLoginRequest(BaseModel):
    """Legacy bootstrap login with the shared ADMIN_CODE"""
    code: str = ""


class AdminUserCreate(BaseModel):
    email: Optional[str] = Field(None, description="Login email (email or username required)")
    username: Optional[str] = Field(None, description="Login username (email or username required)")
    password: str = Field(..., min_length=1)
    center_id: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("center_id", "centerId"),
        description="Target center; honoured for super-admins only",
    )

    @model_validator(mode="after")
    def _require_login_name(self):
        self.email = (self.email or "").strip() or None
        self.username = (self.username or "").strip() or None
        if not self.email and not self.username:
            raise ValueError("email or username is required")
        return self


class AdminUserUpdate(BaseModel):
    password: Optional[str] = None
    is_superadmin: Optional[bool] = Field(None, validation_alias=AliasChoices("is_superadmin", "isSuperadmin"))
    is_active: Optional[bool] = Field(None, validation_alias=AliasChoices("is_active", "isActive"))


class AdminUserResponse(BaseModel):
    """Public fields of an admin account (never the password hash)"""
    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    center_id: str
    is_active: bool
    is_superadmin: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SessionUser(BaseModel):
    """The signed-in principal as shown to the client"""
    id: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    center_id: Optional[str] = None
    is_superadmin: bool = False


class CenterResponse(BaseModel):
    id: str
    name: str
    code: str

    class Config:
        from_attributes = True
