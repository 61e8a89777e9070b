"""Inquiry schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from shopdesk.schemas.receipt import PHONE_PATTERN

NOTE_PREVIEW_LENGTH = 30


class InquiryCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)

    @field_validator("customer_name", "content", "phone", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        if not PHONE_PATTERN.match(value):
            raise ValueError("phone number format is invalid")
        return value


class InquiryUpdate(BaseModel):
    """Only the fields present in the body are applied"""

    contacted: Optional[bool] = None
    note: Optional[str] = None


class InquirySummary(BaseModel):
    """List row: the note is reduced to a flag and a short preview"""

    id: str
    center_id: str
    customer_name: str
    phone: str
    contacted: bool
    note_exists: bool = False
    note_preview: str = ""
    created_at: datetime

    @classmethod
    def from_row(cls, inquiry) -> "InquirySummary":
        note = (inquiry.note or "").strip()
        return cls(
            id=inquiry.id,
            center_id=inquiry.center_id,
            customer_name=inquiry.customer_name,
            phone=inquiry.phone,
            contacted=inquiry.contacted,
            note_exists=bool(note),
            note_preview=note[:NOTE_PREVIEW_LENGTH],
            created_at=inquiry.created_at,
        )


class InquiryResponse(BaseModel):
    id: str
    center_id: str
    customer_name: str
    phone: str
    content: str
    contacted: bool
    note: Optional[str] = None
    note_updated_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
