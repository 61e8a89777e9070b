"""Receipt schemas"""
import re
from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator, Field, field_validator

PHONE_PATTERN = re.compile(r"^0\d{1,2}-?\d{3,4}-?\d{4}$")


def _check_phone(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    if not value:
        return None
    if not PHONE_PATTERN.match(value):
        raise ValueError("phone number format is invalid")
    return value


PhoneNumber = Annotated[Optional[str], BeforeValidator(_check_phone)]


def normalize_vehicle_number(value: str) -> str:
    """Uppercase and strip all whitespace so lookups match however it was typed"""
    return re.sub(r"\s+", "", value or "").upper()


class ReceiptCreate(BaseModel):
    """Submitted fields of a receipt or service ticket; photos are uploaded separately"""

    vehicle_name: str = Field(..., min_length=1)
    vehicle_number: str = Field(..., min_length=1)
    mileage_km: int = Field(..., ge=0)
    customer_name: Optional[str] = None
    phone: PhoneNumber = None
    purchase_date: Optional[date] = None
    symptom: Optional[str] = None
    service_detail: Optional[str] = None

    @field_validator("vehicle_number")
    @classmethod
    def _normalize_number(cls, value: str) -> str:
        normalized = normalize_vehicle_number(value)
        if not normalized:
            raise ValueError("vehicle_number is required")
        return normalized


class ReceiptUpdate(BaseModel):
    """Partial update; ``delete_*_image`` drops the stored object as well"""

    vehicle_name: Optional[str] = Field(None, min_length=1)
    vehicle_number: Optional[str] = Field(None, min_length=1)
    mileage_km: Optional[int] = Field(None, ge=0)
    customer_name: Optional[str] = None
    phone: PhoneNumber = None
    purchase_date: Optional[date] = None
    symptom: Optional[str] = None
    service_detail: Optional[str] = None
    delete_vin_image: bool = False
    delete_engine_image: bool = False

    @field_validator("vehicle_number")
    @classmethod
    def _normalize_number(cls, value: Optional[str]) -> Optional[str]:
        return normalize_vehicle_number(value) if value is not None else None


class ReceiptResponse(BaseModel):
    id: str
    center_id: str
    vehicle_name: str
    vehicle_number: str
    mileage_km: int
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    purchase_date: Optional[date] = None
    symptom: Optional[str] = None
    service_detail: Optional[str] = None
    vin_image_url: Optional[str] = None
    engine_image_url: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
