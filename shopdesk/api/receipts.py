"""Receipt endpoints: public submission and tenant-scoped management"""
from typing import List, Optional

import pydantic
from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopdesk.api.deps import Principal, authenticate, require_admin
from shopdesk.database import get_db
from shopdesk.errors import ValidationError
from shopdesk.middleware.monitoring import get_request_id
from shopdesk.middleware.rate_limit import get_rate_limit, limiter
from shopdesk.models.receipt import Receipt
from shopdesk.schemas.common import Envelope, ListEnvelope
from shopdesk.schemas.receipt import ReceiptCreate, ReceiptResponse, ReceiptUpdate, normalize_vehicle_number
from shopdesk.services.media import IMAGE_FIELDS, remove_images, sign_images, store_images
from shopdesk.utils.logger import logger
from shopdesk.utils.session_tokens import TokenService, get_token_service
from shopdesk.utils.storage import StorageClient, get_storage_client
from shopdesk.utils.tenancy import get_owned_or_404, resolve_center_id, scope_query

router = APIRouter(prefix="/receipts", tags=["receipts"])


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def vehicle_form(
    vehicle_name: str = Form(""),
    vehicle_number: str = Form(""),
    mileage_km: str = Form(""),
    customer_name: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    purchase_date: Optional[str] = Form(None),
    symptom: Optional[str] = Form(None),
    service_detail: Optional[str] = Form(None),
) -> ReceiptCreate:
    """Multipart form fields of a receipt or service ticket submission"""
    missing = [
        name for name, value in (
            ("vehicle_name", vehicle_name), ("vehicle_number", vehicle_number), ("mileage_km", mileage_km),
        )
        if not value.strip()
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    try:
        return ReceiptCreate(
            vehicle_name=vehicle_name.strip(),
            vehicle_number=vehicle_number,
            mileage_km=mileage_km.strip(),
            customer_name=_optional(customer_name),
            phone=_optional(phone),
            purchase_date=_optional(purchase_date),
            symptom=_optional(symptom),
            service_detail=_optional(service_detail),
        )
    except pydantic.ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise ValidationError(f"Invalid fields: {', '.join(fields)}") from exc


def apply_update(row, data: ReceiptUpdate) -> List[str]:
    """Apply a partial update to a receipt or ticket; return the image URLs it dropped"""
    updates = data.model_dump(exclude_unset=True, exclude={"delete_vin_image", "delete_engine_image"})
    for field in ("vehicle_name", "vehicle_number", "mileage_km"):
        if field in updates and updates[field] is None:
            raise ValidationError(f"{field} cannot be empty.")
    for field, value in updates.items():
        setattr(row, field, value)

    removed = []
    if data.delete_vin_image and row.vin_image_url:
        removed.append(row.vin_image_url)
        row.vin_image_url = None
    if data.delete_engine_image and row.engine_image_url:
        removed.append(row.engine_image_url)
        row.engine_image_url = None
    return removed


def _signed(receipt: Receipt, storage: StorageClient) -> ReceiptResponse:
    return sign_images(ReceiptResponse.model_validate(receipt), storage, receipt.center_id)


@router.post("", response_model=Envelope[ReceiptResponse], status_code=201)
@limiter.limit(get_rate_limit("receipt_submit"))
def submit_receipt(
    request: Request,
    data: ReceiptCreate = Depends(vehicle_form),
    vin_image: Optional[UploadFile] = File(None),
    engine_image: Optional[UploadFile] = File(None),
    center: Optional[str] = Query(None, description="Center code"),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    storage: StorageClient = Depends(get_storage_client),
):
    """
    Register a receipt. No session required.

    A logged-in admin's receipt lands in their own center; anonymous
    submissions go to the center picked by ``resolve_center_id``. Photos
    are uploaded here, under the chosen center's prefix; image URLs are
    never taken from the client.
    """
    request_id = get_request_id(request)
    principal = authenticate(request, db, tokens)
    center_id = resolve_center_id(
        db,
        principal_center_id=principal.center_id if principal else None,
        center_code=center,
    )
    if not center_id:
        raise ValidationError("No center is available for this submission.")

    images = store_images(storage, center_id, request_id, vin_image=vin_image, engine_image=engine_image)
    receipt = Receipt(center_id=center_id, **data.model_dump(), **images)
    db.add(receipt)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        remove_images(storage, [u for u in images.values() if u], center_id, request_id)
        raise
    db.refresh(receipt)

    logger.info(
        f"Receipt submitted: {receipt.id}",
        extra={"request_id": request_id, "center_id": center_id, "action": "receipt.submitted"},
    )
    return {"requestId": request_id, "data": ReceiptResponse.model_validate(receipt)}


@router.get("", response_model=ListEnvelope[ReceiptResponse])
def list_receipts(
    request: Request,
    vehicle_number: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    """List receipts of the caller's center, newest first."""
    query = scope_query(db.query(Receipt), Receipt, principal)
    if vehicle_number:
        query = query.filter(Receipt.vehicle_number == normalize_vehicle_number(vehicle_number))
    receipts = query.order_by(Receipt.created_at.desc()).offset(offset).limit(limit).all()
    return {
        "requestId": get_request_id(request),
        "data": [ReceiptResponse.model_validate(r) for r in receipts],
    }


@router.get("/{receipt_id}", response_model=Envelope[ReceiptResponse])
def get_receipt(
    receipt_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
    storage: StorageClient = Depends(get_storage_client),
):
    """Receipt detail with image URLs exchanged for signed ones."""
    receipt = get_owned_or_404(db, Receipt, receipt_id, principal)
    return {"requestId": get_request_id(request), "data": _signed(receipt, storage)}


@router.patch("/{receipt_id}", response_model=Envelope[ReceiptResponse])
def update_receipt(
    receipt_id: str,
    request: Request,
    data: ReceiptUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
    storage: StorageClient = Depends(get_storage_client),
):
    """Update a receipt of the caller's center."""
    request_id = get_request_id(request)
    receipt = get_owned_or_404(db, Receipt, receipt_id, principal)

    removed = apply_update(receipt, data)
    db.commit()
    db.refresh(receipt)
    remove_images(storage, removed, receipt.center_id, request_id)

    logger.info(
        f"Receipt updated: {receipt_id}",
        extra={"request_id": request_id, "user_id": principal.id, "center_id": receipt.center_id},
    )
    return {"requestId": request_id, "data": _signed(receipt, storage)}


@router.delete("/{receipt_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_receipt(
    receipt_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
    storage: StorageClient = Depends(get_storage_client),
):
    """Delete a receipt of the caller's center and its stored images."""
    request_id = get_request_id(request)
    receipt = get_owned_or_404(db, Receipt, receipt_id, principal)
    images = [getattr(receipt, field) for field in IMAGE_FIELDS if getattr(receipt, field)]
    center_id = receipt.center_id

    db.delete(receipt)
    db.commit()
    remove_images(storage, images, center_id, request_id)

    logger.info(
        f"Receipt deleted: {receipt_id}",
        extra={"request_id": request_id, "user_id": principal.id, "center_id": principal.center_id},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
