"""After-sales (A/S) ticket endpoints; same lifecycle as receipts"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopdesk.api.deps import Principal, authenticate, require_admin
from shopdesk.api.receipts import apply_update, vehicle_form
from shopdesk.database import get_db
from shopdesk.errors import ValidationError
from shopdesk.middleware.monitoring import get_request_id
from shopdesk.middleware.rate_limit import get_rate_limit, limiter
from shopdesk.models.service_ticket import ServiceTicket
from shopdesk.schemas.common import Envelope, ListEnvelope
from shopdesk.schemas.receipt import ReceiptCreate, normalize_vehicle_number
from shopdesk.schemas.service_ticket import ServiceTicketResponse, ServiceTicketUpdate
from shopdesk.services.media import IMAGE_FIELDS, remove_images, sign_images, store_images
from shopdesk.utils.logger import logger
from shopdesk.utils.session_tokens import TokenService, get_token_service
from shopdesk.utils.storage import StorageClient, get_storage_client
from shopdesk.utils.tenancy import get_owned_or_404, resolve_center_id, scope_query

router = APIRouter(prefix="/service-tickets", tags=["service-tickets"])

MEDIA_PREFIX = "as/"


def _signed(ticket: ServiceTicket, storage: StorageClient) -> ServiceTicketResponse:
    return sign_images(ServiceTicketResponse.model_validate(ticket), storage, ticket.center_id)


@router.post("", response_model=Envelope[ServiceTicketResponse], status_code=201)
@limiter.limit(get_rate_limit("service_ticket_submit"))
def submit_service_ticket(
    request: Request,
    data: ReceiptCreate = Depends(vehicle_form),
    vin_image: Optional[UploadFile] = File(None),
    engine_image: Optional[UploadFile] = File(None),
    center: Optional[str] = Query(None, description="Center code"),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    storage: StorageClient = Depends(get_storage_client),
):
    """Register an A/S ticket. No session required."""
    request_id = get_request_id(request)
    principal = authenticate(request, db, tokens)
    center_id = resolve_center_id(
        db,
        principal_center_id=principal.center_id if principal else None,
        center_code=center,
    )
    if not center_id:
        raise ValidationError("No center is available for this submission.")

    images = store_images(
        storage, center_id, request_id, prefix=MEDIA_PREFIX, vin_image=vin_image, engine_image=engine_image
    )
    ticket = ServiceTicket(center_id=center_id, **data.model_dump(), **images)
    db.add(ticket)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        remove_images(storage, [u for u in images.values() if u], center_id, request_id)
        raise
    db.refresh(ticket)

    logger.info(
        f"Service ticket submitted: {ticket.id}",
        extra={"request_id": request_id, "center_id": center_id, "action": "service_ticket.submitted"},
    )
    return {"requestId": request_id, "data": ServiceTicketResponse.model_validate(ticket)}


@router.get("", response_model=ListEnvelope[ServiceTicketResponse])
def list_service_tickets(
    request: Request,
    vehicle_number: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
):
    query = scope_query(db.query(ServiceTicket), ServiceTicket, principal)
    if vehicle_number:
        query = query.filter(ServiceTicket.vehicle_number == normalize_vehicle_number(vehicle_number))
    tickets = query.order_by(ServiceTicket.created_at.desc()).offset(offset).limit(limit).all()
    return {
        "requestId": get_request_id(request),
        "data": [ServiceTicketResponse.model_validate(t) for t in tickets],
    }


@router.get("/{ticket_id}", response_model=Envelope[ServiceTicketResponse])
def get_service_ticket(
    ticket_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
    storage: StorageClient = Depends(get_storage_client),
):
    ticket = get_owned_or_404(db, ServiceTicket, ticket_id, principal)
    return {"requestId": get_request_id(request), "data": _signed(ticket, storage)}


@router.patch("/{ticket_id}", response_model=Envelope[ServiceTicketResponse])
def update_service_ticket(
    ticket_id: str,
    request: Request,
    data: ServiceTicketUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
    storage: StorageClient = Depends(get_storage_client),
):
    request_id = get_request_id(request)
    ticket = get_owned_or_404(db, ServiceTicket, ticket_id, principal)

    removed = apply_update(ticket, data)
    db.commit()
    db.refresh(ticket)
    remove_images(storage, removed, ticket.center_id, request_id)

    logger.info(
        f"Service ticket updated: {ticket_id}",
        extra={"request_id": request_id, "user_id": principal.id, "center_id": ticket.center_id},
    )
    return {"requestId": request_id, "data": _signed(ticket, storage)}


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service_ticket(
    ticket_id: str,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
    storage: StorageClient = Depends(get_storage_client),
):
    request_id = get_request_id(request)
    ticket = get_owned_or_404(db, ServiceTicket, ticket_id, principal)
    images = [getattr(ticket, field) for field in IMAGE_FIELDS if getattr(ticket, field)]
    center_id = ticket.center_id

    db.delete(ticket)
    db.commit()
    remove_images(storage, images, center_id, request_id)

    logger.info(
        f"Service ticket deleted: {ticket_id}",
        extra={"request_id": request_id, "user_id": principal.id, "center_id": center_id},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
