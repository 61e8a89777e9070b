"""Signed URL endpoint for private media"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from shopdesk.api.deps import Principal, require_admin
from shopdesk.errors import SigningError, ValidationError
from shopdesk.middleware.monitoring import get_request_id, record_signed_url
from shopdesk.utils.logger import logger
from shopdesk.utils.storage import StorageClient, get_storage_client, parse_expires_in

router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("/signed-url")
def get_signed_url(
    request: Request,
    bucket: Optional[str] = Query(None),
    path: Optional[str] = Query(None),
    expires_in: Optional[str] = Query(None, alias="expiresIn"),
    principal: Principal = Depends(require_admin),
    storage: StorageClient = Depends(get_storage_client),
):
    """
    Exchange ``bucket`` + ``path`` for a short-lived signed URL.

    ``expiresIn`` is in seconds; missing or unusable values fall back to the
    default and large values are capped.
    """
    request_id = get_request_id(request)
    bucket = (bucket or "").strip()
    path = (path or "").strip()
    if not bucket or not path:
        raise ValidationError("bucket and path are required.")

    expires = parse_expires_in(expires_in)
    try:
        signed_url = storage.create_signed_url(bucket, path, expires)
    except SigningError:
        record_signed_url("failed")
        logger.error(
            "Signed URL could not be issued",
            extra={"request_id": request_id, "user_id": principal.id, "bucket": bucket},
        )
        raise

    record_signed_url("issued")
    logger.info(
        "Signed URL issued",
        extra={"request_id": request_id, "user_id": principal.id, "bucket": bucket},
    )
    return {"requestId": request_id, "signedUrl": signed_url, "expiresIn": expires}
