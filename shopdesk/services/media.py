"""Vehicle photos attached to receipts and service tickets.

Uploads are stored server-side under ``<center_id>/<kind>/``; the row keeps
the object URL. Reads and deletes only act on references inside the row's
own center prefix (see :func:`shopdesk.utils.storage.owned_storage_ref`).
"""
import re
import uuid
from typing import List, Optional

from fastapi import UploadFile

from shopdesk.config import settings
from shopdesk.errors import PayloadTooLarge, ShopDeskError, StorageError, ValidationError
from shopdesk.utils.logger import logger
from shopdesk.utils.storage import StorageClient, owned_storage_ref, sign_or_fallback

_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9._-]+")

IMAGE_FIELDS = ("vin_image_url", "engine_image_url")


def _safe_filename(filename: Optional[str]) -> str:
    name = (filename or "").replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_NAME.sub("_", name).strip("._")
    return name[:100] or "image"


def _read_upload(file: UploadFile) -> bytes:
    total = 0
    chunks = []
    while True:
        chunk = file.file.read(1024 * 1024)
        if not chunk:
            break
        total += len(chunk)
        if settings.MAX_UPLOAD_BYTES and total > settings.MAX_UPLOAD_BYTES:
            raise PayloadTooLarge()
        chunks.append(chunk)
    return b"".join(chunks)


def store_upload(storage: StorageClient, center_id: str, kind: str, file: Optional[UploadFile]) -> Optional[str]:
    """Upload one image for ``center_id`` and return its object URL.

    An absent or empty file field yields None.

    Raises:
        ValidationError: the file is not an image.
        PayloadTooLarge: the file exceeds ``MAX_UPLOAD_BYTES``.
        StorageError: the backend refused or timed out.
    """
    if file is None or not file.filename:
        return None
    if file.content_type and not file.content_type.startswith("image/"):
        raise ValidationError(f"{kind} must be an image.")

    content = _read_upload(file)
    if not content:
        return None
    path = f"{center_id}/{kind}/{uuid.uuid4()}-{_safe_filename(file.filename)}"
    return storage.upload(settings.STORAGE_MEDIA_BUCKET, path, content, file.content_type)


def store_images(
    storage: StorageClient,
    center_id: str,
    request_id: str,
    prefix: str = "",
    **files: Optional[UploadFile],
) -> dict:
    """Upload ``vin_image`` and ``engine_image``; map them to the ``*_url`` columns.

    If one upload fails, the ones that already succeeded are removed again.
    """
    urls = {}
    try:
        for field, file in files.items():
            kind = prefix + field[: -len("_image")]
            urls[f"{field}_url"] = store_upload(storage, center_id, kind, file)
    except ShopDeskError:
        remove_images(storage, [u for u in urls.values() if u], center_id, request_id)
        raise
    return urls


def remove_images(storage: StorageClient, urls: List[str], center_id: str, request_id: str) -> None:
    """Best-effort removal of a row's stored objects; failures are logged, never raised."""
    for url in urls:
        ref = owned_storage_ref(url, center_id)
        if ref is None:
            logger.warning(
                "Skipping removal of a reference outside the center's media",
                extra={"request_id": request_id, "center_id": center_id},
            )
            continue
        try:
            storage.remove(ref.bucket, [ref.path])
        except StorageError:
            logger.warning(
                "Could not remove stored image",
                extra={"request_id": request_id, "bucket": ref.bucket},
            )


def sign_images(data, storage: StorageClient, center_id: str):
    """Swap the image columns of a response model for signed URLs in place"""
    for field in IMAGE_FIELDS:
        setattr(data, field, sign_or_fallback(storage, getattr(data, field), center_id))
    return data
