"""Signed-asset access proxy.

Stored media references are URLs in one of two shapes, because legacy public
buckets and newer private buckets coexist::

    https://<host>/storage/v1/object/public/<bucket>/<path>
    https://<host>/storage/v1/object/<bucket>/<path>

:func:`resolve_storage_ref` maps either shape back to ``(bucket, path)`` and
:class:`StorageClient` exchanges that for a short-lived signed URL. Private
media is never rendered from a permanent URL when signing is possible.

Objects uploaded for a center live in ``STORAGE_MEDIA_BUCKET`` under a
``<center_id>/`` prefix. :func:`owned_storage_ref` is the gate every
per-row sign or delete goes through: a reference outside the row's own
prefix is never signed or removed on that row's behalf.
"""
import re
from functools import lru_cache
from typing import List, NamedTuple, Optional
from urllib.parse import quote, unquote, urlsplit

import requests

from shopdesk.config import settings
from shopdesk.errors import SigningError, StorageError
from shopdesk.middleware.monitoring import record_signed_url
from shopdesk.utils.logger import logger

_PUBLIC_REF = re.compile(r"/storage/v1/object/public/(?P<bucket>[^/]+)/(?P<path>.+)$")
_PRIVATE_REF = re.compile(r"/storage/v1/object/(?!public/|sign/|authenticated/)(?P<bucket>[^/]+)/(?P<path>.+)$")


class StorageRef(NamedTuple):
    bucket: str
    path: str


def resolve_storage_ref(raw_url: Optional[str]) -> Optional[StorageRef]:
    """Extract ``(bucket, path)`` from a stored object URL.

    The query string is ignored and the object path is URL-decoded. Returns
    None when the value matches neither known shape; the caller then uses it
    as-is.
    """
    if not raw_url:
        return None

    url_path = urlsplit(raw_url).path
    for pattern in (_PUBLIC_REF, _PRIVATE_REF):
        match = pattern.search(url_path)
        if match:
            return StorageRef(bucket=unquote(match.group("bucket")), path=unquote(match.group("path")))
    return None


class StorageClient:
    """Minimal client for a Supabase-compatible storage REST API"""

    def __init__(self, base_url: Optional[str], service_key: Optional[str], timeout: float = 25.0):
        self.base_url = (base_url or "").rstrip("/")
        self.service_key = service_key
        self.timeout = timeout
        self.session = requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.service_key)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key or "",
            "Content-Type": "application/json",
        }

    def create_signed_url(self, bucket: str, path: str, expires_in: int) -> str:
        """Return a signed retrieval URL valid for ``expires_in`` seconds.

        Raises:
            SigningError: backend not configured, request denied, timed out,
                or returned an unexpected body.
        """
        if not self.configured:
            raise SigningError("storage backend is not configured")

        url = f"{self.base_url}/storage/v1/object/sign/{quote(bucket, safe='')}/{quote(path)}"
        try:
            resp = self.session.post(
                url,
                json={"expiresIn": int(expires_in)},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Signed URL request failed", extra={"bucket": bucket, "error": str(exc)})
            raise SigningError(str(exc)) from exc

        if resp.status_code >= 400:
            logger.warning(
                "Storage backend refused to sign",
                extra={"bucket": bucket, "status": resp.status_code},
            )
            raise SigningError(f"storage backend returned {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise SigningError("storage backend returned invalid JSON") from exc
        signed = (body.get("signedURL") or body.get("signedUrl")) if isinstance(body, dict) else None
        if not signed:
            raise SigningError("storage backend returned no signed URL")

        if signed.startswith("http://") or signed.startswith("https://"):
            return signed
        return f"{self.base_url}/storage/v1{signed}"

    def upload(self, bucket: str, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        """Store ``content`` at ``bucket/path`` and return its object URL.

        Raises:
            StorageError: backend not configured, request refused or timed out.
        """
        if not self.configured:
            raise StorageError("storage backend is not configured")

        object_path = f"{quote(bucket, safe='')}/{quote(path)}"
        headers = self._headers()
        headers["Content-Type"] = content_type or "application/octet-stream"
        try:
            resp = self.session.post(
                f"{self.base_url}/storage/v1/object/{object_path}",
                data=content,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Upload request failed", extra={"bucket": bucket, "error": str(exc)})
            raise StorageError(str(exc)) from exc
        if resp.status_code >= 400:
            logger.warning("Storage backend refused upload", extra={"bucket": bucket, "status": resp.status_code})
            raise StorageError(f"storage backend returned {resp.status_code}")

        return f"{self.base_url}/storage/v1/object/{object_path}"

    def remove(self, bucket: str, paths: List[str]) -> None:
        """Delete objects from a bucket.

        Raises:
            StorageError: on transport failure or a refused request.
        """
        if not paths:
            return
        if not self.configured:
            raise StorageError("storage backend is not configured")

        url = f"{self.base_url}/storage/v1/object/{quote(bucket, safe='')}"
        try:
            resp = self.session.delete(
                url,
                json={"prefixes": paths},
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise StorageError(str(exc)) from exc
        if resp.status_code >= 400:
            raise StorageError(f"storage backend returned {resp.status_code}")


@lru_cache(maxsize=1)
def _build_storage_client(base_url: Optional[str], service_key: Optional[str], timeout: float) -> StorageClient:
    return StorageClient(base_url, service_key, timeout=timeout)


def get_storage_client() -> StorageClient:
    """FastAPI dependency returning the process-wide storage client"""
    return _build_storage_client(settings.STORAGE_URL, settings.STORAGE_SERVICE_KEY, settings.STORAGE_TIMEOUT_SECONDS)


def parse_expires_in(raw: Optional[str]) -> int:
    """Parse an ``expiresIn`` value; unusable input falls back to the default."""
    default = settings.SIGNED_URL_DEFAULT_EXPIRES_SECONDS
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(float(raw))
    except (TypeError, ValueError, OverflowError):
        return default
    if value <= 0:
        return default
    return min(value, settings.SIGNED_URL_MAX_EXPIRES_SECONDS)


def owned_storage_ref(raw_url: Optional[str], center_id: str) -> Optional[StorageRef]:
    """Resolve ``raw_url`` only if it points into ``center_id``'s media prefix.

    Anything else (another bucket, another center's prefix, a path that walks
    out of the prefix, an unknown URL shape) yields None.
    """
    ref = resolve_storage_ref(raw_url)
    if ref is None or not center_id:
        return None
    if ref.bucket != settings.STORAGE_MEDIA_BUCKET:
        return None
    segments = ref.path.split("/")
    if segments[0] != center_id or len(segments) < 2 or ".." in segments:
        return None
    return ref


def sign_or_fallback(
    client: StorageClient,
    raw_url: Optional[str],
    center_id: str,
    expires_in: Optional[int] = None,
) -> Optional[str]:
    """Signed URL for a stored reference of ``center_id``.

    The stored value is returned unchanged when it is not one of the center's
    own objects or when signing fails.
    """
    ref = owned_storage_ref(raw_url, center_id)
    if ref is None:
        if resolve_storage_ref(raw_url) is not None:
            logger.warning("Refusing to sign a reference outside the center's media", extra={"center_id": center_id})
        return raw_url
    try:
        signed = client.create_signed_url(
            ref.bucket, ref.path, expires_in or settings.SIGNED_URL_DEFAULT_EXPIRES_SECONDS
        )
    except SigningError:
        record_signed_url("fallback")
        return raw_url
    record_signed_url("issued")
    return signed
