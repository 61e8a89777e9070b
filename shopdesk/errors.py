"""Error taxonomy shared by the guard, the workflows and the HTTP layer.

Every request-scoped failure is a :class:`ShopDeskError` carrying the HTTP
status, a stable machine-readable ``code`` and a user-readable ``message``.
The exception handlers in ``shopdesk.main`` render them together with the
request's correlation id.
"""
from typing import Optional


class ShopDeskError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class Unauthenticated(ShopDeskError):
    """No session, or a session that failed verification for any reason"""

    status_code = 401
    code = "unauthenticated"
    message = "Login required."


class Forbidden(ShopDeskError):
    status_code = 403
    code = "forbidden"
    message = "You do not have permission to perform this action."


class ValidationError(ShopDeskError):
    status_code = 400
    code = "validation_error"
    message = "The request is invalid."


class NotFound(ShopDeskError):
    """Unknown id, or an id owned by another center"""

    status_code = 404
    code = "not_found"
    message = "Resource not found."


class Conflict(ShopDeskError):
    status_code = 409
    code = "conflict"
    message = "The request conflicts with the current state."


class PayloadTooLarge(ShopDeskError):
    status_code = 413
    code = "payload_too_large"
    message = "Upload exceeds maximum file size."


class UpstreamFailure(ShopDeskError):
    """Datastore or storage call failed or timed out.

    The message handed to the client is always the generic one; the cause is
    only logged server-side.
    """

    status_code = 500
    code = "upstream_failure"
    message = "A backend service failed. Please try again later."


class StorageError(UpstreamFailure):
    """Object storage refused, timed out or is not configured"""

    code = "storage_failed"
    message = "The file storage service failed. Please try again later."


class SigningError(StorageError):
    code = "signing_failed"
    message = "Could not create a signed URL."


class ConfigurationError(ShopDeskError):
    """Missing server-side configuration (e.g. the session signing secret).

    Fatal for the process rather than for one request; rendered as a generic 500.
    """

    code = "configuration_error"
    message = "The server is not configured correctly."


class InvalidToken(Exception):
    """Raised by ``TokenVerification.unwrap()`` for any failed verification"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"invalid session token ({reason})")
