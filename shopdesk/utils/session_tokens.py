"""Session token service: HS256 signing and verification of admin sessions.

Tokens are deliberately minimal: they carry identity (``userId``) and tenant
(``centerId``) only. Mutable authorization flags such as super-admin and
active status are re-read from the database by the guard on every request.
"""
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, NamedTuple, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from shopdesk.config import settings
from shopdesk.errors import ConfigurationError, InvalidToken
from shopdesk.utils.logger import logger

ADMIN_ROLE = "admin"


class VerificationFailure(str, Enum):
    """Closed set of reasons a token is rejected. Callers must not branch on it."""

    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    WRONG_ROLE = "wrong_role"


class SessionClaims(NamedTuple):
    """Decoded session payload"""
    role: str
    user_id: Optional[str]       # None for legacy shared-code sessions
    center_id: Optional[str]     # None for legacy shared-code sessions
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None


class TokenVerification(NamedTuple):
    """Tagged verification result: exactly one of ``claims`` / ``failure`` is set."""
    claims: Optional[SessionClaims]
    failure: Optional[VerificationFailure]

    @property
    def ok(self) -> bool:
        return self.failure is None and self.claims is not None

    def unwrap(self) -> SessionClaims:
        """Return the claims or raise :class:`InvalidToken`."""
        if not self.ok:
            raise InvalidToken((self.failure or VerificationFailure.MALFORMED).value)
        return self.claims


class TokenService:
    """Issues and verifies signed, time-limited admin session tokens.

    The signing secret is passed in explicitly; the service holds no other
    state and is safe to share between concurrent requests.
    """

    def __init__(
        self,
        secret: Optional[str],
        algorithm: str = "HS256",
        ttl_seconds: int = 60 * 60 * 24 * 7,
        remember_ttl_seconds: int = 60 * 60 * 24 * 30,
    ):
        if not secret:
            raise ConfigurationError("SESSION_SECRET is required")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl_seconds = ttl_seconds
        self.remember_ttl_seconds = remember_ttl_seconds

    def ttl_for(self, remember: bool = False) -> int:
        """Lifetime in seconds for a token (and its cookie)"""
        return self.remember_ttl_seconds if remember else self.ttl_seconds

    # ------------------------------------------------------------------
    # Issuing
    # ------------------------------------------------------------------

    def issue(self, user_id: str, center_id: str, remember: bool = False) -> str:
        """Sign a session token for a named admin user."""
        return self._sign({"userId": user_id, "centerId": center_id}, remember)

    def issue_legacy(self, remember: bool = False) -> str:
        """Sign a shared-code session: role only, no identity and no center."""
        return self._sign({}, remember)

    def _sign(self, identity: Dict[str, Any], remember: bool) -> str:
        now = int(datetime.now(timezone.utc).timestamp())
        payload: Dict[str, Any] = {
            "role": ADMIN_ROLE,
            **identity,
            "iat": now,
            "exp": now + self.ttl_for(remember),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify(self, token: Optional[str]) -> TokenVerification:
        """Check signature, expiry and role. Never raises for a bad token.

        Returns:
            A :class:`TokenVerification` with claims on success, or the
            failure reason otherwise.
        """
        if not token or not isinstance(token, str):
            return TokenVerification(None, VerificationFailure.MALFORMED)

        try:
            jwt.get_unverified_header(token)
        except JWTError:
            return TokenVerification(None, VerificationFailure.MALFORMED)

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            return TokenVerification(None, VerificationFailure.EXPIRED)
        except JWTClaimsError:
            return TokenVerification(None, VerificationFailure.MALFORMED)
        except JWTError as exc:
            logger.debug(f"Session token rejected: {exc}")
            return TokenVerification(None, VerificationFailure.BAD_SIGNATURE)

        if not isinstance(payload, dict) or payload.get("role") != ADMIN_ROLE:
            return TokenVerification(None, VerificationFailure.WRONG_ROLE)

        # The exp claim is optional for jose; a session without one is not trusted
        if "exp" not in payload:
            return TokenVerification(None, VerificationFailure.MALFORMED)

        user_id = payload.get("userId")
        center_id = payload.get("centerId")
        if (user_id is not None and not isinstance(user_id, str)) or (
            center_id is not None and not isinstance(center_id, str)
        ):
            return TokenVerification(None, VerificationFailure.MALFORMED)

        claims = SessionClaims(
            role=ADMIN_ROLE,
            user_id=user_id or None,
            center_id=center_id or None,
            issued_at=payload.get("iat"),
            expires_at=payload.get("exp"),
        )
        return TokenVerification(claims, None)


@lru_cache(maxsize=1)
def _build_token_service(secret: Optional[str], algorithm: str, ttl: int, remember_ttl: int) -> TokenService:
    return TokenService(secret, algorithm=algorithm, ttl_seconds=ttl, remember_ttl_seconds=remember_ttl)


def get_token_service() -> TokenService:
    """FastAPI dependency returning the process-wide token service.

    Raises:
        ConfigurationError: if ``SESSION_SECRET`` is not configured.
    """
    return _build_token_service(
        settings.SESSION_SECRET,
        settings.JWT_ALGORITHM,
        settings.SESSION_TTL_SECONDS,
        settings.SESSION_REMEMBER_TTL_SECONDS,
    )
