"""Rate limiting for unauthenticated credential endpoints"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from shopdesk.config import settings


# Create limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Rate limit configurations for different endpoints
RATE_LIMITS = {
    # Credential endpoints - guessing protection
    "login": "10/minute",
    "code_login": "5/minute",
    "account_request": "5/hour",

    # Public endpoints
    "receipt_submit": "30/minute",
    "service_ticket_submit": "30/minute",
    "inquiry_submit": "30/minute",
}


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    return RATE_LIMITS.get(endpoint, settings.RATE_LIMIT_DEFAULT[0])
