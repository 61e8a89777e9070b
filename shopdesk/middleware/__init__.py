"""Middleware modules for production-ready features"""
from shopdesk.middleware.monitoring import (
    MonitoringMiddleware,
    get_request_id,
    record_account_request_event,
    record_auth_failure,
    record_signed_url,
)
from shopdesk.middleware.rate_limit import limiter, get_rate_limit

__all__ = [
    "MonitoringMiddleware",
    "get_request_id",
    "record_account_request_event",
    "record_auth_failure",
    "record_signed_url",
    "limiter",
    "get_rate_limit"
]
