"""Monitoring, correlation ids and metrics middleware"""
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from shopdesk.utils.logger import logger


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "shopdesk_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "shopdesk_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

# Error metrics
http_errors_total = Counter(
    "shopdesk_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

authentication_failures_total = Counter(
    "shopdesk_authentication_failures_total",
    "Total rejected admin sessions",
    ["reason"]  # malformed, bad_signature, expired, wrong_role, inactive_or_missing, lookup_error
)

# Domain metrics
account_request_events_total = Counter(
    "shopdesk_account_request_events_total",
    "Account request submissions and decisions",
    ["event"]  # submitted, approved, rejected
)

signed_url_total = Counter(
    "shopdesk_signed_url_total",
    "Signed asset URL requests",
    ["outcome"]  # issued, failed, fallback
)


def new_request_id() -> str:
    """Correlation id attached to every response and log line of a request"""
    return str(uuid.uuid4())


def get_request_id(request: Request) -> str:
    """Return the request's correlation id, assigning one if the middleware did not run."""
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        request_id = new_request_id()
        request.state.request_id = request_id
    return request_id


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Assigns the correlation id and collects request metrics"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and collect metrics"""
        start_time = time.time()

        # Extract request details
        method = request.method
        endpoint = request.url.path

        # Always generated server-side so client input never becomes a log key
        request_id = get_request_id(request)

        try:
            # Process request
            response = await call_next(request)
            status = response.status_code

            # Record metrics
            duration = time.time() - start_time
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            # Log slow requests
            if duration > 1.0:  # More than 1 second
                logger.warning(
                    f"Slow request detected: {method} {endpoint}",
                    extra={
                        "request_id": request_id,
                        "status": status,
                        "duration": duration,
                    }
                )

            # Track errors
            if status >= 400:
                http_errors_total.labels(
                    method=method,
                    endpoint=endpoint,
                    status=status
                ).inc()

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration:.3f}s"

            return response

        except Exception as e:
            # Record error metrics
            duration = time.time() - start_time
            http_errors_total.labels(
                method=method,
                endpoint=endpoint,
                status=500
            ).inc()

            logger.error(
                f"Request failed: {method} {endpoint}",
                extra={
                    "request_id": request_id,
                    "duration": duration,
                    "error": str(e)
                },
                exc_info=True
            )
            raise


def record_auth_failure(reason: str):
    """Record a rejected session"""
    authentication_failures_total.labels(reason=reason).inc()


def record_account_request_event(event: str):
    """Record an account request submission or decision"""
    account_request_events_total.labels(event=event).inc()


def record_signed_url(outcome: str):
    """Record a signed URL outcome"""
    signed_url_total.labels(outcome=outcome).inc()
