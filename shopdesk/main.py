"""FastAPI application entry point"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from shopdesk import __version__
from shopdesk.api import account_requests, admin, health, inquiries, receipts, service_tickets, session, storage
from shopdesk.config import settings
from shopdesk.errors import ConfigurationError, ShopDeskError, UpstreamFailure
from shopdesk.middleware.monitoring import MonitoringMiddleware, get_request_id
from shopdesk.middleware.rate_limit import limiter
from shopdesk.utils.logger import logger, setup_logging

# Setup logging
setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    logger.info("ShopDesk backend starting up", extra={
        "version": __version__,
        "environment": settings.ENVIRONMENT,
        "log_level": settings.LOG_LEVEL,
        "rate_limiting": settings.RATE_LIMIT_ENABLED,
        "monitoring": settings.METRICS_ENABLED
    })
    if not settings.SESSION_SECRET:
        logger.error("SESSION_SECRET is not set; every login and session check will fail")
    yield
    # Shutdown
    logger.info("ShopDesk backend shutting down")


# Create FastAPI app
app = FastAPI(
    title="ShopDesk",
    description="Admin sessions, tenant isolation and account onboarding for shop centers",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ===== Middleware Setup =====

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Correlation ids are needed by every error body, so this one is unconditional
app.add_middleware(MonitoringMiddleware)

if settings.METRICS_ENABLED:
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/metrics", "/health", "/health/ready", "/health/live"],
        inprogress_name="shopdesk_requests_inprogress",
        inprogress_labels=True
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint=settings.METRICS_PATH, include_in_schema=False)

# Rate limiting
app.state.limiter = limiter


# ===== Error Handlers =====

def _error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    request_id = get_request_id(request)
    return JSONResponse(
        status_code=status_code,
        content={"requestId": request_id, "error": code, "message": message},
        headers={"X-Request-ID": request_id},
    )


@app.exception_handler(ShopDeskError)
async def shopdesk_error_handler(request: Request, exc: ShopDeskError):
    """Render domain errors; server-side failures only ever show their generic message"""
    if isinstance(exc, (UpstreamFailure, ConfigurationError)):
        logger.error(
            f"{exc.code}: {exc.message}",
            extra={"request_id": get_request_id(request), "path": request.url.path},
        )
        return _error_response(request, exc.status_code, exc.code, type(exc).message)
    return _error_response(request, exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters are reported as plain validation errors"""
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "The request is invalid.")
    if field:
        message = f"{field}: {message}"
    return _error_response(request, 400, "validation_error", message)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Datastore failures are logged in full and reported generically"""
    logger.error(
        "Database error",
        extra={"request_id": get_request_id(request), "path": request.url.path},
        exc_info=exc,
    )
    return _error_response(request, UpstreamFailure.status_code, UpstreamFailure.code, UpstreamFailure.message)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Handle rate limit exceeded errors"""
    logger.warning(
        "Rate limit exceeded",
        extra={
            "request_id": get_request_id(request),
            "path": request.url.path,
            "client": request.client.host if request.client else "unknown"
        }
    )
    return _error_response(request, 429, "rate_limit_exceeded", "Too many requests. Please try again later.")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for uncaught errors"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "request_id": get_request_id(request),
            "path": request.url.path,
            "method": request.method
        },
        exc_info=True
    )
    return _error_response(request, 500, "internal_error", "An unexpected error occurred.")


# ===== Route Setup =====

app.include_router(health.router)
app.include_router(session.router)
app.include_router(admin.router)
app.include_router(account_requests.router)
app.include_router(receipts.router)
app.include_router(service_tickets.router)
app.include_router(inquiries.router)
app.include_router(storage.router)


@app.get("/")
def root(request: Request):
    """Root endpoint"""
    return {
        "requestId": get_request_id(request),
        "service": "ShopDesk",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "metrics": settings.METRICS_PATH if settings.METRICS_ENABLED else None
    }
