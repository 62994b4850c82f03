from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.clients.errors import BacklogAPIError, BacklogAuthError, BacklogConfigError, BacklogError
from src.core.logging import configure_logging, correlation_id_var
from src.core.settings import get_app_settings
from src.db.run_migrations import main as run_alembic
from src.db.session import dispose_engine
from src.schemas.common import ErrorInfo, ErrorResponse, MessageResponse
from src.services.errors import ProcurementError

# Routers
from src.api.routes.invoices import router as invoices_router
from src.api.routes.logistics import router as logistics_router
from src.api.routes.orders import router as orders_router
from src.api.routes.quotations import router as quotations_router
from src.api.routes.remittances import router as remittances_router
from src.api.routes.ti_webhooks import router as ti_webhooks_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL, settings.TI_LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness probe."},
    {"name": "Quotations", "description": "Customer quotations and TI quote requests."},
    {"name": "Orders", "description": "Purchase orders placed, queried and changed at TI."},
    {"name": "Logistics", "description": "Shipment tracking from TI advance shipment notices."},
    {"name": "Invoices", "description": "Invoice view and TI financial documents."},
    {"name": "Remittances", "description": "Payment remittance notifications and TI remittance advice."},
    {"name": "TI Webhooks", "description": "Basic-Auth protected push notifications from TI."},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Run migrations on startup when enabled; release the TI client and the DB
    engine on shutdown.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            # env.py drives its own event loop, so run it off this one.
            await asyncio.to_thread(run_alembic, ["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            logger.exception("Migration step failed: %s", exc)
            # Do not crash the app in case of transient DB issues; rely on retries or later readiness probes.
    yield
    client = getattr(app.state, "backlog_client", None)
    if client is not None:
        await client.aclose()
        app.state.backlog_client = None
    await dispose_engine()


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with a correlation_id for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    request.state.correlation_id = corr

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    ts = datetime.now(tz=timezone.utc)
    corr = getattr(request.state, "correlation_id", None)
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=corr,
        path=request.url.path,
        method=request.method,
        timestamp=ts,
    )
    response = JSONResponse(status_code=status_code, content=err.model_dump(mode="json"), headers=headers)
    if corr:
        response.headers["X-Correlation-ID"] = corr
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=jsonable_encoder(exc.errors()),
    )


@app.exception_handler(ProcurementError)
async def procurement_exception_handler(request: Request, exc: ProcurementError):
    """Business-rule failures raised by services."""
    logger.info("Request rejected (%s): %s", exc.error_type, exc.message)
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type=exc.error_type,
        message=exc.message,
        details=exc.details,
    )


@app.exception_handler(BacklogError)
async def backlog_exception_handler(request: Request, exc: BacklogError):
    """
    Upstream failures. A TI 4xx on an API call is passed through with TI's
    `errors` array; token failures and everything else become 502. Missing TI
    configuration is a 503.
    """
    if isinstance(exc, BacklogConfigError):
        logger.error("TI backlog client misconfigured: %s", exc.message)
        return _build_error_response(request, 503, "upstream_config_error", exc.message)

    status_code = 502
    details: Any = None
    if isinstance(exc, BacklogAPIError):
        upstream_4xx = exc.status_code is not None and 400 <= exc.status_code < 500
        if upstream_4xx and not isinstance(exc, BacklogAuthError):
            status_code = exc.status_code
        details = {"upstream_status": exc.status_code, "errors": exc.errors}
    logger.warning("TI backlog call failed (%s): %s", status_code, exc.message)
    return _build_error_response(
        request=request,
        status_code=status_code,
        error_type="upstream_error",
        message=exc.message,
        details=details,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
        details=None,
    )


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    response_model_exclude_none=True,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


# Include all routers under /api/v1
api_v1.include_router(quotations_router)
api_v1.include_router(orders_router)
api_v1.include_router(logistics_router)
api_v1.include_router(invoices_router)
api_v1.include_router(remittances_router)
api_v1.include_router(ti_webhooks_router)

# Attach api_v1 to app
app.include_router(api_v1)
