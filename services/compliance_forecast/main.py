"""
Compliance Forecast Service - Main Application
==============================================

FastAPI application for FRA lifecycle resolution and estate risk forecasts.

Version: 0.1.0
"""

import time
import uuid
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from services.compliance_forecast.routes import forecast, lifecycle
from services.compliance_forecast.services.loader import ForecastInputError
from shared.config import settings
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse


SERVICE_NAME = "compliance-forecast"
SERVICE_VERSION = "0.1.0"

# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name=SERVICE_NAME,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "compliance_forecast_starting",
        environment=settings.environment.value,
        port=settings.ports.compliance_forecast,
    )

    yield

    logger.info("compliance_forecast_shutting_down")


# Create FastAPI application
app = FastAPI(
    title="RetailSafe Compliance Forecast Service",
    description="FRA lifecycle resolution and estate compliance risk forecasts",
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Bind a request id to every log line and echo it back as X-Request-ID."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    clear_context()
    bind_context(request_id=request_id, path=request.url.path, method=request.method)

    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - started) * 1000, 2)

    response.headers["X-Request-ID"] = request_id
    if request.url.path != "/health":
        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
    clear_context()
    return response


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    The service holds no connections, so it is healthy whenever it answers.
    """
    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "RetailSafe Compliance Forecast Service",
        "version": SERVICE_VERSION,
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    forecast.router,
    prefix="/api/v1/forecast",
    tags=["Compliance Forecast"],
)

app.include_router(
    lifecycle.router,
    prefix="/api/v1/lifecycle",
    tags=["Obligation Lifecycle"],
)


# ============================================================================
# Error Handlers
# ============================================================================


def _error(
    status_code: int,
    message: str,
    details: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=message, status_code=status_code, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(ForecastInputError)
async def forecast_input_error_handler(
    request: Request,
    exc: ForecastInputError,
) -> JSONResponse:
    """Structurally unusable store rows are a client error."""
    logger.warning(
        "forecast_input_rejected",
        error=str(exc),
        path=request.url.path,
    )
    return _error(422, str(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Request body or query validation failures use the error envelope."""
    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    logger.warning(
        "request_validation_failed",
        errors=len(details),
        path=request.url.path,
    )
    return _error(422, "Request validation failed", details)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.compliance_forecast.main:app",
        host="0.0.0.0",
        port=settings.ports.compliance_forecast,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
