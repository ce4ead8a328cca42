"""FastAPI application for the shipform API.

Provides the main application instance with routers, middleware,
and exception handlers configured.
"""

import logging
import os
import sys
import time as _time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

# Configure logging to stdout for uvicorn to capture
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("shipform").setLevel(logging.INFO)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shipform import __version__
from shipform.api.middleware.auth import maybe_require_api_key, validate_api_key_strength
from shipform.api.routes import accounts, rates, rules, shipments
from shipform.db.connection import close_db, init_db
from shipform.errors import (
    DomainError,
    InputError,
    ReferenceNotFound,
    ShipFormError,
    StateConflict,
    WeightExceedsServiceError,
)

logger = logging.getLogger(__name__)

_startup_time: float = 0.0

# First match wins; subclasses before their bases.
_STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (WeightExceedsServiceError, 422),
    (InputError, 400),
    (ReferenceNotFound, 404),
    (StateConflict, 409),
)


def status_for(exc: DomainError) -> int:
    """Map a domain exception to its HTTP status."""
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def _parse_allowed_origins() -> list[str]:
    """Parse comma-separated CORS allowlist from ALLOWED_ORIGINS env var."""
    raw = os.environ.get("ALLOWED_ORIGINS", "").strip()
    if not raw:
        return []
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup and check API key strength."""
    global _startup_time
    validate_api_key_strength()
    init_db()
    _startup_time = _time.time()
    logger.info("shipform API %s started", __version__)
    yield
    logger.info("shipform API shutting down")
    close_db()


app = FastAPI(
    title="shipform API",
    description="Staged shipment form rules, pricing and draft/finalize lifecycle",
    version=__version__,
    lifespan=lifespan,
)

# Optional API auth for /api/* when SHIPFORM_API_KEY is configured.
app.middleware("http")(maybe_require_api_key)

# CORS allowlist is env-driven. If unset, CORS is disabled (same-origin only).
allowed_origins = _parse_allowed_origins()
if allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-API-Key", "X-Account-Id"],
    )


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render domain exceptions as coded JSON errors.

    Input and business-rule failures carry field-keyed validation_errors;
    reference and state errors carry a single top-level message.

    Args:
        request: The incoming request.
        exc: The domain exception.

    Returns:
        JSONResponse with error, code and (when present) validation_errors.
    """
    status = status_for(exc)
    if status >= 500:
        logger.error("Unmapped domain error on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status,
        content=ShipFormError.from_domain(exc).to_response(),
    )


@app.exception_handler(ShipFormError)
async def shipform_error_handler(request: Request, exc: ShipFormError) -> JSONResponse:
    """Handle ShipFormError exceptions with consistent format."""
    logger.error("Unhandled application error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content=exc.to_response())


# Include routers
app.include_router(rules.router, prefix="/api/v1")
app.include_router(rates.router, prefix="/api/v1")
app.include_router(accounts.router, prefix="/api/v1")
app.include_router(shipments.router, prefix="/api/v1")


@app.get("/health")
@app.get("/api/v1/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Dictionary with status, version and uptime.
    """
    uptime = int(_time.time() - _startup_time) if _startup_time else 0
    return {
        "status": "healthy",
        "version": __version__,
        "uptime_seconds": uptime,
    }
