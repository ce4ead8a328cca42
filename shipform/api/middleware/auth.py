"""Request authentication for the shipform API.

Two layers:
- maybe_require_api_key: optional shared API key (SHIPFORM_API_KEY) for
  every /api/* path, enforced as HTTP middleware.
- get_current_account: dependency resolving the X-Account-Id header to
  an Account, used for shipment ownership checks.
"""

from __future__ import annotations

import hmac
import logging
import os

from fastapi import Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from shipform.db.connection import get_db
from shipform.db.models import Account
from shipform.errors import ShipFormError
from shipform.services.account_service import AccountService

logger = logging.getLogger(__name__)

_PUBLIC_PATH_PREFIXES = (
    "/health",
    "/api/v1/health",
    "/docs",
    "/redoc",
    "/openapi.json",
)

_MIN_API_KEY_LENGTH = 32


def validate_api_key_strength() -> None:
    """Validate that the configured API key meets minimum strength requirements.

    Called at startup.

    Raises:
        ValueError: If SHIPFORM_API_KEY is set but shorter than 32 characters.
    """
    key = get_expected_api_key()
    if key and len(key) < _MIN_API_KEY_LENGTH:
        raise ValueError(
            f"SHIPFORM_API_KEY is too short ({len(key)} chars). "
            f"Minimum length is {_MIN_API_KEY_LENGTH} characters."
        )


def get_expected_api_key() -> str:
    """Return configured API key; empty string means auth disabled."""
    return os.environ.get("SHIPFORM_API_KEY", "").strip()


def should_authenticate(path: str) -> bool:
    """Return True when this path should be protected by API-key auth."""
    if path.startswith(_PUBLIC_PATH_PREFIXES):
        return False
    return path.startswith("/api/")


async def maybe_require_api_key(request: Request, call_next) -> Response:
    """FastAPI middleware entrypoint for optional API-key auth."""
    if request.method.upper() == "OPTIONS":
        return await call_next(request)

    expected_key = get_expected_api_key()
    if not expected_key or not should_authenticate(request.url.path):
        return await call_next(request)

    provided_key = request.headers.get("X-API-Key", "")
    if not provided_key or not hmac.compare_digest(provided_key, expected_key):
        logger.warning("Rejected request to %s: invalid API key", request.url.path)
        return JSONResponse(
            status_code=401,
            content={"detail": "Invalid or missing API key"},
        )
    return await call_next(request)


def get_current_account(
    x_account_id: str | None = Header(None),
    db: Session = Depends(get_db),
) -> Account:
    """Resolve the calling account from the X-Account-Id header.

    Raises:
        HTTPException: 401 if the header is missing or names no account.
    """
    if not x_account_id:
        raise HTTPException(
            status_code=401,
            detail=ShipFormError.from_code("E-3003").to_response(),
        )
    account = AccountService(db).get_account(x_account_id)
    if account is None:
        raise HTTPException(
            status_code=401,
            detail=ShipFormError.from_code("E-3003").to_response(),
        )
    return account
