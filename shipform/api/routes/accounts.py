"""API routes for accounts.

Accounts are the identity behind the X-Account-Id header and supply the
default sender address. All endpoints use /api/v1/accounts prefix.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shipform.api.middleware.auth import get_current_account
from shipform.api.schemas import AccountCreate, AccountProfileResponse, AccountResponse
from shipform.db.connection import get_db
from shipform.db.models import Account
from shipform.errors import ConflictError
from shipform.services.account_service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _get_service(db: Session = Depends(get_db)) -> AccountService:
    """Dependency injector for AccountService."""
    return AccountService(db)


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    data: AccountCreate,
    service: AccountService = Depends(_get_service),
    db: Session = Depends(get_db),
) -> AccountResponse:
    """Create a new account.

    Raises (via the app error handlers):
        400 if the email or name is invalid, 409 if the email exists.
    """
    try:
        account = service.create_account(**data.model_dump())
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Account with this email already exists") from None
    return AccountResponse.model_validate(account)


@router.get("/me", response_model=AccountProfileResponse)
def get_me(
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(_get_service),
) -> AccountProfileResponse:
    """Return the calling account with its default sender values."""
    return AccountProfileResponse(
        **AccountResponse.model_validate(account).model_dump(),
        default_sender=service.default_sender(account),
    )
