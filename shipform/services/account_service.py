"""Service for account lookup and default sender addresses.

Accounts own shipments and carry the address used to pre-fill the sender
stage of a new shipment.

Example:
    svc = AccountService(db)
    account = svc.create_account(email="sara@example.com", full_name="Sara Ali")
    db.commit()
    form = svc.default_sender(account)
"""

import logging
import re

from sqlalchemy.orm import Session

from shipform.db.models import Account
from shipform.errors import ConflictError, InputError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def account_to_sender(account: Account) -> dict[str, str]:
    """Map an Account to sender_* form keys.

    Args:
        account: An Account ORM instance.

    Returns:
        Dict with sender-prefixed keys; missing parts become "".
    """
    return {
        "sender_name": account.full_name or "",
        "sender_phone": account.phone or "",
        "sender_country": account.country or "",
        "sender_city": account.city or "",
        "sender_street": account.street or "",
        "sender_postal_code": account.postal_code or "",
    }


class AccountService:
    """CRUD operations for accounts.

    Methods do NOT call db.commit(); the caller (route or CLI) is
    responsible for committing.
    """

    def __init__(self, db: Session) -> None:
        """Initialize with a SQLAlchemy session.

        Args:
            db: Active database session.
        """
        self.db = db

    def create_account(
        self,
        email: str,
        full_name: str,
        phone: str | None = None,
        country: str | None = None,
        city: str | None = None,
        street: str | None = None,
        postal_code: str | None = None,
    ) -> Account:
        """Create a new account.

        Args:
            email: Unique email address (stored lowercased).
            full_name: Account holder's name.
            phone: Default sender phone.
            country: Default sender country (canonical name).
            city: Default sender city.
            street: Default sender street.
            postal_code: Default sender postal code.

        Returns:
            The created Account (flushed, not committed).

        Raises:
            InputError: If email is malformed or the name is blank.
            ConflictError: If the email is already registered.
        """
        normalized = email.strip().lower()
        if not EMAIL_PATTERN.match(normalized):
            raise InputError(
                f"Invalid email: {email!r}",
                field_errors={"email": "Enter a valid email address"},
            )
        if not full_name.strip():
            raise InputError(
                "Full name is required",
                field_errors={"full_name": "Full name is required"},
            )
        if self.get_by_email(normalized) is not None:
            raise ConflictError(f"Account with email '{normalized}' already exists")

        account = Account(
            email=normalized,
            full_name=full_name.strip(),
            phone=phone,
            country=country,
            city=city,
            street=street,
            postal_code=postal_code,
        )
        self.db.add(account)
        self.db.flush()
        logger.info("Created account %s", account.id)
        return account

    def get_account(self, account_id: str) -> Account | None:
        """Get an account by ID."""
        return self.db.query(Account).filter(Account.id == account_id).first()

    def get_by_email(self, email: str) -> Account | None:
        """Get an account by (lowercased) email."""
        return (
            self.db.query(Account)
            .filter(Account.email == email.strip().lower())
            .first()
        )

    def default_sender(self, account: Account) -> dict[str, str]:
        """Sender-stage form values pre-filled from the account."""
        return account_to_sender(account)
