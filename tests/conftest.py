"""Root-level pytest fixtures for all tests.

Provides shared fixtures:
- Database session fixtures (in-memory SQLite)
- Account fixture
- Complete and partial form data generators
"""

import os

# Keep the module-level engine off the user's data directory.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from collections.abc import Generator
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shipform.db.models import Account, Base


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Create an in-memory SQLite database session.

    Creates all tables, yields a session, and cleans up after test.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def account(db_session: Session) -> Account:
    """A persisted account with a Saudi default address."""
    acct = Account(
        email="sara@example.com",
        full_name="Sara Ali",
        phone="+966 50 123 4567",
        country="Saudi Arabia",
        city="Riyadh",
        street="King Fahd Rd 12",
        postal_code="12211",
    )
    db_session.add(acct)
    db_session.commit()
    db_session.refresh(acct)
    return acct


# ============================================================================
# Form Data Generators
# ============================================================================


def make_complete_form(**overrides: Any) -> dict[str, Any]:
    """Build a form that passes complete validation.

    Domestic Saudi shipment, 10 kg, domestic_standard, home pickup:
    15 + 10 * 0.5 + 8 (home pickup in Saudi Arabia) = 28.00.
    """
    form: dict[str, Any] = {
        "sender_name": "Sara Ali",
        "sender_phone": "+966 50 123 4567",
        "sender_country": "Saudi Arabia",
        "sender_city": "Riyadh",
        "sender_street": "King Fahd Rd 12",
        "sender_postal_code": "12211",
        "receiver_name": "Omar Khan",
        "receiver_phone": "0501234567",
        "receiver_country": "Saudi Arabia",
        "receiver_city": "Jeddah",
        "receiver_street": "Tahlia St 5",
        "receiver_postal_code": "21411",
        "weight": 10,
        "length": 30,
        "width": 20,
        "height": 15,
        "item_description": "",
        "service_type": "domestic_standard",
        "shipment_type": "",
        "pickup_method": "home",
        "signature_required": False,
        "contains_liquid": False,
        "insurance": False,
        "packaging": False,
    }
    form.update(overrides)
    return form


@pytest.fixture
def complete_form() -> dict[str, Any]:
    """A form that passes complete validation."""
    return make_complete_form()


@pytest.fixture
def form_factory():
    """Return make_complete_form for tests that need variations."""
    return make_complete_form
