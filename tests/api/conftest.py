"""Pytest fixtures for API tests.

Provides a test client bound to an in-memory database plus an account
and the headers that identify it.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from shipform.api.main import app
from shipform.db.connection import get_db
from shipform.db.models import Account


@pytest.fixture
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a TestClient with overridden database dependency.

    Args:
        db_session: Test database session fixture.

    Yields:
        TestClient configured for testing.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def headers(account: Account) -> dict[str, str]:
    """Headers identifying the test account."""
    return {"X-Account-Id": account.id}
