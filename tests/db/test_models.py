"""Tests for ORM models and database URL resolution."""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shipform.db.connection import get_database_url
from shipform.db.models import Account, Shipment, ShipmentStatus, TrackingEvent


def test_shipment_defaults(db_session: Session, account: Account):
    shipment = Shipment(account_id=account.id)
    db_session.add(shipment)
    db_session.commit()
    assert shipment.status == ShipmentStatus.draft.value
    assert shipment.insurance is False
    assert shipment.total_cost_cents == 0
    assert shipment.created_at


def test_account_email_unique(db_session: Session, account: Account):
    db_session.add(Account(email="sara@example.com", full_name="Copy"))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_events_ordered_by_timestamp(db_session: Session, account: Account):
    shipment = Shipment(account_id=account.id, status=ShipmentStatus.finalized.value)
    db_session.add(shipment)
    db_session.flush()
    db_session.add_all(
        [
            TrackingEvent(shipment_id=shipment.id, status="Delivered", location="B",
                          timestamp="2026-01-02T00:00:00+00:00"),
            TrackingEvent(shipment_id=shipment.id, status="Order Placed", location="A",
                          timestamp="2026-01-01T00:00:00+00:00"),
        ]
    )
    db_session.commit()
    db_session.refresh(shipment)
    assert [e.status for e in shipment.events] == ["Order Placed", "Delivered"]


def test_deleting_account_removes_shipments(db_session: Session, account: Account):
    db_session.add(Shipment(account_id=account.id))
    db_session.commit()
    db_session.delete(account)
    db_session.commit()
    assert db_session.query(Shipment).count() == 0


class TestDatabaseUrl:
    def test_database_url_wins(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///explicit.db")
        monkeypatch.setenv("SHIPFORM_DB_PATH", "/tmp/ignored.db")
        assert get_database_url() == "sqlite:///explicit.db"

    def test_db_path_converted(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("SHIPFORM_DB_PATH", "/tmp/shipform-test.db")
        assert get_database_url() == "sqlite:////tmp/shipform-test.db"

    def test_default_in_data_dir(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.delenv("SHIPFORM_DB_PATH", raising=False)
        monkeypatch.setenv("SHIPFORM_DATA_DIR", str(tmp_path))
        assert get_database_url() == f"sqlite:///{tmp_path / 'shipform.db'}"
