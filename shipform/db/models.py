"""SQLAlchemy ORM models for the shipform state database.

Defines accounts, shipments and their tracking events. Uses SQLAlchemy 2.0
style with Mapped and mapped_column. Money is stored as integer cents.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from sqlalchemy import Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)


def generate_uuid() -> str:
    """Generate a UUID4 string for primary keys."""
    return str(uuid4())


def utc_now_iso() -> str:
    """Generate current UTC timestamp in ISO8601 format."""
    return datetime.now(UTC).isoformat()


class ShipmentStatus(str, Enum):
    """Shipment lifecycle.

    Lifecycle: draft -> finalized (terminal; only tracking events append)
    """

    draft = "draft"
    finalized = "finalized"


# SQLAlchemy Base


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Models


class Account(Base):
    """Account that owns shipments.

    Carries the default sender address used to pre-fill the first stage.
    No credentials are stored.
    """

    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso, onupdate=utc_now_iso
    )

    shipments: Mapped[list["Shipment"]] = relationship(
        "Shipment", back_populates="account", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Account(id={self.id!r}, email={self.email!r})>"


class Shipment(Base):
    """A shipment, draft or finalized.

    Drafts may be partially filled, so every form column is nullable.
    Cost columns hold a provisional estimate while in draft and the
    server-computed price once finalized.

    Attributes:
        id: UUID primary key
        account_id: Owning account
        status: draft or finalized
        tracking_number: "TR" + 9 digits, assigned at finalize
        shipment_type: Derived from the country pair, never user input
        base_cost_cents: Service cost plus pickup fee, in cents
        total_cost_cents: Sum of all cost components, in cents
        client_base_cents: Base cost the client displayed when saving (untrusted)
        client_total_cents: Total the client displayed when saving (untrusted)
        estimated_delivery: ISO date computed at finalize
    """

    __tablename__ = "shipments"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    account_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ShipmentStatus.draft.value
    )
    tracking_number: Mapped[str | None] = mapped_column(
        String(20), unique=True, nullable=True
    )

    # Sender
    sender_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    sender_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    sender_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sender_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sender_street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sender_postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Receiver
    receiver_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    receiver_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    receiver_country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    receiver_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    receiver_street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    receiver_postal_code: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )

    # Package
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)
    length: Mapped[float | None] = mapped_column(Float, nullable=True)
    width: Mapped[float | None] = mapped_column(Float, nullable=True)
    height: Mapped[float | None] = mapped_column(Float, nullable=True)
    item_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Service
    service_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    shipment_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    pickup_method: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Add-ons
    signature_required: Mapped[bool] = mapped_column(nullable=False, default=False)
    contains_liquid: Mapped[bool] = mapped_column(nullable=False, default=False)
    insurance: Mapped[bool] = mapped_column(nullable=False, default=False)
    packaging: Mapped[bool] = mapped_column(nullable=False, default=False)

    # Rate (in cents to avoid float issues)
    base_cost_cents: Mapped[int] = mapped_column(default=0, nullable=False)
    signature_cost_cents: Mapped[int] = mapped_column(default=0, nullable=False)
    insurance_cost_cents: Mapped[int] = mapped_column(default=0, nullable=False)
    packaging_cost_cents: Mapped[int] = mapped_column(default=0, nullable=False)
    liquid_cost_cents: Mapped[int] = mapped_column(default=0, nullable=False)
    total_cost_cents: Mapped[int] = mapped_column(default=0, nullable=False)
    client_base_cents: Mapped[int | None] = mapped_column(nullable=True)
    client_total_cents: Mapped[int | None] = mapped_column(nullable=True)

    estimated_delivery: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # Timestamps (ISO8601 strings for SQLite compatibility)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso, onupdate=utc_now_iso
    )
    finalized_at: Mapped[str | None] = mapped_column(String(50), nullable=True)

    account: Mapped["Account"] = relationship("Account", back_populates="shipments")
    events: Mapped[list["TrackingEvent"]] = relationship(
        "TrackingEvent",
        back_populates="shipment",
        cascade="all, delete-orphan",
        order_by="TrackingEvent.timestamp",
    )

    __table_args__ = (
        Index("idx_shipments_account", "account_id"),
        Index("idx_shipments_status", "status"),
        Index("idx_shipments_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<Shipment(id={self.id!r}, status={self.status!r}, "
            f"tracking_number={self.tracking_number!r})>"
        )


class TrackingEvent(Base):
    """Append-only tracking history entry for a finalized shipment."""

    __tablename__ = "tracking_events"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    shipment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("shipments.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    shipment: Mapped["Shipment"] = relationship("Shipment", back_populates="events")

    __table_args__ = (Index("idx_tracking_events_shipment", "shipment_id"),)

    def __repr__(self) -> str:
        return (
            f"<TrackingEvent(shipment_id={self.shipment_id!r}, status={self.status!r})>"
        )
