"""Database module for shipform state management and persistence."""

from shipform.db.connection import (
    SessionLocal,
    engine,
    get_db,
    init_db,
)
from shipform.db.models import (
    Account,
    Base,
    Shipment,
    ShipmentStatus,
    TrackingEvent,
)

__all__ = [
    # Models
    "Account",
    "Shipment",
    "TrackingEvent",
    "Base",
    # Enums
    "ShipmentStatus",
    # Connection
    "engine",
    "SessionLocal",
    "get_db",
    "init_db",
]
