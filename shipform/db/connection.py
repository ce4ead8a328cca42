"""Database connection management for shipform.

Provides synchronous database access using SQLAlchemy. Defaults to SQLite
under the platform data directory.

Usage:
    from shipform.db.connection import get_db, init_db

    init_db()  # Create tables
    db = next(get_db())
    # ... use db session
"""

import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, make_url
from sqlalchemy.orm import Session, sessionmaker

from shipform.db.models import Base


# Configuration
def get_database_url() -> str:
    """Get database URL from environment or use default SQLite.

    Precedence:
    1. DATABASE_URL (canonical)
    2. SHIPFORM_DB_PATH (converted to sqlite URL)
    3. sqlite:///<platform data dir>/shipform.db
    """
    database_url = os.environ.get("DATABASE_URL", "").strip()
    if database_url:
        return database_url

    db_path = os.environ.get("SHIPFORM_DB_PATH", "").strip()
    if db_path:
        if db_path.startswith("sqlite:"):
            return db_path
        return f"sqlite:///{db_path}"

    from shipform.utils.paths import get_default_db_path
    return f"sqlite:///{get_default_db_path()}"


# Engine creation
DATABASE_URL = get_database_url()

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False}
    if DATABASE_URL.startswith("sqlite")
    else {},
    echo=os.environ.get("SQL_ECHO", "").lower() == "true",
)


# Enable foreign keys for SQLite
@event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
    """Configure SQLite pragmas.

    Enables:
    - foreign_keys=ON: Referential integrity (disabled by default in SQLite).
    - journal_mode=WAL: Concurrent readers with a single writer.
    """
    if DATABASE_URL.startswith("sqlite"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL;")
        cursor.close()


SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# Dependency functions for FastAPI


def get_db() -> Generator[Session, None, None]:
    """Yield a request-scoped database session.

    Usage:
        @router.get("/shipments")
        def list_shipments(db: Session = Depends(get_db)):
            ...

    Yields:
        Session: SQLAlchemy session that will be closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_sqlite_dir(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database.

    Non-SQLite URLs and in-memory databases are left alone.
    """
    parsed = make_url(url)
    if not parsed.drivername.startswith("sqlite"):
        return
    database = parsed.database
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def init_db() -> None:
    """Create all database tables.

    Creates the SQLite data directory first when it does not exist yet.
    Safe to call multiple times - will not recreate existing tables.
    """
    ensure_sqlite_dir(DATABASE_URL)
    Base.metadata.create_all(bind=engine)


def close_db() -> None:
    """Close the engine and dispose of connection pool."""
    engine.dispose()
