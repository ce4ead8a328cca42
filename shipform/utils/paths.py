"""File path resolution using platformdirs.

Paths default to platform-appropriate directories:
  macOS: ~/Library/Application Support/shipform/
  Linux: ~/.local/share/shipform/
  Windows: %LOCALAPPDATA%/shipform/

SHIPFORM_DATA_DIR overrides the data directory (useful for tests and
containers).
"""

import os
from pathlib import Path

import platformdirs

APP_NAME = "shipform"


def get_data_dir() -> Path:
    """Return the directory for persistent data (DB)."""
    override = os.environ.get("SHIPFORM_DATA_DIR", "").strip()
    if override:
        return Path(override).expanduser()
    return Path(platformdirs.user_data_dir(APP_NAME, appauthor=False))


def get_default_db_path() -> Path:
    """Return the default SQLite database file path."""
    return get_data_dir() / "shipform.db"
