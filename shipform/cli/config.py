"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. --config <path> CLI flag
2. ./shipform.yaml (working directory)
3. ~/.shipform/config.yaml (user home)

Environment variables override YAML: SHIPFORM_<SECTION>_<KEY>.
${VAR} references in YAML values resolve from environment at load time.

Example shipform.yaml:
    server:
      host: 0.0.0.0
      port: 8080
      log_level: debug
    database:
      url: ${SHIPFORM_DATABASE}
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Args:
        value: String potentially containing ${VAR} references.

    Returns:
        String with all ${VAR} references replaced by their env values.
        Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class ServerConfig(BaseModel):
    """Configuration for the HTTP API server."""

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "info"
    reload: bool = False

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, value: str) -> str:
        """Accept only the level names uvicorn and logging share."""
        normalized = value.strip().lower()
        if normalized not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(LOG_LEVELS)}")
        return normalized


class DatabaseConfig(BaseModel):
    """Database location. url wins over path; both empty means the default."""

    url: str | None = None
    path: str | None = None

    def resolved_url(self) -> str | None:
        """Return a SQLAlchemy URL, or None to fall back to the environment."""
        if self.url:
            return self.url
        if self.path:
            return f"sqlite:///{Path(self.path).expanduser()}"
        return None


class ShipFormConfig(BaseModel):
    """Top-level configuration for the shipform CLI and server."""

    server: ServerConfig = ServerConfig()
    database: DatabaseConfig = DatabaseConfig()


def _find_config_file() -> Path | None:
    """Search for config file in standard locations.

    Returns:
        Path to config file if found, None otherwise.
    """
    candidates = [
        Path.cwd() / "shipform.yaml",
        Path.cwd() / "shipform.yml",
        Path.home() / ".shipform" / "config.yaml",
        Path.home() / ".shipform" / "config.yml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply SHIPFORM_<SECTION>_<KEY> env var overrides to config data.

    For example, ``SHIPFORM_SERVER_PORT=9000`` maps to section ``server``,
    field ``port``. Variables that name no known section are ignored, so
    SHIPFORM_API_KEY and SHIPFORM_DB_PATH pass through untouched.

    Args:
        data: Parsed YAML config dict.

    Returns:
        Config dict with env var overrides applied.
    """
    prefix = "SHIPFORM_"
    known_sections = sorted(
        ShipFormConfig.model_fields.keys(), key=len, reverse=True
    )
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        suffix = key[len(prefix):].lower()
        matched_section = None
        matched_field = None
        for section in known_sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix):
                matched_section = section
                matched_field = suffix[len(section_prefix):]
                break
        if matched_section is None or not matched_field:
            continue
        if matched_section not in data or data[matched_section] is None:
            data[matched_section] = {}
        if isinstance(data[matched_section], dict):
            try:
                data[matched_section][matched_field] = int(value)
            except ValueError:
                if value.lower() in ("true", "false"):
                    data[matched_section][matched_field] = value.lower() == "true"
                else:
                    data[matched_section][matched_field] = value
    return data


def load_config(config_path: str | None = None) -> ShipFormConfig | None:
    """Load shipform configuration from YAML file with env var resolution.

    Args:
        config_path: Explicit path to config file. If None, searches
            standard locations (cwd, then ~/.shipform/).

    Returns:
        Parsed and validated ShipFormConfig, or None if no config found.

    Raises:
        FileNotFoundError: If config_path is given but does not exist.
    """
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()
        if path is None:
            return None

    logger.info("Loading config from %s", path)

    with open(path) as f:
        raw_data = yaml.safe_load(f) or {}

    data = _resolve_env_vars_recursive(raw_data)
    data = _apply_env_overrides(data)
    return ShipFormConfig(**data)


def load_config_or_default(config_path: str | None = None) -> ShipFormConfig:
    """Like load_config, but env overrides still apply when no file exists."""
    config = load_config(config_path)
    if config is not None:
        return config
    return ShipFormConfig(**_apply_env_overrides({}))
