"""Configuration management for field-sync."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_ENV_PREFIX = "FIELD_SYNC_"


def get_fieldsync_dir() -> Path:
    """Get the field-sync data directory.

    Priority:
    1. FIELD_SYNC_DIR environment variable
    2. ~/.fieldsync/
    """
    env_dir = os.environ.get("FIELD_SYNC_DIR")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".fieldsync"


@dataclass
class Config:
    """
    Application configuration.

    Built from defaults, an optional TOML file, then environment variables.
    """

    # Remote RPC surface
    remote_url: str = "http://localhost:8082/graphql"
    api_key: str | None = None
    request_timeout: float = 30.0

    # Cache router
    origin: str = "http://localhost:3000"
    network_timeout: float = 3.0

    # Storage settings
    storage_backend: str = "sqlite"  # sqlite, memory
    sqlite_path: str | None = None

    # Bulk sync
    sync_threshold_hours: float = 24.0
    id_field: str = "resource_id"
    fixed_assets_only: bool = True

    # Connectivity
    probe_url: str | None = None

    # Local API server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:*", "http://127.0.0.1:*"]
    )

    @property
    def database_path(self) -> Path:
        """Resolved SQLite database path."""
        if self.sqlite_path:
            return Path(self.sqlite_path)
        return get_fieldsync_dir() / "fieldsync.db"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Config:
        """Build a config from a flat mapping, ignoring unknown keys and bad values."""
        config = cls()
        config.apply(data)
        return config

    def apply(self, data: dict[str, Any]) -> None:
        """Overlay values from a mapping onto this config."""
        defaults = Config()
        for f in fields(self):
            if f.name not in data:
                continue
            value = _coerce(data[f.name], getattr(defaults, f.name))
            if value is not None or f.name in _NULLABLE:
                setattr(self, f.name, value)
            else:
                logger.warning("Ignoring invalid config value for %s: %r", f.name, data[f.name])

    @classmethod
    def from_toml(cls, path: Path) -> Config:
        """Load configuration from a TOML file."""
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
        return cls.from_dict(data)

    @classmethod
    def from_env(cls, base: Config | None = None) -> Config:
        """Load configuration from FIELD_SYNC_* environment variables."""
        config = base or cls()
        overrides: dict[str, Any] = {}
        for f in fields(cls):
            raw = os.getenv(_ENV_PREFIX + f.name.upper())
            if raw is not None:
                overrides[f.name] = raw
        config.apply(overrides)
        return config

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Defaults, then TOML file (if any), then environment overrides."""
        if path is None:
            env_path = os.environ.get("FIELD_SYNC_CONFIG")
            path = Path(env_path) if env_path else get_fieldsync_dir() / "config.toml"

        config = cls()
        if path.exists():
            try:
                config = cls.from_toml(path)
            except (OSError, tomllib.TOMLDecodeError):
                logger.warning("Failed to read config file %s, using defaults", path, exc_info=True)
        return cls.from_env(config)


_NULLABLE = frozenset({"api_key", "sqlite_path", "probe_url"})


def _coerce(value: Any, default: Any) -> Any:
    """Coerce a raw value to the type of the default. Returns None when invalid."""
    if isinstance(value, str) and value == "" and default is None:
        return None
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        return str(value).lower() in ("true", "1", "yes")
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            return None
    if isinstance(default, float):
        try:
            return float(value)
        except (TypeError, ValueError):
            return None
    if isinstance(default, list):
        if isinstance(value, list):
            return [str(v) for v in value]
        return [s.strip() for s in str(value).split(",") if s.strip()]
    return None if value is None else str(value)


# Process configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the process configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def reset_config() -> None:
    """Reset the process configuration (useful for testing)."""
    global _config
    _config = None
