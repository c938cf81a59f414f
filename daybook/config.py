"""Configuration loading for Daybook.

Settings come from ``~/.config/daybook/config.toml`` (or the path in
``DAYBOOK_CONFIG``). Every key is optional.
"""

import os
from pathlib import Path
from typing import Any, Optional

import toml

from daybook.sync.coordinator import DEFAULT_DELAY_SECONDS, DEFAULT_SAVED_DISPLAY_SECONDS

CONFIG_DIR = Path.home() / ".config" / "daybook"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = CONFIG_DIR / "daybook.db"


def get_config_path() -> Path:
    """Get the config file path, honoring DAYBOOK_CONFIG."""
    override = os.environ.get("DAYBOOK_CONFIG")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_PATH


def load_config(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the TOML config, returning an empty dict if there is none."""
    config_path = path or get_config_path()
    if not config_path.exists():
        return {}
    return toml.load(config_path)


def get_db_path(config: dict[str, Any]) -> Path:
    db_path = config.get("storage", {}).get("db_path")
    return Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH


def get_user_id(config: dict[str, Any]) -> int:
    return int(config.get("user", {}).get("id", 1))


def get_sync_delays(config: dict[str, Any]) -> tuple[float, float]:
    """Debounce window and saved-status display time, in seconds."""
    sync = config.get("sync", {})
    return (
        float(sync.get("debounce_seconds", DEFAULT_DELAY_SECONDS)),
        float(sync.get("saved_display_seconds", DEFAULT_SAVED_DISPLAY_SECONDS)),
    )


def get_log_level(config: dict[str, Any]) -> str:
    return str(config.get("logging", {}).get("level", "WARNING")).upper()
