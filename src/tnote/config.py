"""
Configuration management for tnote.

Uses XDG base directories:
- Config: ~/.config/tnote/config.toml
- Data: ~/.local/share/tnote/ (notes.db, tnote.log)
"""

import logging
import math
import os
from pathlib import Path
from typing import Any

from tnote.errors import ConfigError

# XDG defaults
DEFAULT_CONFIG_HOME = Path.home() / ".config"
DEFAULT_DATA_HOME = Path.home() / ".local" / "share"

DB_FILE_NAME = "notes.db"
LOG_FILE_NAME = "tnote.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_dir() -> Path:
    """Get the config directory (XDG_CONFIG_HOME/tnote)."""
    base = Path(os.environ.get("XDG_CONFIG_HOME", DEFAULT_CONFIG_HOME))
    return base / "tnote"


def get_data_dir() -> Path:
    """Get the data directory (XDG_DATA_HOME/tnote)."""
    base = Path(os.environ.get("XDG_DATA_HOME", DEFAULT_DATA_HOME))
    return base / "tnote"


def get_config_path() -> Path:
    """Get the path to config.toml."""
    return get_config_dir() / "config.toml"


def get_log_path() -> Path:
    """Get the path to tnote.log (used while the TUI owns the terminal)."""
    return get_data_dir() / LOG_FILE_NAME


def expand_path(path: str | Path) -> Path:
    """Expand a leading ~ in a user-supplied path."""
    return Path(path).expanduser()


def get_db_path(override: str | Path | None = None, config: dict[str, Any] | None = None) -> Path:
    """
    Resolve the notes database path.

    Precedence: explicit override (--db), TNOTE_DB, [storage] db_path
    in config.toml, then the per-user data directory.
    """
    if override:
        return expand_path(override)
    if env_db := os.environ.get("TNOTE_DB"):
        return expand_path(env_db)
    config = config if config is not None else load_config()
    if configured := config.get("storage", {}).get("db_path"):
        return expand_path(configured)
    return get_data_dir() / DB_FILE_NAME


def load_config() -> dict[str, Any]:
    """
    Load configuration from config.toml.

    Returns default config if file doesn't exist. Sections present in the
    file override the defaults key by key.
    """
    config = get_default_config()
    config_path = get_config_path()

    if not config_path.exists():
        return config

    # Lazy import tomli only when needed
    import tomli

    try:
        with open(config_path, "rb") as f:
            user_config = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        raise ConfigError(f"cannot read {config_path}: {e}") from e

    for section, values in user_config.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values
    _validate(config, config_path)
    return config


# (section, key) -> (type, minimum)
NUMERIC_SETTINGS = {
    ("storage", "lock_timeout"): (float, 0.0),
    ("tui", "soft_break"): (int, 0),
}


def _validate(config: dict[str, Any], config_path: Path) -> None:
    """Coerce numeric settings in place, raising ConfigError on bad values."""
    for (section, key), (kind, minimum) in NUMERIC_SETTINGS.items():
        values = config.get(section)
        if not isinstance(values, dict):
            raise ConfigError(f"{config_path}: [{section}] must be a table")
        value = values.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ConfigError(f"{config_path}: {section}.{key} must be a number, got {value!r}")
        if kind is int and not float(value).is_integer():
            raise ConfigError(f"{config_path}: {section}.{key} must be a whole number, got {value!r}")
        if value < minimum:
            raise ConfigError(f"{config_path}: {section}.{key} must be at least {minimum}, got {value!r}")
        values[key] = kind(value)


def get_default_config() -> dict[str, Any]:
    """Return default configuration."""
    return {
        "storage": {
            "lock_timeout": 1.0,  # seconds to wait for another tnote to release the db
        },
        "tui": {
            "soft_break": 30,  # break long tokens (URLs) every N characters
        },
        "logging": {
            "level": "WARNING",
        },
    }


def setup_logging(config: dict[str, Any] | None = None, log_file: Path | None = None) -> None:
    """
    Configure root logging.

    Logs go to stderr unless log_file is given; the TUI passes a file so
    log lines never land on top of the rendered screen.
    """
    config = config if config is not None else get_default_config()
    level_name = os.environ.get("TNOTE_LOG_LEVEL") or config.get("logging", {}).get("level", "WARNING")
    level = logging.getLevelName(str(level_name).upper())
    if not isinstance(level, int):
        level = logging.WARNING

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(format=LOG_FORMAT, level=level, filename=log_file, force=True)
    else:
        logging.basicConfig(format=LOG_FORMAT, level=level, force=True)
