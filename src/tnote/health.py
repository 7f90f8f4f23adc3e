"""
Health check module for tnote.

Reports where tnote keeps its files and whether the database opens.
"""

import os
from pathlib import Path
from typing import Any

from tnote.config import get_config_path, get_data_dir, load_config
from tnote.errors import StorageIOError, TnoteError


def check_config() -> tuple[str, str]:
    """Check config file status."""
    config_path = get_config_path()
    if not config_path.exists():
        return "-", f"Defaults ({config_path} not found)"

    try:
        load_config()
        return "✓", f"OK ({config_path})"
    except TnoteError as e:
        return "✗", f"Error: {e}"


def check_data_dir() -> tuple[str, str]:
    """Check the data directory is writable."""
    data_dir = get_data_dir()
    if not data_dir.exists():
        return "-", f"Not created yet ({data_dir})"
    if not os.access(data_dir, os.W_OK):
        return "✗", f"Not writable ({data_dir})"
    return "✓", f"OK ({data_dir})"


def check_database(db_path: Path, lock_timeout: float) -> tuple[str, str]:
    """Check database status."""
    if not db_path.exists():
        return "-", f"Not created yet ({db_path})"

    from tnote.store import Store

    try:
        with Store(db_path, lock_timeout=lock_timeout) as store:
            count = store.count()
            last_id = store.last_id()
        return "✓", f"OK ({count} notes, last id {last_id}, {db_path})"
    except StorageIOError as e:
        return "✗", f"Error: {e}"


def run_health_check(db_path: Path, config: dict[str, Any]) -> dict[str, tuple[str, str]]:
    """Run all health checks."""
    lock_timeout = config.get("storage", {}).get("lock_timeout", 1.0)
    return {
        "Config": check_config(),
        "Data dir": check_data_dir(),
        "Database": check_database(db_path, lock_timeout),
    }


def format_health_report(checks: dict[str, tuple[str, str]]) -> str:
    """Format health check results."""
    lines = ["tnote Health Check", "-" * 40]

    for name, (status, message) in checks.items():
        lines.append(f"{status} {name}: {message}")

    return "\n".join(lines)
