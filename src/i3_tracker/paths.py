"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from platformdirs import PlatformDirs

from .errors import SetupError


APP_NAME = "i3tracker"
LOG_BASE_NAME = "i3tracker"


def get_data_dir() -> Path:
    """Return the base directory for persistent data."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=False)
    return Path(dirs.user_data_path)


def get_log_dir(override: Optional[Path] = None) -> Path:
    """Return the log directory, creating it if needed."""
    path = Path(override) if override is not None else get_data_dir()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SetupError(f"Cannot create log directory {path}: {exc}") from exc
    if not path.is_dir():
        raise SetupError(f"Log directory {path} is not a directory")
    return path


def log_file_name(suffix: int) -> str:
    return f"{LOG_BASE_NAME}.log.{suffix}"
