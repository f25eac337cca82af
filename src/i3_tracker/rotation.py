"""Selection of the current log file at startup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import SetupError
from .logfile import read_last_record_id
from .paths import LOG_BASE_NAME, log_file_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LogSelection:
    path: Path
    next_id: int


def find_log_files(directory: Path) -> list[tuple[Path, Optional[int]]]:
    """Return existing log files together with their numeric suffix."""
    found: list[tuple[Path, Optional[int]]] = []
    for path in sorted(Path(directory).iterdir()):
        if not path.is_file() or not path.name.startswith(LOG_BASE_NAME):
            continue
        found.append((path, _suffix(path)))
    return found


def _suffix(path: Path) -> Optional[int]:
    try:
        return int(path.suffix.lstrip("."))
    except ValueError:
        return None


def next_record_id(paths: list[Path]) -> int:
    """One past the highest record ID in any of ``paths``, or 1."""
    ids = [record_id for record_id in map(read_last_record_id, paths) if record_id is not None]
    return max(ids) + 1 if ids else 1


def select_log_file(directory: Path, limit: int) -> LogSelection:
    """Pick the file to append to and the record ID to resume from.

    With fewer than ``limit`` files a fresh file is started. Otherwise the
    slot after the most recently modified file (modulo ``limit``) is reused
    and truncated, which in steady state is the oldest file.
    """
    if limit < 1:
        raise SetupError(f"Log limit must be positive, got {limit}")
    directory = Path(directory)
    try:
        files = find_log_files(directory)
        next_id = next_record_id([path for path, _ in files])
        used = {suffix for _, suffix in files if suffix is not None}

        if len(files) < limit:
            suffix = next(n for n in range(len(files) + 1) if n not in used)
            path = directory / log_file_name(suffix)
            logger.info("Starting fresh log %s", path)
            return LogSelection(path=path, next_id=next_id)

        numbered = [(path, suffix) for path, suffix in files if suffix is not None]
        if numbered:
            newest, newest_suffix = max(numbered, key=lambda item: item[0].stat().st_mtime)
            suffix = (newest_suffix + 1) % limit
        else:
            suffix = 0
        path = directory / log_file_name(suffix)
        logger.info("Rotating onto %s", path)
        path.write_text("", encoding="utf-8")
    except OSError as exc:
        raise SetupError(f"Cannot select a log file in {directory}: {exc}") from exc
    return LogSelection(path=path, next_id=next_id)
