"""CSV log file layer for finished focus sessions."""

from __future__ import annotations

import csv
import logging
import os
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import IO, Iterator, Optional

from .errors import SetupError, WriteError
from .models import FocusSnapshot, LogRecord

logger = logging.getLogger(__name__)

FIELDNAMES = (
    "id",
    "start_time",
    "end_time",
    "duration",
    "window_id",
    "window_class",
    "window_title",
    "workspace",
    "process_name",
)


def record_to_row(record: LogRecord) -> dict[str, object]:
    snapshot = record.snapshot
    return {
        "id": record.record_id,
        "start_time": record.start_time.isoformat(),
        "end_time": record.end_time.isoformat(),
        "duration": record.duration_seconds,
        "window_id": snapshot.window_id if snapshot.window_id is not None else "",
        "window_class": snapshot.window_class or "",
        "window_title": snapshot.window_title or "",
        "workspace": snapshot.workspace or "",
        "process_name": snapshot.process_name or "",
    }


def row_to_record(row: dict[str, str]) -> LogRecord:
    """Parse a CSV row back into a record. Raises ``ValueError`` on bad rows."""
    try:
        snapshot = FocusSnapshot(
            container_id=0,
            window_id=int(row["window_id"]) if row["window_id"] else None,
            window_class=row["window_class"] or None,
            window_title=row["window_title"] or None,
            workspace=row["workspace"] or None,
            process_name=row["process_name"] or None,
        )
        return LogRecord(
            record_id=int(row["id"]),
            snapshot=snapshot,
            start_time=datetime.fromisoformat(row["start_time"]),
            end_time=datetime.fromisoformat(row["end_time"]),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Malformed log row: {row!r}") from exc


class LogWriter:
    """Appends records to a single log file, one line per record."""

    def __init__(self, path: Path, handle: IO[str]) -> None:
        self.path = Path(path)
        self._handle = handle
        self._writer = csv.DictWriter(handle, fieldnames=FIELDNAMES, lineterminator="\n")

    def write_header_if_empty(self) -> None:
        if self._handle.tell() == 0:
            self._writer.writeheader()
            self._handle.flush()

    def append(self, record: LogRecord) -> None:
        try:
            self._writer.writerow(record_to_row(record))
            self._handle.flush()
        except OSError as exc:
            raise WriteError(f"Failed to append record {record.record_id} to {self.path}: {exc}") from exc
        logger.debug(
            "Wrote record %d: %s %ss",
            record.record_id,
            record.snapshot.window_title,
            record.duration_seconds,
        )

    def flush(self) -> None:
        try:
            self._handle.flush()
            os.fsync(self._handle.fileno())
        except OSError as exc:
            raise WriteError(f"Failed to flush {self.path}: {exc}") from exc

    def close(self) -> None:
        try:
            self._handle.close()
        except OSError:
            logger.exception("Failed to close %s", self.path)


def open_log_writer(path: Path) -> LogWriter:
    """Open (and initialize) the log file for appending."""
    path = Path(path)
    try:
        handle = open(path, "a", encoding="utf-8", newline="")
    except OSError as exc:
        raise SetupError(f"Cannot open log file {path}: {exc}") from exc
    writer = LogWriter(path, handle)
    try:
        writer.write_header_if_empty()
    except OSError as exc:
        handle.close()
        raise SetupError(f"Cannot initialize log file {path}: {exc}") from exc
    return writer


@contextmanager
def log_writer(path: Path) -> Iterator[LogWriter]:
    writer = open_log_writer(path)
    try:
        yield writer
    finally:
        writer.close()


def iter_records(path: Path) -> Iterator[LogRecord]:
    """Yield the records of a log file, skipping lines that do not parse.

    A crash mid-write leaves at most one partial trailing line behind, possibly
    ending inside a multi-byte character.
    """
    with open(path, encoding="utf-8", errors="replace", newline="") as handle:
        for row in csv.DictReader(handle):
            try:
                yield row_to_record(row)
            except ValueError:
                logger.warning("Skipping unreadable line in %s", path)


def read_last_record_id(path: Path) -> Optional[int]:
    """Return the highest record ID found in ``path``, if any."""
    last: Optional[int] = None
    try:
        for record in iter_records(path):
            if last is None or record.record_id > last:
                last = record.record_id
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
    except csv.Error as exc:
        logger.warning("Could not parse %s: %s", path, exc)
    return last
