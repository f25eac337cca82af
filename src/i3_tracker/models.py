"""Domain models for focus sessions and log records."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class FocusSnapshot:
    """Window-manager state captured at the moment focus changed."""

    container_id: int
    window_id: Optional[int] = None
    window_class: Optional[str] = None
    window_title: Optional[str] = None
    workspace: Optional[str] = None
    process_name: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Session:
    """A snapshot that has held focus since ``start_time``."""

    snapshot: FocusSnapshot
    start_time: datetime

    def close(self, record_id: int, end_time: datetime) -> "LogRecord":
        return LogRecord(
            record_id=record_id,
            snapshot=self.snapshot,
            start_time=self.start_time,
            end_time=end_time,
        )

    def restart(self, start_time: datetime) -> "Session":
        """Open a fresh session for the same window."""
        return replace(self, start_time=start_time)


@dataclass(frozen=True, slots=True)
class LogRecord:
    """A finished session, ready to be appended to the log."""

    record_id: int
    snapshot: FocusSnapshot
    start_time: datetime
    end_time: datetime

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def duration_seconds(self) -> int:
        return int(round(self.duration.total_seconds()))


@dataclass(frozen=True, slots=True)
class FocusChanged:
    snapshot: FocusSnapshot


@dataclass(frozen=True, slots=True)
class Tick:
    """Idle timer expiry, tagged with the record ID it was armed for."""

    token: int


@dataclass(frozen=True, slots=True)
class Shutdown:
    pass


Event = Union[FocusChanged, Tick, Shutdown]
