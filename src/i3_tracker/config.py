"""Configuration models and helpers for the tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the session tracker."""

    timeout_delay: timedelta = timedelta(seconds=10)
    log_limit: int = 10
    queue_size: int = 50
    reconnect_delay: timedelta = timedelta(seconds=5)

    @classmethod
    def from_intervals(
        cls,
        timeout_seconds: float,
        log_limit: int,
        reconnect_seconds: float | None = None,
    ) -> "TrackerSettings":
        reconnect = reconnect_seconds if reconnect_seconds is not None else 5.0
        return cls(
            timeout_delay=timedelta(seconds=timeout_seconds),
            log_limit=log_limit,
            reconnect_delay=timedelta(seconds=reconnect),
        )
