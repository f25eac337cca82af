"""Error types raised by the tracker."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for tracker failures."""


class SetupError(TrackerError):
    """The log directory or log file could not be prepared."""


class WriteError(TrackerError):
    """A record could not be appended or flushed to the log file."""


class ListenerError(TrackerError):
    """The connection to the window manager was lost or refused."""
