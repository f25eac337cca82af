"""Utilities to normalize window titles before logging."""

from __future__ import annotations

import re
from typing import Optional

_BROWSER_SUFFIXES: dict[str, tuple[str, ...]] = {
    "firefox": (" — Mozilla Firefox", " - Mozilla Firefox"),
    "google-chrome": (" - Google Chrome",),
    "chromium": (" - Chromium",),
    "brave-browser": (" - Brave",),
    "vivaldi-stable": (" - Vivaldi",),
}

_WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_window_title(window_class: Optional[str], window_title: Optional[str]) -> Optional[str]:
    """Collapse whitespace and strip browser suffixes to surface tab names.

    Line breaks are always removed so a title never spans log lines.
    """
    if not window_title:
        return None
    normalized = _WHITESPACE_PATTERN.sub(" ", window_title).strip()
    if not window_class:
        return normalized or None

    suffixes = _BROWSER_SUFFIXES.get(window_class.lower())
    if suffixes:
        for suffix in suffixes:
            if normalized.endswith(suffix):
                normalized = normalized[: -len(suffix)].rstrip(" -")
                break

    return normalized or None
