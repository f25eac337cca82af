from __future__ import annotations

import pytest

from i3_tracker.normalization import normalize_window_title


@pytest.mark.parametrize(
    ("window_class", "title", "expected"),
    [
        ("firefox", "Pull requests — Mozilla Firefox", "Pull requests"),
        ("Google-chrome", "Inbox - Google Chrome", "Inbox"),
        ("Alacritty", "vim  main.py", "vim main.py"),
        (None, "  line one\nline two ", "line one line two"),
        ("firefox", "   ", None),
        ("Alacritty", None, None),
    ],
)
def test_normalize_window_title(window_class, title, expected):
    assert normalize_window_title(window_class, title) == expected
