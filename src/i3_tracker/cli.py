"""Command-line interface for the i3 tracker."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config import TrackerSettings

app = typer.Typer(help="Log how long each i3 window holds focus.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def track(
    log_dir: Optional[Path] = typer.Option(
        None,
        "--log-dir",
        envvar="I3TRACKER_LOG_DIR",
        path_type=Path,
        help="Directory holding the rotated activity logs.",
    ),
    timeout_seconds: float = typer.Option(
        10.0,
        "--timeout",
        min=1.0,
        help="Seconds after which a still-focused window is checkpointed.",
    ),
    log_limit: int = typer.Option(
        10,
        "--log-limit",
        min=1,
        help="Number of log files kept before the oldest is reused.",
    ),
) -> None:
    """Record focused windows until interrupted."""
    from .runner import run_tracker

    settings = TrackerSettings.from_intervals(timeout_seconds=timeout_seconds, log_limit=log_limit)
    code = run_tracker(log_dir=log_dir, settings=settings)
    raise typer.Exit(code=code)
