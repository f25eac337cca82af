"""Wire the listener, timer, bus and engine into one event loop."""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path
from typing import Callable, Optional

from .bus import EventBus
from .config import TrackerSettings
from .engine import SessionEngine
from .errors import SetupError, WriteError
from .listener import WindowListener
from .logfile import LogWriter, open_log_writer
from .models import Shutdown
from .paths import get_log_dir
from .rotation import select_log_file
from .timer import IdleTimer

logger = logging.getLogger(__name__)

ListenerFactory = Callable[..., WindowListener]

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def run_tracker(
    *,
    log_dir: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    listener_factory: ListenerFactory = WindowListener,
) -> int:
    """Track focus until interrupted and return the process exit code."""
    settings = settings or TrackerSettings()
    try:
        directory = get_log_dir(log_dir)
        logger.info("Setting up log in %s", directory)
        selection = select_log_file(directory, settings.log_limit)
        writer = open_log_writer(selection.path)
    except SetupError as exc:
        logger.error("Setup failed: %s", exc)
        return 1
    logger.info("Current log is %s; next id is %d", selection.path, selection.next_id)

    try:
        asyncio.run(
            track(writer, selection.next_id, settings, listener_factory=listener_factory)
        )
    except WriteError as exc:
        logger.error("Activity log is no longer writable, stopping: %s", exc)
        _flush_quietly(writer)
        return 1
    finally:
        writer.close()
    return 0


async def track(
    writer: LogWriter,
    next_id: int,
    settings: TrackerSettings,
    *,
    listener_factory: ListenerFactory = WindowListener,
    install_signals: bool = True,
) -> SessionEngine:
    """Run the session engine until a shutdown event has been handled."""
    loop = asyncio.get_running_loop()
    bus = EventBus(maxsize=settings.queue_size)
    timer = IdleTimer(bus, settings.timeout_delay)
    engine = SessionEngine(writer, timer, next_id=next_id)
    listener = listener_factory(bus, settings.reconnect_delay)

    if install_signals:
        _install_signal_handlers(loop, bus)
    listener_task = loop.create_task(listener.run())
    try:
        await engine.run(bus)
    finally:
        bus.close()
        timer.cancel_all()
        listener.stop()
        listener_task.cancel()
        await asyncio.gather(listener_task, return_exceptions=True)
        if install_signals:
            for sig in _SHUTDOWN_SIGNALS:
                loop.remove_signal_handler(sig)
    return engine


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, bus: EventBus) -> None:
    requested = False

    def request_shutdown(sig: signal.Signals) -> None:
        nonlocal requested
        if requested:
            logger.debug("Ignoring repeated %s; already shutting down", sig.name)
            return
        requested = True
        logger.info("Received %s; writing final record", sig.name)
        bus.post(Shutdown())

    for sig in _SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, request_shutdown, sig)


def _flush_quietly(writer: LogWriter) -> None:
    try:
        writer.flush()
    except WriteError:
        logger.exception("Final flush of %s failed", writer.path)
