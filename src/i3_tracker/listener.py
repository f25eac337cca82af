"""Window listener: feeds i3 focus changes onto the event bus."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any, Optional

import psutil
from i3ipc import Event as I3Event
from i3ipc.aio import Connection

from .bus import EventBus
from .errors import ListenerError
from .models import FocusChanged, FocusSnapshot
from .normalization import normalize_window_title

logger = logging.getLogger(__name__)


def process_name_for_pid(pid: Optional[int]) -> Optional[str]:
    if not pid:
        return None
    try:
        return psutil.Process(pid).name()
    except (psutil.Error, ProcessLookupError):
        return None


def snapshot_from_container(container: Any, workspace: Optional[str] = None) -> FocusSnapshot:
    """Build a snapshot from an i3ipc ``Con``."""
    window_class = getattr(container, "window_class", None) or getattr(container, "app_id", None)
    return FocusSnapshot(
        container_id=container.id,
        window_id=getattr(container, "window", None),
        window_class=window_class,
        window_title=normalize_window_title(window_class, getattr(container, "name", None)),
        workspace=workspace,
        process_name=process_name_for_pid(getattr(container, "pid", None)),
    )


def workspace_name(tree: Any, container_id: int) -> Optional[str]:
    con = tree.find_by_id(container_id) if tree is not None else None
    if con is None:
        return None
    workspace = con.workspace()
    return workspace.name if workspace is not None else None


class WindowListener:
    """Streams focus changes from i3 and reconnects when the socket drops.

    Focus events are queued in arrival order and resolved to snapshots by a
    single forwarder task, so the bus sees them in the order i3 sent them.
    The forwarder outlives individual connections and is restarted if it
    dies. Connection problems never reach the engine; it just stops
    receiving focus changes until the listener is connected again.
    """

    def __init__(self, bus: EventBus, reconnect_delay: timedelta = timedelta(seconds=5)) -> None:
        self._bus = bus
        self._reconnect_delay = reconnect_delay.total_seconds()
        self._conn: Optional[Connection] = None
        self._containers: asyncio.Queue[Any] = asyncio.Queue()
        self._forwarder: Optional[asyncio.Task[None]] = None

    async def run(self) -> None:
        self._start_forwarder()
        try:
            while not self._bus.closed:
                try:
                    await self._listen_once()
                except ListenerError as exc:
                    logger.warning("%s; reconnecting in %.0fs", exc, self._reconnect_delay)
                await asyncio.sleep(self._reconnect_delay)
        finally:
            if self._forwarder is not None:
                self._forwarder.cancel()

    async def _listen_once(self) -> None:
        try:
            conn = await Connection().connect()
        except Exception as exc:  # i3ipc raises a plain Exception when no socket is found
            raise ListenerError(f"Cannot connect to window manager: {exc}") from exc
        self._conn = conn
        logger.info("Connected to window manager; listening for focus changes")
        try:
            conn.on(I3Event.WINDOW_FOCUS, self._on_focus)
            tree = await conn.get_tree()
            focused = tree.find_focused()
            if focused is not None and focused.type != "workspace":
                self._containers.put_nowait(focused)
            await conn.main()
        except Exception as exc:  # socket, protocol and JSON errors all mean the connection is unusable
            raise ListenerError(f"Lost connection to window manager: {exc!r}") from exc
        finally:
            self._conn = None
        raise ListenerError("Window manager connection closed")

    def _on_focus(self, conn: Connection, event: Any) -> None:
        self._containers.put_nowait(event.container)

    def _start_forwarder(self) -> None:
        self._forwarder = asyncio.get_running_loop().create_task(self._forward())
        self._forwarder.add_done_callback(self._on_forwarder_done)

    def _on_forwarder_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or self._bus.closed:
            return
        logger.error("Focus forwarder stopped; restarting it", exc_info=task.exception())
        self._start_forwarder()

    async def _forward(self) -> None:
        while True:
            container = await self._containers.get()
            await self._bus.put(FocusChanged(await self._resolve(container)))

    async def _resolve(self, container: Any) -> FocusSnapshot:
        tree = None
        if self._conn is not None:
            try:
                tree = await self._conn.get_tree()
            except (OSError, EOFError, ValueError) as exc:
                logger.warning("Could not read tree for workspace lookup: %r", exc)
        return snapshot_from_container(container, workspace_name(tree, container.id))

    def stop(self) -> None:
        if self._conn is not None:
            self._conn.main_quit()
