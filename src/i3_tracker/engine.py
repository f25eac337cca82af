"""Session engine: turns focus and idle events into log records."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Protocol

from .bus import EventBus
from .models import Event, FocusChanged, FocusSnapshot, LogRecord, Session, Shutdown, Tick

logger = logging.getLogger(__name__)


def local_now() -> datetime:
    """Current time with the local UTC offset attached."""
    return datetime.now().astimezone()


class RecordWriter(Protocol):
    def append(self, record: LogRecord) -> None: ...

    def flush(self) -> None: ...


class TickScheduler(Protocol):
    def arm(self, token: int) -> None: ...


class SessionEngine:
    """Single consumer of the event bus.

    All session state (the current session, the next record ID and the
    writer) is owned here and only mutated by :meth:`handle`. A record is
    written synchronously before the next event is looked at, so a
    :class:`~i3_tracker.errors.WriteError` from the writer stops the engine.
    """

    def __init__(
        self,
        writer: RecordWriter,
        timer: TickScheduler,
        next_id: int = 1,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        self._writer = writer
        self._timer = timer
        self._clock = clock
        self.next_id = next_id
        self.current: Optional[Session] = None
        self.finished = False

    @property
    def tracking(self) -> bool:
        return self.current is not None

    async def run(self, bus: EventBus) -> None:
        """Consume events in arrival order until a shutdown is handled."""
        logger.info("Session engine started; next record id is %d", self.next_id)
        while not self.finished:
            event = await bus.get()
            self.handle(event)
        logger.info("Session engine stopped")

    def handle(self, event: Event) -> None:
        if self.finished:
            logger.debug("Engine finished; ignoring %r", event)
            return
        if isinstance(event, FocusChanged):
            self._on_focus(event.snapshot)
        elif isinstance(event, Tick):
            self._on_tick(event.token)
        elif isinstance(event, Shutdown):
            self._on_shutdown()
        else:
            raise TypeError(f"Unknown event {event!r}")

    def _on_focus(self, snapshot: FocusSnapshot) -> None:
        now = self._clock()
        if self.current is not None:
            self._close(self.current, now)
        logger.debug("Focus on %s (%s)", snapshot.window_class, snapshot.window_title)
        self.current = Session(snapshot=snapshot, start_time=now)
        self._timer.arm(self.next_id)

    def _on_tick(self, token: int) -> None:
        if token != self.next_id:
            logger.debug("Discarding stale tick %d (next id %d)", token, self.next_id)
            return
        if self.current is None:
            return
        now = self._clock()
        logger.info("Idle tick - writing record %d", self.next_id)
        self._close(self.current, now)
        self.current = self.current.restart(now)
        self._timer.arm(self.next_id)

    def _on_shutdown(self) -> None:
        self.finished = True
        if self.current is not None:
            self._close(self.current, self._clock())
            self.current = None
        self._writer.flush()
        logger.info("Shutdown handled; log flushed")

    def _close(self, session: Session, end_time: datetime) -> LogRecord:
        record = session.close(self.next_id, end_time)
        self._writer.append(record)
        self.next_id += 1
        return record
