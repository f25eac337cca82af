"""Self-scheduled idle ticks."""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from .bus import EventBus
from .models import Tick

logger = logging.getLogger(__name__)


class IdleTimer:
    """Emits ``Tick(token)`` on the bus once ``delay`` has elapsed.

    Timers are never cancelled one by one; the engine discards ticks whose
    token no longer matches its next record ID.
    """

    def __init__(self, bus: EventBus, delay: timedelta) -> None:
        self._bus = bus
        self._delay = delay.total_seconds()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def arm(self, token: int) -> None:
        task = asyncio.get_running_loop().create_task(self._fire(token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fire(self, token: int) -> None:
        await asyncio.sleep(self._delay)
        logger.debug("Idle timer for token %d fired", token)
        await self._bus.put(Tick(token))

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
