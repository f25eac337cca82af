"""Ordered, bounded channel feeding events to the session engine."""

from __future__ import annotations

import asyncio
import logging

from .models import Event

logger = logging.getLogger(__name__)


class EventBus:
    """Multi-producer, single-consumer queue of tracker events.

    Producers wait when the queue is full rather than dropping events, since a
    lost focus change would corrupt the session timeline. Sends after
    :meth:`close` are ignored.
    """

    def __init__(self, maxsize: int = 50) -> None:
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, event: Event) -> None:
        if self._closed:
            logger.debug("Bus closed; dropping %r", event)
            return
        if self._queue.full():
            logger.warning("Event bus full (%d); waiting to enqueue %r", self._queue.maxsize, event)
        await self._queue.put(event)

    def post(self, event: Event) -> None:
        """Schedule a send from synchronous code running on the loop."""
        task = asyncio.get_running_loop().create_task(self.put(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def get(self) -> Event:
        return await self._queue.get()

    def qsize(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._closed = True
        for task in list(self._pending):
            task.cancel()
