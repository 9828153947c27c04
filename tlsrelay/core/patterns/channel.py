"""
Single-consumer event channel between the transport thread and a driver.

Transport callbacks run on the paho network thread; the driver's control loop
runs on the asyncio event loop. Everything crossing that boundary goes through
``EventChannel.publish_threadsafe`` so the loop sees events strictly one at a
time and in arrival order.
"""

import asyncio
import logging
from typing import Optional

from tlsrelay.models.session_models import SessionEvent, SessionEventType

# Connection changes and stop requests are never shed; only traffic is bounded.
SHEDDABLE = frozenset({SessionEventType.MESSAGE, SessionEventType.TICK})


class EventChannel:
    """asyncio queue with a thread-safe producer side."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None, max_queue_size: int = 1000):
        self._loop = loop
        self._queue: asyncio.Queue = asyncio.Queue()
        self._max_queue_size = max_queue_size
        self._pending_traffic = 0
        self._logger = logging.getLogger(self.__class__.__name__)

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach the loop that owns the consumer side."""
        self._loop = loop

    def publish(self, event: SessionEvent) -> None:
        """Enqueue from the event loop thread."""
        if event.type in SHEDDABLE:
            if self._max_queue_size > 0 and self._pending_traffic >= self._max_queue_size:
                self._logger.error(f"Event queue full, dropping event: {event.type.value}")
                return
            self._pending_traffic += 1
        self._queue.put_nowait(event)
        self._logger.debug(f"Published event: {event.type.value}")

    def publish_threadsafe(self, event: SessionEvent) -> None:
        """Enqueue from any other thread (transport callbacks)."""
        if self._loop is None or self._loop.is_closed():
            self._logger.warning(f"No running loop bound, dropping event: {event.type.value}")
            return
        self._loop.call_soon_threadsafe(self.publish, event)

    async def get(self) -> SessionEvent:
        event = await self._queue.get()
        self._queue.task_done()
        if event.type in SHEDDABLE:
            self._pending_traffic -= 1
        return event

    def get_queue_size(self) -> int:
        return self._queue.qsize()
