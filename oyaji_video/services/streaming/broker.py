"""
Event broker for SSE subscribers.

Each connected page gets its own bounded queue. Publishing never blocks: a
subscriber that falls behind loses events instead of stalling the workflow.
"""

import asyncio
import logging

from .progress_tracker import ProgressEvent

logger = logging.getLogger(__name__)


class EventBroker:
    """Fans progress events out to per-subscriber queues."""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._queues: list[asyncio.Queue] = []

    def subscribe(self) -> asyncio.Queue:
        """Create an event queue for a new SSE subscriber."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._queues.append(queue)
        logger.info(f"SSE subscriber connected ({len(self._queues)} active)")
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        """Remove an event queue when the SSE client disconnects."""
        try:
            self._queues.remove(queue)
        except ValueError:
            return
        logger.info(f"SSE subscriber disconnected ({len(self._queues)} active)")

    def publish(self, event: ProgressEvent):
        """Push an event to every subscriber queue."""
        for queue in list(self._queues):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Event queue full, dropping {event.event_type.value} event")

    @property
    def subscriber_count(self) -> int:
        return len(self._queues)
