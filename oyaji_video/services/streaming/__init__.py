"""
SSE Progress Streaming

Studio state changes and per-beat render progress are emitted by a
ProgressTracker and fanned out to connected pages by an EventBroker.

Usage:
    tracker = ProgressTracker()
    broker = EventBroker()
    tracker.on_event(broker.publish)

    # In an SSE handler
    queue = broker.subscribe()
    event = await queue.get()
    yield event.to_sse()
"""

from .progress_tracker import ProgressTracker, ProgressEvent, EventType
from .broker import EventBroker

__all__ = [
    "ProgressTracker",
    "ProgressEvent",
    "EventType",
    "EventBroker",
]
