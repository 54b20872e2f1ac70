"""
Progress Tracker for the Studio Workflow

Turns studio state changes and per-beat render progress into structured
events, formatted either for SSE streaming or for a single CLI line.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of progress events."""

    # Connection
    CONNECTED = "connected"

    # Studio snapshot
    STATE = "state"

    # Per-beat render events
    BEAT_STARTED = "beat_started"
    BEAT_STATUS = "beat_status"
    BEAT_COMPLETED = "beat_completed"
    BEAT_FAILED = "beat_failed"

    # All four clips are ready
    COMPLETED = "completed"

    # Info events
    INFO = "info"
    ERROR = "error"


@dataclass
class ProgressEvent:
    """A progress event for SSE streaming."""

    event_id: str = field(default_factory=lambda: str(uuid4()))
    event_type: EventType = EventType.INFO
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    app_state: Optional[str] = None
    beat: Optional[str] = None
    status: Optional[str] = None
    video_url: Optional[str] = None

    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        event_data = {
            "id": self.event_id,
            "type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
        }

        # Add optional fields
        if self.app_state:
            event_data["app_state"] = self.app_state
        if self.beat:
            event_data["beat"] = self.beat
        if self.status:
            event_data["status"] = self.status
        if self.video_url:
            event_data["video_url"] = self.video_url
        if self.data:
            event_data["data"] = self.data

        return event_data

    def to_sse(self) -> str:
        """Format as SSE message."""
        json_data = json.dumps(self.to_dict(), ensure_ascii=False)
        return f"id: {self.event_id}\nevent: {self.event_type.value}\ndata: {json_data}\n\n"

    def to_cli_line(self) -> str:
        """Format as single CLI line."""
        icons = {
            EventType.CONNECTED: "🔌",
            EventType.STATE: "•",
            EventType.BEAT_STARTED: "▶️",
            EventType.BEAT_STATUS: "⏳",
            EventType.BEAT_COMPLETED: "🎬",
            EventType.BEAT_FAILED: "❌",
            EventType.COMPLETED: "✅",
            EventType.ERROR: "🔴",
            EventType.INFO: "ℹ️",
        }
        icon = icons.get(self.event_type, "•")

        if self.event_type == EventType.STATE:
            return f"{icon} [{self.app_state}] {self.message}".rstrip()
        if self.event_type == EventType.BEAT_COMPLETED:
            return f"{icon} [{self.beat}] {self.message} → {self.video_url}"
        if self.beat:
            return f"{icon} [{self.beat}] {self.status or self.message}"
        return f"{icon} {self.message}"


class ProgressTracker:
    """
    Emits studio progress events to registered callbacks.

    Keeps a bounded history so a reconnecting SSE client can catch up from
    its Last-Event-ID.

    Usage:
        tracker = ProgressTracker()
        tracker.on_event(lambda e: print(e.to_cli_line()))

        tracker.beat_started("ki")
        tracker.beat_status("ki", "Rendering frame by frame...")
        tracker.beat_completed("ki", "/media/ki_1a2b3c4d.mp4")
    """

    def __init__(self, history_size: int = 500):
        self.history_size = history_size
        self._callbacks: list[Callable[[ProgressEvent], None]] = []
        self._event_history: list[ProgressEvent] = []

    def on_event(self, callback: Callable[[ProgressEvent], None]):
        """Register callback for progress events."""
        self._callbacks.append(callback)

    def _emit(self, event: ProgressEvent) -> ProgressEvent:
        """Emit event to all callbacks."""
        self._event_history.append(event)
        if len(self._event_history) > self.history_size:
            self._event_history = self._event_history[-self.history_size:]

        for callback in self._callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.warning(f"Progress callback error: {e}")

        return event

    def state_changed(self, app_state: str, snapshot: dict[str, Any], message: str = ""):
        """Emit a full studio snapshot."""
        return self._emit(ProgressEvent(
            event_type=EventType.STATE,
            app_state=app_state,
            message=message,
            data=snapshot,
        ))

    def beat_started(self, beat: str, status: str = ""):
        return self._emit(ProgressEvent(
            event_type=EventType.BEAT_STARTED,
            beat=beat,
            status=status,
            message=f"Generating video for {beat}",
        ))

    def beat_status(self, beat: str, status: str):
        return self._emit(ProgressEvent(
            event_type=EventType.BEAT_STATUS,
            beat=beat,
            status=status,
            message=status,
        ))

    def beat_completed(self, beat: str, video_url: str):
        return self._emit(ProgressEvent(
            event_type=EventType.BEAT_COMPLETED,
            beat=beat,
            video_url=video_url,
            message=f"Video for {beat} ready",
        ))

    def beat_failed(self, beat: str, message: str):
        return self._emit(ProgressEvent(
            event_type=EventType.BEAT_FAILED,
            beat=beat,
            message=message,
            data={"error": message},
        ))

    def completed(self, video_urls: dict[str, str]):
        """Emit once every beat has a video."""
        return self._emit(ProgressEvent(
            event_type=EventType.COMPLETED,
            message="All videos generated",
            data={"video_urls": video_urls},
        ))

    def error(self, message: str):
        return self._emit(ProgressEvent(
            event_type=EventType.ERROR,
            message=message,
            data={"error": message},
        ))

    def info(self, message: str, data: dict = None):
        return self._emit(ProgressEvent(
            event_type=EventType.INFO,
            message=message,
            data=data or {},
        ))

    def get_history(self) -> list[ProgressEvent]:
        """Get all events still held in history."""
        return self._event_history.copy()

    def events_after(self, last_event_id: str) -> list[ProgressEvent]:
        """Events emitted after the given ID. Empty if the ID is unknown."""
        for i, event in enumerate(self._event_history):
            if event.event_id == last_event_id:
                return self._event_history[i + 1:]
        return []
