"""
Progress Event Tests

Covers SSE/CLI formatting, tracker callbacks and history, the event broker,
and the CLI monitor's event handling.
"""

import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from oyaji_video.cli.progress_monitor import ProgressMonitor, format_event
from oyaji_video.services.streaming import EventBroker, EventType, ProgressEvent, ProgressTracker


class TestProgressEvent:

    def test_to_sse(self):
        event = ProgressEvent(
            event_type=EventType.BEAT_STATUS,
            beat="ki",
            status="準備中...",
            message="準備中...",
        )

        sse = event.to_sse()
        lines = sse.split("\n")

        assert lines[0] == f"id: {event.event_id}"
        assert lines[1] == "event: beat_status"
        assert sse.endswith("\n\n")

        payload = json.loads(lines[2][len("data: "):])
        assert payload["type"] == "beat_status"
        assert payload["beat"] == "ki"
        assert payload["status"] == "準備中..."
        assert "video_url" not in payload
        # Japanese text is sent as-is
        assert "準備中" in lines[2]

    def test_cli_lines(self):
        status = ProgressEvent(event_type=EventType.BEAT_STATUS, beat="sho", status="Rendering frame by frame...")
        done = ProgressEvent(
            event_type=EventType.BEAT_COMPLETED, beat="sho", video_url="/media/sho.mp4", message="Video for sho ready"
        )
        state = ProgressEvent(event_type=EventType.STATE, app_state="story_ready")

        assert status.to_cli_line() == "⏳ [sho] Rendering frame by frame..."
        assert done.to_cli_line().endswith("→ /media/sho.mp4")
        assert state.to_cli_line() == "• [story_ready]"


class TestProgressTracker:

    def test_callbacks_receive_events(self):
        tracker = ProgressTracker()
        received = []
        tracker.on_event(received.append)

        tracker.beat_started("ten", "準備中...")
        tracker.beat_failed("ten", "boom")

        assert [e.event_type for e in received] == [EventType.BEAT_STARTED, EventType.BEAT_FAILED]
        assert received[1].data == {"error": "boom"}

    def test_failing_callback_does_not_break_others(self, caplog):
        tracker = ProgressTracker()
        received = []

        def broken(event):
            raise RuntimeError("subscriber gone")

        tracker.on_event(broken)
        tracker.on_event(received.append)

        with caplog.at_level(logging.WARNING):
            tracker.info("hello")

        assert len(received) == 1
        assert "subscriber gone" in caplog.text

    def test_history_is_bounded(self):
        tracker = ProgressTracker(history_size=3)
        for i in range(5):
            tracker.info(f"event {i}")

        history = tracker.get_history()
        assert [e.message for e in history] == ["event 2", "event 3", "event 4"]

    def test_events_after(self):
        tracker = ProgressTracker()
        first = tracker.info("one")
        tracker.info("two")
        tracker.info("three")

        assert [e.message for e in tracker.events_after(first.event_id)] == ["two", "three"]
        assert tracker.events_after("unknown-id") == []

    def test_completed_carries_urls(self):
        tracker = ProgressTracker()

        event = tracker.completed({"ki": "/media/ki.mp4"})

        assert event.event_type == EventType.COMPLETED
        assert event.data["video_urls"]["ki"] == "/media/ki.mp4"


class TestEventBroker:

    @pytest.mark.asyncio
    async def test_publish_to_all_subscribers(self):
        broker = EventBroker()
        first = broker.subscribe()
        second = broker.subscribe()
        event = ProgressEvent(message="hi")

        broker.publish(event)

        assert await asyncio.wait_for(first.get(), 1) is event
        assert await asyncio.wait_for(second.get(), 1) is event

    @pytest.mark.asyncio
    async def test_full_queue_drops_event(self, caplog):
        broker = EventBroker(queue_size=1)
        queue = broker.subscribe()

        with caplog.at_level(logging.WARNING):
            broker.publish(ProgressEvent(message="kept"))
            broker.publish(ProgressEvent(message="dropped"))

        assert queue.qsize() == 1
        assert queue.get_nowait().message == "kept"
        assert "Event queue full" in caplog.text

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        broker = EventBroker()
        queue = broker.subscribe()

        broker.unsubscribe(queue)
        broker.unsubscribe(queue)
        broker.publish(ProgressEvent(message="nobody listening"))

        assert broker.subscriber_count == 0
        assert queue.empty()


class TestProgressMonitor:

    def test_format_beat_completed(self):
        line = format_event({
            "type": "beat_completed",
            "beat": "ketsu",
            "message": "Video for ketsu ready",
            "video_url": "/media/ketsu.mp4",
        })

        assert "ketsu" in line
        assert "/media/ketsu.mp4" in line

    def test_format_completed_lists_urls(self):
        text = format_event({
            "type": "completed",
            "message": "All videos generated",
            "data": {"video_urls": {"ki": "/media/ki.mp4", "sho": "/media/sho.mp4"}},
        })

        assert "ki: /media/ki.mp4" in text
        assert "sho: /media/sho.mp4" in text

    def test_stops_on_completed(self, capsys):
        monitor = ProgressMonitor(server_url="http://localhost:8765/")
        monitor._running = True

        monitor._handle_event({"type": "beat_status", "beat": "ki", "status": "Rendering frame by frame..."})
        assert monitor._running

        monitor._handle_event({"type": "completed", "message": "All videos generated", "data": {}})
        assert not monitor._running

        assert monitor.stream_url == "http://localhost:8765/api/stream"
        assert "Rendering frame by frame..." in capsys.readouterr().out

    def test_stops_on_error_event(self):
        monitor = ProgressMonitor()
        monitor._running = True

        monitor._handle_event({"type": "error", "message": "Could not fetch any trends."})

        assert not monitor._running

    def test_stops_when_studio_falls_back_to_key_selection(self):
        monitor = ProgressMonitor()
        monitor._running = True
        monitor._awaiting_snapshot = True

        # The snapshot sent on connect only reports where the studio already is
        monitor._handle_event({"type": "state", "app_state": "error", "data": {}})
        assert monitor._running

        monitor._handle_event({"type": "state", "app_state": "generating_story", "data": {}})
        assert monitor._running

        monitor._handle_event({"type": "state", "app_state": "awaiting_key", "data": {}})
        assert not monitor._running

    @pytest.mark.asyncio
    async def test_stream_stops_on_error_state(self, capsys):
        lines = [
            b"id: 1\n",
            b'data: {"type": "state", "app_state": "ready", "data": {}}\n',
            b"id: 2\n",
            b'data: {"type": "state", "app_state": "error", "message": "boom", "data": {}}\n',
            b"id: 3\n",
            b'data: {"type": "info", "message": "never printed"}\n',
        ]

        async def content():
            for line in lines:
                yield line

        response = MagicMock(status=200)
        response.content = content()
        session = MagicMock()
        session.__aenter__.return_value = session
        session.get.return_value.__aenter__.return_value = response

        monitor = ProgressMonitor()
        with patch("oyaji_video.cli.progress_monitor.aiohttp.ClientSession", return_value=session) as factory:
            await monitor.start()

        timeout = factory.call_args.kwargs["timeout"]
        assert timeout.total is None
        assert timeout.sock_read is None
        assert monitor._last_event_id == "2"
        assert "never printed" not in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_read_timeouts_are_retried(self, capsys):
        monitor = ProgressMonitor()
        monitor._stream_events = AsyncMock(side_effect=asyncio.TimeoutError())

        with patch("oyaji_video.cli.progress_monitor.asyncio.sleep", new=AsyncMock()) as sleep:
            await monitor.start()

        assert monitor._stream_events.await_count == 5
        assert [c.args[0] for c in sleep.await_args_list] == [2, 4, 8, 16]
        assert "Failed to connect after 5 attempts" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_successful_connection_resets_retries(self):
        monitor = ProgressMonitor(max_retries=2)
        attempts = []

        async def flaky_stream():
            attempts.append(monitor._retry_count)
            if len(attempts) == 3:
                return
            if len(attempts) == 2:
                # Connected, then the server went away
                monitor._retry_count = 0
            raise aiohttp.ClientError("connection reset")

        monitor._stream_events = flaky_stream

        with patch("oyaji_video.cli.progress_monitor.asyncio.sleep", new=AsyncMock()):
            await monitor.start()

        assert attempts == [0, 1, 1]
