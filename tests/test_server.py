"""
Studio Server Tests

Drives the FastAPI app with TestClient against a controller wired to fake
AI services, and exercises the SSE event stream directly.

Run with:
    python -m pytest tests/test_server.py -v
"""

import os

import pytest
from fastapi.testclient import TestClient

from oyaji_video.services.streaming import EventBroker, ProgressTracker
from oyaji_video.services.workflow.server import create_app, studio_event_stream


@pytest.fixture
def client(make_controller):
    controller = make_controller()
    with TestClient(create_app(controller=controller)) as test_client:
        yield test_client


class TestEndpoints:
    """HTTP surface."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["app_state"] == "ready"

    def test_index_page(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "頑固おやじ" in response.text
        assert "/api/stream" in response.text

    def test_new_story_button_only_after_all_videos(self, client):
        page = client.get("/").text

        completed_panel = page.index("state.all_videos_generated")
        button = page.index('id="new-story"')
        assert completed_panel < button < page.index(': ""}`;', completed_panel)
        assert "if (newStory)" in page

    def test_state(self, client):
        data = client.get("/api/state").json()

        assert data["app_state"] == "ready"
        assert data["api_key_selected"] is True
        assert list(data["beats"]) == ["ki", "sho", "ten", "ketsu"]

    def test_start_generates_story(self, client):
        response = client.post("/api/start")

        assert response.status_code == 202
        data = client.get("/api/state").json()
        assert data["app_state"] == "story_ready"
        assert data["trends"][0] == {"name": "#FutureOfAI", "volume": "215K posts"}
        assert data["beats"]["ki"]["prompt"] == data["story_prompts"]["ki"]

    def test_beat_before_story(self, client):
        response = client.post("/api/beats/ki/generate")

        assert response.status_code == 409

    def test_unknown_beat(self, client):
        response = client.post("/api/beats/epilogue/generate")

        assert response.status_code == 404

    def test_generate_beat(self, client):
        client.post("/api/start")

        response = client.post("/api/beats/ten/generate")

        assert response.status_code == 202
        assert response.json()["beat"] == "ten"
        beat = client.get("/api/state").json()["beats"]["ten"]
        assert beat["video_url"] == "/media/ten.mp4"
        assert beat["phase"] == "completed"
        assert beat["loading"] is False

    def test_all_beats(self, client):
        client.post("/api/start")
        for beat in ("ki", "sho", "ten", "ketsu"):
            client.post(f"/api/beats/{beat}/generate")

        assert client.get("/api/state").json()["all_videos_generated"] is True

    def test_reset(self, client):
        client.post("/api/start")

        data = client.post("/api/reset").json()

        assert data["app_state"] == "ready"
        assert data["story_prompts"] is None
        assert data["trends"] == []

    def test_media_served(self, client, config):
        with open(os.path.join(config.storage.output_dir, "ki_test.mp4"), "wb") as f:
            f.write(b"clip")

        response = client.get("/media/ki_test.mp4")

        assert response.status_code == 200
        assert response.content == b"clip"


class TestKeySelection:

    @pytest.fixture
    def keyless_client(self, make_controller):
        with TestClient(create_app(controller=make_controller(api_key=""))) as test_client:
            yield test_client

    def test_starts_awaiting_key(self, keyless_client):
        assert keyless_client.get("/api/state").json()["app_state"] == "awaiting_key"

    def test_select_key(self, keyless_client):
        response = keyless_client.post("/api/key", json={"api_key": "new-key"})

        assert response.status_code == 200
        assert response.json()["app_state"] == "ready"
        assert response.json()["api_key_selected"] is True

    def test_blank_key(self, keyless_client):
        response = keyless_client.post("/api/key", json={"api_key": ""})

        assert response.status_code == 400
        assert keyless_client.get("/api/state").json()["app_state"] == "error"

    def test_missing_body(self, keyless_client):
        response = keyless_client.post("/api/key", json={})

        assert response.status_code == 422


class TestEventStream:
    """SSE body generator."""

    @pytest.mark.asyncio
    async def test_connected_snapshot_live_and_heartbeat(self):
        tracker = ProgressTracker()
        broker = EventBroker()
        tracker.on_event(broker.publish)

        stream = studio_event_stream(
            tracker, broker, lambda: {"app_state": "ready"}, heartbeat_seconds=0.01
        )

        assert "event: connected" in await stream.__anext__()
        snapshot = await stream.__anext__()
        assert "event: state" in snapshot
        assert '"app_state": "ready"' in snapshot
        assert broker.subscriber_count == 1

        tracker.beat_status("ki", "Rendering frame by frame...")
        live = await stream.__anext__()
        assert "event: beat_status" in live
        assert "Rendering frame by frame..." in live

        assert await stream.__anext__() == ": heartbeat\n\n"

        await stream.aclose()
        assert broker.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_replays_after_last_event_id(self):
        tracker = ProgressTracker()
        broker = EventBroker()
        first = tracker.info("first")
        tracker.info("second")

        stream = studio_event_stream(
            tracker, broker, lambda: {"app_state": "ready"}, last_event_id=first.event_id
        )

        await stream.__anext__()
        replayed = await stream.__anext__()
        assert '"message": "second"' in replayed
        assert "event: state" in await stream.__anext__()

        await stream.aclose()
