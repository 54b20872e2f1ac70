"""
Studio HTTP + SSE Server

FastAPI app that serves the studio page and drives the workflow:
- GET  /                          - The studio page
- GET  /health                    - Health check
- GET  /api/state                 - Current studio snapshot
- POST /api/key                   - Select the API key
- POST /api/start                 - Fetch trends and generate the story
- POST /api/beats/{beat}/generate - Render one beat's video
- POST /api/reset                 - Reset the studio
- GET  /api/stream                - SSE stream of studio events
- GET  /media/{file}              - Downloaded clips

Usage:
    python -m uvicorn oyaji_video.services.workflow.server:app --port 8765

    # Or via the CLI
    oyaji-video server
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from ...core.config import Config, get_config
from ..story import Beat
from ..streaming import EventBroker, EventType, ProgressEvent, ProgressTracker
from .controller import StudioController
from .page import STUDIO_PAGE

logger = logging.getLogger(__name__)


class KeySelection(BaseModel):
    api_key: str


async def studio_event_stream(
    tracker: ProgressTracker,
    broker: EventBroker,
    snapshot: Callable[[], dict],
    last_event_id: Optional[str] = None,
    heartbeat_seconds: float = 30.0,
) -> AsyncIterator[str]:
    """
    SSE body for one subscriber.

    Sends a connected event, any events missed since Last-Event-ID, the
    current snapshot, then live events. A heartbeat comment goes out whenever
    the stream is idle for `heartbeat_seconds`.
    """
    queue = broker.subscribe()

    try:
        yield ProgressEvent(
            event_type=EventType.CONNECTED,
            message="Connected to studio stream",
        ).to_sse()

        if last_event_id:
            for event in tracker.events_after(last_event_id):
                yield event.to_sse()

        current = snapshot()
        yield ProgressEvent(
            event_type=EventType.STATE,
            app_state=current["app_state"],
            data=current,
        ).to_sse()

        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=heartbeat_seconds)
                yield event.to_sse()
            except asyncio.TimeoutError:
                yield ": heartbeat\n\n"

    finally:
        broker.unsubscribe(queue)


def create_app(
    controller: Optional[StudioController] = None,
    config: Optional[Config] = None,
) -> FastAPI:
    """Build the studio app around a controller."""
    config = config or (controller.config if controller else get_config())
    controller = controller or StudioController(config=config)

    broker = EventBroker(queue_size=config.server.subscriber_queue_size)
    controller.tracker.on_event(broker.publish)

    output_dir = Path(config.storage.output_dir)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info("Starting Oyaji Video Studio server...")
        output_dir.mkdir(parents=True, exist_ok=True)
        for issue in config.validate():
            logger.warning(f"Config: {issue}")
        controller.check_api_key()

        yield

        logger.info("Shutting down Oyaji Video Studio server...")
        await controller.close()

    app = FastAPI(
        title="Oyaji Video Studio",
        description="Trend → 起承転結 story → Veo clips",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.controller = controller
    app.state.broker = broker

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return STUDIO_PAGE

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "app_state": controller.state.app_state.value,
            "subscribers": broker.subscriber_count,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/state")
    async def get_state():
        return controller.snapshot()

    @app.post("/api/key")
    async def select_key(selection: KeySelection):
        if not controller.select_key(selection.api_key):
            raise HTTPException(status_code=400, detail=controller.state.error)
        return controller.snapshot()

    @app.post("/api/start", status_code=202)
    async def start(background_tasks: BackgroundTasks):
        """Fetch trends and generate the story in the background."""
        if controller.is_loading:
            raise HTTPException(status_code=409, detail="Workflow already running")

        background_tasks.add_task(controller.start_process)
        return {"status": "started", "stream_url": "/api/stream"}

    @app.post("/api/beats/{beat}/generate", status_code=202)
    async def generate_beat(beat: str, background_tasks: BackgroundTasks):
        """Render one beat's video in the background."""
        try:
            selected = Beat(beat)
        except ValueError:
            raise HTTPException(status_code=404, detail=f"Unknown beat: {beat}")

        if controller.state.story_prompts is None:
            raise HTTPException(status_code=409, detail="Story prompts are not ready")
        if controller.state.beats[selected].loading:
            raise HTTPException(status_code=409, detail=f"Beat {beat} is already generating")

        background_tasks.add_task(controller.generate_beat_video, selected)
        return {"status": "started", "beat": selected.value, "stream_url": "/api/stream"}

    @app.post("/api/reset")
    async def reset(keep_error: bool = False):
        controller.reset_app(keep_error=keep_error)
        return controller.snapshot()

    @app.get("/api/stream")
    async def stream(request: Request):
        """
        SSE endpoint for studio events.

        Usage:
            curl -N http://localhost:8765/api/stream
        """
        return StreamingResponse(
            studio_event_stream(
                controller.tracker,
                broker,
                controller.snapshot,
                last_event_id=request.headers.get("Last-Event-ID"),
                heartbeat_seconds=config.server.heartbeat_seconds,
            ),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    app.mount(
        config.storage.media_route,
        StaticFiles(directory=str(output_dir), check_dir=False),
        name="media",
    )

    return app


app = create_app()
