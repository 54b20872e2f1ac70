"""Shared fixtures: config pointed at a temp dir and fake AI services."""

import asyncio
import os
import sys
from typing import Optional

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from oyaji_video.core.config import Config
from oyaji_video.core.keys import ApiKeyStore
from oyaji_video.services.story import StoryPrompts
from oyaji_video.services.streaming import ProgressTracker
from oyaji_video.services.trends.feed import STUB_TRENDS
from oyaji_video.services.video_generation import (
    DONE_MESSAGE,
    STARTING_MESSAGE,
    GenerationUpdate,
)
from oyaji_video.services.workflow import StudioController


SAMPLE_PROMPTS = StoryPrompts(
    ki="頑固おやじが古いラジオを修理している",
    sho="孫がAIスピーカーを持ってくる",
    ten="AIがおやじの口癖を真似し始める",
    ketsu="おやじとAIが一緒に演歌を歌う",
)


class FakeTrendFeed:
    def __init__(self, trends=None):
        self.trends = list(STUB_TRENDS) if trends is None else trends
        self.calls = 0

    async def fetch_trends(self):
        self.calls += 1
        return list(self.trends)


class FakeStoryGenerator:
    def __init__(self, prompts: StoryPrompts = SAMPLE_PROMPTS, error: Optional[Exception] = None):
        self.prompts = prompts
        self.error = error
        self.trends = []

    async def generate_story_prompts(self, trend):
        self.trends.append(trend)
        if self.error:
            raise self.error
        return self.prompts


class FakeVideoGenerator:
    """Yields a start and a done update. `gates` can hold a beat back until released."""

    def __init__(self, error: Optional[Exception] = None, gates: Optional[dict] = None):
        self.error = error
        self.gates = gates or {}
        self.calls = []
        self.closed = False

    async def generate_video(self, prompt, filename_hint="clip"):
        self.calls.append((prompt, filename_hint))
        yield GenerationUpdate(status=STARTING_MESSAGE)
        gate = self.gates.get(filename_hint)
        if gate is not None:
            await gate.wait()
        if self.error:
            raise self.error
        yield GenerationUpdate(status=DONE_MESSAGE, video_url=f"/media/{filename_hint}.mp4")

    async def close(self):
        self.closed = True


@pytest.fixture
def config(tmp_path):
    config = Config()
    config.video.poll_interval_seconds = 0
    config.trends.fetch_delay_seconds = 0
    config.server.heartbeat_seconds = 0.05
    config.storage.output_dir = str(tmp_path / "output")
    return config


@pytest.fixture
def make_controller(config):
    """Factory for a StudioController wired to fakes."""

    def factory(
        api_key: str = "test-key",
        trends=None,
        story_error: Optional[Exception] = None,
        video_error: Optional[Exception] = None,
        gates: Optional[dict[str, asyncio.Event]] = None,
    ) -> StudioController:
        return StudioController(
            config=config,
            key_store=ApiKeyStore(api_key=api_key),
            trend_feed=FakeTrendFeed(trends),
            story_generator=FakeStoryGenerator(error=story_error),
            video_generator=FakeVideoGenerator(error=video_error, gates=gates),
            tracker=ProgressTracker(),
        )

    return factory
