"""
Studio State

Everything the single page shows: where the workflow is, the trends, the
story prompts, and one render slot per beat.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..story import Beat, StoryPrompts
from ..trends import Trend


class AppState(str, Enum):
    """Top-level workflow states."""
    INITIAL = "initial"
    AWAITING_KEY = "awaiting_key"
    READY = "ready"
    FETCHING_TRENDS = "fetching_trends"
    GENERATING_STORY = "generating_story"
    STORY_READY = "story_ready"
    ERROR = "error"


class BeatPhase(str, Enum):
    """Render lifecycle of a single beat."""
    IDLE = "idle"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class BeatGeneration:
    """Render slot for one beat. Independent of the other three."""

    phase: BeatPhase = BeatPhase.IDLE
    status: str = ""
    video_url: Optional[str] = None
    loading: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "status": self.status,
            "video_url": self.video_url,
            "loading": self.loading,
        }


def _empty_beats() -> dict[Beat, BeatGeneration]:
    return {beat: BeatGeneration() for beat in Beat}


@dataclass
class StudioState:
    """Snapshot of the studio page."""

    app_state: AppState = AppState.INITIAL
    api_key_selected: bool = False
    trends: list[Trend] = field(default_factory=list)
    story_prompts: Optional[StoryPrompts] = None
    beats: dict[Beat, BeatGeneration] = field(default_factory=_empty_beats)
    error: Optional[str] = None

    def reset_data(self, keep_error: bool = False):
        """Clear trends, prompts and every beat. Clears the error unless keep_error."""
        self.trends = []
        self.story_prompts = None
        self.beats = _empty_beats()
        if not keep_error:
            self.error = None

    @property
    def all_videos_generated(self) -> bool:
        return all(slot.video_url for slot in self.beats.values())

    @property
    def video_urls(self) -> dict[str, str]:
        return {
            beat.value: slot.video_url
            for beat, slot in self.beats.items()
            if slot.video_url
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "app_state": self.app_state.value,
            "api_key_selected": self.api_key_selected,
            "trends": [trend.to_dict() for trend in self.trends],
            "story_prompts": self.story_prompts.model_dump() if self.story_prompts else None,
            "beats": {
                beat.value: {
                    "title": beat.title,
                    "description": beat.description,
                    "prompt": self.story_prompts.for_beat(beat) if self.story_prompts else None,
                    **slot.to_dict(),
                }
                for beat, slot in self.beats.items()
            },
            "error": self.error,
            "all_videos_generated": self.all_videos_generated,
        }
