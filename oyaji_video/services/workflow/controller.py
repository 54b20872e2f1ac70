"""
Studio Controller

Drives the page workflow:

    select key → fetch trends → generate story → render each beat

Every state change is reported to the ProgressTracker so connected pages
and the CLI can follow along. Errors from the AI services are caught here
and turned into the message shown in the error panel. Credential errors send
the user back to key selection.
"""

import logging
from typing import Optional

from ...core.config import Config, get_config
from ...core.errors import is_credential_error
from ...core.keys import ApiKeyStore
from ..story import Beat, StoryPromptGenerator
from ..streaming import ProgressTracker
from ..trends import TrendFeed, top_trend
from ..video_generation import VeoVideoGenerator
from .state import AppState, BeatPhase, StudioState

logger = logging.getLogger(__name__)


PREPARING_STATUS = "準備中..."
SELECT_KEY_FAILED_MESSAGE = "Could not select an API key. Please provide a valid key."


def beat_error_message(beat: Beat, detail: str) -> str:
    return f"動画 ({beat.value}) の生成中にエラーが発生しました: {detail}"


class StudioController:
    """
    Owns the StudioState and runs each workflow step against it.

    Usage:
        controller = StudioController()
        controller.check_api_key()
        await controller.start_process()
        await controller.generate_beat_video(Beat.KI)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        key_store: Optional[ApiKeyStore] = None,
        trend_feed: Optional[TrendFeed] = None,
        story_generator: Optional[StoryPromptGenerator] = None,
        video_generator: Optional[VeoVideoGenerator] = None,
        tracker: Optional[ProgressTracker] = None,
    ):
        self.config = config or get_config()
        self.key_store = key_store or ApiKeyStore(config=self.config)
        self.trend_feed = trend_feed or TrendFeed(self.config)
        self.story_generator = story_generator or StoryPromptGenerator(self.key_store, self.config)
        self.video_generator = video_generator or VeoVideoGenerator(self.key_store, self.config)
        self.tracker = tracker or ProgressTracker()
        self.state = StudioState()

    @property
    def is_loading(self) -> bool:
        return self.state.app_state in (AppState.FETCHING_TRENDS, AppState.GENERATING_STORY)

    def snapshot(self) -> dict:
        return self.state.to_dict()

    def _publish_state(self, message: str = ""):
        self.tracker.state_changed(self.state.app_state.value, self.state.to_dict(), message)

    def _set_state(self, app_state: AppState, message: str = ""):
        previous = self.state.app_state
        self.state.app_state = app_state
        if previous != app_state:
            logger.info(f"Studio state: {previous.value} → {app_state.value}")
        self._publish_state(message)

    def _fail(self, exc: Exception, message: Optional[str] = None):
        """Surface an error. Credential errors force key re-selection."""
        message = message or str(exc)
        self.state.error = message
        self.tracker.error(message)

        if is_credential_error(exc):
            self.state.api_key_selected = False
            self.key_store.clear()
            self._set_state(AppState.AWAITING_KEY, message)
        else:
            self._set_state(AppState.ERROR, message)

    # =========================================================================
    # API key
    # =========================================================================

    def check_api_key(self) -> bool:
        """Sync api_key_selected with the key store and pick ready/awaiting_key."""
        try:
            selected = self.key_store.has_selected_api_key()
        except Exception as e:
            logger.error(f"Error checking for API key: {e}")
            selected = False

        self.state.api_key_selected = selected
        self._set_state(AppState.READY if selected else AppState.AWAITING_KEY)
        return selected

    def select_key(self, api_key: str) -> bool:
        """Select a key and move to ready. Returns False when the key was rejected."""
        try:
            self.key_store.select_key(api_key)
        except ValueError as e:
            logger.error(f"Error selecting API key: {e}")
            self.state.error = SELECT_KEY_FAILED_MESSAGE
            self._set_state(AppState.ERROR, SELECT_KEY_FAILED_MESSAGE)
            return False

        self.state.api_key_selected = True
        self.state.error = None
        self._set_state(AppState.READY)
        return True

    # =========================================================================
    # Workflow
    # =========================================================================

    async def start_process(self):
        """Fetch trends and generate the story for the top one."""
        self.state.reset_data()
        self._set_state(AppState.FETCHING_TRENDS)

        try:
            trends = await self.trend_feed.fetch_trends()
            self.state.trends = trends
            self._set_state(AppState.GENERATING_STORY)

            trend = top_trend(trends)
            self.tracker.info(f"Top trend: {trend.name} ({trend.volume})", data=trend.to_dict())
            prompts = await self.story_generator.generate_story_prompts(trend)
            self.state.story_prompts = prompts
            self._set_state(AppState.STORY_READY)

        except Exception as e:
            logger.error(f"Workflow failed: {e}")
            self._fail(e)

    async def generate_beat_video(self, beat: Beat) -> Optional[str]:
        """
        Render one beat's video.

        Ignored when the beat has no prompt or is already rendering. Other
        beats may be rendering at the same time; each only touches its own
        slot plus the shared error and app state.

        Returns:
            The /media URL of the clip, or None
        """
        beat = Beat(beat)
        prompts = self.state.story_prompts
        prompt = prompts.for_beat(beat) if prompts else ""
        slot = self.state.beats[beat]

        if not prompt:
            logger.warning(f"No prompt for beat {beat.value}, skipping video generation")
            return None
        if slot.loading:
            logger.warning(f"Beat {beat.value} is already generating")
            return None

        was_complete = self.state.all_videos_generated
        slot.loading = True
        slot.phase = BeatPhase.GENERATING
        slot.status = PREPARING_STATUS
        slot.video_url = None
        self.state.error = None
        self.tracker.beat_started(beat.value, PREPARING_STATUS)
        self._publish_state()

        try:
            async for update in self.video_generator.generate_video(prompt, filename_hint=beat.value):
                slot.status = update.status
                if update.video_url:
                    slot.video_url = update.video_url
                self.tracker.beat_status(beat.value, update.status)

            if slot.video_url:
                slot.phase = BeatPhase.COMPLETED
                self.tracker.beat_completed(beat.value, slot.video_url)
            else:
                slot.phase = BeatPhase.IDLE

        except Exception as e:
            slot.phase = BeatPhase.FAILED
            self.tracker.beat_failed(beat.value, str(e))
            self._fail(e, beat_error_message(beat, str(e)))

        finally:
            slot.loading = False
            self._publish_state()

        if self.state.all_videos_generated and not was_complete:
            self.tracker.completed(self.state.video_urls)

        return slot.video_url

    def reset_app(self, keep_error: bool = False):
        """Clear all data and return to ready (or awaiting_key without a key)."""
        self.state.reset_data(keep_error=keep_error)
        self.state.api_key_selected = self.key_store.has_selected_api_key()
        self._set_state(AppState.READY if self.state.api_key_selected else AppState.AWAITING_KEY)

    async def close(self):
        await self.video_generator.close()
