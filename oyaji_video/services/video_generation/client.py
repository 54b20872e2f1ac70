"""
Veo Video Generation Client

Renders one story beat with Veo. Generation is a long-running operation:
submit, poll until done, then download the clip into the output directory
so the page can play it from /media.

Progress is reported as an async stream of GenerationUpdate values. The last
update carries the playable URL.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Optional

import httpx
from google import genai
from google.genai import types

from ...core.config import Config, get_config
from ...core.errors import CredentialError, VideoGenerationError, is_credential_error
from ...core.keys import ApiKeyStore, create_client

logger = logging.getLogger(__name__)


STARTING_MESSAGE = "Starting video generation with Veo..."
DOWNLOADING_MESSAGE = "Video generated! Downloading..."
DONE_MESSAGE = "Done!"

# Shown in rotation while the operation is still running
REASSURING_MESSAGES = (
    "Warming up the pixels...",
    "Composing a visual masterpiece...",
    "Teaching the AI about cinematography...",
    "Rendering frame by frame...",
    "This is taking a moment, but it'll be worth it!",
    "Almost there, adding the final touches...",
)


@dataclass
class GenerationUpdate:
    """A progress update from a running render."""

    status: str
    video_url: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.video_url is not None


def _operation_error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(getattr(error, "message", None) or error)


def _first_video_uri(operation: Any) -> Optional[str]:
    response = getattr(operation, "response", None)
    videos = getattr(response, "generated_videos", None) if response else None
    if not videos:
        return None
    video = getattr(videos[0], "video", None)
    return getattr(video, "uri", None) if video else None


class VeoVideoGenerator:
    """
    Veo client for story beats.

    Usage:
        generator = VeoVideoGenerator(key_store)
        async for update in generator.generate_video(prompt, filename_hint="ki"):
            print(update.status)
            if update.video_url:
                play(update.video_url)
    """

    def __init__(
        self,
        key_store: ApiKeyStore,
        config: Optional[Config] = None,
        client_factory: Callable[[str], genai.Client] = create_client,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the generator.

        Args:
            key_store: Source of the currently selected API key
            config: Optional config override
            client_factory: Builds a GenAI client from an API key
            http_client: Optional shared HTTP client for downloads
        """
        self.key_store = key_store
        self.config = config or get_config()
        self._client_factory = client_factory
        self._http_client = http_client
        self._owns_http_client = http_client is None

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=600.0)
            self._owns_http_client = True
        return self._http_client

    async def close(self):
        """Close the HTTP client if this generator created it."""
        if self._http_client and self._owns_http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def generate_video(
        self,
        prompt: str,
        filename_hint: str = "clip",
    ) -> AsyncIterator[GenerationUpdate]:
        """
        Render a prompt and stream progress.

        Polls every `poll_interval_seconds` until the operation reports done.
        There is no overall timeout.

        Raises:
            CredentialError: No key selected, or the key was rejected
            VideoGenerationError: The render or download failed
        """
        api_key = self.key_store.require_key()
        client = self._client_factory(api_key)
        video = self.config.video

        try:
            yield GenerationUpdate(status=STARTING_MESSAGE)

            operation = await client.aio.models.generate_videos(
                model=self.config.models.video_model,
                prompt=prompt,
                config=types.GenerateVideosConfig(
                    number_of_videos=video.number_of_videos,
                    resolution=video.resolution,
                    aspect_ratio=video.aspect_ratio,
                ),
            )
            logger.info(f"Submitted Veo operation {getattr(operation, 'name', '?')} for '{filename_hint}'")

            polls = 0
            while not operation.done:
                yield GenerationUpdate(status=REASSURING_MESSAGES[polls % len(REASSURING_MESSAGES)])
                polls += 1
                await asyncio.sleep(video.poll_interval_seconds)
                operation = await client.aio.operations.get(operation)
                logger.debug(f"Polled Veo operation for '{filename_hint}' ({polls} polls)")

            logger.info(f"Veo operation for '{filename_hint}' finished after {polls} polls")

            if operation.error:
                raise VideoGenerationError(
                    f"Video generation failed: {_operation_error_message(operation.error)}",
                    error_code="operation_failed",
                )

            uri = _first_video_uri(operation)
            if not uri:
                raise VideoGenerationError(
                    "Video generation completed, but no download link was found.",
                    error_code="missing_uri",
                )

            yield GenerationUpdate(status=DOWNLOADING_MESSAGE)
            video_url = await self.download_video(uri, api_key, filename_hint)

            yield GenerationUpdate(status=DONE_MESSAGE, video_url=video_url)

        except Exception as e:
            logger.error(f"Error during video generation for '{filename_hint}': {e}")
            if is_credential_error(e):
                raise CredentialError.not_valid() from e
            raise VideoGenerationError(
                f"Failed to generate video. {e}",
                error_code=getattr(e, "error_code", None),
            ) from e

    async def download_video(self, uri: str, api_key: str, filename_hint: str = "clip") -> str:
        """
        Download a finished clip into the output directory.

        The file URI only serves the bytes when the key is passed as a query
        parameter.

        Returns:
            The /media URL the clip is served from
        """
        client = await self._get_http_client()
        response = await client.get(uri, params={"key": api_key}, follow_redirects=True)
        if not response.is_success:
            raise VideoGenerationError(
                f"Failed to download video. Status: {response.reason_phrase or response.status_code}",
                error_code="download_failed",
            )

        output_dir = Path(self.config.storage.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        filename = f"{filename_hint}_{uuid.uuid4().hex[:8]}.mp4"
        output_path = output_dir / filename

        with open(output_path, "wb") as f:
            f.write(response.content)

        logger.info(f"Video downloaded: {output_path} ({len(response.content) / 1024 / 1024:.1f} MB)")
        return f"{self.config.storage.media_route}/{filename}"
