"""
Story Prompt Generator

Asks Gemini for a four-beat short film pairing a Japanese 頑固おやじ
(stubborn old man) with a trending topic. The reply is constrained to the
StoryPrompts JSON schema and validated with pydantic.
"""

import logging
from typing import Callable, Optional

from google import genai
from google.genai import types

from ...core.config import Config, get_config
from ...core.errors import CredentialError, StoryGenerationError, is_credential_error
from ...core.keys import ApiKeyStore, create_client
from ..trends import Trend
from .models import StoryPrompts

logger = logging.getLogger(__name__)


def build_story_prompt(trend: Trend) -> str:
    """Prompt text for one trend."""
    return f"""日本の「頑固おやじ」と現在のTwitterトレンド「{trend.name}」を組み合わせた、面白いショート動画のアイデアを考えてください。物語の構成は日本の伝統的な「起承転結」に従ってください。各パート（起、承、転、結）について、VeoのようなAI動画生成モデルで使える、短く、視覚的に訴えるプロンプトを1つずつ作成してください。

出力は必ず以下のJSON形式にしてください:
{{
  "ki": "（起のプロンプト）",
  "sho": "（承のプロンプト）",
  "ten": "（転のプロンプト）",
  "ketsu": "（結のプロンプト）"
}}"""


class StoryPromptGenerator:
    """
    Generates StoryPrompts with a single Gemini call.

    A fresh client is built from the selected key on every call.

    Usage:
        generator = StoryPromptGenerator(key_store)
        prompts = await generator.generate_story_prompts(trend)
        print(prompts.ki)
    """

    def __init__(
        self,
        key_store: ApiKeyStore,
        config: Optional[Config] = None,
        client_factory: Callable[[str], genai.Client] = create_client,
    ):
        self.key_store = key_store
        self.config = config or get_config()
        self._client_factory = client_factory

    async def generate_story_prompts(self, trend: Trend) -> StoryPrompts:
        """
        Generate the ki/sho/ten/ketsu prompts for a trend.

        Raises:
            CredentialError: No key selected, or the key was rejected
            StoryGenerationError: Any other failure
        """
        api_key = self.key_store.require_key()
        client = self._client_factory(api_key)
        model = self.config.models.prompt_model

        logger.info(f"Generating story prompts for trend '{trend.name}' with {model}")

        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=build_story_prompt(trend),
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=StoryPrompts,
                ),
            )
            prompts = StoryPrompts.model_validate_json(response.text)
        except Exception as e:
            logger.error(f"Error generating story prompts: {e}")
            # A rejected key sends the user back to key selection here too,
            # not just from the video path
            if is_credential_error(e):
                raise CredentialError.not_valid() from e
            raise StoryGenerationError() from e

        logger.info("Story prompts ready")
        return prompts
