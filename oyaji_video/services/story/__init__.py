"""Story prompt generation (起承転結)."""

from .models import Beat, StoryPrompts
from .generator import StoryPromptGenerator, build_story_prompt

__all__ = ["Beat", "StoryPrompts", "StoryPromptGenerator", "build_story_prompt"]
