"""
Story Models

The four narrative beats and the prompts Gemini writes for them.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Beat(str, Enum):
    """Narrative beats in 起承転結 order."""

    KI = "ki"
    SHO = "sho"
    TEN = "ten"
    KETSU = "ketsu"

    @property
    def title(self) -> str:
        return _BEAT_TITLES[self]

    @property
    def description(self) -> str:
        return _BEAT_DESCRIPTIONS[self]


_BEAT_TITLES = {
    Beat.KI: "起",
    Beat.SHO: "承",
    Beat.TEN: "転",
    Beat.KETSU: "結",
}

_BEAT_DESCRIPTIONS = {
    Beat.KI: "物語の始まり",
    Beat.SHO: "物語の展開",
    Beat.TEN: "意外な転換点",
    Beat.KETSU: "物語の締めくくり",
}


class StoryPrompts(BaseModel):
    """One short, visual video prompt per beat."""

    model_config = ConfigDict(frozen=True)

    ki: str = Field(description="物語の始まり（起）のプロンプト")
    sho: str = Field(description="物語の展開（承）のプロンプト")
    ten: str = Field(description="物語の転換点（転）のプロンプト")
    ketsu: str = Field(description="物語の結論（結）のプロンプト")

    def for_beat(self, beat: Beat) -> str:
        return getattr(self, Beat(beat).value)
