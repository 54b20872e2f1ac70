"""Veo video generation."""

from .client import (
    GenerationUpdate,
    VeoVideoGenerator,
    REASSURING_MESSAGES,
    STARTING_MESSAGE,
    DOWNLOADING_MESSAGE,
    DONE_MESSAGE,
)

__all__ = [
    "GenerationUpdate",
    "VeoVideoGenerator",
    "REASSURING_MESSAGES",
    "STARTING_MESSAGE",
    "DOWNLOADING_MESSAGE",
    "DONE_MESSAGE",
]
