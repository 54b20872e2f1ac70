"""
Studio Workflow

State and controller for the single-page studio. The HTTP surface lives in
`oyaji_video.services.workflow.server` and is imported on demand.
"""

from ...core.keys import ApiKeyStore
from .state import AppState, BeatPhase, BeatGeneration, StudioState
from .controller import StudioController, PREPARING_STATUS, beat_error_message

__all__ = [
    "ApiKeyStore",
    "AppState",
    "BeatPhase",
    "BeatGeneration",
    "StudioState",
    "StudioController",
    "PREPARING_STATUS",
    "beat_error_message",
]
