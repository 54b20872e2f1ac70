"""Core configuration, API key selection and error types."""

from .config import Config, get_config, reload_config
from .errors import (
    StudioError,
    CredentialError,
    TrendFetchError,
    StoryGenerationError,
    VideoGenerationError,
    is_credential_error,
)
from .keys import ApiKeyStore, create_client

__all__ = [
    "Config",
    "get_config",
    "reload_config",
    "StudioError",
    "CredentialError",
    "TrendFetchError",
    "StoryGenerationError",
    "VideoGenerationError",
    "is_credential_error",
    "ApiKeyStore",
    "create_client",
]
