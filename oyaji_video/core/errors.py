"""
Error types surfaced to the studio page.

Every message here is shown to the user verbatim, so keep them readable.
"""

from typing import Optional

# Substring the Google APIs return when the key is unknown or revoked
ENTITY_NOT_FOUND = "Requested entity was not found"

KEY_NOT_FOUND_MESSAGE = "API key not found. Please select an API key."
KEY_NOT_VALID_MESSAGE = "API key not valid. Please select a new key."

# Appears in every invalid-key message, ours and Google's
INVALID_KEY_MARKER = "API key not valid"


class StudioError(Exception):
    """Base class for recoverable workflow errors."""


class CredentialError(StudioError):
    """Raised when the API key is missing or rejected. Forces key re-selection."""

    def __init__(self, message: str = KEY_NOT_FOUND_MESSAGE):
        super().__init__(message)

    @classmethod
    def not_found(cls) -> "CredentialError":
        return cls(KEY_NOT_FOUND_MESSAGE)

    @classmethod
    def not_valid(cls) -> "CredentialError":
        return cls(KEY_NOT_VALID_MESSAGE)


class TrendFetchError(StudioError):
    """Raised when the trend feed comes back empty."""

    def __init__(self, message: str = "Could not fetch any trends."):
        super().__init__(message)


class StoryGenerationError(StudioError):
    """Raised when Gemini fails to produce the four story prompts."""

    def __init__(
        self,
        message: str = "Failed to generate story prompts. Please check the logs for details.",
    ):
        super().__init__(message)


class VideoGenerationError(StudioError):
    """Raised when a Veo render fails."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        super().__init__(message)


def is_credential_error(exc: BaseException) -> bool:
    """True when the exception means the current API key cannot be used."""
    if isinstance(exc, CredentialError):
        return True
    message = str(exc)
    return ENTITY_NOT_FOUND in message or INVALID_KEY_MARKER in message
