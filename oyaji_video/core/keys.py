"""
API key selection.

The studio page lets the user pick the Google API key at runtime. Story and
video generation both read the key from here on every call, so a newly
selected key takes effect immediately.
"""

import logging
from typing import Optional

from google import genai

from .config import Config, get_config
from .errors import CredentialError

logger = logging.getLogger(__name__)


class ApiKeyStore:
    """Holds the currently selected Google API key."""

    def __init__(self, api_key: Optional[str] = None, config: Optional[Config] = None):
        if api_key is None:
            api_key = (config or get_config()).api.google_api_key
        self._api_key: Optional[str] = api_key or None

    def has_selected_api_key(self) -> bool:
        return bool(self._api_key)

    def select_key(self, api_key: str):
        """Select a new key. Raises ValueError on a blank key."""
        api_key = (api_key or "").strip()
        if not api_key:
            raise ValueError("API key must not be empty")
        self._api_key = api_key
        logger.info("API key selected")

    def get_key(self) -> Optional[str]:
        return self._api_key

    def require_key(self) -> str:
        """Current key, or CredentialError when none is selected."""
        if not self._api_key:
            raise CredentialError.not_found()
        return self._api_key

    def clear(self):
        if self._api_key:
            logger.info("API key cleared")
        self._api_key = None


def create_client(api_key: str) -> genai.Client:
    """Build a GenAI client bound to one key. Called per request."""
    return genai.Client(api_key=api_key)
