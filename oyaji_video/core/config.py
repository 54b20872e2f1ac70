"""
Configuration management for Oyaji Video Studio.

Centralizes all configuration including:
- The Google API key used by both Gemini and Veo
- Model selections
- Video render settings
- Server and storage settings
"""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_api_key() -> str:
    return os.getenv("GOOGLE_API_KEY") or os.getenv("API_KEY", "")


@dataclass
class APIConfig:
    """Credentials for the Google GenAI APIs."""

    google_api_key: str = field(default_factory=_env_api_key)


@dataclass
class ModelConfig:
    """Model selection configuration."""

    prompt_model: str = "gemini-2.5-flash"
    video_model: str = "veo-3.1-fast-generate-preview"


@dataclass
class VideoConfig:
    """Render settings sent with every Veo request."""

    number_of_videos: int = 1
    resolution: str = "720p"
    aspect_ratio: str = "16:9"

    # Seconds between operation status checks
    poll_interval_seconds: float = field(
        default_factory=lambda: float(os.getenv("VEO_POLL_INTERVAL", "10"))
    )


@dataclass
class TrendConfig:
    """Trend feed settings."""

    fetch_delay_seconds: float = field(
        default_factory=lambda: float(os.getenv("TREND_FETCH_DELAY", "1.0"))
    )


@dataclass
class ServerConfig:
    """HTTP + SSE server settings."""

    host: str = field(default_factory=lambda: os.getenv("STUDIO_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("STUDIO_PORT", "8765")))
    heartbeat_seconds: float = 30.0
    subscriber_queue_size: int = 100


@dataclass
class StorageConfig:
    """Where downloaded clips are written and served from."""

    output_dir: str = field(default_factory=lambda: os.getenv("STUDIO_OUTPUT_DIR", "./output"))
    media_route: str = "/media"


@dataclass
class Config:
    """Main configuration class."""

    api: APIConfig = field(default_factory=APIConfig)
    models: ModelConfig = field(default_factory=ModelConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    trends: TrendConfig = field(default_factory=TrendConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls()

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.api.google_api_key:
            issues.append("GOOGLE_API_KEY not configured (a key can still be selected at runtime)")

        if self.video.poll_interval_seconds < 0:
            issues.append("VEO_POLL_INTERVAL must not be negative")

        return issues


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reload_config():
    """Reload configuration from environment."""
    global _config
    _config = Config.from_env()
