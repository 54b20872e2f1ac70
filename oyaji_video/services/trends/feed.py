"""
Trend Feed

Stands in for a real trend-discovery source. Returns a fixed, ranked list
after a short artificial delay so the UI can show its loading state.
"""

import asyncio
import logging
from dataclasses import dataclass, asdict
from typing import Optional

from ...core.config import Config, get_config
from ...core.errors import TrendFetchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trend:
    """A trending topic and its post volume."""

    name: str
    volume: str

    def to_dict(self) -> dict:
        return asdict(self)


STUB_TRENDS: tuple[Trend, ...] = (
    Trend(name="#FutureOfAI", volume="215K posts"),
    Trend(name="Synthwave Comeback", volume="88.1K posts"),
    Trend(name="#DigitalNomadLife", volume="45K posts"),
    Trend(name="Retro Gaming", volume="123K posts"),
    Trend(name="#SustainableTech", volume="67K posts"),
)


class TrendFeed:
    """Stub trend source. Ranking is the list order."""

    def __init__(
        self,
        config: Optional[Config] = None,
        delay_seconds: Optional[float] = None,
    ):
        config = config or get_config()
        self.delay_seconds = (
            delay_seconds if delay_seconds is not None else config.trends.fetch_delay_seconds
        )

    async def fetch_trends(self) -> list[Trend]:
        """Return the current trends, most popular first."""
        logger.info("Fetching trends...")
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)
        trends = list(STUB_TRENDS)
        logger.info(f"Fetched {len(trends)} trends")
        return trends


def top_trend(trends: list[Trend]) -> Trend:
    """First-ranked trend. Raises TrendFetchError on an empty list."""
    if not trends:
        raise TrendFetchError()
    return trends[0]
