"""Trend discovery."""

from .feed import Trend, TrendFeed, top_trend

__all__ = ["Trend", "TrendFeed", "top_trend"]
