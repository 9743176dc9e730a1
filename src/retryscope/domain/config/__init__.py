"""Configuration models with Pydantic validation."""

from retryscope.domain.config.app import AppConfig
from retryscope.domain.config.backoff import MAX_RETRIES_LIMIT, BackoffConfig
from retryscope.domain.config.display import DisplayConfig
from retryscope.domain.config.modes import (
    ChartMode,
    ChartSeriesMode,
    DisplayMode,
    JitterMode,
    Strategy,
)

__all__ = [
    "AppConfig",
    "BackoffConfig",
    "DisplayConfig",
    "MAX_RETRIES_LIMIT",
    "ChartMode",
    "ChartSeriesMode",
    "DisplayMode",
    "JitterMode",
    "Strategy",
]
