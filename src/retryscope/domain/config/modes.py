"""Closed mode enums and their fallback normalization."""

from enum import Enum
from typing import Any, Type, TypeVar

E = TypeVar("E", bound=Enum)


class Strategy(str, Enum):
    """Backoff strategy"""

    EXPONENTIAL = "exponential"
    LINEAR = "linear"
    FIXED = "fixed"


class JitterMode(str, Enum):
    """Jitter applied around the capped delay"""

    NONE = "none"
    EQUAL = "equal"
    FULL = "full"


class ChartMode(str, Enum):
    """What the chart aggregates per retry"""

    DELAY = "delay"
    CUMULATIVE = "cumulative"


class ChartSeriesMode(str, Enum):
    """Which series the chart draws"""

    EXPECTED = "expected"
    SIMULATED = "simulated"


class DisplayMode(str, Enum):
    """Unit used to display durations"""

    MS = "ms"
    S = "s"
    MIN = "min"
    H = "h"
    HUMANIZE = "humanize"


DEFAULT_JITTER_MODE = JitterMode.NONE
DEFAULT_CHART_MODE = ChartMode.DELAY
DEFAULT_CHART_SERIES_MODE = ChartSeriesMode.EXPECTED
DEFAULT_DISPLAY_MODE = DisplayMode.HUMANIZE


def is_member(enum_cls: Type[E], value: Any) -> bool:
    """Check whether value is a (string) value of enum_cls"""
    if not isinstance(value, str):
        return False
    return value in tuple(member.value for member in enum_cls)


def _resolve(enum_cls: Type[E], value: Any, default: E) -> E:
    if is_member(enum_cls, value):
        return enum_cls(value)
    return default


def is_chart_mode(value: Any) -> bool:
    return is_member(ChartMode, value)


def is_chart_series_mode(value: Any) -> bool:
    return is_member(ChartSeriesMode, value)


def is_display_mode(value: Any) -> bool:
    return is_member(DisplayMode, value)


def resolve_jitter_mode(value: Any) -> JitterMode:
    """Normalize a jitter value, falling back to ``none`` for anything unknown.

    Shared links and older config files may carry stale values, so unknown
    input resolves to the default instead of failing.
    """
    return _resolve(JitterMode, value, DEFAULT_JITTER_MODE)


def resolve_chart_mode(value: Any) -> ChartMode:
    """Normalize a chart mode, falling back to ``delay``"""
    return _resolve(ChartMode, value, DEFAULT_CHART_MODE)


def resolve_chart_series_mode(value: Any) -> ChartSeriesMode:
    """Normalize a chart series mode, falling back to ``expected``"""
    return _resolve(ChartSeriesMode, value, DEFAULT_CHART_SERIES_MODE)


def resolve_display_mode(value: Any) -> DisplayMode:
    """Normalize a display mode, falling back to ``humanize``"""
    return _resolve(DisplayMode, value, DEFAULT_DISPLAY_MODE)
