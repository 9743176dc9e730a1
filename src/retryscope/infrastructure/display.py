"""Duration formatting for tables, chart axes and formulas"""

import math
from typing import Any

from retryscope.domain.config.modes import DEFAULT_DISPLAY_MODE, DisplayMode, resolve_display_mode

_MS_PER_SECOND = 1000
_MS_PER_MINUTE = 60 * _MS_PER_SECOND
_MS_PER_HOUR = 60 * _MS_PER_MINUTE
_MS_PER_DAY = 24 * _MS_PER_HOUR
_MS_PER_WEEK = 7 * _MS_PER_DAY

# Humanized output splits on integer hundredths of a millisecond to avoid float drift
_HUMANIZE_UNITS = (
    ("w", _MS_PER_WEEK * 100),
    ("d", _MS_PER_DAY * 100),
    ("h", _MS_PER_HOUR * 100),
    ("m", _MS_PER_MINUTE * 100),
    ("s", _MS_PER_SECOND * 100),
)

_UNIT_LABELS = {
    DisplayMode.MS: "ms",
    DisplayMode.S: "s",
    DisplayMode.MIN: "min",
    DisplayMode.H: "h",
    DisplayMode.HUMANIZE: "humanized",
}


def format_number(value: float) -> str:
    """Format with thousands separators and at most two decimals"""
    text = f"{value:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        return "0"
    return text


def unit_label(display_mode: Any) -> str:
    """Axis/column unit label for a display mode"""
    return _UNIT_LABELS[resolve_display_mode(display_mode)]


def _format_humanized(value_ms: float) -> str:
    if value_ms == 0:
        return "0 ms"

    sign = "-" if value_ms < 0 else ""
    remaining = round(abs(value_ms) * 100)
    parts = []

    for suffix, size in _HUMANIZE_UNITS:
        count, remaining = divmod(remaining, size)
        if count > 0:
            parts.append(f"{count:,}{suffix}")

    millis = remaining / 100
    if millis > 0 or not parts:
        parts.append(f"{format_number(millis)}ms")

    return sign + " ".join(parts)


def format_duration(value_ms: float, display_mode: Any = DEFAULT_DISPLAY_MODE) -> str:
    """Format a millisecond duration for display.

    Args:
        value_ms: Duration in milliseconds
        display_mode: ms, s, min, h or humanize (unknown values resolve to humanize)

    Returns:
        Formatted duration, or "-" for non-finite values
    """
    if isinstance(value_ms, bool) or not isinstance(value_ms, (int, float)):
        return "-"
    if not math.isfinite(value_ms):
        return "-"

    mode = resolve_display_mode(display_mode)
    if mode == DisplayMode.S:
        return f"{format_number(value_ms / _MS_PER_SECOND)} s"
    if mode == DisplayMode.MIN:
        return f"{format_number(value_ms / _MS_PER_MINUTE)} min"
    if mode == DisplayMode.H:
        return f"{format_number(value_ms / _MS_PER_HOUR)} h"
    if mode == DisplayMode.HUMANIZE:
        return _format_humanized(value_ms)
    return f"{format_number(value_ms)} ms"
