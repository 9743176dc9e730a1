"""Chart-ready projections of a schedule.

Expected series are deterministic. Simulated series draw one concrete delay
inside each point's jitter range, so callers pass a seeded ``random.Random``
when they need reproducible output.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from retryscope.domain.config.modes import (
    ChartMode,
    ChartSeriesMode,
    resolve_chart_mode,
    resolve_chart_series_mode,
)
from retryscope.domain.models.explanation import ActivePoint
from retryscope.domain.models.schedule import RetryPoint
from retryscope.infrastructure.display import unit_label

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartSeriesPoint:
    """One charted value with the range it was drawn from"""

    retry: int
    value_ms: float
    min_ms: float
    max_ms: float


def draw_jittered_delay(low_ms: float, high_ms: float, rng: Optional[random.Random] = None) -> float:
    """Draw a delay uniformly inside [low_ms, high_ms]"""
    if low_ms == high_ms:
        return low_ms
    return (rng or random).uniform(low_ms, high_ms)


def _expected_series(points: Sequence[RetryPoint], chart_mode: ChartMode) -> List[ChartSeriesPoint]:
    if chart_mode == ChartMode.CUMULATIVE:
        return [
            ChartSeriesPoint(
                retry=point.retry,
                value_ms=point.cumulative_delay_ms,
                min_ms=point.cumulative_min_delay_ms,
                max_ms=point.cumulative_max_delay_ms,
            )
            for point in points
        ]
    return [
        ChartSeriesPoint(
            retry=point.retry,
            value_ms=point.delay_ms,
            min_ms=point.min_delay_ms,
            max_ms=point.max_delay_ms,
        )
        for point in points
    ]


def _simulated_series(
    points: Sequence[RetryPoint], chart_mode: ChartMode, rng: Optional[random.Random]
) -> List[ChartSeriesPoint]:
    series = []
    running_total = 0.0
    for point in points:
        draw = draw_jittered_delay(point.min_delay_ms, point.max_delay_ms, rng)
        running_total += draw
        if chart_mode == ChartMode.CUMULATIVE:
            series.append(
                ChartSeriesPoint(
                    retry=point.retry,
                    value_ms=running_total,
                    min_ms=point.cumulative_min_delay_ms,
                    max_ms=point.cumulative_max_delay_ms,
                )
            )
        else:
            series.append(
                ChartSeriesPoint(
                    retry=point.retry,
                    value_ms=draw,
                    min_ms=point.min_delay_ms,
                    max_ms=point.max_delay_ms,
                )
            )
    return series


def build_chart_series(
    points: Sequence[RetryPoint],
    chart_mode: Any = ChartMode.DELAY,
    chart_series_mode: Any = ChartSeriesMode.EXPECTED,
    rng: Optional[random.Random] = None,
) -> List[ChartSeriesPoint]:
    """Project a schedule onto the values a chart draws.

    Args:
        points: Schedule from generate_schedule
        chart_mode: delay or cumulative
        chart_series_mode: expected or simulated
        rng: Random source for simulated draws (module random if None)

    Returns:
        One ChartSeriesPoint per retry
    """
    mode = resolve_chart_mode(chart_mode)
    series_mode = resolve_chart_series_mode(chart_series_mode)
    logger.debug(f"Building {series_mode.value} {mode.value} series for {len(points)} points")

    if series_mode == ChartSeriesMode.SIMULATED:
        return _simulated_series(points, mode, rng)
    return _expected_series(points, mode)


def active_point_for_retry(series: Sequence[ChartSeriesPoint], retry: int) -> Optional[ActivePoint]:
    """Selected chart point for a retry, or None if the retry is not charted"""
    for point in series:
        if point.retry == retry:
            return ActivePoint(
                retry=point.retry,
                value_ms=point.value_ms,
                min_ms=point.min_ms,
                max_ms=point.max_ms,
            )
    return None


def y_axis_title(display_mode: Any, chart_mode: Any) -> str:
    """Y axis title for a chart mode and display unit"""
    prefix = "Cumulative Delay" if resolve_chart_mode(chart_mode) == ChartMode.CUMULATIVE else "Delay"
    return f"{prefix} ({unit_label(display_mode)})"
