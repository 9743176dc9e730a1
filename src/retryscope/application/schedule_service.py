"""Backoff schedule generation and summary.

Every function here is pure: the same configuration always yields an equal
schedule, and no randomness is involved. Jitter is described by its
deterministic min/expected/max bounds.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Callable, Dict, List

from retryscope.domain.config.backoff import BackoffConfig
from retryscope.domain.config.modes import JitterMode, Strategy, resolve_jitter_mode
from retryscope.domain.models.schedule import JitterRange, RetryPoint, ScheduleSummary
from retryscope.domain.validators.config_validator import ensure_valid

logger = logging.getLogger(__name__)

# Equal jitter: half fixed plus half uniform random, so the mean sits at 3/4.
EQUAL_JITTER_EXPECTED_RATIO = 0.75


def _exponential_delay(config: BackoffConfig, retry: int) -> float:
    if config.initial_delay_ms == 0:
        return 0.0
    try:
        growth = float(config.factor) ** (retry - 1)
    except OverflowError:
        return float("inf")
    return config.initial_delay_ms * growth


def _linear_delay(config: BackoffConfig, retry: int) -> float:
    return config.initial_delay_ms + (retry - 1) * config.increment_ms


def _fixed_delay(config: BackoffConfig, retry: int) -> float:
    return config.initial_delay_ms


_RAW_DELAY_FORMULAS: Dict[Strategy, Callable[[BackoffConfig, int], float]] = {
    Strategy.EXPONENTIAL: _exponential_delay,
    Strategy.LINEAR: _linear_delay,
    Strategy.FIXED: _fixed_delay,
}

_JITTER_RANGES: Dict[JitterMode, Callable[[float], JitterRange]] = {
    JitterMode.NONE: lambda capped: JitterRange(capped, capped, capped),
    JitterMode.EQUAL: lambda capped: JitterRange(
        capped / 2, capped * EQUAL_JITTER_EXPECTED_RATIO, capped
    ),
    JitterMode.FULL: lambda capped: JitterRange(0.0, capped / 2, capped),
}


def raw_delay_at_retry(config: BackoffConfig, retry: int) -> float:
    """Strategy formula output for a 1-based retry, before the cap"""
    return _RAW_DELAY_FORMULAS[config.strategy](config, retry)


def apply_cap(config: BackoffConfig, raw_delay_ms: float) -> float:
    """Clamp a raw delay to the configured cap (if any)"""
    if config.max_delay_ms is None:
        return raw_delay_ms
    return min(raw_delay_ms, config.max_delay_ms)


def capped_delay_at_retry(config: BackoffConfig, retry: int) -> float:
    """Raw delay at a retry with the cap applied"""
    return apply_cap(config, raw_delay_at_retry(config, retry))


def jitter_range(value_ms: float, jitter: Any) -> JitterRange:
    """Deterministic min/expected/max bounds of a jittered value.

    Args:
        value_ms: Capped delay (or any charted value) the jitter applies to
        jitter: Jitter mode; unknown values resolve to ``none``

    Returns:
        JitterRange around value_ms
    """
    return _JITTER_RANGES[resolve_jitter_mode(jitter)](value_ms)


def generate_schedule(config: Any) -> List[RetryPoint]:
    """Generate the per-retry delay schedule.

    Args:
        config: BackoffConfig or mapping describing the policy

    Returns:
        One RetryPoint per retry, ordered by ascending retry

    Raises:
        InvalidConfigurationError: If the configuration does not validate
    """
    backoff = ensure_valid(config)

    points: List[RetryPoint] = []
    cumulative = 0.0
    cumulative_min = 0.0
    cumulative_max = 0.0

    for retry in range(1, backoff.max_retries + 1):
        raw_delay = raw_delay_at_retry(backoff, retry)
        bounds = jitter_range(apply_cap(backoff, raw_delay), backoff.jitter)

        cumulative += bounds.expected_ms
        cumulative_min += bounds.min_ms
        cumulative_max += bounds.max_ms

        points.append(
            RetryPoint(
                retry=retry,
                raw_delay_ms=raw_delay,
                min_delay_ms=bounds.min_ms,
                expected_delay_ms=bounds.expected_ms,
                max_delay_ms=bounds.max_ms,
                delay_ms=bounds.expected_ms,
                cumulative_delay_ms=cumulative,
                cumulative_min_delay_ms=cumulative_min,
                cumulative_max_delay_ms=cumulative_max,
            )
        )

    logger.debug(
        f"Generated {backoff.strategy.value} schedule: {len(points)} retries, "
        f"jitter={backoff.jitter.value}, total={cumulative}ms"
    )
    return points


def summarize_schedule(points: Any) -> ScheduleSummary:
    """Summarize a schedule from its last point.

    Args:
        points: Schedule as returned by generate_schedule

    Returns:
        ScheduleSummary (all zeros for an empty or non-sequence input)
    """
    if not isinstance(points, Sequence) or isinstance(points, str) or len(points) == 0:
        return ScheduleSummary()

    last = points[-1]
    return ScheduleSummary(
        total_retries=len(points),
        final_delay_ms=last.delay_ms,
        total_delay_ms=last.cumulative_delay_ms,
    )
