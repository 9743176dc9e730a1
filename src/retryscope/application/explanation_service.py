"""Chart math explanation builder.

Reconstructs the raw, capped and jittered values at a single retry directly
from the configuration, so the explanation depends on (config, retry) only and
not on whichever schedule the chart happened to render.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Optional, Tuple

from retryscope.application.schedule_service import (
    capped_delay_at_retry,
    jitter_range,
    raw_delay_at_retry,
)
from retryscope.domain.config.backoff import BackoffConfig
from retryscope.domain.config.modes import (
    ChartMode,
    ChartSeriesMode,
    Strategy,
    resolve_chart_mode,
    resolve_chart_series_mode,
)
from retryscope.domain.models.explanation import (
    INFINITY_SYMBOL,
    SYMBOLIC,
    ActivePoint,
    ChartMathExplanation,
    ExplanationConstants,
    ResolvedValues,
    VariableBinding,
)
from retryscope.domain.validators.config_validator import ensure_valid

logger = logging.getLogger(__name__)

SIMULATED_SOURCE_SYMBOL = "S"
EXPECTED_SOURCE_SYMBOL = "E"


def _finite_or_none(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def _point_field(point: Any, camel: str, snake: str) -> Any:
    if isinstance(point, Mapping):
        return point.get(camel, point.get(snake))
    return getattr(point, snake, None)


def normalize_active_point(point: Any, max_retries: int) -> Optional[ActivePoint]:
    """Normalize a chart-supplied active point.

    Args:
        point: ActivePoint or mapping with retry/valueMs/minMs/maxMs
        max_retries: Upper bound for the retry index

    Returns:
        ActivePoint with min/max filled in, or None if the point is unusable
    """
    if point is None:
        return None

    retry = point.get("retry") if isinstance(point, Mapping) else getattr(point, "retry", None)
    if isinstance(retry, float) and retry.is_integer():
        retry = int(retry)
    if isinstance(retry, bool) or not isinstance(retry, int) or not 1 <= retry <= max_retries:
        logger.debug(f"Ignoring active point with retry outside 1..{max_retries}: {retry!r}")
        return None

    value = _finite_or_none(_point_field(point, "valueMs", "value_ms"))
    if value is None:
        logger.debug(f"Ignoring active point at retry {retry} without a finite value")
        return None

    min_value = _finite_or_none(_point_field(point, "minMs", "min_ms"))
    max_value = _finite_or_none(_point_field(point, "maxMs", "max_ms"))
    return ActivePoint(
        retry=retry,
        value_ms=value,
        min_ms=value if min_value is None else min_value,
        max_ms=value if max_value is None else max_value,
    )


def _constants(config: BackoffConfig) -> ExplanationConstants:
    return ExplanationConstants(
        initial_delay_ms=config.initial_delay_ms,
        factor=config.factor if config.strategy == Strategy.EXPONENTIAL else None,
        increment_ms=config.increment_ms if config.strategy == Strategy.LINEAR else None,
        max_delay_ms=config.max_delay_ms,
    )


def _resolve_values(
    config: BackoffConfig, chart_mode: ChartMode, point: ActivePoint
) -> ResolvedValues:
    raw_delay = raw_delay_at_retry(config, point.retry)
    capped_delay = capped_delay_at_retry(config, point.retry)

    if chart_mode == ChartMode.CUMULATIVE:
        base_value = sum(capped_delay_at_retry(config, k) for k in range(1, point.retry + 1))
    else:
        base_value = capped_delay

    delay_bounds = jitter_range(capped_delay, config.jitter)
    chart_bounds = jitter_range(base_value, config.jitter)

    return ResolvedValues(
        raw_delay_ms=raw_delay,
        capped_delay_ms=capped_delay,
        base_chart_value_ms=base_value,
        min_delay_ms=delay_bounds.min_ms,
        expected_delay_ms=delay_bounds.expected_ms,
        max_delay_ms=delay_bounds.max_ms,
        randomized_min_value_ms=chart_bounds.min_ms,
        randomized_expected_value_ms=chart_bounds.expected_ms,
        randomized_max_value_ms=chart_bounds.max_ms,
        charted_value_ms=point.value_ms,
        charted_min_value_ms=point.min_ms,
        charted_max_value_ms=point.max_ms,
    )


def _variable_bindings(
    config: BackoffConfig, active_retry: Optional[int]
) -> Tuple[VariableBinding, ...]:
    return (
        VariableBinding(
            key="initialDelay",
            symbol="d0",
            label="Initial delay",
            value=config.initial_delay_ms,
        ),
        VariableBinding(
            key="factor",
            symbol="f",
            label="Factor",
            value=config.factor,
            visible=config.strategy == Strategy.EXPONENTIAL,
        ),
        VariableBinding(
            key="increment",
            symbol="i",
            label="Increment",
            value=config.increment_ms,
            visible=config.strategy == Strategy.LINEAR,
        ),
        VariableBinding(
            key="cap",
            symbol="c",
            label="Max delay cap",
            value=INFINITY_SYMBOL if config.max_delay_ms is None else config.max_delay_ms,
        ),
        VariableBinding(
            key="retry",
            symbol="r",
            label="Retry",
            value=SYMBOLIC if active_retry is None else active_retry,
        ),
    )


def build_chart_math_explanation(
    config: Any,
    chart_mode: Any = ChartMode.DELAY,
    chart_series_mode: Any = ChartSeriesMode.EXPECTED,
    active_point: Any = None,
) -> ChartMathExplanation:
    """Build the formula explanation for a chart.

    Args:
        config: BackoffConfig or mapping describing the policy
        chart_mode: delay or cumulative (anything else resolves to delay)
        chart_series_mode: expected or simulated (anything else resolves to expected)
        active_point: Selected chart point, or None for the general formula

    Returns:
        ChartMathExplanation; resolved values are all None without an active retry

    Raises:
        InvalidConfigurationError: If the configuration does not validate
    """
    backoff = ensure_valid(config)
    mode = resolve_chart_mode(chart_mode)
    series_mode = resolve_chart_series_mode(chart_series_mode)
    point = normalize_active_point(active_point, backoff.max_retries)

    resolved = ResolvedValues() if point is None else _resolve_values(backoff, mode, point)
    active_retry = None if point is None else point.retry

    return ChartMathExplanation(
        strategy=backoff.strategy,
        jitter=backoff.jitter,
        chart_mode=mode,
        chart_series_mode=series_mode,
        chart_source_symbol=(
            SIMULATED_SOURCE_SYMBOL
            if series_mode == ChartSeriesMode.SIMULATED
            else EXPECTED_SOURCE_SYMBOL
        ),
        has_cap=backoff.has_cap,
        max_retries=backoff.max_retries,
        active_retry=active_retry,
        constants=_constants(backoff),
        resolved=resolved,
        variable_bindings=_variable_bindings(backoff, active_retry),
    )
