"""Plain-text rendering of a ChartMathExplanation"""

from __future__ import annotations

import math
from typing import List, Optional

from retryscope.domain.config.modes import ChartMode, ChartSeriesMode, JitterMode, Strategy
from retryscope.domain.models.explanation import ChartMathExplanation
from retryscope.infrastructure.display import format_number


def _num(value: Optional[float]) -> str:
    if value is None:
        return "?"
    if math.isinf(value):
        return "∞" if value > 0 else "-∞"
    return format_number(value).replace(",", "")


def _symbolic_lines(explanation: ChartMathExplanation) -> List[str]:
    raw = {
        Strategy.EXPONENTIAL: "raw(r) = d0 × f^(r-1)",
        Strategy.LINEAR: "raw(r) = d0 + (r-1) × i",
        Strategy.FIXED: "raw(r) = d0",
    }[explanation.strategy]
    lines = [raw]
    lines.append("capped(r) = min(raw(r), c)" if explanation.has_cap else "capped(r) = raw(r)")

    base = "capped(r)"
    if explanation.chart_mode == ChartMode.CUMULATIVE:
        lines.append("C(r) = Σ capped(k), k = 1..r")
        base = "C(r)"

    lines.append(
        {
            JitterMode.NONE: f"E(r) = {base}",
            JitterMode.EQUAL: f"E(r) = 0.75 × {base}, range [{base} / 2, {base}]",
            JitterMode.FULL: f"E(r) = {base} / 2, range [0, {base}]",
        }[explanation.jitter]
    )
    if explanation.chart_series_mode == ChartSeriesMode.SIMULATED:
        lines.append(f"{explanation.chart_source_symbol}(r) ~ U(min, max)")
    return lines


def _substituted_lines(explanation: ChartMathExplanation) -> List[str]:
    r = explanation.active_retry
    constants = explanation.constants
    resolved = explanation.resolved
    d0 = _num(constants.initial_delay_ms)
    raw = _num(resolved.raw_delay_ms)

    if explanation.strategy == Strategy.EXPONENTIAL:
        lines = [f"raw({r}) = {d0} × {_num(constants.factor)}^({r}-1) = {raw}"]
    elif explanation.strategy == Strategy.LINEAR:
        lines = [f"raw({r}) = {d0} + ({r}-1) × {_num(constants.increment_ms)} = {raw}"]
    else:
        lines = [f"raw({r}) = {d0}"]

    capped = _num(resolved.capped_delay_ms)
    if explanation.has_cap:
        lines.append(f"capped({r}) = min({raw}, {_num(constants.max_delay_ms)}) = {capped}")
    else:
        lines.append(f"capped({r}) = {capped}")

    name = f"capped({r})"
    if explanation.chart_mode == ChartMode.CUMULATIVE:
        lines.append(f"C({r}) = Σ capped(k), k = 1..{r} = {_num(resolved.base_chart_value_ms)}")
        name = f"C({r})"

    base = _num(resolved.base_chart_value_ms)
    expected = _num(resolved.randomized_expected_value_ms)
    low = _num(resolved.randomized_min_value_ms)
    high = _num(resolved.randomized_max_value_ms)
    if explanation.jitter == JitterMode.NONE:
        lines.append(f"E({r}) = {name} = {expected}")
    elif explanation.jitter == JitterMode.EQUAL:
        lines.append(f"E({r}) = 0.75 × {base} = {expected}, range [{low}, {high}]")
    else:
        lines.append(f"E({r}) = {base} / 2 = {expected}, range [{low}, {high}]")

    if explanation.chart_series_mode == ChartSeriesMode.SIMULATED:
        lines.append(
            f"{explanation.chart_source_symbol}({r}) = {_num(resolved.charted_value_ms)}"
            f" drawn from [{_num(resolved.charted_min_value_ms)}, {_num(resolved.charted_max_value_ms)}]"
        )
    return lines


def render_formula(explanation: ChartMathExplanation, substituted: bool = False) -> List[str]:
    """Render the formula behind a chart as text lines.

    Args:
        explanation: Model from build_chart_math_explanation
        substituted: Show resolved numbers instead of the general formula

    Returns:
        Formula lines, from raw delay to the charted value

    Raises:
        ValueError: If substituted output is requested without an active retry
    """
    if not substituted:
        return _symbolic_lines(explanation)
    if explanation.active_retry is None:
        raise ValueError("Substituted formula requires an active retry")
    return _substituted_lines(explanation)


def render_bindings(explanation: ChartMathExplanation) -> List[str]:
    """Render the visible variable bindings as 'symbol (label) = value' lines"""
    lines = []
    for binding in explanation.visible_bindings:
        value = binding.value if isinstance(binding.value, str) else _num(binding.value)
        lines.append(f"{binding.symbol} ({binding.label}) = {value}")
    return lines
