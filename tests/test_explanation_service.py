"""Tests for the chart math explanation builder"""

import math

import pytest

from retryscope.application.explanation_service import (
    build_chart_math_explanation,
    normalize_active_point,
)
from retryscope.domain.config import ChartMode, ChartSeriesMode, JitterMode, Strategy
from retryscope.domain.models.explanation import (
    INFINITY_SYMBOL,
    SYMBOLIC,
    ActivePoint,
    ResolvedValues,
)
from retryscope.domain.validators.config_validator import InvalidConfigurationError

EXPONENTIAL = {
    "strategy": "exponential",
    "initialDelayMs": 500,
    "maxRetries": 6,
    "maxDelayMs": 1500,
    "factor": 2,
    "jitter": "equal",
}

LINEAR = {
    "strategy": "linear",
    "initialDelayMs": 200,
    "maxRetries": 4,
    "maxDelayMs": None,
    "incrementMs": 100,
}


class TestWithoutActivePoint:
    """Tests for the general (symbolic) explanation"""

    def test_no_active_point(self):
        """Test resolved values are all None without a selection"""
        explanation = build_chart_math_explanation(EXPONENTIAL, "delay", "expected", None)

        assert explanation.active_retry is None
        assert explanation.resolved == ResolvedValues()
        assert explanation.resolved.is_empty
        assert all(value is None for value in vars(explanation.resolved).values())
        assert explanation.binding("retry").value == SYMBOLIC
        assert explanation.binding("retry").is_symbolic

    def test_header_fields(self):
        """Test strategy, modes and constants are exposed"""
        explanation = build_chart_math_explanation(EXPONENTIAL)

        assert explanation.strategy == Strategy.EXPONENTIAL
        assert explanation.jitter == JitterMode.EQUAL
        assert explanation.chart_mode == ChartMode.DELAY
        assert explanation.chart_series_mode == ChartSeriesMode.EXPECTED
        assert explanation.chart_source_symbol == "E"
        assert explanation.has_cap is True
        assert explanation.max_retries == 6
        assert explanation.constants.initial_delay_ms == 500
        assert explanation.constants.factor == 2
        assert explanation.constants.increment_ms is None
        assert explanation.constants.max_delay_ms == 1500

    def test_unknown_modes_fall_back(self):
        """Test unrecognized chart modes resolve to their defaults"""
        explanation = build_chart_math_explanation(EXPONENTIAL, "stacked", "random")

        assert explanation.chart_mode == ChartMode.DELAY
        assert explanation.chart_series_mode == ChartSeriesMode.EXPECTED

    def test_simulated_source_symbol(self):
        """Test simulated series are labeled S"""
        explanation = build_chart_math_explanation(EXPONENTIAL, "cumulative", "simulated")

        assert explanation.chart_mode == ChartMode.CUMULATIVE
        assert explanation.chart_source_symbol == "S"

    def test_zero_retries_has_no_active_retry(self):
        """Test any selection is dropped when there are no retries"""
        config = dict(LINEAR, maxRetries=0)
        explanation = build_chart_math_explanation(config, active_point={"retry": 1, "valueMs": 200})

        assert explanation.active_retry is None
        assert explanation.resolved.is_empty

    def test_invalid_config_raises(self):
        """Test the builder refuses invalid configs"""
        with pytest.raises(InvalidConfigurationError, match="Invalid configuration"):
            build_chart_math_explanation(dict(EXPONENTIAL, factor=0.5))


class TestVariableBindings:
    """Tests for variable bindings"""

    def test_binding_order_and_visibility_exponential(self):
        """Test factor is visible only for exponential"""
        explanation = build_chart_math_explanation(EXPONENTIAL)

        assert [b.key for b in explanation.variable_bindings] == [
            "initialDelay",
            "factor",
            "increment",
            "cap",
            "retry",
        ]
        visible = {b.key: b.visible for b in explanation.variable_bindings}
        assert visible == {
            "initialDelay": True,
            "factor": True,
            "increment": False,
            "cap": True,
            "retry": True,
        }
        assert explanation.binding("cap").value == 1500
        assert explanation.binding("factor").value == 2

    def test_linear_bindings_and_uncapped(self):
        """Test increment is visible for linear and an absent cap renders as infinity"""
        explanation = build_chart_math_explanation(LINEAR)

        assert explanation.binding("factor").visible is False
        assert explanation.binding("increment").visible is True
        assert explanation.binding("increment").value == 100
        assert explanation.binding("cap").value == INFINITY_SYMBOL
        assert explanation.has_cap is False
        assert [b.key for b in explanation.visible_bindings] == [
            "initialDelay",
            "increment",
            "cap",
            "retry",
        ]

    def test_fixed_hides_factor_and_increment(self):
        """Test fixed strategy shows only initial delay, cap and retry"""
        config = {"strategy": "fixed", "initialDelayMs": 300, "maxRetries": 2, "maxDelayMs": None}
        explanation = build_chart_math_explanation(config)

        assert [b.key for b in explanation.visible_bindings] == ["initialDelay", "cap", "retry"]

    def test_active_retry_binding(self):
        """Test the retry binding carries the selected retry"""
        explanation = build_chart_math_explanation(
            EXPONENTIAL, active_point=ActivePoint(retry=3, value_ms=1125)
        )
        assert explanation.binding("retry").value == 3
        assert explanation.binding("missing") is None


class TestResolvedValues:
    """Tests for values resolved at the active retry"""

    def test_delay_mode(self):
        """Test raw, capped and jitter ranges at one retry"""
        explanation = build_chart_math_explanation(
            EXPONENTIAL,
            chart_mode="delay",
            chart_series_mode="expected",
            active_point={"retry": 3, "valueMs": 1125, "minMs": 750, "maxMs": 1500},
        )
        resolved = explanation.resolved

        assert explanation.active_retry == 3
        assert resolved.raw_delay_ms == 2000
        assert resolved.capped_delay_ms == 1500
        assert resolved.base_chart_value_ms == 1500
        assert (resolved.min_delay_ms, resolved.expected_delay_ms, resolved.max_delay_ms) == (
            750,
            1125,
            1500,
        )
        assert (
            resolved.randomized_min_value_ms,
            resolved.randomized_expected_value_ms,
            resolved.randomized_max_value_ms,
        ) == (750, 1125, 1500)
        assert resolved.charted_value_ms == 1125
        assert (resolved.charted_min_value_ms, resolved.charted_max_value_ms) == (750, 1500)

    def test_cumulative_mode(self):
        """Test cumulative charts sum capped delays up to the retry"""
        explanation = build_chart_math_explanation(
            EXPONENTIAL,
            chart_mode="cumulative",
            active_point={"retry": 4, "valueMs": 3375},
        )
        resolved = explanation.resolved

        # capped: 500, 1000, 1500, 1500
        assert resolved.base_chart_value_ms == 4500
        assert resolved.capped_delay_ms == 1500
        assert (resolved.min_delay_ms, resolved.expected_delay_ms, resolved.max_delay_ms) == (
            750,
            1125,
            1500,
        )
        assert (
            resolved.randomized_min_value_ms,
            resolved.randomized_expected_value_ms,
            resolved.randomized_max_value_ms,
        ) == (2250, 3375, 4500)

    def test_charted_value_is_taken_verbatim(self):
        """Test simulated draws are surfaced as given, not re-derived"""
        explanation = build_chart_math_explanation(
            EXPONENTIAL,
            chart_series_mode="simulated",
            active_point={"retry": 2, "valueMs": 912.34},
        )

        assert explanation.resolved.charted_value_ms == 912.34
        assert explanation.resolved.expected_delay_ms == 750
        assert explanation.resolved.charted_min_value_ms == 912.34
        assert explanation.resolved.charted_max_value_ms == 912.34

    def test_full_jitter_linear(self):
        """Test full jitter on a linear schedule"""
        config = dict(LINEAR, jitter="full")
        explanation = build_chart_math_explanation(config, active_point=ActivePoint(4, 250))

        assert explanation.resolved.raw_delay_ms == 500
        assert explanation.resolved.capped_delay_ms == 500
        assert explanation.resolved.min_delay_ms == 0
        assert explanation.resolved.expected_delay_ms == 250
        assert explanation.resolved.max_delay_ms == 500

    def test_independent_of_schedule_generation(self):
        """Test repeated builds are equal"""
        first = build_chart_math_explanation(EXPONENTIAL, active_point={"retry": 5, "valueMs": 1})
        second = build_chart_math_explanation(EXPONENTIAL, active_point={"retry": 5, "valueMs": 1})
        assert first == second


class TestNormalizeActivePoint:
    """Tests for active point normalization"""

    @pytest.mark.parametrize(
        "point",
        [
            {"retry": 0, "valueMs": 10},
            {"retry": 7, "valueMs": 10},
            {"retry": 2.5, "valueMs": 10},
            {"retry": True, "valueMs": 10},
            {"retry": "2", "valueMs": 10},
            {"retry": 2, "valueMs": math.nan},
            {"retry": 2, "valueMs": None},
            {"valueMs": 10},
            ActivePoint(retry=9, value_ms=10),
        ],
    )
    def test_unusable_points_are_dropped(self, point):
        """Test out-of-range or malformed points are treated as absent"""
        assert normalize_active_point(point, max_retries=6) is None

    def test_min_max_default_to_value(self):
        """Test missing or non-finite bounds default to the value"""
        point = normalize_active_point({"retry": 2, "valueMs": 40, "minMs": math.inf}, 6)
        assert point == ActivePoint(retry=2, value_ms=40, min_ms=40, max_ms=40)

    def test_snake_case_and_integral_float(self):
        """Test snake_case keys and 2.0 retries are accepted"""
        point = normalize_active_point({"retry": 2.0, "value_ms": 40, "max_ms": 60}, 6)
        assert point == ActivePoint(retry=2, value_ms=40, min_ms=40, max_ms=60)
