"""Explanation models - the data needed to render a backoff formula"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from retryscope.domain.config.modes import ChartMode, ChartSeriesMode, JitterMode, Strategy

SYMBOLIC = "symbolic"
INFINITY_SYMBOL = "∞"

BindingValue = Union[float, str, None]


@dataclass(frozen=True)
class ActivePoint:
    """Retry selected in the chart, with the values the chart rendered for it"""

    retry: int
    value_ms: float
    min_ms: Optional[float] = None
    max_ms: Optional[float] = None


@dataclass(frozen=True)
class ExplanationConstants:
    """Config numbers relevant to the active strategy"""

    initial_delay_ms: float
    factor: Optional[float] = None  # Exponential only
    increment_ms: Optional[float] = None  # Linear only
    max_delay_ms: Optional[float] = None  # None = uncapped


@dataclass(frozen=True)
class ResolvedValues:
    """Intermediate values at the active retry (all None without one)"""

    raw_delay_ms: Optional[float] = None
    capped_delay_ms: Optional[float] = None
    base_chart_value_ms: Optional[float] = None
    min_delay_ms: Optional[float] = None
    expected_delay_ms: Optional[float] = None
    max_delay_ms: Optional[float] = None
    randomized_min_value_ms: Optional[float] = None
    randomized_expected_value_ms: Optional[float] = None
    randomized_max_value_ms: Optional[float] = None
    charted_value_ms: Optional[float] = None
    charted_min_value_ms: Optional[float] = None
    charted_max_value_ms: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self == ResolvedValues()


@dataclass(frozen=True)
class VariableBinding:
    """A formula symbol and what it is bound to"""

    key: str
    symbol: str
    label: str
    value: BindingValue
    visible: bool = True

    @property
    def is_symbolic(self) -> bool:
        return self.value == SYMBOLIC


@dataclass(frozen=True)
class ChartMathExplanation:
    """Read-only projection used to display the math behind a chart point"""

    strategy: Strategy
    jitter: JitterMode
    chart_mode: ChartMode
    chart_series_mode: ChartSeriesMode
    chart_source_symbol: str
    has_cap: bool
    max_retries: int
    active_retry: Optional[int]
    constants: ExplanationConstants
    resolved: ResolvedValues = field(default_factory=ResolvedValues)
    variable_bindings: Tuple[VariableBinding, ...] = ()

    @property
    def visible_bindings(self) -> Tuple[VariableBinding, ...]:
        return tuple(binding for binding in self.variable_bindings if binding.visible)

    def binding(self, key: str) -> Optional[VariableBinding]:
        """Look up a variable binding by key"""
        for candidate in self.variable_bindings:
            if candidate.key == key:
                return candidate
        return None
