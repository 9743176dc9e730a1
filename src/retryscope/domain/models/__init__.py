"""Domain models for schedules and explanations."""

from retryscope.domain.models.explanation import (
    ActivePoint,
    ChartMathExplanation,
    ExplanationConstants,
    ResolvedValues,
    VariableBinding,
)
from retryscope.domain.models.schedule import JitterRange, RetryPoint, ScheduleSummary

__all__ = [
    "ActivePoint",
    "ChartMathExplanation",
    "ExplanationConstants",
    "JitterRange",
    "ResolvedValues",
    "RetryPoint",
    "ScheduleSummary",
    "VariableBinding",
]
