"""retryscope - retry backoff schedule calculator"""

from retryscope.application.explanation_service import build_chart_math_explanation
from retryscope.application.schedule_service import generate_schedule, summarize_schedule
from retryscope.domain.config import BackoffConfig, JitterMode, Strategy
from retryscope.domain.validators import (
    InvalidConfigurationError,
    ValidationIssue,
    validate_config,
)

__version__ = "0.1.0"

__all__ = [
    "BackoffConfig",
    "InvalidConfigurationError",
    "JitterMode",
    "Strategy",
    "ValidationIssue",
    "build_chart_math_explanation",
    "generate_schedule",
    "summarize_schedule",
    "validate_config",
]
