"""Backoff configuration validator"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, List, Sequence

from retryscope.domain.config.backoff import MAX_RETRIES_LIMIT, BackoffConfig
from retryscope.domain.config.modes import JitterMode, Strategy, is_member

logger = logging.getLogger(__name__)

_MISSING = object()

# External field name -> python attribute name
_FIELD_NAMES = {
    "strategy": "strategy",
    "initialDelayMs": "initial_delay_ms",
    "maxRetries": "max_retries",
    "maxDelayMs": "max_delay_ms",
    "factor": "factor",
    "incrementMs": "increment_ms",
    "jitter": "jitter",
}


@dataclass(frozen=True)
class ValidationIssue:
    """A field-tagged configuration problem"""

    field: str  # config, strategy, initialDelayMs, maxRetries, ...
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class InvalidConfigurationError(ValueError):
    """Raised when a computation is asked to run on an invalid configuration"""

    def __init__(self, issues: Sequence[ValidationIssue]):
        self.issues = list(issues)
        super().__init__("Invalid configuration: " + " ".join(str(issue) for issue in self.issues))


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def _read(config: Any, field: str) -> Any:
    """Read a field by external or python name; _MISSING if absent"""
    if isinstance(config, BackoffConfig):
        return getattr(config, _FIELD_NAMES[field])
    if field in config:
        return config[field]
    return config.get(_FIELD_NAMES[field], _MISSING)


def validate_config(config: Any) -> List[ValidationIssue]:
    """Validate a backoff configuration.

    Checks only the fields relevant to the selected strategy and collects every
    violation; never raises.

    Args:
        config: BackoffConfig or mapping (camelCase or snake_case keys)

    Returns:
        List of validation issues (empty if the configuration is valid)
    """
    if config is None or not isinstance(config, (Mapping, BackoffConfig)):
        return [ValidationIssue("config", "Configuration is required.")]

    issues: List[ValidationIssue] = []

    strategy = _read(config, "strategy")
    if not is_member(Strategy, strategy):
        issues.append(ValidationIssue("strategy", "Must be one of: exponential, linear, fixed."))

    initial_delay = _read(config, "initialDelayMs")
    if not _is_finite_number(initial_delay) or initial_delay < 0:
        issues.append(ValidationIssue("initialDelayMs", "Must be >= 0."))

    max_retries = _read(config, "maxRetries")
    if not _is_integer(max_retries) or not 0 <= max_retries <= MAX_RETRIES_LIMIT:
        issues.append(
            ValidationIssue("maxRetries", f"Must be an integer between 0 and {MAX_RETRIES_LIMIT}.")
        )

    max_delay = _read(config, "maxDelayMs")
    if max_delay is not None and max_delay is not _MISSING:
        if not _is_finite_number(max_delay) or max_delay < 0:
            issues.append(ValidationIssue("maxDelayMs", "Must be empty or >= 0."))

    if strategy == Strategy.EXPONENTIAL.value:
        factor = _read(config, "factor")
        if not _is_finite_number(factor) or factor <= 1:
            issues.append(ValidationIssue("factor", "Must be > 1."))

    if strategy == Strategy.LINEAR.value:
        increment = _read(config, "incrementMs")
        if not _is_finite_number(increment) or increment < 0:
            issues.append(ValidationIssue("incrementMs", "Must be >= 0."))

    jitter = _read(config, "jitter")
    if jitter is not None and jitter is not _MISSING and not is_member(JitterMode, jitter):
        issues.append(ValidationIssue("jitter", "Must be one of: none, equal, full."))

    if issues:
        logger.debug(f"Configuration has {len(issues)} issue(s): {[str(i) for i in issues]}")
    return issues


def ensure_valid(config: Any) -> BackoffConfig:
    """Validate and build a BackoffConfig

    Raises:
        InvalidConfigurationError: If validate_config reports any issue
    """
    issues = validate_config(config)
    if issues:
        raise InvalidConfigurationError(issues)
    return BackoffConfig.from_input(config)
