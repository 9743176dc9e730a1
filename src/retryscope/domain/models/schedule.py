"""Schedule models - per-retry delay statistics and their summary"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class JitterRange:
    """Deterministic bounds of a jittered delay"""

    min_ms: float
    expected_ms: float
    max_ms: float


@dataclass(frozen=True)
class RetryPoint:
    """One row of a backoff schedule (retry is 1-based)"""

    retry: int
    raw_delay_ms: float  # Strategy formula output, before the cap
    min_delay_ms: float
    expected_delay_ms: float
    max_delay_ms: float
    delay_ms: float  # Effective delay, same as expected_delay_ms
    cumulative_delay_ms: float
    cumulative_min_delay_ms: float
    cumulative_max_delay_ms: float

    def __post_init__(self):
        """Validate point data"""
        if self.retry < 1:
            raise ValueError("Retry must be >= 1")

    def to_dict(self) -> Dict[str, float]:
        """Serialize using the external camelCase field names"""
        return {
            "retry": self.retry,
            "rawDelayMs": self.raw_delay_ms,
            "minDelayMs": self.min_delay_ms,
            "expectedDelayMs": self.expected_delay_ms,
            "maxDelayMs": self.max_delay_ms,
            "delayMs": self.delay_ms,
            "cumulativeDelayMs": self.cumulative_delay_ms,
            "cumulativeMinDelayMs": self.cumulative_min_delay_ms,
            "cumulativeMaxDelayMs": self.cumulative_max_delay_ms,
        }


@dataclass(frozen=True)
class ScheduleSummary:
    """Compact summary of a schedule"""

    total_retries: int = 0
    final_delay_ms: float = 0
    total_delay_ms: float = 0

    def to_dict(self) -> Dict[str, float]:
        return {
            "totalRetries": self.total_retries,
            "finalDelayMs": self.final_delay_ms,
            "totalDelayMs": self.total_delay_ms,
        }
