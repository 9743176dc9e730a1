"""Runtime retry adapter using tenacity.

Turns a validated backoff policy into a tenacity wait strategy and a
``Retrying`` controller, so the schedule computed here is the schedule a real
retry loop sleeps through.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Any, Callable, Optional

from tenacity import RetryCallState, Retrying, before_sleep_log, stop_after_attempt
from tenacity.wait import wait_base

from retryscope.application.chart_service import draw_jittered_delay
from retryscope.application.schedule_service import capped_delay_at_retry, jitter_range
from retryscope.domain.validators.config_validator import (
    InvalidConfigurationError,
    ValidationIssue,
    ensure_valid,
)

logger = logging.getLogger(__name__)


class ScheduleWait(wait_base):
    """Wait strategy sleeping through a backoff schedule.

    Attempt ``n`` (the n-th failure) waits for retry ``n``: a draw inside the
    jitter range of the capped delay, returned in seconds as tenacity expects.
    """

    def __init__(self, config: Any, rng: Optional[random.Random] = None):
        """Initialize wait strategy

        Args:
            config: BackoffConfig or mapping describing the policy
            rng: Random source for jitter draws (module random if None)

        Raises:
            InvalidConfigurationError: If the configuration does not validate,
                or an uncapped schedule grows past what a float can hold
        """
        self.config = ensure_valid(config)
        self.rng = rng

        # Delays never decrease, so the last retry bounds every wait
        if self.config.max_retries > 0:
            longest = capped_delay_at_retry(self.config, self.config.max_retries)
            if not math.isfinite(longest):
                raise InvalidConfigurationError(
                    [ValidationIssue("maxDelayMs", "Must be set when delays overflow.")]
                )

    def delay_ms(self, retry: int) -> float:
        """Delay in milliseconds before a 1-based retry"""
        bounds = jitter_range(capped_delay_at_retry(self.config, retry), self.config.jitter)
        return draw_jittered_delay(bounds.min_ms, bounds.max_ms, self.rng)

    def __call__(self, retry_state: RetryCallState) -> float:
        return self.delay_ms(retry_state.attempt_number) / 1000.0


def build_retrying(
    config: Any,
    rng: Optional[random.Random] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Retrying:
    """Create a tenacity Retrying controller for a backoff policy.

    The initial call plus ``max_retries`` retries are attempted; the last
    exception is re-raised once they are exhausted.

    Args:
        config: BackoffConfig or mapping describing the policy
        rng: Random source for jitter draws
        sleep: Sleep function override (tenacity's default if None)

    Returns:
        Configured Retrying instance
    """
    wait = ScheduleWait(config, rng=rng)
    kwargs = {}
    if sleep is not None:
        kwargs["sleep"] = sleep

    logger.debug(
        f"Building retry loop: {wait.config.strategy.value}, "
        f"{wait.config.max_retries} retries, jitter={wait.config.jitter.value}"
    )
    return Retrying(
        stop=stop_after_attempt(wait.config.max_retries + 1),
        wait=wait,
        reraise=True,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        **kwargs,
    )
