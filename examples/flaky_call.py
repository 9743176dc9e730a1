"""Sample script: retry a flaky call through a retryscope policy"""

import logging
import random

from retryscope.application.schedule_service import generate_schedule
from retryscope.infrastructure.retry import build_retrying

POLICY = {
    "strategy": "exponential",
    "initialDelayMs": 50,
    "maxRetries": 4,
    "maxDelayMs": 200,
    "factor": 2,
    "jitter": "equal",
}


def flaky(state):
    """Fail on the first two calls"""
    state["calls"] += 1
    if state["calls"] < 3:
        raise ConnectionError(f"attempt {state['calls']} failed")
    return "ok"


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    for point in generate_schedule(POLICY):
        print(f"retry {point.retry}: {point.min_delay_ms:g}-{point.max_delay_ms:g} ms")

    retrying = build_retrying(POLICY, rng=random.Random(7))
    print(retrying(flaky, {"calls": 0}))
