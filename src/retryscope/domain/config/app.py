"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from retryscope.domain.config.backoff import BackoffConfig
from retryscope.domain.config.display import DisplayConfig


class AppConfig(BaseModel):
    """Main application configuration.

    This is the root configuration model that aggregates all configuration sections.
    Validation is performed at load time to fail fast on configuration errors.

    Attributes:
        backoff: Retry policy to compute
        display: Output formatting configuration
    """

    backoff: BackoffConfig = Field(default_factory=BackoffConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)

    model_config = ConfigDict(
        extra="forbid",  # Reject unknown sections
        json_schema_extra={
            "example": {
                "backoff": {
                    "strategy": "exponential",
                    "initial_delay_ms": 500,
                    "max_retries": 5,
                    "max_delay_ms": None,
                    "factor": 2,
                    "increment_ms": 500,
                    "jitter": "none",
                },
                "display": {
                    "display_mode": "humanize",
                    "chart_mode": "delay",
                    "chart_series_mode": "expected",
                    "simulation_seed": None,
                },
            }
        },
    )
