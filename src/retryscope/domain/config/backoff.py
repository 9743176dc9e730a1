"""Backoff policy configuration model."""

from collections.abc import Mapping
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from retryscope.domain.config.modes import JitterMode, Strategy

MAX_RETRIES_LIMIT = 1000

# Fields read only by one strategy: (python name, external alias) -> strategy
_STRATEGY_FIELDS = {
    ("factor", "factor"): Strategy.EXPONENTIAL,
    ("increment_ms", "incrementMs"): Strategy.LINEAR,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class BackoffConfig(BaseModel):
    """Retry policy: strategy, delays and jitter.

    Accepts both the snake_case field names and the camelCase names used by
    external callers (``initialDelayMs``, ``maxRetries``...).

    Attributes:
        strategy: Backoff strategy (exponential, linear or fixed)
        initial_delay_ms: Delay before the first retry
        max_retries: Number of retries after the initial request (0-1000)
        max_delay_ms: Cap applied to every delay (None = uncapped)
        factor: Growth factor, read only by the exponential strategy
        increment_ms: Step added per retry, read only by the linear strategy
        jitter: Jitter mode applied around the capped delay
    """

    strategy: Strategy = Strategy.EXPONENTIAL
    initial_delay_ms: float = Field(500.0, ge=0.0, allow_inf_nan=False, alias="initialDelayMs")
    max_retries: int = Field(5, ge=0, le=MAX_RETRIES_LIMIT, alias="maxRetries")
    max_delay_ms: Optional[float] = Field(None, ge=0.0, allow_inf_nan=False, alias="maxDelayMs")
    factor: Optional[float] = 2.0
    increment_ms: Optional[float] = Field(500.0, alias="incrementMs")
    jitter: JitterMode = JitterMode.NONE

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _clear_unusable_inactive_fields(cls, data: Any) -> Any:
        """Inactive strategy fields are not read, so garbage there must not fail parsing"""
        if not isinstance(data, Mapping):
            return data
        data = dict(data)
        strategy = data.get("strategy")
        for names, owner in _STRATEGY_FIELDS.items():
            if strategy == owner.value:
                continue
            for name in names:
                if name in data and data[name] is not None and not _is_number(data[name]):
                    data[name] = None
        return data

    @field_validator("jitter", mode="before")
    @classmethod
    def _default_jitter(cls, value: Any) -> Any:
        return JitterMode.NONE if value is None else value

    @model_validator(mode="after")
    def _check_strategy_fields(self) -> "BackoffConfig":
        if self.strategy == Strategy.EXPONENTIAL:
            if self.factor is None or not self.factor > 1 or self.factor == float("inf"):
                raise ValueError("Exponential strategy requires factor > 1")
        if self.strategy == Strategy.LINEAR:
            if self.increment_ms is None or not 0 <= self.increment_ms < float("inf"):
                raise ValueError("Linear strategy requires increment_ms >= 0")
        return self

    @classmethod
    def from_input(cls, config: Any) -> "BackoffConfig":
        """Build a config from a model instance or a (camelCase or snake_case) mapping"""
        if isinstance(config, cls):
            return config
        return cls.model_validate(config)

    @property
    def has_cap(self) -> bool:
        """Check if a max delay cap is configured"""
        return self.max_delay_ms is not None

    def to_dict(self) -> Dict[str, Any]:
        """Dump using the external camelCase field names"""
        return self.model_dump(by_alias=True, mode="json")
