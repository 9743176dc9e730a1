"""Display configuration model."""

from typing import Any, Optional

from pydantic import BaseModel, field_validator

from retryscope.domain.config.modes import (
    ChartMode,
    ChartSeriesMode,
    DisplayMode,
    resolve_chart_mode,
    resolve_chart_series_mode,
    resolve_display_mode,
)


class DisplayConfig(BaseModel):
    """Configuration for table and chart output.

    Unknown mode values fall back to their defaults instead of failing, so
    stale config files keep loading.

    Attributes:
        display_mode: Unit used to format durations
        chart_mode: Per-retry delay or cumulative delay
        chart_series_mode: Expected values or a simulated jitter draw
        simulation_seed: Seed for simulated draws (None = random)
    """

    display_mode: DisplayMode = DisplayMode.HUMANIZE
    chart_mode: ChartMode = ChartMode.DELAY
    chart_series_mode: ChartSeriesMode = ChartSeriesMode.EXPECTED
    simulation_seed: Optional[int] = None

    @field_validator("display_mode", mode="before")
    @classmethod
    def _resolve_display_mode(cls, value: Any) -> DisplayMode:
        return resolve_display_mode(value)

    @field_validator("chart_mode", mode="before")
    @classmethod
    def _resolve_chart_mode(cls, value: Any) -> ChartMode:
        return resolve_chart_mode(value)

    @field_validator("chart_series_mode", mode="before")
    @classmethod
    def _resolve_chart_series_mode(cls, value: Any) -> ChartSeriesMode:
        return resolve_chart_series_mode(value)
