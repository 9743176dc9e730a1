"""Tests for configuration models and ConfigManager."""

import tempfile
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from retryscope.domain.config import (
    AppConfig,
    BackoffConfig,
    ChartMode,
    ChartSeriesMode,
    DisplayConfig,
    DisplayMode,
    JitterMode,
    Strategy,
)
from retryscope.domain.validators.config_validator import ValidationIssue
from retryscope.infrastructure.config.config_manager import ConfigManager, ConfigurationError


class TestBackoffConfigValidation:
    """Tests for BackoffConfig validation."""

    def test_valid_backoff_config(self):
        """Test valid backoff configuration"""
        config = BackoffConfig(
            strategy="exponential",
            initial_delay_ms=500,
            max_retries=5,
            max_delay_ms=None,
            factor=2,
        )
        assert config.strategy == Strategy.EXPONENTIAL
        assert config.initial_delay_ms == 500
        assert config.jitter == JitterMode.NONE
        assert config.has_cap is False

    def test_camel_case_aliases(self):
        """Test external camelCase field names are accepted"""
        config = BackoffConfig.model_validate(
            {
                "strategy": "linear",
                "initialDelayMs": 100,
                "maxRetries": 3,
                "maxDelayMs": 250,
                "incrementMs": 50,
                "jitter": "full",
            }
        )
        assert config.initial_delay_ms == 100
        assert config.max_retries == 3
        assert config.max_delay_ms == 250
        assert config.increment_ms == 50
        assert config.jitter == JitterMode.FULL
        assert config.has_cap is True

    def test_to_dict_uses_camel_case(self):
        """Test dump uses external field names"""
        data = BackoffConfig(strategy="fixed", initial_delay_ms=1200).to_dict()
        assert data["strategy"] == "fixed"
        assert data["initialDelayMs"] == 1200
        assert "maxRetries" in data

    def test_invalid_strategy(self):
        """Test unknown strategy name"""
        with pytest.raises(ValidationError, match="strategy"):
            BackoffConfig(strategy="fibonacci")

    def test_max_retries_too_high(self):
        """Test max_retries above limit"""
        with pytest.raises(ValidationError, match="(?i)max_?retries"):
            BackoffConfig(max_retries=1001)

    def test_negative_initial_delay(self):
        """Test negative initial delay"""
        with pytest.raises(ValidationError, match="(?i)initial_?delay_?ms"):
            BackoffConfig(initial_delay_ms=-1)

    def test_nan_cap_rejected(self):
        """Test NaN max delay is rejected"""
        with pytest.raises(ValidationError, match="(?i)max_?delay_?ms"):
            BackoffConfig(max_delay_ms=float("nan"))

    def test_exponential_requires_factor_above_one(self):
        """Test exponential strategy factor constraint"""
        with pytest.raises(ValidationError, match="factor > 1"):
            BackoffConfig(strategy="exponential", factor=1)

    def test_linear_requires_increment(self):
        """Test linear strategy increment constraint"""
        with pytest.raises(ValidationError, match="increment_ms >= 0"):
            BackoffConfig(strategy="linear", increment_ms=-5)

    def test_inactive_fields_are_ignored(self):
        """Test fields of other strategies do not fail validation"""
        config = BackoffConfig.model_validate(
            {"strategy": "linear", "factor": "oops", "incrementMs": 10}
        )
        assert config.factor is None
        assert config.increment_ms == 10

        config = BackoffConfig(strategy="fixed", factor=0.5, increment_ms=-1)
        assert config.factor == 0.5

    def test_none_jitter_defaults(self):
        """Test None jitter resolves to none"""
        assert BackoffConfig(jitter=None).jitter == JitterMode.NONE

    def test_config_is_frozen(self):
        """Test config instances are immutable"""
        config = BackoffConfig()
        with pytest.raises(ValidationError):
            config.max_retries = 3


class TestDisplayConfig:
    """Tests for DisplayConfig normalization."""

    def test_defaults(self):
        """Test default display configuration"""
        config = DisplayConfig()
        assert config.display_mode == DisplayMode.HUMANIZE
        assert config.chart_mode == ChartMode.DELAY
        assert config.chart_series_mode == ChartSeriesMode.EXPECTED
        assert config.simulation_seed is None

    def test_unknown_modes_fall_back(self):
        """Test stale mode values fall back to defaults"""
        config = DisplayConfig(
            display_mode="days", chart_mode="stacked", chart_series_mode="random"
        )
        assert config.display_mode == DisplayMode.HUMANIZE
        assert config.chart_mode == ChartMode.DELAY
        assert config.chart_series_mode == ChartSeriesMode.EXPECTED

    def test_known_modes_kept(self):
        """Test recognized values are kept"""
        config = DisplayConfig(display_mode="s", chart_mode="cumulative", chart_series_mode="simulated")
        assert config.display_mode == DisplayMode.S
        assert config.chart_mode == ChartMode.CUMULATIVE
        assert config.chart_series_mode == ChartSeriesMode.SIMULATED


class TestAppConfigValidation:
    """Tests for AppConfig validation."""

    def test_valid_app_config(self):
        """Test valid application configuration"""
        config = AppConfig()
        assert config.backoff.strategy == Strategy.EXPONENTIAL
        assert config.display.display_mode == DisplayMode.HUMANIZE

    def test_unknown_field_rejected(self):
        """Test unknown sections are rejected"""
        with pytest.raises(ValidationError, match="extra"):
            AppConfig(unknown_field="value")

    def test_nested_validation(self):
        """Test nested validation works"""
        with pytest.raises(ValidationError, match="(?i)max_?retries"):
            AppConfig(backoff={"max_retries": 5000})


class TestConfigManagerValidation:
    """Tests for ConfigManager validation."""

    @pytest.fixture(autouse=True)
    def _isolated_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        for name in ConfigManager.ENV_OVERRIDES:
            monkeypatch.delenv(name, raising=False)

    def test_load_valid_config_from_file(self):
        """Test loading valid configuration from file"""
        config_data = {
            "backoff": {
                "strategy": "linear",
                "initial_delay_ms": 250,
                "increment_ms": 100,
            }
        }

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yml", delete=False) as f:
            yaml.dump(config_data, f)
            config_path = f.name

        try:
            manager = ConfigManager(config_path=config_path)
            backoff = manager.get_backoff_config()
            assert backoff.strategy == Strategy.LINEAR
            assert backoff.initial_delay_ms == 250
            assert backoff.increment_ms == 100
            assert backoff.max_retries == 5  # default kept
        finally:
            Path(config_path).unlink()

    def test_load_invalid_backoff_raises_error(self, tmp_path):
        """Test loading invalid backoff section lists every issue"""
        config_path = tmp_path / "bad.yml"
        config_path.write_text(
            yaml.dump({"backoff": {"max_retries": 1001, "factor": 1}}), encoding="utf-8"
        )

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_path=config_path)

        message = str(exc_info.value)
        assert "backoff.maxRetries: Must be an integer between 0 and 1000." in message
        assert "backoff.factor: Must be > 1." in message

    def test_load_invalid_display_raises_error(self, tmp_path):
        """Test pydantic errors are reported as ConfigurationError"""
        config_path = tmp_path / "bad.yml"
        config_path.write_text(
            yaml.dump({"display": {"simulation_seed": "not-a-seed"}}), encoding="utf-8"
        )

        with pytest.raises(ConfigurationError, match="simulation_seed"):
            ConfigManager(config_path=config_path)

    def test_non_mapping_file_rejected(self, tmp_path):
        """Test a YAML list is rejected"""
        config_path = tmp_path / "list.yml"
        config_path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigManager(config_path=config_path)

    def test_finds_config_in_parent_directory(self, tmp_path, monkeypatch):
        """Test .retryscope.yml is discovered from a subdirectory"""
        (tmp_path / ".retryscope.yml").write_text(
            yaml.dump({"backoff": {"strategy": "fixed", "initial_delay_ms": 42}}),
            encoding="utf-8",
        )
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        manager = ConfigManager()
        assert manager.get_backoff_config().strategy == Strategy.FIXED
        assert manager.get("backoff.initial_delay_ms") == 42

    def test_default_config_is_valid(self):
        """Test default configuration is valid"""
        manager = ConfigManager()
        assert manager.config_path is None
        assert isinstance(manager.config, AppConfig)
        assert isinstance(manager.get_display_config(), DisplayConfig)
        assert manager.get("backoff.factor") == 2
        assert manager.get("backoff.missing", "fallback") == "fallback"

    def test_env_overrides_work(self, monkeypatch):
        """Test environment variable overrides"""
        monkeypatch.setenv("RETRYSCOPE_STRATEGY", "fixed")
        monkeypatch.setenv("RETRYSCOPE_JITTER", "equal")
        monkeypatch.setenv("RETRYSCOPE_DISPLAY_MODE", "ms")

        manager = ConfigManager()
        assert manager.get_backoff_config().strategy == Strategy.FIXED
        assert manager.get_backoff_config().jitter == JitterMode.EQUAL
        assert manager.get_display_config().display_mode == DisplayMode.MS

    def test_invalid_env_override_raises_error(self, monkeypatch):
        """Test an invalid strategy from the environment is reported"""
        monkeypatch.setenv("RETRYSCOPE_STRATEGY", "fibonacci")

        with pytest.raises(ConfigurationError, match="backoff.strategy"):
            ConfigManager()

    def test_backoff_overrides_applied_last(self, monkeypatch):
        """Test caller overrides win over defaults and environment"""
        monkeypatch.setenv("RETRYSCOPE_STRATEGY", "fixed")

        manager = ConfigManager(
            backoff_overrides={"strategy": "exponential", "maxRetries": 2, "maxDelayMs": 700}
        )
        backoff = manager.get_backoff_config()
        assert backoff.strategy == Strategy.EXPONENTIAL
        assert backoff.initial_delay_ms == 500
        assert backoff.max_retries == 2
        assert backoff.max_delay_ms == 700

    def test_overrides_replace_invalid_file_value(self, tmp_path):
        """Test an override fixes a value the file alone would reject"""
        config_path = tmp_path / "linear.yml"
        config_path.write_text(
            yaml.dump({"backoff": {"strategy": "linear", "incrementMs": -5}}), encoding="utf-8"
        )

        manager = ConfigManager(config_path=config_path, backoff_overrides={"incrementMs": 100})
        assert manager.get_backoff_config().increment_ms == 100

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager(config_path=config_path)
        assert exc_info.value.issues == [ValidationIssue("incrementMs", "Must be >= 0.")]
