"""Configuration manager for loading and validating .retryscope.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from pydantic import ValidationError

from retryscope.domain.config import AppConfig, BackoffConfig, DisplayConfig
from retryscope.domain.validators.config_validator import ValidationIssue, validate_config

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".retryscope.yml"


class ConfigurationError(Exception):
    """Configuration validation error.

    Carries the backoff ValidationIssues when those are the cause.
    """

    def __init__(self, message: str, issues: Optional[List[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = list(issues or [])


class ConfigManager:
    """Manages configuration from .retryscope.yml and environment variables

    Configuration priority:
    1. Default values (DEFAULT_CONFIG)
    2. .retryscope.yml file (searched from current directory upwards)
    3. Environment variables (RETRYSCOPE_*)
    4. Backoff overrides passed by the caller (CLI options)
    """

    DEFAULT_CONFIG = {
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

    ENV_OVERRIDES = {
        "RETRYSCOPE_STRATEGY": ("backoff", "strategy"),
        "RETRYSCOPE_JITTER": ("backoff", "jitter"),
        "RETRYSCOPE_DISPLAY_MODE": ("display", "display_mode"),
    }

    def __init__(
        self,
        config_path: Optional[Path] = None,
        backoff_overrides: Optional[Mapping[str, Any]] = None,
    ):
        """Initialize config manager

        Args:
            config_path: Path to .retryscope.yml (searches from current dir if None)
            backoff_overrides: Backoff fields applied last (camelCase or snake_case keys)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        self.backoff_overrides = dict(backoff_overrides or {})
        self.raw_config = self._load_raw_config()
        self.config: AppConfig = self._build_config(self.raw_config)

    def _find_config_file(self) -> Optional[Path]:
        """Find .retryscope.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_raw_config(self) -> Dict[str, Any]:
        """Merge defaults, config file and environment overrides"""
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_path}: {e}")
                logger.info("Using default configuration")
            else:
                if not isinstance(file_config, dict):
                    raise ConfigurationError(
                        f"Configuration file {self.config_path} must contain a mapping"
                    )
                config_dict = self._merge_config(config_dict, file_config)
                logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)
        return self._apply_backoff_overrides(config_dict)

    @staticmethod
    def _build_config(config_dict: Dict[str, Any]) -> AppConfig:
        """Validate merged configuration and create AppConfig

        Raises:
            ConfigurationError: If the backoff section or any model field is invalid
        """
        issues = validate_config(config_dict.get("backoff"))
        if issues:
            raise ConfigurationError(
                "Configuration validation failed:\n"
                + "\n".join(f"  - backoff.{issue.field}: {issue.message}" for issue in issues),
                issues=issues,
            )
        try:
            return AppConfig(**config_dict)
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"  - {field}: {error['msg']}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply RETRYSCOPE_* environment variable overrides"""
        for env_name, (section, key) in self.ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value and isinstance(config.get(section), dict):
                logger.debug(f"Overriding {section}.{key} from {env_name}")
                config[section][key] = value
        return config

    def _apply_backoff_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply caller overrides to the backoff section, replacing either key spelling"""
        section = config.get("backoff")
        if not self.backoff_overrides or not isinstance(section, dict):
            return config

        aliases = {
            name: field.alias for name, field in BackoffConfig.model_fields.items() if field.alias
        }
        names = {alias: name for name, alias in aliases.items()}
        for key, value in self.backoff_overrides.items():
            name = names.get(key, key)
            section.pop(aliases.get(name), None)
            section[name] = value
            logger.debug(f"Overriding backoff.{name} from caller")
        return config

    def get_backoff_config(self) -> BackoffConfig:
        """Get backoff configuration

        Returns:
            Backoff configuration model
        """
        return self.config.backoff

    def get_display_config(self) -> DisplayConfig:
        """Get display configuration

        Returns:
            Display configuration model
        """
        return self.config.display

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "backoff.strategy" or "display")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump(mode="json")
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
