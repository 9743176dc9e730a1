"""Configuration validation."""

from retryscope.domain.validators.config_validator import (
    InvalidConfigurationError,
    ValidationIssue,
    ensure_valid,
    validate_config,
)

__all__ = ["InvalidConfigurationError", "ValidationIssue", "ensure_valid", "validate_config"]
