"""Domain layer: configuration, models and validation."""
