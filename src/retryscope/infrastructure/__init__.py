"""Infrastructure: configuration loading, input parsing, display and runtime adapters."""
