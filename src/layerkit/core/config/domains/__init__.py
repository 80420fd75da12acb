"""Domain-specific configuration accessors."""
from .layer import LayerConfig, WebpackOptions
from .timeouts import TimeoutsConfig

__all__ = ["LayerConfig", "WebpackOptions", "TimeoutsConfig"]
