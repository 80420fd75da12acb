"""layerkit configuration system.

Usage:
    from layerkit.core.config import ConfigManager, LayerConfig

    config = ConfigManager(service.custom.get("layerConfig")).load_config()
    layer_config = LayerConfig(config)
    layer_config.packager
"""
from __future__ import annotations

from .manager import ConfigManager, ENV_PREFIX, LAYER_CONFIG_SECTION
from .base import BaseDomainConfig
from .domains import LayerConfig, TimeoutsConfig, WebpackOptions

__all__ = [
    "ConfigManager",
    "BaseDomainConfig",
    "ENV_PREFIX",
    "LAYER_CONFIG_SECTION",
    "LayerConfig",
    "TimeoutsConfig",
    "WebpackOptions",
]
