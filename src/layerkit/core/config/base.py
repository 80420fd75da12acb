"""Base class for section-scoped configuration accessors."""
from __future__ import annotations

from abc import ABC, abstractmethod
from functools import cached_property
from typing import Any, Dict, Mapping, Optional

from .manager import ConfigManager


class BaseDomainConfig(ABC):
    """Typed, cached access to one top-level section of the merged config.

    Usage:
        class MyConfig(BaseDomainConfig):
            def _config_section(self) -> str:
                return "mySection"

            @cached_property
            def my_setting(self) -> str:
                return self.section.get("mySetting", "default")

        cfg = MyConfig(ConfigManager().load_config())
    """

    def __init__(self, config: Optional[Mapping[str, Any]] = None) -> None:
        if config is None:
            config = ConfigManager().load_config()
        self._config: Mapping[str, Any] = config

    @abstractmethod
    def _config_section(self) -> str:
        """Return the top-level config key for this domain."""
        ...

    @cached_property
    def section(self) -> Dict[str, Any]:
        """This domain's configuration section, or an empty dict."""
        return self._config.get(self._config_section(), {}) or {}


__all__ = ["BaseDomainConfig"]
