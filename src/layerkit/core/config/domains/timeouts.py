"""Timeouts for external processes (installer and bundler)."""
from __future__ import annotations

from functools import cached_property
from typing import Optional

from ..base import BaseDomainConfig


class TimeoutsConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "timeouts"

    def _seconds(self, key: str) -> Optional[float]:
        value = float(self.section.get(key, 0) or 0)
        return value if value > 0 else None

    @cached_property
    def install_seconds(self) -> Optional[float]:
        """Installer timeout, or None to wait indefinitely."""
        return self._seconds("install_seconds")

    @cached_property
    def build_seconds(self) -> Optional[float]:
        """Bundler timeout, or None to wait indefinitely."""
        return self._seconds("build_seconds")


__all__ = ["TimeoutsConfig"]
