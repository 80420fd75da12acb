"""
Layer manager configuration loading.

Configuration sources (highest to lowest priority):
1. Environment variables: LAYERKIT_* (``__`` separates nested keys)
2. Service definition: ``custom.layerConfig`` overlays the ``layerConfig`` section
3. Bundled defaults: layerkit.data/config/defaults.yaml
"""
from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List, Mapping, Optional

from layerkit.core.schemas import validate_payload
from layerkit.core.utils.merge import deep_merge
from layerkit.data import read_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "LAYERKIT_"
LAYER_CONFIG_SECTION = "layerConfig"


class ConfigManager:
    """Load, merge, and validate layer manager configuration.

    Args:
        service_overrides: The service's ``custom.layerConfig`` mapping, if any.
        environ: Environment to read overrides from (``os.environ`` if None).
    """

    def __init__(
        self,
        service_overrides: Optional[Mapping[str, Any]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.service_overrides = dict(service_overrides or {})
        self.environ = os.environ if environ is None else environ

    def defaults(self) -> Dict[str, Any]:
        return deep_merge({}, read_yaml("config", "defaults.yaml"))

    # ========== Environment overrides ==========

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _iter_env_overrides(self):
        for key in sorted(self.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            segments = raw.split("__")
            if not raw or any(s == "" for s in segments):
                logger.warning("Ignoring malformed override %s", key)
                continue
            yield segments, self._coerce_type(self.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[str], value: Any) -> None:
        cur: Dict[str, Any] = root
        for i, part in enumerate(path):
            # Case-insensitive match against existing keys keeps camelCase keys
            # addressable from upper-cased shells.
            lower_map = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            key = lower_map.get(part.lower(), part)
            if i == len(path) - 1:
                cur[key] = value
                return
            if not isinstance(cur.get(key), dict):
                cur[key] = {}
            cur = cur[key]

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> None:
        for path, typed_value in self._iter_env_overrides():
            self._set_nested(cfg, path, typed_value)

    # ========== Loading ==========

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Return the merged configuration.

        Raises:
            ConfigurationError: If ``validate`` is set and the merged
                ``layerConfig`` section violates its schema.
        """
        cfg = self.defaults()
        cfg[LAYER_CONFIG_SECTION] = deep_merge(cfg.get(LAYER_CONFIG_SECTION) or {}, self.service_overrides)
        self.apply_env_overrides(cfg)
        if validate:
            validate_payload(cfg[LAYER_CONFIG_SECTION], "layer-config")
        return cfg


__all__ = ["ConfigManager", "ENV_PREFIX", "LAYER_CONFIG_SECTION"]
