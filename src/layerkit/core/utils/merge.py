"""Deep merge used for configuration layering.

Mappings merge recursively; every other value (lists included) from the
override replaces the base value. A scalar override also replaces a mapping,
which is how ``webpack: false`` switches graph analysis off.
"""
from __future__ import annotations

import copy
from typing import Any, Dict


def deep_merge(base: Dict[str, Any], override: Dict[str, Any] | None) -> Dict[str, Any]:
    """Recursively merge dictionaries without mutating inputs.

    Example:
        >>> deep_merge({"a": 1, "b": {"c": 2}}, {"b": {"d": 3}})
        {'a': 1, 'b': {'c': 2, 'd': 3}}
        >>> deep_merge({"webpack": {"clean": True}}, {"webpack": False})
        {'webpack': False}
    """
    result: Dict[str, Any] = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


__all__ = ["deep_merge"]
