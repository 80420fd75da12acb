"""Logical names derived from layer ids.

Every comparison between a layer id, a function's layer reference, and a
template Output or Resource goes through :func:`layer_logical_id`.
"""
from __future__ import annotations

import re

LAYER_SUFFIX = "LambdaLayer"
QUALIFIED_ARN_SUFFIX = "LambdaLayerQualifiedArn"


def pascal_case(value: str) -> str:
    """Convert ``value`` to PascalCase.

    Example:
        >>> pascal_case("shared-deps")
        'SharedDeps'
        >>> pascal_case("fooBar")
        'FooBar'
        >>> pascal_case("node_utils")
        'NodeUtils'
    """
    spaced = re.sub(r"([A-Z])", r" \1", value)
    if len(spaced) == 1:
        return spaced.upper()
    spaced = re.sub(r"^[\W_]+|[\W_]+$", "", spaced).lower()
    spaced = spaced[:1].upper() + spaced[1:]
    return re.sub(r"[\W_]+(\w|$)", lambda m: m.group(1).upper(), spaced)


def layer_logical_id(layer_id: str) -> str:
    """Unversioned logical id of a layer (``<Pascal>LambdaLayer``)."""
    return f"{pascal_case(layer_id)}{LAYER_SUFFIX}"


def layer_output_name(layer_id: str) -> str:
    """Name of the Output carrying the layer's qualified ARN."""
    return f"{pascal_case(layer_id)}{QUALIFIED_ARN_SUFFIX}"


__all__ = ["pascal_case", "layer_logical_id", "layer_output_name", "LAYER_SUFFIX", "QUALIFIED_ARN_SUFFIX"]
