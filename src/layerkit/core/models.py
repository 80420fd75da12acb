"""Declarations the layer manager reads, and per-unit outcome records."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

NODE_FOLDER = "nodejs"


@dataclass(frozen=True)
class LayerReference:
    """A function's pointer to a layer by logical name (``{Ref: <name>}``).

    Equality is by value, so references parsed from different declarations
    compare equal when they name the same logical resource.
    """

    ref: str

    @classmethod
    def from_declaration(cls, value: Any) -> Optional["LayerReference"]:
        """Parse ``{Ref: name}``; ARNs and other intrinsics return None."""
        if isinstance(value, Mapping) and isinstance(value.get("Ref"), str):
            return cls(ref=value["Ref"])
        return None


@dataclass(frozen=True)
class Layer:
    name: str
    path: str
    description: Optional[str] = None
    retain: Optional[bool] = None

    def node_path(self, root: Path) -> Path:
        """Managed dependency folder of this layer under project ``root``."""
        return Path(root) / self.path / NODE_FOLDER

    @classmethod
    def from_declaration(cls, layer_id: str, data: Mapping[str, Any]) -> "Layer":
        return cls(
            name=str(data.get("name") or layer_id),
            path=str(data.get("path") or "."),
            description=data.get("description"),
            retain=data.get("retain"),
        )


@dataclass(frozen=True)
class FunctionDefinition:
    """A handler-based function declaration."""

    name: str
    handler: str
    layers: Tuple[LayerReference, ...] = ()
    entry: Any = None
    should_layer: bool = True
    force_include: Tuple[str, ...] = ()
    force_exclude: Tuple[str, ...] = ()

    def uses_layer(self, layer_ref: str) -> bool:
        return LayerReference(layer_ref) in self.layers

    def qualifies_for(self, layer_ref: str) -> bool:
        """True when this function's code feeds the bundle of ``layer_ref``."""
        return self.should_layer and self.uses_layer(layer_ref)

    @classmethod
    def from_declaration(cls, name: str, data: Mapping[str, Any]) -> "FunctionDefinition":
        refs = (LayerReference.from_declaration(v) for v in data.get("layers") or [])
        return cls(
            name=name,
            handler=str(data["handler"]),
            layers=tuple(r for r in refs if r is not None),
            entry=data.get("entry"),
            should_layer=bool(data.get("shouldLayer", True)),
            force_include=tuple(str(n) for n in data.get("forceInclude") or []),
            force_exclude=tuple(str(n) for n in data.get("forceExclude") or []),
        )


@dataclass(frozen=True)
class ImageFunction:
    """A container-image function; layers are not managed for these."""

    name: str
    image: Any = None


AnyFunction = Union[FunctionDefinition, ImageFunction]


def parse_function(name: str, data: Mapping[str, Any]) -> AnyFunction:
    if isinstance(data, Mapping) and "handler" in data:
        return FunctionDefinition.from_declaration(name, data)
    return ImageFunction(name=name, image=(data or {}).get("image") if isinstance(data, Mapping) else None)


@dataclass(frozen=True)
class Matched:
    """A unit that resolved successfully."""

    unit: str
    key: str
    value: str


@dataclass(frozen=True)
class Skipped:
    """A unit left out of the result, and why."""

    unit: str
    reason: str


@dataclass
class TransformedLayerResources:
    """Record of one template transformation pass."""

    exported_layers: List[Dict[str, Any]] = field(default_factory=list)
    upgraded_layer_references: List[Dict[str, Any]] = field(default_factory=list)
    skipped: List[Skipped] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exportedLayers": self.exported_layers,
            "upgradedLayerReferences": self.upgraded_layer_references,
            "skipped": [{"unit": s.unit, "reason": s.reason} for s in self.skipped],
        }


__all__ = [
    "NODE_FOLDER",
    "LayerReference",
    "Layer",
    "FunctionDefinition",
    "ImageFunction",
    "AnyFunction",
    "parse_function",
    "Matched",
    "Skipped",
    "TransformedLayerResources",
]
