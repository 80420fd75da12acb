"""Configuration accessor for the ``layerConfig`` section."""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Dict, List, Mapping, Optional

from ..base import BaseDomainConfig
from ..manager import LAYER_CONFIG_SECTION

_WEBPACK_DEFAULTS: Dict[str, Any] = {
    "clean": True,
    "backupFileType": "js",
    "configPath": "./webpack.config.js",
    "discoverModules": True,
    "forceInclude": [],
    "forceExclude": [],
    "packagingLabels": True,
}


@dataclass(frozen=True)
class WebpackOptions:
    """Build options for graph analysis (``layerConfig.webpack``)."""

    clean: bool = True
    backup_file_type: str = "js"
    config_path: str = "./webpack.config.js"
    discover_modules: bool = True
    force_include: List[str] = field(default_factory=list)
    force_exclude: List[str] = field(default_factory=list)
    packaging_labels: bool = True

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "WebpackOptions":
        merged = {**_WEBPACK_DEFAULTS, **(data or {})}
        return cls(
            clean=bool(merged["clean"]),
            backup_file_type=str(merged["backupFileType"]).lstrip("."),
            config_path=str(merged["configPath"]),
            discover_modules=bool(merged["discoverModules"]),
            force_include=[str(n) for n in merged.get("forceInclude") or []],
            force_exclude=[str(n) for n in merged.get("forceExclude") or []],
            packaging_labels=bool(merged["packagingLabels"]),
        )


class LayerConfig(BaseDomainConfig):
    """Typed access to the layer manager options."""

    def _config_section(self) -> str:
        return LAYER_CONFIG_SECTION

    @cached_property
    def install_layers(self) -> bool:
        return bool(self.section.get("installLayers", True))

    @cached_property
    def export_layers(self) -> bool:
        return bool(self.section.get("exportLayers", True))

    @cached_property
    def upgrade_layer_references(self) -> bool:
        return bool(self.section.get("upgradeLayerReferences", True))

    @cached_property
    def export_prefix(self) -> str:
        return str(self.section.get("exportPrefix", "${AWS::StackName}-"))

    @cached_property
    def manage_node_folder(self) -> bool:
        return bool(self.section.get("manageNodeFolder", False))

    @cached_property
    def packager(self) -> str:
        return str(self.section.get("packager", "npm"))

    @cached_property
    def production_mode(self) -> bool:
        return bool(self.section.get("productionMode", True))

    @cached_property
    def graph_analysis(self) -> bool:
        """Whether dependencies come from bundle analysis (``webpack`` not false)."""
        return bool(self.section.get("webpack", True))

    @cached_property
    def webpack(self) -> WebpackOptions:
        """Build options; defaults apply even when graph analysis is off."""
        raw = self.section.get("webpack")
        return WebpackOptions.from_mapping(raw if isinstance(raw, Mapping) else None)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.section)


__all__ = ["LayerConfig", "WebpackOptions"]
