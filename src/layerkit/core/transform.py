"""Rewrites the generated CloudFormation template for layers.

Two opt-in passes per declared layer, both keyed on the layer's qualified
ARN Output:

- export: give the Output an ``Export`` so other stacks can import the
  versioned layer;
- upgrade: repoint functions that still reference the unversioned layer
  resource at the versioned one the Output names.

The template is mutated in place and must be transformed exactly once,
before it is handed to the deployment host.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, Mapping, MutableMapping

from layerkit.core.logs import verbose
from layerkit.core.models import Skipped, TransformedLayerResources
from layerkit.core.naming import layer_logical_id, layer_output_name

logger = logging.getLogger(__name__)

FUNCTION_RESOURCE_TYPE = "AWS::Lambda::Function"


def export_output(output: MutableMapping[str, Any], export_prefix: str, export_name: str) -> None:
    """Attach ``Export.Name = {"Fn::Sub": prefix + name}`` to ``output``."""
    output["Export"] = {"Name": {"Fn::Sub": f"{export_prefix}{export_name}"}}


def versioned_reference(output: Mapping[str, Any]) -> str | None:
    value = output.get("Value")
    if isinstance(value, Mapping) and isinstance(value.get("Ref"), str):
        return value["Ref"]
    return None


def upgrade_references(
    resources: Mapping[str, Any],
    resource_ref: str,
    versioned_ref: str,
) -> list[Dict[str, Any]]:
    """Point every function layer ``{Ref: resource_ref}`` at ``versioned_ref``.

    Returns the mutated reference mappings.
    """
    upgraded: list[Dict[str, Any]] = []
    for resource_id, resource in resources.items():
        if not isinstance(resource, Mapping) or resource.get("Type") != FUNCTION_RESOURCE_TYPE:
            continue
        layers = (resource.get("Properties") or {}).get("Layers") or []
        for layer in layers:
            if isinstance(layer, MutableMapping) and layer.get("Ref") == resource_ref:
                verbose(logger, "%s: Updating reference to layer version %s", resource_id, versioned_ref)
                layer["Ref"] = versioned_ref
                upgraded.append(layer)
    return upgraded


def transform_layer_resources(
    template: MutableMapping[str, Any],
    layer_ids: Iterable[str],
    *,
    export_layers: bool = True,
    export_prefix: str = "${AWS::StackName}-",
    upgrade_layer_references: bool = True,
) -> TransformedLayerResources:
    """Apply the export and upgrade passes for each layer id, in order.

    Layers without a qualified ARN Output are recorded as skipped.
    """
    result = TransformedLayerResources()
    outputs = template.get("Outputs") or {}
    resources = template.get("Resources") or {}

    for layer_id in layer_ids:
        export_name = layer_output_name(layer_id)
        output = outputs.get(export_name)
        if not isinstance(output, MutableMapping):
            result.skipped.append(Skipped(unit=layer_id, reason=f"no {export_name} output in template"))
            logger.debug("Skipping %s: no %s output", layer_id, export_name)
            continue

        if export_layers:
            export_output(output, export_prefix, export_name)
            result.exported_layers.append(output)

        if upgrade_layer_references:
            resource_ref = layer_logical_id(layer_id)
            versioned_ref = versioned_reference(output)
            if versioned_ref is None:
                result.skipped.append(Skipped(unit=layer_id, reason=f"{export_name} has no Value.Ref"))
            elif versioned_ref != resource_ref:
                logger.info("Replacing references to %s with %s", resource_ref, versioned_ref)
                result.upgraded_layer_references.extend(upgrade_references(resources, resource_ref, versioned_ref))

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("CF after transformation:\n%s", json.dumps(template, indent=2, default=str))
    return result


__all__ = [
    "FUNCTION_RESOURCE_TYPE",
    "export_output",
    "versioned_reference",
    "upgrade_references",
    "transform_layer_resources",
]
