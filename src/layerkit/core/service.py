"""The host's view of a serverless service.

The deployment host owns the service definition and the generated template;
:class:`Service` is the read-only snapshot the layer manager works from, plus
the template it rewrites in place.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from layerkit.core.exceptions import ServiceDefinitionError
from layerkit.core.models import AnyFunction, Layer, parse_function
from layerkit.core.utils.io import read_json, read_yaml, write_json_atomic

logger = logging.getLogger(__name__)

SERVICE_FILE_NAMES = ("serverless.yml", "serverless.yaml", "serverless.json")
TEMPLATE_RELATIVE_PATH = Path(".serverless") / "cloudformation-template-update-stack.json"


@dataclass
class Service:
    """Functions, layers and packaging rules of one service."""

    root: Path
    functions: Dict[str, AnyFunction] = field(default_factory=dict)
    layers: Dict[str, Layer] = field(default_factory=dict)
    custom: Dict[str, Any] = field(default_factory=dict)
    package_exclude: List[str] = field(default_factory=list)
    environment: Dict[str, str] = field(default_factory=dict)
    compiled_template: Optional[Dict[str, Any]] = None

    @property
    def layer_config(self) -> Dict[str, Any]:
        return dict(self.custom.get("layerConfig") or {})

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], root: Path) -> "Service":
        functions = {
            str(name): parse_function(str(name), decl or {})
            for name, decl in (data.get("functions") or {}).items()
        }
        layers = {
            str(layer_id): Layer.from_declaration(str(layer_id), decl or {})
            for layer_id, decl in (data.get("layers") or {}).items()
        }
        package = data.get("package") or {}
        exclude = [str(p) for p in package.get("exclude") or []]
        # `package.patterns` expresses exclusions as negated globs.
        exclude.extend(str(p)[1:] for p in package.get("patterns") or [] if str(p).startswith("!"))
        provider = data.get("provider") or {}
        environment = {
            str(k): str(v)
            for k, v in (provider.get("environment") or {}).items()
            if isinstance(v, (str, int, float, bool))
        }
        return cls(
            root=Path(root),
            functions=functions,
            layers=layers,
            custom=dict(data.get("custom") or {}),
            package_exclude=exclude,
            environment=environment,
        )


def find_service_file(root: Path) -> Path:
    """Locate the service definition in ``root``.

    Raises:
        ServiceDefinitionError: If no known service file exists.
    """
    for name in SERVICE_FILE_NAMES:
        candidate = Path(root) / name
        if candidate.exists():
            return candidate
    raise ServiceDefinitionError(
        f"No service definition found in {root} (looked for {', '.join(SERVICE_FILE_NAMES)})",
        context={"root": str(root)},
    )


def load_service(path: Optional[Path] = None, *, root: Optional[Path] = None) -> Service:
    """Load a service definition from YAML or JSON.

    ``root`` defaults to the directory containing the file.

    Raises:
        ServiceDefinitionError: If the file is missing, unparsable, or not a mapping.
    """
    if path is None:
        path = find_service_file(root or Path.cwd())
    path = Path(path)
    try:
        if path.suffix == ".json":
            data = read_json(path)
        else:
            data = read_yaml(path, default={}, raise_on_error=True)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ServiceDefinitionError(
            f"Unable to read service definition {path}: {exc}",
            context={"path": str(path)},
        ) from exc
    if not isinstance(data, Mapping):
        raise ServiceDefinitionError(
            f"Service definition {path} must be a mapping, got {type(data).__name__}",
            context={"path": str(path)},
        )
    service = Service.from_mapping(data, root or path.parent)
    logger.debug("Loaded service from %s: %d functions, %d layers", path, len(service.functions), len(service.layers))
    return service


def template_path(root: Path) -> Path:
    return Path(root) / TEMPLATE_RELATIVE_PATH


def load_compiled_template(path: Path) -> Dict[str, Any]:
    """Read the generated template the host is about to deploy.

    Raises:
        ServiceDefinitionError: If the template is missing or not a JSON object.
    """
    try:
        data = read_json(path)
    except (OSError, json.JSONDecodeError) as exc:
        raise ServiceDefinitionError(
            f"Unable to read generated template {path}: {exc}",
            context={"path": str(path)},
        ) from exc
    if not isinstance(data, dict):
        raise ServiceDefinitionError(f"Generated template {path} must be a JSON object", context={"path": str(path)})
    return data


def save_compiled_template(path: Path, template: Mapping[str, Any]) -> None:
    write_json_atomic(path, template)


__all__ = [
    "Service",
    "SERVICE_FILE_NAMES",
    "find_service_file",
    "load_service",
    "template_path",
    "load_compiled_template",
    "save_compiled_template",
]
