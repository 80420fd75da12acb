"""The project's package manifest (``package.json``)."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from layerkit.core.exceptions import ManifestError
from layerkit.core.utils.io import read_json

MANIFEST_NAME = "package.json"
LOCKFILES: Dict[str, str] = {
    "npm": "package-lock.json",
    "yarn": "yarn.lock",
}


def lockfile_for(packager: str) -> Optional[str]:
    """Lockfile name for ``packager``, or None for an unknown packager."""
    return LOCKFILES.get(packager)


def _string_map(value: object) -> Dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {str(k): str(v) for k, v in value.items() if v is not None}


@dataclass(frozen=True)
class PackageManifest:
    path: Path
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, root: Path) -> "PackageManifest":
        """Read ``package.json`` from ``root``.

        Raises:
            ManifestError: If the file is missing or is not a JSON object.
        """
        path = Path(root) / MANIFEST_NAME
        try:
            data = read_json(path)
        except (OSError, json.JSONDecodeError) as exc:
            raise ManifestError(f"Unable to read {path}: {exc}", context={"path": str(path)}) from exc
        if not isinstance(data, dict):
            raise ManifestError(f"{path} must contain a JSON object", context={"path": str(path)})
        return cls(
            path=path,
            dependencies=_string_map(data.get("dependencies")),
            dev_dependencies=_string_map(data.get("devDependencies")),
        )

    def version_of(self, name: str) -> Optional[str]:
        """Declared version of ``name``; production dependencies take precedence."""
        return self.dependencies.get(name) or self.dev_dependencies.get(name) or None

    def specifier(self, name: str) -> str:
        """``name@version`` when declared, otherwise the bare name."""
        version = self.version_of(name)
        return f"{name}@{version}" if version else name


__all__ = ["MANIFEST_NAME", "LOCKFILES", "lockfile_for", "PackageManifest"]
