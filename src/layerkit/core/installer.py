"""Materializes each layer's ``nodejs`` dependency folder.

Per layer: skip, or reset the managed folder; populate it (whole manifest, or
only the packages the bundle analysis asks for); run the package installer;
then strip files matching the service's exclude rules.
"""
from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from layerkit.core.config import LayerConfig
from layerkit.core.exceptions import InstallError, ManifestError
from layerkit.core.logs import verbose
from layerkit.core.manifest import MANIFEST_NAME, lockfile_for
from layerkit.core.models import Layer, Skipped
from layerkit.core.modules import ExternalModuleAnalyzer
from layerkit.core.naming import layer_logical_id
from layerkit.core.service import Service
from layerkit.core.utils.io import ensure_directory
from layerkit.core.utils.patterns import select_for_removal
from layerkit.core.utils.subprocess import format_command, merged_env, run_command

logger = logging.getLogger(__name__)

PRODUCTION_ENV: Dict[str, str] = {"NODE_ENV": "production"}


class InstallRunner(Protocol):
    """Runs an install command with inherited stdio and returns its exit code."""

    def __call__(self, argv: Sequence[str], *, cwd: Path, env: Mapping[str, str]) -> int: ...


class SubprocessRunner:
    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    def __call__(self, argv: Sequence[str], *, cwd: Path, env: Mapping[str, str]) -> int:
        return run_command(argv, cwd=cwd, env=merged_env(env), timeout=self.timeout).returncode


def build_install_command(
    packager: str,
    packages: Optional[Sequence[str]] = None,
    *,
    production_mode: bool = True,
) -> tuple[List[str], Dict[str, str]]:
    """Return ``(argv, env)`` for the installer.

    ``packages=None`` installs the copied manifest; otherwise exactly the
    given specifiers are added.

    Example:
        >>> build_install_command("yarn", ["lodash@^4.17.21"])
        (['yarn', 'add', 'lodash@^4.17.21'], {'NODE_ENV': 'production'})
    """
    env = dict(PRODUCTION_ENV) if production_mode else {}
    if packages is None:
        return [packager, "install"], env
    verb = "install" if packager == "npm" else "add"
    return [packager, verb, *packages], env


@dataclass
class InstallReport:
    installed: List[Layer] = field(default_factory=list)
    cleaned: Dict[str, List[str]] = field(default_factory=dict)
    skipped: List[Skipped] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "installedLayers": [layer.name for layer in self.installed],
            "cleaned": self.cleaned,
            "skipped": [{"unit": s.unit, "reason": s.reason} for s in self.skipped],
        }


def _reset_folder(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
    ensure_directory(path)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


class LayerInstaller:
    """Installs the runtime dependencies of every declared layer.

    Args:
        service: Service declaring the layers and functions
        config: Layer manager options
        analyzer: Computes specifiers when graph analysis is on
        runner: Executes install commands (a subprocess by default)
    """

    def __init__(
        self,
        service: Service,
        config: LayerConfig,
        *,
        analyzer: Optional[ExternalModuleAnalyzer] = None,
        runner: Optional[InstallRunner] = None,
    ) -> None:
        self.service = service
        self.config = config
        self.analyzer = analyzer or ExternalModuleAnalyzer(service, config.webpack)
        self.runner = runner or SubprocessRunner()

    @property
    def root(self) -> Path:
        return self.service.root

    def _copy_manifest(self, node_path: Path) -> None:
        manifest = self.root / MANIFEST_NAME
        if not manifest.is_file():
            raise ManifestError(f"Unable to copy {manifest}: file not found", context={"path": str(manifest)})
        shutil.copyfile(manifest, node_path / MANIFEST_NAME)

        lockfile = lockfile_for(self.config.packager)
        if lockfile is None:
            return
        if (self.root / lockfile).is_file():
            shutil.copyfile(self.root / lockfile, node_path / lockfile)
        else:
            logger.warning("No %s next to %s; installing without a lockfile", lockfile, MANIFEST_NAME)

    async def install_layer(self, layer_id: str, layer: Layer) -> bool:
        """Install one layer; returns False when the layer was skipped.

        Raises:
            InstallError: If the installer cannot be run to completion or exits non-zero.
            LayerKitError: Propagated from dependency analysis.
        """
        layer_ref = layer_logical_id(layer_id)
        node_path = layer.node_path(self.root)
        manage = self.config.manage_node_folder

        if not manage and not node_path.exists():
            verbose(logger, "Skipping %s: %s does not exist and manageNodeFolder is off", layer_id, node_path)
            return False

        if manage:
            await asyncio.to_thread(_reset_folder, node_path)

        packages: Optional[List[str]] = None
        if not self.config.graph_analysis:
            await asyncio.to_thread(self._copy_manifest, node_path)
        else:
            if manage:
                await asyncio.to_thread((node_path / MANIFEST_NAME).write_text, "{}", encoding="utf-8")
            packages = await self.analyzer.analyze(layer_ref)
            if not packages:
                logger.info("No external modules needed by %s; nothing to install", layer_id)
                return True

        verbose(logger, "Installing nodejs layer %s with %s", layer.path, self.config.packager)
        argv, env = build_install_command(
            self.config.packager,
            packages,
            production_mode=self.config.production_mode,
        )
        command = format_command(argv, env)
        logger.info("Running command %s", command)
        try:
            returncode = await asyncio.to_thread(self.runner, argv, cwd=node_path, env=env)
        except FileNotFoundError as exc:
            raise InstallError(
                f"Install for layer {layer_id} failed: {argv[0]} was not found on PATH",
                layer=layer_id,
                command=command,
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise InstallError(
                f"Install for layer {layer_id} timed out after {exc.timeout}s",
                layer=layer_id,
                command=command,
            ) from exc
        if returncode != 0:
            raise InstallError(
                f"Install for layer {layer_id} failed with exit code {returncode}",
                layer=layer_id,
                command=command,
                returncode=returncode,
            )
        return True

    async def clean_layer(self, layer: Layer) -> List[str]:
        """Delete files matching the service's exclude rules from the layer folder."""
        if not (self.config.graph_analysis and self.config.webpack.clean):
            return []
        rules = self.service.package_exclude
        if not rules:
            return []
        node_path = layer.node_path(self.root)
        logger.info("Cleaning %s", ", ".join(str(node_path / rule) for rule in rules))
        targets = await asyncio.to_thread(select_for_removal, rules, node_path)
        await asyncio.gather(*(asyncio.to_thread(_remove, target) for target in targets))
        return [str(t) for t in targets]

    async def install_layers(self) -> InstallReport:
        """Install every layer, then clean the installed ones concurrently."""
        report = InstallReport()
        if not self.config.install_layers:
            verbose(logger, "Skipping installation of layers as per config")
            return report

        for layer_id, layer in self.service.layers.items():
            if await self.install_layer(layer_id, layer):
                report.installed.append(layer)
            else:
                report.skipped.append(Skipped(unit=layer_id, reason="no nodejs folder to install into"))

        cleaned = await asyncio.gather(*(self.clean_layer(layer) for layer in report.installed))
        report.cleaned = {layer.name: paths for layer, paths in zip(report.installed, cleaned) if paths}
        logger.info("Installed %d layers", len(report.installed))
        return report


__all__ = [
    "PRODUCTION_ENV",
    "InstallRunner",
    "SubprocessRunner",
    "build_install_command",
    "InstallReport",
    "LayerInstaller",
]
