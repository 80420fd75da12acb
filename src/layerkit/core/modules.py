"""Module graph analysis: which packages must a layer install?

A bundle inlines everything it can; what remains are *external* modules,
resolved at runtime from the layer's ``node_modules``. Walking the compiled
module graph for those externals gives the minimal install set. Manual
overrides then add or remove names, and each name is pinned to the version
declared in ``package.json``.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set

from layerkit.core.bundler import (
    BuildStats,
    Compiler,
    ModuleNode,
    WebpackCompiler,
    default_config_directory,
    load_build_config,
    write_bundler_config,
)
from layerkit.core.config.domains import WebpackOptions
from layerkit.core.entries import qualifying_functions, resolve_entries
from layerkit.core.manifest import PackageManifest
from layerkit.core.service import Service
from layerkit.data import node_builtin_modules

logger = logging.getLogger(__name__)

EXTERNAL_MARKER = "external "
# webpack 4: external "lodash/fp"   webpack 5: external commonjs "lodash/fp"
EXTERNAL_IDENTIFIER = re.compile(r'^external (?:[\w-]+ )?"(.*)"$')


def is_builtin_module(name: str) -> bool:
    """True for Node.js core modules (``fs``, ``fs/promises``, ``node:path``)."""
    if name.startswith("node:"):
        return True
    head, sep, rest = name.partition("/")
    return (head if sep and rest else name.rstrip("/")) in node_builtin_modules()


def external_module_name(identifier: str) -> Optional[str]:
    """Package name an external module identifier refers to.

    Example:
        >>> external_module_name('external "@aws-sdk/client-s3/dist"')
        '@aws-sdk/client-s3'
        >>> external_module_name('external commonjs "lodash/fp"')
        'lodash'
        >>> external_module_name('./src/handler.js') is None
        True
    """
    match = EXTERNAL_IDENTIFIER.match(identifier)
    if match is None:
        return None
    segments = match.group(1).split("/")
    if segments[0].startswith("@") and len(segments) > 1:
        return f"{segments[0]}/{segments[1]}"
    return segments[0] or None


def is_external_module(node: ModuleNode) -> bool:
    identifier = node.identifier
    if not identifier.startswith(EXTERNAL_MARKER):
        return False
    name = external_module_name(identifier)
    return name is not None and not is_builtin_module(name)


def external_modules_from_stats(stats: BuildStats) -> Set[str]:
    """Every non-builtin package referenced as external across all chunks."""
    externals: Set[str] = set()
    for chunk in stats.chunks or ():
        for node in chunk.modules or ():
            if not is_external_module(node):
                continue
            name = external_module_name(node.identifier)
            if name is not None:
                externals.add(name)
    return externals


def apply_overrides(
    names: Iterable[str],
    force_include: Iterable[str] = (),
    force_exclude: Iterable[str] = (),
) -> Set[str]:
    """Add forced names, then remove excluded ones (exclusion wins)."""
    result = set(names)
    result.update(force_include)
    result.difference_update(force_exclude)
    return result


def pin_versions(names: Iterable[str], manifest: PackageManifest) -> List[str]:
    """``name@version`` for declared packages, bare names otherwise (sorted)."""
    return [manifest.specifier(name) for name in sorted(set(names))]


class ExternalModuleAnalyzer:
    """Computes the package specifiers a layer must install.

    Args:
        service: The service whose functions feed the layer
        options: Build options (``layerConfig.webpack``)
        compiler: Bundler adapter (a :class:`WebpackCompiler` by default)
        config_dir: Where bundler configs are written for each build
    """

    def __init__(
        self,
        service: Service,
        options: WebpackOptions,
        *,
        compiler: Optional[Compiler] = None,
        config_dir: Optional[Path] = None,
        build_timeout: Optional[float] = None,
    ) -> None:
        self.service = service
        self.options = options
        self.compiler = compiler or WebpackCompiler(
            service.root,
            packaging_labels=options.packaging_labels,
            timeout=build_timeout,
        )
        self.config_dir = Path(config_dir) if config_dir else default_config_directory(service.root)

    def force_lists(self, layer_ref: str) -> tuple[List[str], List[str]]:
        """Config-level overrides followed by those of each qualifying function."""
        include = list(self.options.force_include)
        exclude = list(self.options.force_exclude)
        for func in qualifying_functions(self.service.functions, layer_ref):
            include.extend(func.force_include)
            exclude.extend(func.force_exclude)
        return include, exclude

    async def discover(self, layer_ref: str) -> Set[str]:
        """Bundle the layer's functions and collect external package names."""
        build_config = await load_build_config(
            self.service.root,
            self.options.config_path,
            environment=self.service.environment,
        )
        report = await resolve_entries(
            self.service.functions,
            layer_ref,
            backup_file_type=self.options.backup_file_type,
            root=self.service.root,
        )
        if not self.options.discover_modules:
            logger.debug("Module discovery disabled; skipping build for %s", layer_ref)
            return set()
        if not report.entries:
            logger.info("No entries to bundle for %s", layer_ref)
            return set()
        config_file = write_bundler_config(build_config, report.entries, self.config_dir / layer_ref)
        stats = await self.compiler.compile(config_file)
        return external_modules_from_stats(stats)

    async def analyze(self, layer_ref: str) -> List[str]:
        """Return the specifiers to install for ``layer_ref``.

        Raises:
            LayerKitError: Build configuration, bundler or manifest failures.

        Any failure is logged here and propagated unchanged.
        """
        try:
            manifest = PackageManifest.load(self.service.root)
            discovered = await self.discover(layer_ref)
            include, exclude = self.force_lists(layer_ref)
            names = apply_overrides(discovered, include, exclude)
            specifiers = pin_versions(names, manifest)
        except Exception as exc:
            logger.error("Unable to analyze dependencies of %s: %s", layer_ref, exc)
            raise
        logger.debug("External modules for %s: %s", layer_ref, ", ".join(specifiers) or "<none>")
        return specifiers


__all__ = [
    "EXTERNAL_MARKER",
    "EXTERNAL_IDENTIFIER",
    "is_builtin_module",
    "external_module_name",
    "is_external_module",
    "external_modules_from_stats",
    "apply_overrides",
    "pin_versions",
    "ExternalModuleAnalyzer",
]
