"""Bundler adapter: build configuration loading and webpack invocation.

The analyzer only needs a module graph, so the bundler is reached through the
small :class:`Compiler` protocol. :class:`WebpackCompiler` satisfies it by
running the webpack CLI and reading its JSON stats.

Build configuration files come in two kinds:

- JavaScript and TypeScript (``.js``/``.cjs``/``.mjs``/``.ts``/``.mts``/``.cts``):
  evaluated by the bundler itself. A CommonJS wrapper config requires the
  user's file (falling back to ``import()`` for ES modules, registering
  ts-node for TypeScript when it is installed), calls it when it exports a
  function, awaits a promise result, and replaces ``entry``.
- Documents (``.json``/``.yaml``/``.yml``) and Python modules (``.py``
  exposing ``config``): loaded here, given the resolved ``entry``, and handed
  to the bundler as a JSON config.
"""
from __future__ import annotations

import asyncio
import importlib.util
import inspect
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

import yaml

from layerkit.core.exceptions import BuildConfigError, CompilationError
from layerkit.core.utils.io import read_json, read_yaml
from layerkit.core.utils.subprocess import merged_env, run_command_async

logger = logging.getLogger(__name__)

JS_CONFIG_SUFFIXES = (".js", ".cjs", ".mjs", ".ts", ".mts", ".cts")
TS_CONFIG_SUFFIXES = (".ts", ".mts", ".cts")
DOCUMENT_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
PYTHON_CONFIG_SUFFIXES = (".py",)
PYTHON_CONFIG_ATTRIBUTE = "config"

WEBPACK_COMMAND: tuple[str, ...] = ("npx", "webpack")

# Stats the analyzer needs, whatever the user's `stats` preset says.
STATS_OPTIONS: Dict[str, Any] = {
    "all": False,
    "chunks": True,
    "chunkModules": True,
    "modules": True,
    "ids": True,
    "errors": True,
    "warnings": True,
}

_WRAPPER_TEMPLATE = """\
// Generated by layerkit; replaced on every build.
const {{ pathToFileURL }} = require('url');

const source = {source};
const entry = {entry};
const stats = {stats};

if ({typescript}) {{
  try {{
    require('ts-node/register/transpile-only');
  }} catch (err) {{
    if (err.code !== 'MODULE_NOT_FOUND') throw err;
  }}
}}

async function load() {{
  try {{
    return require(source);
  }} catch (err) {{
    if (err.code !== 'ERR_REQUIRE_ESM' && err.code !== 'ERR_REQUIRE_ASYNC_MODULE') throw err;
  }}
  return import(pathToFileURL(source).href);
}}

module.exports = async (env, argv) => {{
  const loaded = await load();
  const isModule = loaded && (loaded.__esModule || loaded[Symbol.toStringTag] === 'Module');
  let config = isModule && 'default' in loaded ? loaded.default : loaded;
  if (typeof config === 'function') {{
    config = config(env, argv);
  }}
  config = await config;
  return Object.assign({{}}, config, {{ entry, stats }});
}};
"""


# ---------------------------------------------------------------------------
# Module graph
# ---------------------------------------------------------------------------


class ModuleNode(Protocol):
    """One node of the compiled module graph."""

    @property
    def identifier(self) -> str: ...


class Chunk(Protocol):
    @property
    def modules(self) -> Iterable[ModuleNode]: ...


class BuildStats(Protocol):
    @property
    def chunks(self) -> Iterable[Chunk]: ...


class Compiler(Protocol):
    async def compile(self, config_file: Path) -> BuildStats: ...


@dataclass(frozen=True)
class StatsModule:
    identifier: str
    name: str = ""


@dataclass(frozen=True)
class StatsChunk:
    id: Any
    modules: tuple[StatsModule, ...] = ()


def _iter_stats_modules(raw_modules: Iterable[Any]) -> Iterable[StatsModule]:
    for raw in raw_modules or []:
        if not isinstance(raw, Mapping):
            continue
        identifier = raw.get("identifier")
        if isinstance(identifier, str):
            yield StatsModule(identifier=identifier, name=str(raw.get("name") or ""))
        # Concatenated modules carry their members one level down.
        yield from _iter_stats_modules(raw.get("modules") or [])


def _message(raw: Any) -> str:
    if isinstance(raw, Mapping):
        return str(raw.get("message") or raw)
    return str(raw)


@dataclass
class CompilationStats:
    """Module graph and diagnostics parsed from webpack's JSON stats."""

    chunks: List[StatsChunk] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "CompilationStats":
        """Adapt a stats document (single or multi-compiler) to the graph protocol.

        Chunks listing their modules are used directly; otherwise top-level
        modules are grouped by the chunk ids they belong to.
        """
        if "chunks" not in payload and isinstance(payload.get("children"), list):
            merged = cls()
            for child in payload["children"]:
                if isinstance(child, Mapping):
                    stats = cls.from_json(child)
                    merged.chunks.extend(stats.chunks)
                    merged.errors.extend(stats.errors)
                    merged.warnings.extend(stats.warnings)
            return merged

        chunks: List[StatsChunk] = []
        raw_chunks = [c for c in payload.get("chunks") or [] if isinstance(c, Mapping)]
        if any(c.get("modules") for c in raw_chunks):
            for raw in raw_chunks:
                chunks.append(StatsChunk(id=raw.get("id"), modules=tuple(_iter_stats_modules(raw.get("modules")))))
        else:
            grouped: Dict[Any, List[StatsModule]] = {}
            for raw in payload.get("modules") or []:
                if not isinstance(raw, Mapping):
                    continue
                members = tuple(_iter_stats_modules([raw]))
                for chunk_id in raw.get("chunks") or [None]:
                    grouped.setdefault(chunk_id, []).extend(members)
            chunks = [StatsChunk(id=chunk_id, modules=tuple(mods)) for chunk_id, mods in grouped.items()]

        return cls(
            chunks=chunks,
            errors=[_message(e) for e in payload.get("errors") or []],
            warnings=[_message(w) for w in payload.get("warnings") or []],
        )


# ---------------------------------------------------------------------------
# Build configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BuildConfig:
    """A located build configuration.

    ``document`` is None for JavaScript configs, which only the bundler can
    evaluate.
    """

    source: Path
    document: Optional[Dict[str, Any]] = None

    @property
    def is_javascript(self) -> bool:
        return self.document is None


async def _resolve_config_value(value: Any, environment: Mapping[str, str]) -> Any:
    if callable(value):
        try:
            params = inspect.signature(value).parameters
        except (TypeError, ValueError):
            params = {}
        value = value(dict(environment)) if len(params) >= 1 else value()
    if inspect.isawaitable(value):
        value = await value
    return value


def _load_python_config(path: Path) -> Any:
    spec = importlib.util.spec_from_file_location(f"_layerkit_build_config_{abs(hash(path))}", path)
    if spec is None or spec.loader is None:
        raise BuildConfigError(f"Cannot import build configuration {path}", context={"path": str(path)})
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    if not hasattr(module, PYTHON_CONFIG_ATTRIBUTE):
        raise BuildConfigError(
            f"{path} does not define `{PYTHON_CONFIG_ATTRIBUTE}`",
            context={"path": str(path)},
        )
    return getattr(module, PYTHON_CONFIG_ATTRIBUTE)


async def load_build_config(
    root: Path,
    config_path: str,
    *,
    environment: Optional[Mapping[str, str]] = None,
) -> BuildConfig:
    """Locate and (for non-JavaScript configs) evaluate the build configuration.

    Raises:
        BuildConfigError: If the file is missing, has an unsupported type,
            fails to load, or does not resolve to a mapping.
    """
    path = (Path(root) / config_path).resolve()
    if not path.is_file():
        raise BuildConfigError(f"Build configuration not found: {path}", context={"path": str(path)})

    suffix = path.suffix.lower()
    if suffix in JS_CONFIG_SUFFIXES:
        return BuildConfig(source=path)

    try:
        if suffix == ".json":
            value: Any = read_json(path)
        elif suffix in DOCUMENT_CONFIG_SUFFIXES:
            value = read_yaml(path, default={}, raise_on_error=True)
        elif suffix in PYTHON_CONFIG_SUFFIXES:
            value = await _resolve_config_value(_load_python_config(path), environment or {})
        else:
            raise BuildConfigError(
                f"Unsupported build configuration type {suffix!r}: {path}",
                context={"path": str(path)},
            )
    except BuildConfigError:
        raise
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise BuildConfigError(f"Unable to read build configuration {path}: {exc}", context={"path": str(path)}) from exc
    except Exception as exc:
        # Python configs run arbitrary user code.
        raise BuildConfigError(f"Build configuration {path} failed to load: {exc}", context={"path": str(path)}) from exc

    if not isinstance(value, Mapping):
        raise BuildConfigError(
            f"Build configuration {path} must resolve to a mapping, got {type(value).__name__}",
            context={"path": str(path)},
        )
    return BuildConfig(source=path, document=dict(value))


def write_bundler_config(build_config: BuildConfig, entries: Mapping[str, str], directory: Path) -> Path:
    """Write the config file the bundler is invoked with and return its path."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    if build_config.is_javascript:
        # CommonJS whatever the project's `type` field says.
        target = directory / "webpack.layer.config.cjs"
        target.write_text(
            _WRAPPER_TEMPLATE.format(
                source=json.dumps(str(build_config.source)),
                typescript=json.dumps(build_config.source.suffix.lower() in TS_CONFIG_SUFFIXES),
                entry=json.dumps(dict(entries), indent=2),
                stats=json.dumps(STATS_OPTIONS),
            ),
            encoding="utf-8",
        )
        return target

    document = dict(build_config.document or {})
    document["entry"] = dict(entries)
    document["stats"] = dict(STATS_OPTIONS)
    target = directory / "webpack.layer.config.json"
    target.write_text(json.dumps(document, indent=2), encoding="utf-8")
    return target


# ---------------------------------------------------------------------------
# Compiler
# ---------------------------------------------------------------------------


class WebpackCompiler:
    """Runs the webpack CLI and parses its ``--json`` stats.

    Args:
        root: Directory webpack runs in (the project root)
        packaging_labels: Expose ``PACKAGING_LABELS=true`` to the build
        command: Executable prefix used to start webpack
        timeout: Seconds before the build is killed (None waits forever)
    """

    def __init__(
        self,
        root: Path,
        *,
        packaging_labels: bool = True,
        command: Sequence[str] = WEBPACK_COMMAND,
        timeout: Optional[float] = None,
    ) -> None:
        self.root = Path(root)
        self.packaging_labels = packaging_labels
        self.command = tuple(command)
        self.timeout = timeout

    def _env(self) -> Optional[Dict[str, str]]:
        extra = {"PACKAGING_LABELS": "true"} if self.packaging_labels else {}
        return merged_env(extra)

    async def compile(self, config_file: Path) -> CompilationStats:
        argv = [*self.command, "--config", str(config_file), "--json"]
        logger.debug("Running %s", " ".join(argv))
        try:
            result = await run_command_async(argv, cwd=self.root, env=self._env(), timeout=self.timeout)
        except FileNotFoundError as exc:
            raise CompilationError(f"Bundler executable not found: {self.command[0]}") from exc
        except asyncio.TimeoutError as exc:
            raise CompilationError(f"Bundler timed out after {self.timeout}s", context={"config": str(config_file)}) from exc

        payload = _parse_stats_output(result.stdout)
        if payload is None:
            raise CompilationError(
                f"Bundler exited with {result.returncode} without JSON stats",
                errors=[line for line in result.stderr.splitlines() if line.strip()][-20:],
                context={"config": str(config_file)},
            )
        stats = CompilationStats.from_json(payload)
        for warning in stats.warnings:
            logger.debug("Bundler warning: %s", warning)
        if stats.errors or not result.ok:
            raise CompilationError(
                f"Bundler reported {len(stats.errors)} error(s) (exit code {result.returncode})",
                errors=stats.errors,
                context={"config": str(config_file)},
            )
        return stats


def _parse_stats_output(stdout: str) -> Optional[Dict[str, Any]]:
    # Some loaders print banners before the stats document.
    start = stdout.find("{")
    if start < 0:
        return None
    try:
        payload = json.loads(stdout[start:])
    except json.JSONDecodeError:
        return None
    return payload if isinstance(payload, dict) else None


def default_config_directory(root: Path) -> Path:
    return Path(root) / ".serverless" / "layerkit"


__all__ = [
    "ModuleNode",
    "Chunk",
    "BuildStats",
    "Compiler",
    "StatsModule",
    "StatsChunk",
    "CompilationStats",
    "BuildConfig",
    "load_build_config",
    "write_bundler_config",
    "WebpackCompiler",
    "default_config_directory",
    "STATS_OPTIONS",
]
