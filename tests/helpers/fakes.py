"""Stand-ins for the bundler and package installer processes."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

import yaml

from layerkit.core.bundler import CompilationStats, StatsChunk, StatsModule


def make_stats(*identifiers_per_chunk: Sequence[str]) -> CompilationStats:
    """Build stats with one chunk per argument."""
    return CompilationStats(
        chunks=[
            StatsChunk(id=i, modules=tuple(StatsModule(identifier=ident) for ident in idents))
            for i, idents in enumerate(identifiers_per_chunk)
        ]
    )


class FakeCompiler:
    """Records config files and returns canned stats."""

    def __init__(self, stats: CompilationStats | None = None, error: Exception | None = None) -> None:
        self.stats = stats or CompilationStats()
        self.error = error
        self.calls: List[Path] = []

    async def compile(self, config_file: Path) -> CompilationStats:
        self.calls.append(Path(config_file))
        if self.error is not None:
            raise self.error
        return self.stats


class FakeRunner:
    """Records install commands instead of running them."""

    def __init__(self, returncode: int = 0, error: Exception | None = None) -> None:
        self.returncode = returncode
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, argv: Sequence[str], *, cwd: Path, env: Mapping[str, str]) -> int:
        self.calls.append({"argv": list(argv), "cwd": Path(cwd), "env": dict(env)})
        if self.error is not None:
            raise self.error
        return self.returncode


def write_service(root: Path, data: Mapping[str, Any], name: str = "serverless.yml") -> Path:
    path = root / name
    if name.endswith(".json"):
        path.write_text(json.dumps(data), encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(dict(data), sort_keys=False), encoding="utf-8")
    return path
