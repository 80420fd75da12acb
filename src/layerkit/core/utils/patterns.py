"""Glob expansion for entry patterns and cleanup rules.

All patterns are evaluated relative to an explicit root directory, never the
process working directory, and support recursive ``**`` segments.
"""
from __future__ import annotations

import glob
import os
from pathlib import Path
from typing import Any, Iterable, List


def as_pattern_list(value: Any) -> List[str]:
    """Normalize a ``string | list[string]`` declaration into a list.

    Anything else (None, numbers, mappings) yields an empty list.
    """
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if isinstance(v, str)]
    return []


def expand_glob(pattern: str, root: Path) -> List[str]:
    """Return the paths matching ``pattern`` under ``root``, relative to ``root``.

    Results are sorted so repeated expansions are deterministic.
    """
    if os.path.isabs(pattern):
        return sorted(glob.glob(pattern, recursive=True))
    return sorted(glob.glob(pattern, root_dir=str(root), recursive=True))


def expand_globs(patterns: Iterable[str], root: Path) -> List[str]:
    """Expand several patterns, keeping first-seen order and dropping duplicates."""
    seen: dict[str, None] = {}
    for pattern in patterns:
        for match in expand_glob(pattern, root):
            seen.setdefault(match, None)
    return list(seen)


def _within(path: Path, root: Path) -> bool:
    return path == root or root in path.parents


def select_for_removal(rules: Iterable[str], root: Path) -> List[Path]:
    """Resolve cleanup rules into the absolute paths to delete under ``root``.

    A rule starting with ``!`` protects its matches from deletion, regardless
    of where it appears in the list. Paths nested under another selected path
    are dropped since removing the parent removes them too.

    Symlinks are selected as links, never as their targets, and nothing
    reached through a link pointing outside ``root`` is selected.
    """
    rules = list(rules)
    base = Path(os.path.abspath(root))
    real_root = base.resolve()
    include = [r for r in rules if r and not r.startswith("!")]
    protect = {
        Path(os.path.abspath(base / m))
        for m in expand_globs([r[1:] for r in rules if r.startswith("!") and len(r) > 1], base)
    }
    selected = sorted(
        {Path(os.path.abspath(base / m)) for m in expand_globs(include, base)} - protect,
        key=lambda p: (len(p.parts), str(p)),
    )

    result: List[Path] = []
    for path in selected:
        if path == base:
            continue
        if any(parent in result for parent in path.parents):
            continue
        if not _within(path.parent.resolve(), real_root):
            # Reached through a link that leaves the folder.
            continue
        if path.is_dir() and not path.is_symlink() and any(path in p.parents for p in protect):
            # A protected path lives inside this directory; keep the directory.
            continue
        result.append(path)
    return result


__all__ = ["as_pattern_list", "expand_glob", "expand_globs", "select_for_removal"]
