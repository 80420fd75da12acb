"""Bundle entry resolution for a layer.

A layer's bundle is built from the source of every function that consumes
the layer, so the bundler sees exactly the imports those functions make.
"""
from __future__ import annotations

import asyncio
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from layerkit.core.models import AnyFunction, FunctionDefinition, ImageFunction, Matched, Skipped
from layerkit.core.utils.patterns import as_pattern_list, expand_glob

logger = logging.getLogger(__name__)

# <folder/><name>[.js|.jsx|.ts|.tsx] followed by `.<exported function>`
HANDLER_PATTERN = re.compile(r"^(((?:[^/\n]+/)+)?[^.]+(\.jsx?|\.tsx?)?)")

IMAGE_FUNCTION_NOTICE = "functions built from a container image are not supported"


@dataclass
class EntryReport:
    """Entries for one layer plus a record of every unit considered."""

    entries: Dict[str, str] = field(default_factory=dict)
    matched: List[Matched] = field(default_factory=list)
    skipped: List[Skipped] = field(default_factory=list)

    def record(self, unit: str, key: str, path: str) -> None:
        # Last write wins for a repeated key.
        self.entries[key] = path
        self.matched.append(Matched(unit=unit, key=key, value=path))

    def skip(self, unit: str, reason: str) -> None:
        logger.info("Skipping %s: %s", unit, reason)
        self.skipped.append(Skipped(unit=unit, reason=reason))


def qualifying_functions(
    functions: Mapping[str, AnyFunction],
    layer_ref: str,
    report: Optional[EntryReport] = None,
) -> Iterator[FunctionDefinition]:
    """Yield the functions whose code feeds the bundle of ``layer_ref``.

    Image functions are reported (when ``report`` is given) and never yielded.
    """
    for name, func in functions.items():
        if isinstance(func, ImageFunction):
            if report is not None:
                report.skip(name, IMAGE_FUNCTION_NOTICE)
            else:
                logger.info("Skipping %s: %s", name, IMAGE_FUNCTION_NOTICE)
            continue
        if func.qualifies_for(layer_ref):
            yield func


def split_handler(handler: str) -> Optional[tuple[str, str, str]]:
    """Split a handler into ``(handler_key, folder, base_name)``.

    Example:
        >>> split_handler("src/api/users.list")
        ('src/api/users', 'src/api/', 'users')
        >>> split_handler(".list") is None
        True
    """
    match = HANDLER_PATTERN.match(handler)
    if not match:
        return None
    handler_key = match.group(1)
    folder = match.group(2) or ""
    return handler_key, folder, handler_key[len(folder):]


def pick_source_file(candidates: Iterable[str], base_name: str, backup_file_type: str) -> Optional[str]:
    """Choose the handler's source file among the folder's entries.

    Several files sharing the prefix (``handler.js`` next to
    ``handler.test.js``) resolve to ``<base_name>.<backup_file_type>``.
    """
    matching = [name for name in candidates if name.startswith(base_name)]
    if len(matching) > 1:
        return f"{base_name}.{backup_file_type}"
    if len(matching) == 1:
        return matching[0]
    return None


def _abspath(root: Path, *parts: str) -> str:
    return os.path.abspath(os.path.join(str(root), *parts))


async def _specified_entries(patterns: List[str], root: Path) -> List[str]:
    expanded = await asyncio.gather(*(asyncio.to_thread(expand_glob, p, root) for p in patterns))
    return [match for matches in expanded for match in matches]


async def _list_folder(folder: Path) -> List[str]:
    return sorted(await asyncio.to_thread(os.listdir, folder))


async def resolve_entries(
    functions: Mapping[str, AnyFunction],
    layer_ref: str,
    *,
    backup_file_type: str = "js",
    root: Optional[Path] = None,
) -> EntryReport:
    """Resolve every bundle entry point for the layer named ``layer_ref``.

    Args:
        functions: Declared functions keyed by name
        layer_ref: Logical layer name (``<Pascal>LambdaLayer``)
        backup_file_type: Extension chosen when a handler prefix is ambiguous
        root: Directory handlers and patterns are relative to (cwd if None)

    Returns:
        EntryReport mapping entry key to absolute source path
    """
    root = Path(root) if root is not None else Path.cwd()
    report = EntryReport()

    for func in qualifying_functions(functions, layer_ref, report):
        for match in await _specified_entries(as_pattern_list(func.entry), root):
            report.record(func.name, match, _abspath(root, match))

        parts = split_handler(func.handler)
        if parts is None:
            report.skip(func.name, f"handler {func.handler!r} has no resolvable file")
            continue
        handler_key, folder, base_name = parts

        folder_path = Path(_abspath(root, folder.rstrip("/") or "."))
        try:
            listing = await _list_folder(folder_path)
        except OSError as exc:
            report.skip(func.name, f"cannot list {folder_path}: {exc.strerror or exc}")
            continue

        file_name = pick_source_file(listing, base_name, backup_file_type)
        if file_name is None:
            report.skip(func.name, f"no file in {folder_path} starts with {base_name!r}")
            continue
        report.record(func.name, handler_key, _abspath(root, folder, file_name))

    logger.debug("Resolved %d entries for %s", len(report.entries), layer_ref)
    return report


__all__ = [
    "EntryReport",
    "HANDLER_PATTERN",
    "qualifying_functions",
    "split_handler",
    "pick_source_file",
    "resolve_entries",
]
