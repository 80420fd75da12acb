"""JSON I/O helpers."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .core import atomic_write

_MISSING = object()


def read_json(file_path: Path | str, *, default: Any = _MISSING) -> Any:
    """Read a JSON document.

    Args:
        file_path: Path to JSON file
        default: Value to return if file doesn't exist (optional).
                 If not provided, FileNotFoundError is raised.

    Raises:
        FileNotFoundError: If the file does not exist and no default is provided
        json.JSONDecodeError: If the file is not valid JSON
    """
    path = Path(file_path)
    if not path.exists():
        if default is not _MISSING:
            return default
        raise FileNotFoundError(f"JSON file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json_atomic(
    file_path: Path | str,
    data: Any,
    *,
    indent: int = 2,
    sort_keys: bool = False,
) -> None:
    """Atomically write JSON to ``file_path``.

    Key order is preserved by default: generated templates are diffed by
    humans and by the deployment host.
    """

    def _writer(f) -> None:
        json.dump(data, f, indent=indent, sort_keys=sort_keys, ensure_ascii=False)
        f.write("\n")

    atomic_write(Path(file_path), _writer)


__all__ = ["read_json", "write_json_atomic"]
