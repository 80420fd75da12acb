"""File I/O helpers.

- Core: atomic writes and directory management
- JSON: read/write
- YAML: read with CloudFormation short-form tag support
"""
from __future__ import annotations

from .core import PathLike, atomic_write, ensure_directory, ensure_parent_dir
from .json import read_json, write_json_atomic
from .yaml import CloudFormationLoader, parse_yaml_string, read_yaml

__all__ = [
    # core
    "PathLike",
    "ensure_parent_dir",
    "ensure_directory",
    "atomic_write",
    # json
    "read_json",
    "write_json_atomic",
    # yaml
    "CloudFormationLoader",
    "read_yaml",
    "parse_yaml_string",
]
