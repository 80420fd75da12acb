"""YAML reading with CloudFormation short-form intrinsic tags.

Service definitions routinely contain ``!Ref Foo`` or ``!Sub "${AWS::Region}"``.
``yaml.safe_load`` rejects unknown tags, so :class:`CloudFormationLoader`
expands them to their long form (``{"Ref": "Foo"}``, ``{"Fn::Sub": ...}``).
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


class CloudFormationLoader(yaml.SafeLoader):
    """SafeLoader that understands ``!Ref``, ``!GetAtt`` and ``!<Fn>`` tags."""


def _construct_node(loader: yaml.SafeLoader, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        return loader.construct_scalar(node)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node, deep=True)
    return loader.construct_mapping(node, deep=True)


def _construct_intrinsic(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Any:
    value = _construct_node(loader, node)
    if tag_suffix == "Ref":
        return {"Ref": value}
    if tag_suffix == "GetAtt" and isinstance(value, str):
        value = value.split(".", 1)
    return {f"Fn::{tag_suffix}": value}


CloudFormationLoader.add_multi_constructor("!", _construct_intrinsic)


def parse_yaml_string(content: str) -> Any:
    """Parse a YAML document, expanding CloudFormation intrinsic tags."""
    return yaml.load(content, Loader=CloudFormationLoader)  # noqa: S506 - SafeLoader subclass


def read_yaml(path: Path, default: Any = None, raise_on_error: bool = False) -> Any:
    """Read YAML with error handling.

    Returns default if file is missing or invalid, unless raise_on_error is True.

    Examples:
        >>> config = read_yaml(Path("serverless.yml"), default={})
        >>> assert isinstance(config, dict)
    """
    path = Path(path)
    if not path.exists():
        if raise_on_error:
            raise FileNotFoundError(f"File not found: {path}")
        return default

    try:
        data = parse_yaml_string(path.read_text(encoding="utf-8"))
    except yaml.YAMLError:
        if raise_on_error:
            raise
        return default
    return data if data is not None else default


__all__ = ["CloudFormationLoader", "parse_yaml_string", "read_yaml"]
