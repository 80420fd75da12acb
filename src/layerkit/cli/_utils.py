"""Shared CLI utility functions."""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TypeVar

from layerkit.cli._output import OutputFormatter
from layerkit.core.exceptions import LayerKitError, ServiceDefinitionError
from layerkit.core.logs import configure_logging, resolve_level_name
from layerkit.core.manager import LayerManager
from layerkit.core.naming import layer_logical_id
from layerkit.core.service import Service, load_service

T = TypeVar("T")


def get_repo_root(args: argparse.Namespace) -> Optional[Path]:
    """Explicit --repo-root, resolved; None lets the service file decide."""
    raw = getattr(args, "repo_root", None)
    return Path(raw).resolve() if raw else None


def get_service(args: argparse.Namespace) -> Service:
    """Load the service definition named by --service/--repo-root."""
    root = get_repo_root(args)
    raw = getattr(args, "service", None)
    if raw:
        return load_service(Path(raw).resolve(), root=root)
    return load_service(root=root or Path.cwd().resolve())


def get_manager(args: argparse.Namespace, service: Optional[Service] = None) -> LayerManager:
    """Configure logging from the flags and build a manager for the service."""
    options = {"verbose": bool(getattr(args, "verbose", False))}
    # Keep stdout parseable in JSON mode.
    stream = sys.stderr if getattr(args, "json", False) else None
    configure_logging(resolve_level_name(options), stream=stream)
    return LayerManager(service or get_service(args), options)


def get_layer_ref(service: Service, layer_id: str) -> str:
    """Logical name of a declared layer.

    Raises:
        ServiceDefinitionError: If the service declares no such layer.
    """
    if layer_id not in service.layers:
        raise ServiceDefinitionError(
            f"Unknown layer {layer_id!r} (declared: {', '.join(sorted(service.layers)) or 'none'})",
            context={"layer": layer_id},
        )
    return layer_logical_id(layer_id)


def run_cli_command(
    args: argparse.Namespace,
    body: Callable[[OutputFormatter], Awaitable[T] | T],
) -> int:
    """Run a command body and map layerkit errors to exit code 1.

    Coroutine bodies are driven with ``asyncio.run``.
    """
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        result: Any = body(formatter)
        if asyncio.iscoroutine(result):
            asyncio.run(result)
    except LayerKitError as exc:
        formatter.error(exc)
        return 1
    return 0


__all__ = ["get_repo_root", "get_service", "get_manager", "get_layer_ref", "run_cli_command"]
