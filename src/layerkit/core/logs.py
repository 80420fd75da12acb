"""Log level handling for the layer manager.

The manager speaks four levels, quiet to loud: ``none < info < verbose <
debug``. They map onto stdlib logging levels so every module can log through
``logging.getLogger(__name__)`` and the configured level gates emission.
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Any, Mapping, Optional, TextIO

VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

LEVELS: dict[str, int] = {
    "none": logging.CRITICAL + 10,
    "info": logging.INFO,
    "verbose": VERBOSE,
    "debug": logging.DEBUG,
}

DEFAULT_LEVEL = "info"
LOG_PREFIX = "[layerkit]"

_ROOT_LOGGER_NAME = "layerkit"
_LAYERKIT_HANDLER: logging.Handler | None = None


def level_from_name(name: Optional[str]) -> int:
    """Map a manager level name to a logging level (unknown names mean ``info``)."""
    return LEVELS.get(str(name or "").strip().lower(), LEVELS[DEFAULT_LEVEL])


def resolve_level_name(
    options: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Pick the level name: ``-v``/``--verbose`` options win, then ``LOG_LEVEL``."""
    opts = options or {}
    if opts.get("v") or opts.get("verbose"):
        return "verbose"
    env = os.environ if environ is None else environ
    name = str(env.get("LOG_LEVEL", DEFAULT_LEVEL)).strip().lower()
    return name if name in LEVELS else DEFAULT_LEVEL


def configure_logging(level: str = DEFAULT_LEVEL, *, stream: TextIO | None = None) -> logging.Logger:
    """Send ``layerkit.*`` records to ``stream`` (stdout by default).

    Idempotent per-process: a second call replaces the previously installed
    handler instead of stacking another one.
    """
    global _LAYERKIT_HANDLER

    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    logger.setLevel(level_from_name(level))
    logger.propagate = False

    if _LAYERKIT_HANDLER is not None:
        logger.removeHandler(_LAYERKIT_HANDLER)
        _LAYERKIT_HANDLER.close()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(f"{LOG_PREFIX} %(message)s"))
    logger.addHandler(handler)
    _LAYERKIT_HANDLER = handler
    return logger


def verbose(logger: logging.Logger, msg: str, *args: Any) -> None:
    """Log at the ``verbose`` level."""
    logger.log(VERBOSE, msg, *args)


def reset_logging_for_tests() -> None:
    """Test-only: drop the installed handler and restore propagation."""
    global _LAYERKIT_HANDLER
    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    if _LAYERKIT_HANDLER is not None:
        logger.removeHandler(_LAYERKIT_HANDLER)
        _LAYERKIT_HANDLER.close()
    _LAYERKIT_HANDLER = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


__all__ = [
    "VERBOSE",
    "LEVELS",
    "LOG_PREFIX",
    "level_from_name",
    "resolve_level_name",
    "configure_logging",
    "verbose",
    "reset_logging_for_tests",
]
