"""
layerkit CLI package.

Commands live in ``layerkit/cli/commands``; each module exposes ``SUMMARY``,
``register_args(parser)`` and ``main(args) -> int`` and is registered
automatically by the dispatcher.
"""
from ._output import OutputFormatter, format_json
from ._args import (
    add_json_flag,
    add_repo_root_flag,
    add_service_flag,
    add_verbose_flag,
    add_layer_arg,
    add_standard_flags,
)
from ._utils import get_layer_ref, get_manager, get_repo_root, get_service, run_cli_command

__all__ = [
    # Output formatting
    "OutputFormatter",
    "format_json",
    # Argument helpers
    "add_json_flag",
    "add_repo_root_flag",
    "add_service_flag",
    "add_verbose_flag",
    "add_layer_arg",
    "add_standard_flags",
    # Utilities
    "get_layer_ref",
    "get_manager",
    "get_repo_root",
    "get_service",
    "run_cli_command",
]
