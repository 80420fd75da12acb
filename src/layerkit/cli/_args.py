"""Common CLI argument registration helpers."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add --repo-root flag for project root override."""
    parser.add_argument(
        "--repo-root",
        type=str,
        help="Project root (default: the service file's directory, else cwd)",
    )


def add_service_flag(parser: argparse.ArgumentParser) -> None:
    """Add --service flag pointing at the service definition."""
    parser.add_argument(
        "--service",
        type=str,
        help="Service definition file (default: serverless.yml|yaml|json in the project root)",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )


def add_layer_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("layer", help="Layer id as declared under `layers:`")


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Flags every command accepts."""
    add_service_flag(parser)
    add_repo_root_flag(parser)
    add_json_flag(parser)
    add_verbose_flag(parser)


__all__ = [
    "add_json_flag",
    "add_repo_root_flag",
    "add_service_flag",
    "add_verbose_flag",
    "add_layer_arg",
    "add_standard_flags",
]
