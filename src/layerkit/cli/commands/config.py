"""
layerkit config command.

SUMMARY: Show the effective layer configuration
"""
from __future__ import annotations

import argparse
import sys

import yaml

from layerkit.cli import OutputFormatter, add_standard_flags, get_manager, run_cli_command

SUMMARY = "Show the effective layer configuration"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    def _run(formatter: OutputFormatter) -> None:
        manager = get_manager(args)
        data = {
            "layerConfig": manager.config.as_dict(),
            "timeouts": {
                "install_seconds": manager.timeouts.install_seconds or 0,
                "build_seconds": manager.timeouts.build_seconds or 0,
            },
        }
        formatter.success(data, yaml.safe_dump(data, sort_keys=False).rstrip())

    return run_cli_command(args, _run)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
