"""
layerkit install command.

SUMMARY: Install the dependencies of every declared layer
"""
from __future__ import annotations

import argparse
import sys

from layerkit.cli import OutputFormatter, add_standard_flags, get_manager, run_cli_command

SUMMARY = "Install the dependencies of every declared layer"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    async def _run(formatter: OutputFormatter) -> None:
        manager = get_manager(args)
        report = await manager.install_layers()
        formatter.success(
            report.to_dict(),
            f"Installed {len(report.installed)} layer(s)"
            + (f", skipped {len(report.skipped)}" if report.skipped else ""),
        )

    return run_cli_command(args, _run)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
