"""
layerkit entries command.

SUMMARY: Show the bundle entry points resolved for a layer
"""
from __future__ import annotations

import argparse
import sys

from layerkit.cli import (
    OutputFormatter,
    add_layer_arg,
    add_standard_flags,
    get_layer_ref,
    get_manager,
    get_service,
    run_cli_command,
)
from layerkit.core.entries import resolve_entries

SUMMARY = "Show the bundle entry points resolved for a layer"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_layer_arg(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    async def _run(formatter: OutputFormatter) -> None:
        service = get_service(args)
        layer_ref = get_layer_ref(service, args.layer)
        manager = get_manager(args, service)
        report = await resolve_entries(
            service.functions,
            layer_ref,
            backup_file_type=manager.config.webpack.backup_file_type,
            root=service.root,
        )

        formatter.success(
            {
                "layer": args.layer,
                "entries": report.entries,
                "skipped": [{"unit": s.unit, "reason": s.reason} for s in report.skipped],
            },
            f"{len(report.entries)} entr{'y' if len(report.entries) == 1 else 'ies'} for {layer_ref}",
        )
        for key, path in sorted(report.entries.items()):
            formatter.text_kv(key, path)

    return run_cli_command(args, _run)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
