"""
layerkit externals command.

SUMMARY: Bundle a layer's functions and list the packages it would install
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

SUMMARY = "Bundle a layer's functions and list the packages it would install"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_layer_arg(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    async def _run(formatter: OutputFormatter) -> None:
        service = get_service(args)
        layer_ref = get_layer_ref(service, args.layer)
        manager = get_manager(args, service)
        specifiers = await manager.installer().analyzer.analyze(layer_ref)

        formatter.success(
            {"layer": args.layer, "packages": specifiers},
            f"{len(specifiers)} package(s) for {layer_ref}",
        )
        if not formatter.json_mode:
            for specifier in specifiers:
                formatter.text(f"  {specifier}")

    return run_cli_command(args, _run)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
