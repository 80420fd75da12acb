"""
layerkit transform command.

SUMMARY: Export layers and upgrade layer references in the generated template
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from layerkit.cli import OutputFormatter, add_standard_flags, get_manager, get_service, run_cli_command
from layerkit.core.service import load_compiled_template, save_compiled_template, template_path

SUMMARY = "Export layers and upgrade layer references in the generated template"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--template",
        type=str,
        help="Generated template to rewrite (default: .serverless/cloudformation-template-update-stack.json)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the changes without writing the template back",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    async def _run(formatter: OutputFormatter) -> None:
        service = get_service(args)
        path = Path(args.template).resolve() if args.template else template_path(service.root)
        service.compiled_template = load_compiled_template(path)

        manager = get_manager(args, service)
        result = await manager.transform_layer_resources()
        if not args.dry_run:
            save_compiled_template(path, service.compiled_template)

        formatter.success(
            {**result.to_dict(), "template": str(path), "written": not args.dry_run},
            f"Exported {len(result.exported_layers)} layer(s), "
            f"upgraded {len(result.upgraded_layer_references)} reference(s) in {path}",
        )

    return run_cli_command(args, _run)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
