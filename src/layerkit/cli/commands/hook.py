"""
layerkit hook command.

SUMMARY: Run the handler bound to a deployment lifecycle event
"""
from __future__ import annotations

import argparse
import sys

from layerkit.cli import OutputFormatter, add_standard_flags, get_manager, get_service, run_cli_command
from layerkit.core.manager import BEFORE_DEPLOY, PACKAGE_INITIALIZE
from layerkit.core.service import load_compiled_template, save_compiled_template, template_path

SUMMARY = "Run the handler bound to a deployment lifecycle event"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("event", choices=[PACKAGE_INITIALIZE, BEFORE_DEPLOY], help="Lifecycle event")
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    async def _run(formatter: OutputFormatter) -> None:
        service = get_service(args)
        path = template_path(service.root)
        if args.event == BEFORE_DEPLOY and path.exists():
            service.compiled_template = load_compiled_template(path)

        manager = get_manager(args, service)
        result = await manager.run_hook(args.event)
        if service.compiled_template is not None:
            save_compiled_template(path, service.compiled_template)

        formatter.success({"event": args.event, **result.to_dict()}, f"Ran {args.event}")

    return run_cli_command(args, _run)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    sys.exit(main(parser.parse_args()))
