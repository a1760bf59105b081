"""Command-line entry point: ``treewright <collection>:<schematic> [key=value ...]``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

from treewright.config import Config
from treewright.utils import (
    configure_logging,
    console,
    format_duration,
    parse_option_value,
    print_error,
    print_success,
    print_summary_table,
)
from treewright.workflow import ConsoleReporter, UnsuccessfulWorkflowExecution, Workflow


def parse_target(target: str, default_collection: str) -> tuple[str, str]:
    """Split ``collection:schematic``; a bare name uses *default_collection*."""
    if ":" in target:
        collection, _, schematic = target.rpartition(":")
        return collection or default_collection, schematic
    return default_collection, target


def parse_options(pairs: list[str]) -> dict[str, Any]:
    options: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep:
            # A bare flag means true.
            options[key.lstrip("-").replace("-", "_")] = True
            continue
        options[key.lstrip("-").replace("-", "_")] = parse_option_value(raw)
    return options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treewright",
        description="treewright -- run schematics against a project tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  treewright new-project name=demo --dry-run\n"
            "  treewright treewright.collections.project:module name=parser package=demo\n"
            "  treewright treewright.collections.project --list\n"
        ),
    )
    parser.add_argument("target", help="collection:schematic, or a schematic of the default collection")
    parser.add_argument("options", nargs="*", help="Schematic options as key=value")
    parser.add_argument("--dry-run", action="store_true", default=None, help="Report changes without writing them")
    parser.add_argument("--force", action="store_true", default=None, help="Overwrite files that already exist")
    parser.add_argument("--debug", action="store_true", default=None, help="Verbose logging and tracebacks")
    parser.add_argument("--root", default=None, help="Directory the schematic is applied to (default: .)")
    parser.add_argument("--list", action="store_true", help="List the schematics of the collection")
    return parser


def load_config(root: Optional[str]) -> Config:
    """Environment config, replaced by ``<root>/.treewright.json`` when it exists."""
    config = Config.from_env()
    if root is not None:
        config.root = Path(root)
    if config.config_path.is_file():
        saved = Config.load(config.config_path)
        saved.root = config.root
        config = saved
    return config


async def _run(workflow: Workflow, collection: str, schematic: str, options: dict[str, Any], debug: bool) -> int:
    loop = asyncio.get_running_loop()
    start = loop.time()
    try:
        result = await workflow.execute(collection, schematic, options, debug=debug)
    except UnsuccessfulWorkflowExecution as exc:
        if exc.cause is None:
            print_error("The schematic workflow failed. See above.")
        else:
            print_error(str(exc.cause))
            if debug:
                console.print_exception()
        return 1
    if not result.nothing_done and not workflow.dry_run:
        print_success(f"Done in {format_duration(loop.time() - start)}.")
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for the ``treewright`` console script."""
    args = build_parser().parse_args(argv)
    config = load_config(args.root)
    for flag in ("dry_run", "force", "debug"):
        value = getattr(args, flag)
        if value is not None:
            setattr(config, flag, value)
    configure_logging("DEBUG" if config.debug else config.log_level)

    collection, schematic = parse_target(args.target, config.default_collection)
    workflow = Workflow(config=config)

    if args.list:
        # With --list the target names the collection itself.
        name = args.target.rstrip(":")
        try:
            names = workflow.engine.list_schematics(name)
        except Exception as exc:
            print_error(str(exc))
            sys.exit(1)
        print_summary_table(
            {item: workflow.engine.create_schematic(name, item).description.description for item in names},
            title=name,
        )
        return

    ConsoleReporter(console).attach(workflow)
    try:
        code = asyncio.run(_run(workflow, collection, schematic, parse_options(args.options), config.debug))
    except Exception as exc:
        print_error(str(exc))
        if config.debug:
            console.print_exception()
        code = 1
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
