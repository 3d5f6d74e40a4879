#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from spellcaster.config.defaults import ENV_FILENAME

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _project_root(args: argparse.Namespace) -> Path:
    root = getattr(args, "project_root", None)
    return Path(root).resolve() if root else Path.cwd().resolve()


def _configure_logging(verbose: bool) -> None:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)
    # Keep spellcaster at INFO level for run progress
    logging.getLogger("spellcaster").setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="spellcaster",
        description="Apply source-file spells to built distribution trees",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    apply_p = subparsers.add_parser("apply", help="Apply spells to distribution targets")
    apply_p.add_argument(
        "targets", nargs="+",
        help="dist-npm, dist-jsr, dist-libs, dist-libs/<lib> or a custom directory",
    )
    apply_p.add_argument("--lib", help="Restrict a bare dist-libs target to one library")
    apply_p.add_argument("--concurrency", type=int, help="Files processed in parallel per target")
    apply_p.add_argument("--target-concurrency", type=int, help="Targets processed in parallel")
    apply_p.add_argument("--batch-size", type=int, help="Files per scheduling batch")
    apply_p.add_argument("--stop-on-error", action="store_true", help="Abort on the first file error")
    apply_p.add_argument("--no-copy", action="store_true", help="Do not refresh outputs from source")
    apply_p.add_argument(
        "--custom-path", action="append", metavar="NAME=PATH",
        help="Directory override for a target name (repeatable)",
    )
    apply_p.add_argument("--project-root", help="Project root (default: current directory)")
    apply_p.add_argument("--json", action="store_true", help="Output JSON")
    apply_p.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    list_p = subparsers.add_parser("list", help="List files containing spells")
    list_p.add_argument("dirs", nargs="+", help="Directories to scan")
    list_p.add_argument("--project-root", help="Project root (default: current directory)")
    list_p.add_argument("--json", action="store_true", help="Output JSON")
    list_p.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    spells_p = subparsers.add_parser("spells", help="Show the built-in spells")
    spells_p.add_argument("--json", action="store_true", help="Output JSON")

    subparsers.add_parser("version", help="Show version")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    load_dotenv(_project_root(args) / ENV_FILENAME)
    _configure_logging(getattr(args, "verbose", False))

    from spellcaster.cli.commands import apply, inventory, spells

    if args.command == "apply":
        return asyncio.run(apply.run(
            targets=args.targets,
            lib=args.lib,
            project_root=args.project_root,
            concurrency=args.concurrency,
            target_concurrency=args.target_concurrency,
            batch_size=args.batch_size,
            stop_on_error=args.stop_on_error,
            no_copy=args.no_copy,
            custom_paths=args.custom_path,
            json_output=args.json,
        ))
    elif args.command == "list":
        return asyncio.run(inventory.run(
            dirs=args.dirs,
            project_root=args.project_root,
            json_output=args.json,
        ))
    elif args.command == "spells":
        return spells.run(json_output=args.json)
    elif args.command == "version":
        from spellcaster import __version__
        print(f"spellcaster v{__version__}")
        return 0

    return 0


if __name__ == "__main__":
    sys.exit(main())
