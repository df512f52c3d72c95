from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from buildvalidator.cli.commands import resolve_cmd, verify_cmd
from buildvalidator.cli.context import CLIContext
from buildvalidator.core.config import load_settings
from buildvalidator.core.errors import BuildValidatorError
from buildvalidator.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buildvalidator",
        description="Recover and verify the sources recorded in a build's debug metadata",
    )
    parser.add_argument(
        "--source-root",
        type=Path,
        default=None,
        help="Local root that Source Link prefixes are rewritten onto (default: $BUILDVALIDATOR_SOURCE_ROOT or cwd)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    verify_cmd.register(subparsers)
    resolve_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        settings = load_settings(
            source_root=args.source_root,
            encoding=getattr(args, "encoding", None),
            mismatch_policy=getattr(args, "policy", None),
            max_workers=getattr(args, "workers", None),
        )
        ctx = CLIContext(settings=settings, console=console)
        return handler(args, ctx)
    except BuildValidatorError as exc:
        logger.error(str(exc))
        return 1
