from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.markup import escape
from rich.panel import Panel

from buildvalidator.application.services.source_resolution_service import SourceResolver
from buildvalidator.cli.context import CLIContext
from buildvalidator.cli.options import add_resolution_options
from buildvalidator.core.errors import ManifestError
from buildvalidator.domain.models.source import ResolutionStatus
from buildvalidator.infrastructure.importers.manifest_importer import load_manifest


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("resolve", help="Resolve a single recorded source file")
    parser.add_argument("--manifest", type=Path, required=True)
    parser.add_argument("--path", required=True, help="Source path exactly as recorded in the manifest")
    parser.add_argument("--show-text", action="store_true", help="Print the recovered source text")
    add_resolution_options(parser)
    parser.set_defaults(handler=run_resolve)


def run_resolve(args: argparse.Namespace, ctx: CLIContext) -> int:
    manifest = load_manifest(args.manifest)
    record = next((r for r in manifest.records if r.path == args.path), None)
    if record is None:
        raise ManifestError(f"No source recorded as {args.path} in {args.manifest}")
    if args.encoding is not None:
        manifest.encoding = ctx.settings.encoding

    resolver = SourceResolver(ctx.settings, logger=logging.getLogger("buildvalidator.sources"))
    resolved = resolver.resolve_source(record, manifest.link_rules, declared_encoding=manifest.encoding)

    lines = [
        f"Recorded path: {escape(record.path)}",
        f"Resolved from: {escape(resolved.display_path)}",
        f"Algorithm: {record.hash_algorithm.value}",
        f"Recorded hash: {record.hash.hex()}",
        f"Actual hash: {resolved.text.checksum.hex()}",
        f"Encoding: {resolved.text.encoding}",
        f"Status: {resolved.status.value.upper()}",
    ]
    ctx.console.print(Panel.fit("\n".join(lines), title="Resolve Source"))
    if args.show_text:
        ctx.console.print(resolved.text.content, markup=False, highlight=False)

    return 1 if resolved.status is ResolutionStatus.MISMATCHED else 0
