from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from buildvalidator.application.services.source_resolution_service import SourceResolver
from buildvalidator.application.services.verification_service import VerificationService
from buildvalidator.cli.context import CLIContext
from buildvalidator.cli.options import add_resolution_options
from buildvalidator.domain.models.source import ResolutionStatus
from buildvalidator.infrastructure.importers.manifest_importer import load_manifest
from buildvalidator.infrastructure.importers.sourcelink_importer import load_source_link

_STATUS_STYLES = {
    ResolutionStatus.VERIFIED: "green",
    ResolutionStatus.EMBEDDED: "cyan",
    ResolutionStatus.MISMATCHED: "red",
    ResolutionStatus.NOT_FOUND: "red",
    ResolutionStatus.READ_ERROR: "red",
}


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("verify", help="Resolve and hash-check every recorded source file")
    parser.add_argument("--manifest", type=Path, required=True, help="JSON manifest of recorded sources")
    parser.add_argument(
        "--source-link",
        type=Path,
        default=None,
        help="Source Link JSON to use instead of the manifest's own rules",
    )
    parser.add_argument("--all", action="store_true", help="List every file, not just failures")
    add_resolution_options(parser, workers=True)
    parser.set_defaults(handler=run_verify)


def run_verify(args: argparse.Namespace, ctx: CLIContext) -> int:
    manifest = load_manifest(args.manifest)
    if args.source_link is not None:
        manifest.link_rules = load_source_link(args.source_link)
    if args.encoding is not None:
        manifest.encoding = ctx.settings.encoding

    resolver = SourceResolver(ctx.settings, logger=logging.getLogger("buildvalidator.sources"))
    report = VerificationService(resolver).verify_manifest(manifest)

    summary = Panel.fit(
        f"Source root: {escape(str(ctx.settings.source_root))}\n"
        f"Link rules: {len(manifest.link_rules)}\n"
        f"Files: {report.total}\n"
        f"Verified: {report.count(ResolutionStatus.VERIFIED)}\n"
        f"Embedded: {report.count(ResolutionStatus.EMBEDDED)}\n"
        f"Mismatched: {report.count(ResolutionStatus.MISMATCHED)}\n"
        f"Missing: {report.count(ResolutionStatus.NOT_FOUND)}\n"
        f"Unreadable: {report.count(ResolutionStatus.READ_ERROR)}\n"
        f"Status: {'PASS' if report.ok else 'FAIL'}",
        title="Source Verification",
    )
    ctx.console.print(summary)

    rows = report.outcomes if args.all else report.failures()
    if rows:
        out = Table(title="Source Files" if args.all else "Source Problems")
        out.add_column("Status")
        out.add_column("Recorded Path", overflow="fold")
        out.add_column("Resolved From", overflow="fold")
        out.add_column("Detail", overflow="fold")
        for outcome in rows:
            style = _STATUS_STYLES[outcome.status]
            out.add_row(
                f"[{style}]{outcome.status.value}[/{style}]",
                escape(outcome.record_path),
                escape(outcome.display_path),
                escape(outcome.message),
            )
        ctx.console.print(out)

    return 0 if report.ok else 1
