from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from buildvalidator.application.services.source_resolution_service import SourceResolver
from buildvalidator.core.errors import ConfigurationError, SourceNotFoundError, SourceReadError
from buildvalidator.domain.models.source import LinkRule, ResolutionStatus, ResolvedSource, SourceRecord
from buildvalidator.infrastructure.importers.manifest_importer import SourceManifest

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FileOutcome:
    record_path: str
    status: ResolutionStatus
    display_path: str
    message: str = ""
    resolved: ResolvedSource | None = None


@dataclass(slots=True)
class VerificationReport:
    outcomes: list[FileOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def ok(self) -> bool:
        return all(o.status.passed for o in self.outcomes)

    def count(self, status: ResolutionStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def failures(self) -> list[FileOutcome]:
        return [o for o in self.outcomes if not o.status.passed]


class VerificationService:
    """Runs one verification pass over every record of an artifact.

    Per-file failures are recorded and do not stop sibling files. A
    ChecksumMismatchError raised under the fail-fast policy propagates.
    """

    def __init__(self, resolver: SourceResolver, max_workers: int | None = None) -> None:
        self.resolver = resolver
        if max_workers is None:
            max_workers = resolver.settings.max_workers
        if max_workers < 1:
            raise ConfigurationError(f"Worker count must be at least 1, got {max_workers}")
        self.max_workers = max_workers

    def verify_manifest(self, manifest: SourceManifest) -> VerificationReport:
        return self.verify_records(manifest.records, manifest.link_rules, encoding=manifest.encoding)

    def verify_records(
        self,
        records: Sequence[SourceRecord],
        link_rules: Sequence[LinkRule],
        encoding: str | None = None,
    ) -> VerificationReport:
        rules = tuple(link_rules)

        def work(record: SourceRecord) -> FileOutcome:
            return self._verify_one(record, rules, encoding)

        if self.max_workers <= 1 or len(records) <= 1:
            outcomes = [work(record) for record in records]
        else:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                outcomes = list(executor.map(work, records))

        report = VerificationReport(outcomes=outcomes)
        logger.info(
            "Verified %d source file(s): %d verified, %d embedded, %d mismatched, %d missing, %d unreadable",
            report.total,
            report.count(ResolutionStatus.VERIFIED),
            report.count(ResolutionStatus.EMBEDDED),
            report.count(ResolutionStatus.MISMATCHED),
            report.count(ResolutionStatus.NOT_FOUND),
            report.count(ResolutionStatus.READ_ERROR),
        )
        return report

    def _verify_one(
        self,
        record: SourceRecord,
        link_rules: tuple[LinkRule, ...],
        encoding: str | None,
    ) -> FileOutcome:
        try:
            resolved = self.resolver.resolve_source(record, link_rules, declared_encoding=encoding)
        except SourceNotFoundError as exc:
            return FileOutcome(
                record_path=record.path,
                status=ResolutionStatus.NOT_FOUND,
                display_path=exc.path,
                message=str(exc),
            )
        except SourceReadError as exc:
            return FileOutcome(
                record_path=record.path,
                status=ResolutionStatus.READ_ERROR,
                display_path=exc.path,
                message=str(exc),
            )

        return FileOutcome(
            record_path=record.path,
            status=resolved.status,
            display_path=resolved.display_path,
            resolved=resolved,
        )
