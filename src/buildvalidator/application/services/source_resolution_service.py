from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from buildvalidator.application.services.checksum_service import ChecksumVerifier
from buildvalidator.application.services.path_resolution_service import PathResolver
from buildvalidator.core.config import MismatchPolicy, ValidatorSettings
from buildvalidator.core.errors import ChecksumMismatchError, SourceNotFoundError, SourceReadError
from buildvalidator.core.files import is_existing_file, read_file_bytes
from buildvalidator.core.text import decode_source_bytes
from buildvalidator.domain.models.source import (
    LinkRule,
    ResolutionStatus,
    ResolvedSource,
    SourceRecord,
    SourceText,
)


class SourceResolver:
    """Recovers the text for one recorded source file and checks it against its hash.

    Each call is independent of every other; the resolver holds only immutable
    settings and collaborators, so a single instance may be shared across threads.
    """

    def __init__(
        self,
        settings: ValidatorSettings,
        logger: logging.Logger | None = None,
        path_resolver: PathResolver | None = None,
        checksum_verifier: ChecksumVerifier | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)
        self.path_resolver = path_resolver or PathResolver()
        self.checksum_verifier = checksum_verifier or ChecksumVerifier()

    def resolve_source(
        self,
        record: SourceRecord,
        link_rules: Sequence[LinkRule],
        local_source_root: Path | None = None,
        declared_encoding: str | None = None,
    ) -> ResolvedSource:
        embedded = record.embedded_text
        if embedded is not None:
            text = SourceText(
                content=embedded,
                checksum=record.hash,
                checksum_algorithm=record.hash_algorithm,
                encoding=declared_encoding or self.settings.encoding,
            )
            return ResolvedSource(
                on_disk_path=None,
                text=text,
                origin_record=record,
                status=ResolutionStatus.EMBEDDED,
            )

        root = local_source_root if local_source_root is not None else self.settings.source_root
        on_disk_path = self.path_resolver.resolve(record, link_rules, root)
        if not is_existing_file(on_disk_path):
            raise SourceNotFoundError(on_disk_path)

        data = self._read_bytes(on_disk_path)
        encoding = declared_encoding or self.settings.encoding
        try:
            content, used_encoding = decode_source_bytes(data, encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise SourceReadError(f"Unable to decode {on_disk_path} as {encoding}: {exc}", on_disk_path) from exc

        checksum = self.checksum_verifier.compute(record.hash_algorithm, data)
        text = SourceText(
            content=content,
            checksum=checksum,
            checksum_algorithm=record.hash_algorithm,
            encoding=used_encoding,
        )

        if self.checksum_verifier.matches(record.hash, checksum):
            status = ResolutionStatus.VERIFIED
        else:
            self.logger.error('File "%s" has incorrect hash', on_disk_path)
            if self.settings.mismatch_policy is MismatchPolicy.FAIL_FAST:
                raise ChecksumMismatchError(on_disk_path, expected=record.hash, actual=checksum)
            status = ResolutionStatus.MISMATCHED

        return ResolvedSource(
            on_disk_path=on_disk_path,
            text=text,
            origin_record=record,
            status=status,
        )

    @staticmethod
    def _read_bytes(path: Path) -> bytes:
        try:
            return read_file_bytes(path)
        except FileNotFoundError as exc:
            # Removed between the existence check and the read.
            raise SourceNotFoundError(path) from exc
        except OSError as exc:
            raise SourceReadError(f"Unable to read {path}: {exc}", path) from exc
