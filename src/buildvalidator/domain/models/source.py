from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from buildvalidator.core.errors import ValidationError
from buildvalidator.core.hashing import HashAlgorithm

EMBEDDED_MARKER = "[embedded]"


@dataclass(frozen=True, slots=True)
class EmbeddedText:
    """Source text packaged inside the artifact; authoritative when present."""

    text: str


@dataclass(frozen=True, slots=True)
class Unlocated:
    """Source text that has to be found on disk."""


SourceOrigin = EmbeddedText | Unlocated

UNLOCATED = Unlocated()


@dataclass(frozen=True, slots=True)
class SourceRecord:
    path: str
    hash: bytes
    hash_algorithm: HashAlgorithm
    origin: SourceOrigin = UNLOCATED

    def __post_init__(self) -> None:
        if not self.path:
            raise ValidationError("Source record path must not be empty.")
        expected = self.hash_algorithm.digest_size
        if len(self.hash) != expected:
            raise ValidationError(
                f"Hash for {self.path} is {len(self.hash)} bytes; "
                f"{self.hash_algorithm.value} digests are {expected} bytes."
            )

    @property
    def embedded_text(self) -> str | None:
        if isinstance(self.origin, EmbeddedText):
            return self.origin.text
        return None


@dataclass(frozen=True, slots=True)
class LinkRule:
    prefix: str
    target: str | None = None

    def __post_init__(self) -> None:
        if not self.prefix:
            raise ValidationError("Source link prefix must not be empty.")

    def matches(self, recorded_path: str) -> bool:
        return recorded_path.startswith(self.prefix)

    def strip(self, recorded_path: str) -> str:
        return recorded_path[len(self.prefix) :]


class ResolutionStatus(str, Enum):
    EMBEDDED = "embedded"
    VERIFIED = "verified"
    MISMATCHED = "mismatched"
    NOT_FOUND = "not_found"
    READ_ERROR = "read_error"

    @property
    def passed(self) -> bool:
        return self in (ResolutionStatus.EMBEDDED, ResolutionStatus.VERIFIED)


@dataclass(frozen=True, slots=True)
class SourceText:
    content: str
    checksum: bytes
    checksum_algorithm: HashAlgorithm
    encoding: str


@dataclass(frozen=True, slots=True)
class ResolvedSource:
    on_disk_path: Path | None
    text: SourceText
    origin_record: SourceRecord
    status: ResolutionStatus

    @property
    def display_path(self) -> str:
        if self.on_disk_path is not None:
            return str(self.on_disk_path)
        return EMBEDDED_MARKER + self.origin_record.path
