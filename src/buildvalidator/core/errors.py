from __future__ import annotations

from pathlib import Path


class BuildValidatorError(Exception):
    """Base error for all user-facing build validator exceptions."""


class ConfigurationError(BuildValidatorError):
    """Raised when configuration is invalid or incomplete."""


class ValidationError(BuildValidatorError):
    """Raised when model invariants fail."""


class ManifestError(BuildValidatorError):
    """Raised when a source manifest or Source Link document cannot be read."""


class SourceResolutionError(BuildValidatorError):
    """Raised when a single recorded source file cannot be resolved."""

    def __init__(self, message: str, path: Path | str) -> None:
        super().__init__(message)
        self.path = str(path)


class SourceNotFoundError(SourceResolutionError):
    """Raised when no candidate path for a record exists on disk."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"Source file not found: {path}", path)


class SourceReadError(SourceResolutionError):
    """Raised when a source file exists but cannot be read or decoded."""


class ChecksumMismatchError(SourceResolutionError):
    """Raised for a hash mismatch when the fail-fast policy is active."""

    def __init__(self, path: Path | str, expected: bytes, actual: bytes) -> None:
        super().__init__(f'File "{path}" has incorrect hash', path)
        self.expected = expected
        self.actual = actual
