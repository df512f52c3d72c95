from __future__ import annotations

import codecs
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from buildvalidator.core.errors import ConfigurationError


class MismatchPolicy(str, Enum):
    COLLECT = "collect"
    FAIL_FAST = "fail-fast"


@dataclass(frozen=True)
class ValidatorSettings:
    source_root: Path
    encoding: str
    mismatch_policy: MismatchPolicy
    max_workers: int


DEFAULT_ENCODING = "utf-8"
DEFAULT_MAX_WORKERS = 4


def load_settings(
    source_root: Path | None = None,
    encoding: str | None = None,
    mismatch_policy: MismatchPolicy | str | None = None,
    max_workers: int | None = None,
) -> ValidatorSettings:
    """Build settings from explicit arguments, falling back to BUILDVALIDATOR_* env vars."""
    root_raw = source_root or os.getenv("BUILDVALIDATOR_SOURCE_ROOT")
    root = Path(root_raw).expanduser().resolve() if root_raw else Path.cwd().resolve()

    encoding_name = encoding or os.getenv("BUILDVALIDATOR_ENCODING") or DEFAULT_ENCODING
    try:
        encoding_name = codecs.lookup(encoding_name).name
    except LookupError as exc:
        raise ConfigurationError(f"Unknown text encoding: {encoding_name}") from exc

    policy_raw = mismatch_policy or os.getenv("BUILDVALIDATOR_MISMATCH_POLICY") or MismatchPolicy.COLLECT
    try:
        policy = MismatchPolicy(policy_raw)
    except ValueError as exc:
        raise ConfigurationError(
            f"Unknown mismatch policy '{policy_raw}'; expected 'collect' or 'fail-fast'."
        ) from exc

    workers_raw: object = max_workers
    if workers_raw is None:
        workers_raw = os.getenv("BUILDVALIDATOR_WORKERS") or DEFAULT_MAX_WORKERS
    try:
        workers = int(workers_raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Worker count must be an integer, got {workers_raw!r}") from exc
    if workers < 1:
        raise ConfigurationError(f"Worker count must be at least 1, got {workers}")

    return ValidatorSettings(
        source_root=root,
        encoding=encoding_name,
        mismatch_policy=policy,
        max_workers=workers,
    )
