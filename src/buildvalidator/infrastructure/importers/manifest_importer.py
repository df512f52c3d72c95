from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from buildvalidator.core.errors import ManifestError, ValidationError
from buildvalidator.core.hashing import HashAlgorithm
from buildvalidator.domain.models.source import EmbeddedText, LinkRule, SourceRecord, UNLOCATED
from buildvalidator.infrastructure.importers.sourcelink_importer import load_source_link, parse_source_link


@dataclass(slots=True)
class SourceManifest:
    records: list[SourceRecord]
    link_rules: list[LinkRule]
    encoding: str | None = None


def load_manifest(path: Path) -> SourceManifest:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestError(f"Unable to read manifest {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Manifest {path} is not valid JSON: {exc}") from exc
    return parse_manifest(payload, base_dir=path.parent)


def parse_manifest(payload: object, base_dir: Path | None = None) -> SourceManifest:
    if isinstance(payload, list):
        payload = {"sources": payload}
    if not isinstance(payload, dict):
        raise ManifestError("Manifest must be a list of sources or an object containing 'sources'.")

    sources = payload.get("sources")
    if not isinstance(sources, list):
        raise ManifestError("Manifest must contain a 'sources' list.")
    records = [_parse_record(item, idx) for idx, item in enumerate(sources)]

    link_rules = _parse_link_section(payload.get("source_link"), base_dir)

    encoding = payload.get("encoding")
    if encoding is not None and not isinstance(encoding, str):
        raise ManifestError("Manifest 'encoding' must be a string.")

    return SourceManifest(records=records, link_rules=link_rules, encoding=encoding)


def _parse_record(item: object, idx: int) -> SourceRecord:
    if not isinstance(item, dict):
        raise ManifestError(f"Source entry {idx} must be a JSON object.")

    path = item.get("path")
    hash_hex = item.get("hash")
    if not isinstance(path, str) or not path:
        raise ManifestError(f"Source entry {idx} is missing 'path'.")
    if not isinstance(hash_hex, str):
        raise ManifestError(f"Source entry {idx} ({path}) is missing 'hash'.")

    try:
        algorithm = HashAlgorithm.parse(str(item.get("hash_algorithm") or "sha256"))
        digest = bytes.fromhex(hash_hex)
    except ValueError as exc:
        raise ManifestError(f"Source entry {idx} ({path}): {exc}") from exc

    embedded = item.get("embedded_text")
    if embedded is not None and not isinstance(embedded, str):
        raise ManifestError(f"Source entry {idx} ({path}) has a non-string 'embedded_text'.")
    origin = EmbeddedText(embedded) if embedded is not None else UNLOCATED

    try:
        return SourceRecord(path=path, hash=digest, hash_algorithm=algorithm, origin=origin)
    except ValidationError as exc:
        raise ManifestError(f"Source entry {idx}: {exc}") from exc


def _parse_link_section(section: object, base_dir: Path | None) -> list[LinkRule]:
    if section is None:
        return []
    if isinstance(section, str):
        link_path = Path(section)
        if not link_path.is_absolute() and base_dir is not None:
            link_path = base_dir / link_path
        return load_source_link(link_path)
    return parse_source_link(section)
