from __future__ import annotations

import json
from pathlib import Path

from buildvalidator.core.errors import ManifestError
from buildvalidator.domain.models.source import LinkRule


def parse_source_link(payload: object) -> list[LinkRule]:
    """Turn a Source Link document ``{"documents": {pattern: url}}`` into prefix rules.

    Only wildcard patterns (``"/build/obj/*"``) become rules; exact-file
    mappings carry no prefix and are skipped. Document order is kept.
    """
    if not isinstance(payload, dict):
        raise ManifestError("Source Link JSON must be an object containing 'documents'.")
    documents = payload.get("documents")
    if not isinstance(documents, dict):
        raise ManifestError("Source Link JSON must contain a 'documents' object.")

    rules: list[LinkRule] = []
    for pattern, target in documents.items():
        if not isinstance(pattern, str) or not isinstance(target, str):
            raise ManifestError("Source Link document entries must map strings to strings.")
        if not pattern.endswith("*"):
            continue
        prefix = pattern[:-1]
        if not prefix:
            raise ManifestError("Source Link pattern '*' has an empty prefix.")
        rules.append(LinkRule(prefix=prefix, target=target))
    return rules


def load_source_link(path: Path) -> list[LinkRule]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestError(f"Unable to read Source Link file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ManifestError(f"Source Link file {path} is not valid JSON: {exc}") from exc
    return parse_source_link(payload)
