from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from buildvalidator.core.files import full_path, is_existing_file
from buildvalidator.domain.models.source import LinkRule, SourceRecord

logger = logging.getLogger(__name__)


class PathResolver:
    def resolve(
        self,
        record: SourceRecord,
        link_rules: Sequence[LinkRule],
        local_source_root: Path,
    ) -> Path:
        """Pick the on-disk location to read for a record without embedded text.

        Link rules are tried in order; the first rewritten candidate that exists
        wins. When none exists the recorded path itself is returned, whether or
        not it exists; the caller reports it as missing.
        """
        if record.embedded_text is not None:
            raise ValueError(f"Record {record.path} carries embedded text and has no disk location.")

        for rule in link_rules:
            if not rule.matches(record.path):
                continue
            candidate = full_path(local_source_root, rule.strip(record.path))
            if is_existing_file(candidate):
                return candidate
            logger.debug("Source link candidate %s for %s does not exist", candidate, record.path)

        return Path(record.path)
