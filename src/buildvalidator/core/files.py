from __future__ import annotations

import os
from pathlib import Path


def full_path(root: Path, relative: str) -> Path:
    # Lexical normalization only; symlinks are not followed.
    if os.sep == "/":
        relative = relative.replace("\\", "/")
    return Path(os.path.abspath(os.path.join(root, relative)))


def is_existing_file(path: Path) -> bool:
    return path.is_file()


def read_file_bytes(path: Path) -> bytes:
    with path.open("rb") as f:
        return f.read()
