from __future__ import annotations

import argparse

from buildvalidator.core.config import MismatchPolicy


def add_resolution_options(parser: argparse.ArgumentParser, workers: bool = False) -> None:
    parser.add_argument("--encoding", default=None, help="Text encoding of sources without a byte-order mark")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in MismatchPolicy],
        default=None,
        help="What to do when a file's hash does not match (default: collect)",
    )
    if workers:
        parser.add_argument("--workers", type=int, default=None, help="Files verified in parallel")
