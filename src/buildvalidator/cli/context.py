from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console

from buildvalidator.core.config import ValidatorSettings


@dataclass(slots=True)
class CLIContext:
    settings: ValidatorSettings
    console: Console
