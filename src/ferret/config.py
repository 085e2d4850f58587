"""Application configuration defaults."""

from __future__ import annotations

import os
import shutil
import sys
from dataclasses import dataclass

from ferret.models import DEFAULT_PLACEHOLDER


def _detect_color() -> bool:
    """Decide whether output should be colored from the environment."""
    if os.environ.get("NO_COLOR") or os.environ.get("FERRET_NO_COLOR"):
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _detect_width() -> int:
    return shutil.get_terminal_size(fallback=(80, 24)).columns


@dataclass(slots=True)
class AppConfig:
    """Presentation settings resolved once, then passed explicitly to sinks."""

    placeholder: str = DEFAULT_PLACEHOLDER
    color: bool | None = None
    width: int | None = None

    def __post_init__(self) -> None:
        if self.color is None:
            self.color = _detect_color()
        if self.width is None:
            self.width = _detect_width()
