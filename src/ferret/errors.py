"""Error types raised or reported by the search engine."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class FerretError(Exception):
    """Base class for every ferret error."""


class InvalidPattern(FerretError, ValueError):
    """A glob or regular expression could not be compiled."""


class InvalidSizeExpression(FerretError, ValueError):
    """A size expression such as ``10M`` could not be parsed."""


class EntryUnreadable(FerretError):
    """Metadata for a single path could not be read."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"cannot read '{path}': {reason}")
        self.path = path
        self.reason = reason


class DirectoryUnreadable(FerretError):
    """A directory could not be listed; its subtree is skipped."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"cannot read directory '{path}': {reason}")
        self.path = path
        self.reason = reason


class ActionSpawnFailure(FerretError):
    """The exec command could not be started for a match."""

    def __init__(self, argv: Sequence[str], reason: str) -> None:
        super().__init__(f"failed to execute '{argv[0] if argv else ''}': {reason}")
        self.argv = list(argv)
        self.reason = reason


class ActionNonZeroExit(FerretError):
    """The exec command ran but exited with a non-zero status."""

    def __init__(self, argv: Sequence[str], returncode: int) -> None:
        super().__init__(f"'{argv[0] if argv else ''}' exited with status {returncode}")
        self.argv = list(argv)
        self.returncode = returncode
