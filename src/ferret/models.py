"""Core ferret data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePath
from typing import Any, Dict, List

from ferret.errors import FerretError

DEFAULT_PLACEHOLDER = "{}"


class PatternKind(str, Enum):
    GLOB = "glob"
    REGEX = "regex"


class EntryKind(str, Enum):
    """Kind of a filesystem entry as reported by traversal."""

    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class SizeRange:
    """Inclusive byte bounds; ``None`` leaves a side unconstrained."""

    min_bytes: int | None = None
    max_bytes: int | None = None

    def contains(self, size: int) -> bool:
        if self.min_bytes is not None and size < self.min_bytes:
            return False
        if self.max_bytes is not None and size > self.max_bytes:
            return False
        return True


@dataclass(frozen=True, slots=True)
class FilterSpec:
    """Configuration for a single search, built once from user input."""

    pattern: str
    pattern_kind: PatternKind = PatternKind.GLOB
    case_insensitive: bool = False
    type_filter: EntryKind | None = None
    size_range: SizeRange | None = None
    max_age_days: int | None = None
    include_hidden: bool = False
    recursive: bool = True
    max_depth: int | None = None
    follow_symlinks: bool = False

    @property
    def effective_max_depth(self) -> int | None:
        if self.recursive:
            return self.max_depth
        if self.max_depth is None:
            return 1
        return min(self.max_depth, 1)


@dataclass(frozen=True, slots=True)
class FilesystemEntry:
    """A single observation made while walking the tree."""

    path: Path
    relative: PurePath
    kind: EntryKind
    size: int
    mtime: float | None
    depth: int

    @property
    def name(self) -> str:
        return self.relative.name

    @property
    def modified(self) -> datetime | None:
        if self.mtime is None:
            return None
        return datetime.fromtimestamp(self.mtime)

    def to_record(self) -> Dict[str, Any]:
        modified = self.modified
        return {
            "path": str(self.path),
            "size": self.size,
            "kind": self.kind.value,
            "modified": modified.isoformat(timespec="seconds") if modified else None,
        }


@dataclass(slots=True)
class ActionOutcome:
    """Result of running the exec command for one match."""

    entry: FilesystemEntry
    argv: List[str] = field(default_factory=list)
    returncode: int | None = None
    error: FerretError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0
