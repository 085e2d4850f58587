"""Aggregate statistics over a directory walk."""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Tuple

from ferret.models import EntryKind, FilesystemEntry

NO_EXTENSION = "(no extension)"


@dataclass(slots=True)
class ExtensionStats:
    count: int = 0
    size: int = 0


@dataclass(slots=True)
class DirectoryStats:
    total_files: int = 0
    total_dirs: int = 0
    total_size: int = 0
    extensions: Dict[str, ExtensionStats] = field(default_factory=dict)
    files: List[Tuple[int, Path]] = field(default_factory=list)

    def add(self, entry: FilesystemEntry) -> None:
        if entry.kind is EntryKind.DIR:
            self.total_dirs += 1
            return
        if entry.kind is not EntryKind.FILE:
            return

        self.total_files += 1
        self.total_size += entry.size
        suffix = entry.relative.suffix.lower().lstrip(".") or NO_EXTENSION
        ext = self.extensions.setdefault(suffix, ExtensionStats())
        ext.count += 1
        ext.size += entry.size
        self.files.append((entry.size, entry.path))

    def top_extensions(self, limit: int = 15) -> List[Tuple[str, ExtensionStats]]:
        """Extensions ordered by file count, then name."""
        ranked = sorted(self.extensions.items(), key=lambda item: (-item[1].count, item[0]))
        return ranked[:limit]

    def largest(self, limit: int = 10) -> List[Tuple[int, Path]]:
        return heapq.nlargest(limit, self.files, key=lambda item: item[0])


def collect_stats(entries: Iterable[FilesystemEntry]) -> DirectoryStats:
    stats = DirectoryStats()
    for entry in entries:
        stats.add(entry)
    return stats
