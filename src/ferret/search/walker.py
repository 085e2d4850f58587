"""Depth-first directory traversal."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path, PurePath
from typing import Callable, Iterator

from ferret.errors import DirectoryUnreadable, EntryUnreadable, FerretError
from ferret.models import EntryKind, FilesystemEntry, FilterSpec
from ferret.search.pattern import Matcher
from ferret.search.predicates import PredicateSet, is_hidden_name

LOGGER = logging.getLogger(__name__)

ErrorHandler = Callable[[FerretError], None]
Predicate = Callable[[FilesystemEntry], bool]


def _log_error(error: FerretError) -> None:
    if isinstance(error, DirectoryUnreadable):
        LOGGER.warning("%s", error)
    else:
        LOGGER.debug("%s", error)


def _reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _kind_of(mode: int) -> EntryKind:
    if stat.S_ISDIR(mode):
        return EntryKind.DIR
    if stat.S_ISLNK(mode):
        return EntryKind.SYMLINK
    if stat.S_ISREG(mode):
        return EntryKind.FILE
    return EntryKind.OTHER


def read_entry(
    path: Path, relative: PurePath, depth: int, follow_symlinks: bool = False
) -> tuple[FilesystemEntry, os.stat_result]:
    """Stat ``path`` once and build the matching entry.

    With ``follow_symlinks`` a link reports its target's metadata, so a
    dangling link raises ``OSError`` like any other unreadable path.
    """
    st = os.lstat(path)
    if follow_symlinks and stat.S_ISLNK(st.st_mode):
        st = os.stat(path)
    kind = _kind_of(st.st_mode)
    entry = FilesystemEntry(
        path=path,
        relative=relative,
        kind=kind,
        size=st.st_size if kind is EntryKind.FILE else 0,
        mtime=st.st_mtime,
        depth=depth,
    )
    return entry, st


def _list_children(
    directory: Path,
    relative: PurePath,
    depth: int,
    include_hidden: bool,
    on_error: ErrorHandler,
) -> list[tuple[Path, PurePath, int]]:
    try:
        names = os.listdir(directory)
    except OSError as exc:
        on_error(DirectoryUnreadable(directory, _reason(exc)))
        return []
    if not include_hidden:
        names = [name for name in names if not is_hidden_name(name)]
    return [(directory / name, relative / name, depth) for name in sorted(names)]


def walk(
    root: Path | str,
    spec: FilterSpec,
    matcher: Matcher,
    *,
    predicate: Predicate | None = None,
    on_error: ErrorHandler | None = None,
) -> Iterator[FilesystemEntry]:
    """Yield entries under ``root`` that satisfy ``spec``, in traversal order.

    The walk is depth-first with siblings sorted by name. The root itself is
    depth 0 and never yielded; its children are depth 1. A directory at depth
    ``d`` is only descended into while ``d`` is below the effective max depth.

    Unreadable entries and directories are reported through ``on_error``
    (logged by default) and skipped; the walk itself never raises for them.
    """
    root = Path(root)
    if predicate is None:
        predicate = PredicateSet(spec, matcher)
    if on_error is None:
        on_error = _log_error
    max_depth = spec.effective_max_depth

    try:
        root_stat = os.stat(root)
    except OSError as exc:
        on_error(DirectoryUnreadable(root, _reason(exc)))
        return
    if not stat.S_ISDIR(root_stat.st_mode):
        on_error(DirectoryUnreadable(root, "not a directory"))
        return
    if max_depth is not None and max_depth <= 0:
        return

    visited = {(root_stat.st_dev, root_stat.st_ino)}
    stack = _list_children(root, PurePath(), 1, spec.include_hidden, on_error)
    stack.reverse()

    while stack:
        path, relative, depth = stack.pop()
        try:
            entry, st = read_entry(path, relative, depth, spec.follow_symlinks)
        except OSError as exc:
            on_error(EntryUnreadable(path, _reason(exc)))
            continue

        if predicate(entry):
            yield entry

        if entry.kind is not EntryKind.DIR:
            continue
        if max_depth is not None and depth >= max_depth:
            continue
        if spec.follow_symlinks:
            identity = (st.st_dev, st.st_ino)
            if identity in visited:
                LOGGER.debug("Not descending into '%s': already visited", path)
                continue
            visited.add(identity)

        children = _list_children(path, relative, depth + 1, spec.include_hidden, on_error)
        stack.extend(reversed(children))
