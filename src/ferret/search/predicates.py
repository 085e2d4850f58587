"""Composable filter dimensions over filesystem entries."""

from __future__ import annotations

import time

from ferret.models import FilesystemEntry, FilterSpec
from ferret.search.pattern import Matcher

SECONDS_PER_DAY = 86400
HIDDEN_PREFIX = "."


def is_hidden_name(name: str) -> bool:
    return name.startswith(HIDDEN_PREFIX) and name not in (".", "..")


class PredicateSet:
    """All configured filter dimensions of a search, combined with AND.

    Checks run cheapest first and stop at the first failing dimension.
    Dimensions that are not configured always pass.
    """

    def __init__(self, spec: FilterSpec, matcher: Matcher) -> None:
        self.spec = spec
        self.matcher = matcher

    def __call__(self, entry: FilesystemEntry, now: float | None = None) -> bool:
        return (
            self.check_hidden(entry)
            and self.check_type(entry)
            and self.check_name(entry)
            and self.check_size(entry)
            and self.check_age(entry, now)
        )

    def check_hidden(self, entry: FilesystemEntry) -> bool:
        if self.spec.include_hidden:
            return True
        return not any(is_hidden_name(part) for part in entry.relative.parts)

    def check_type(self, entry: FilesystemEntry) -> bool:
        return self.spec.type_filter is None or entry.kind == self.spec.type_filter

    def check_name(self, entry: FilesystemEntry) -> bool:
        if self.matcher.full_path:
            return self.matcher.test(entry.relative.as_posix())
        return self.matcher.test(entry.name)

    def check_size(self, entry: FilesystemEntry) -> bool:
        return self.spec.size_range is None or self.spec.size_range.contains(entry.size)

    def check_age(self, entry: FilesystemEntry, now: float | None = None) -> bool:
        if self.spec.max_age_days is None:
            return True
        if entry.mtime is None:
            return False
        if now is None:
            now = time.time()
        return now - entry.mtime <= self.spec.max_age_days * SECONDS_PER_DAY


def evaluate(
    entry: FilesystemEntry,
    spec: FilterSpec,
    matcher: Matcher,
    now: float | None = None,
) -> bool:
    """Return True when ``entry`` satisfies every dimension of ``spec``."""
    return PredicateSet(spec, matcher)(entry, now)
