"""Compile search patterns into name matchers."""

from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass

from ferret.errors import InvalidPattern
from ferret.models import PatternKind


@dataclass(frozen=True, slots=True)
class Matcher:
    """Compiled pattern, ready to test base names or relative paths.

    ``full_path`` is set for globs that contain a ``/``; callers should then
    pass the POSIX form of the path relative to the search root instead of
    the base name.
    """

    pattern: str
    kind: PatternKind
    case_insensitive: bool
    full_path: bool
    _regex: re.Pattern[str]
    _fold: bool

    def test(self, text: str) -> bool:
        if self._fold:
            text = text.lower()
        if self.kind is PatternKind.REGEX:
            return self._regex.search(text) is not None
        return self._regex.match(text) is not None


def _check_glob(pattern: str) -> None:
    i, n = 0, len(pattern)
    while i < n:
        ch = pattern[i]
        i += 1
        if ch != "[":
            continue
        j = i
        if j < n and pattern[j] == "!":
            j += 1
        if j < n and pattern[j] == "]":
            j += 1
        while j < n and pattern[j] != "]":
            j += 1
        if j >= n:
            raise InvalidPattern(f"unterminated character class in glob {pattern!r}")
        i = j + 1


def compile_pattern(
    pattern: str,
    kind: PatternKind = PatternKind.GLOB,
    case_insensitive: bool = False,
) -> Matcher:
    """Compile ``pattern`` once so it can be tested against many names.

    Raises:
        InvalidPattern: for an empty pattern, an unterminated glob character
            class or an invalid regular expression.
    """
    if not pattern:
        raise InvalidPattern("pattern cannot be empty")

    if kind is PatternKind.REGEX:
        flags = re.IGNORECASE if case_insensitive else 0
        try:
            regex = re.compile(pattern, flags)
        except re.error as exc:
            raise InvalidPattern(f"invalid regular expression {pattern!r}: {exc}") from exc
        return Matcher(pattern, kind, case_insensitive, False, regex, False)

    _check_glob(pattern)
    source = pattern.lower() if case_insensitive else pattern
    try:
        regex = re.compile(fnmatch.translate(source))
    except re.error as exc:  # pragma: no cover - translate escapes everything
        raise InvalidPattern(f"invalid glob {pattern!r}: {exc}") from exc
    return Matcher(pattern, kind, case_insensitive, "/" in pattern, regex, case_insensitive)
