"""Helpers for parsing and formatting byte sizes."""

from __future__ import annotations

import re

from ferret.errors import InvalidSizeExpression

_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
}

_SIZE_RE = re.compile(r"(?P<number>[0-9]+)(?P<unit>[A-Za-z]*)")


def parse_size(text: str) -> int:
    """Convert a size expression such as ``500K`` or ``2G`` into bytes.

    Accepts an unsigned integer followed by an optional case-insensitive unit
    (``B``, ``K``/``KB``, ``M``/``MB``, ``G``/``GB``). Units are binary, so
    ``1K`` is 1024 bytes.

    Raises:
        InvalidSizeExpression: if the expression is empty, signed, fractional
            or uses an unknown unit.
    """
    expr = text.strip() if text is not None else ""
    if not expr:
        raise InvalidSizeExpression("size expression cannot be empty")
    if expr[0] in "+-":
        raise InvalidSizeExpression(f"size must be an unsigned number: {text!r}")

    match = _SIZE_RE.fullmatch(expr)
    if match is None:
        raise InvalidSizeExpression(f"invalid size expression: {text!r}")

    unit = match.group("unit").lower()
    if unit not in _UNITS:
        raise InvalidSizeExpression(
            f"invalid size unit {match.group('unit')!r} in {text!r} (expected K, M or G)"
        )
    return int(match.group("number")) * _UNITS[unit]


def format_size(size: int) -> str:
    """Render a byte count with binary units, e.g. ``1.5 KiB``."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KiB", "MiB", "GiB", "TiB"):
        value /= 1024
        if value < 1024 or unit == "TiB":
            return f"{value:.1f} {unit}"
    return f"{size} B"  # pragma: no cover
