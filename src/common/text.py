"""Lightweight text helpers shared across modules."""
from __future__ import annotations

from pathlib import PurePath

_DEFAULT_SUFFIX = ".csv"


def is_blank(line: str) -> bool:
    """Return True when the line is empty after trimming surrounding whitespace."""

    return not line.strip()


def split_source_name(name: str) -> tuple[str, str]:
    """Split an input name into (stem, suffix), defaulting the suffix to .csv."""

    path = PurePath(name or "output")
    suffix = path.suffix or _DEFAULT_SUFFIX
    stem = path.stem if path.suffix else path.name
    return stem or "output", suffix
