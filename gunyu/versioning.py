"""Dotted version comparison limited to a chosen precision."""

from __future__ import annotations

import re
from enum import IntEnum

__all__ = ["VersionSemantic", "compare_version", "version_ge", "version_le", "version_eq"]


class VersionSemantic(IntEnum):
    MAJOR = 0
    MINOR = 1
    PATCH = 2


def _component(parts: list, index: int) -> int:
    if index >= len(parts) or not re.fullmatch(r"[+-]?[0-9]+", parts[index]):
        return 0
    return int(parts[index])


def compare_version(a: str, b: str, semantic: VersionSemantic) -> int:
    """Return -1, 0 or 1 comparing components up to ``semantic``; unparsable ones count as 0."""
    aparts, bparts = a.split("."), b.split(".")
    for i in range(int(semantic) + 1):
        av, bv = _component(aparts, i), _component(bparts, i)
        if av != bv:
            return 1 if av > bv else -1
    return 0


def version_ge(a: str, b: str, semantic: VersionSemantic) -> bool:
    return compare_version(a, b, semantic) >= 0


def version_le(a: str, b: str, semantic: VersionSemantic) -> bool:
    return compare_version(a, b, semantic) <= 0


def version_eq(a: str, b: str, semantic: VersionSemantic) -> bool:
    return compare_version(a, b, semantic) == 0