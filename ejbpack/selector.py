"""Include/exclude pattern resolution for archive contents.

User supplied patterns replace the built-in defaults for their axis; they are
never merged with them. Includes and excludes are decided independently, so a
user include list still leaves the default excludes in effect.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True, slots=True)
class PatternSet:
    """Resolved include and exclude patterns applied to a directory walk."""

    includes: tuple[str, ...]
    excludes: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SelectionPolicy:
    """User overrides plus the built-in fallback patterns for one archive."""

    default_includes: tuple[str, ...]
    default_excludes: tuple[str, ...] = ()
    user_includes: tuple[str, ...] | None = None
    user_excludes: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if not self.default_includes:
            raise ValueError("default_includes must contain at least one pattern")

    def resolve(self) -> PatternSet:
        return resolve(
            self.user_includes,
            self.user_excludes,
            self.default_includes,
            self.default_excludes,
        )


def is_effectively_unset(patterns: Sequence[str] | None) -> bool:
    """Treat a missing pattern list and an empty one as the same signal."""

    return patterns is None or len(patterns) == 0


def resolve(
    user_includes: Sequence[str] | None,
    user_excludes: Sequence[str] | None,
    default_includes: Sequence[str],
    default_excludes: Sequence[str],
) -> PatternSet:
    includes = default_includes if is_effectively_unset(user_includes) else user_includes
    excludes = default_excludes if is_effectively_unset(user_excludes) else user_excludes
    return PatternSet(includes=tuple(includes or ()), excludes=tuple(excludes or ()))


__all__ = [
    "PatternSet",
    "SelectionPolicy",
    "is_effectively_unset",
    "resolve",
]
