"""Ant-style path pattern matching and directory scanning."""
from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Sequence
import os
import re


SCM_DEFAULT_EXCLUDES: tuple[str, ...] = (
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    "**/CVS/**",
    "**/.cvsignore",
    "**/.svn/**",
    "**/.git/**",
    "**/.gitignore",
    "**/.gitattributes",
    "**/.hg/**",
    "**/.bzr/**",
    "**/.DS_Store",
)
"""Version-control and editor leftovers that never belong in an archive."""


def normalize_pattern(pattern: str) -> str:
    """Return *pattern* with ``/`` separators and a trailing ``/`` expanded to ``/**``."""

    text = pattern.strip().replace("\\", "/")
    while text.startswith("./"):
        text = text[2:]
    text = text.lstrip("/")
    if text.endswith("/"):
        text += "**"
    return text


def _translate_segment(segment: str) -> str:
    parts: list[str] = []
    for char in segment:
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
    return "".join(parts)


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile an Ant-style *pattern* into a regular expression.

    ``**`` spans any number of path segments (including none), ``*`` matches
    within a single segment and ``?`` matches one character.
    """

    normalized = normalize_pattern(pattern)
    if not normalized:
        raise ValueError("Path patterns cannot be empty")

    segments = normalized.split("/")
    regex = ["^"]
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            regex.append(".*" if last else "(?:[^/]*/)*")
            continue
        regex.append(_translate_segment(segment))
        if not last:
            regex.append("/")
    regex.append("$")
    return re.compile("".join(regex))


def matches(path: str, pattern: str) -> bool:
    """Return ``True`` when the relative *path* matches *pattern*."""

    return compile_pattern(pattern).match(path.replace("\\", "/")) is not None


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(matches(path, pattern) for pattern in patterns)


@dataclass(frozen=True, slots=True)
class DirectoryScanner:
    """Collect files below a root directory that pass include/exclude patterns."""

    root: Path
    includes: Sequence[str]
    excludes: Sequence[str] = ()
    use_default_excludes: bool = True

    def is_selected(self, relative_path: str) -> bool:
        if not matches_any(relative_path, self.includes):
            return False
        if matches_any(relative_path, self.excludes):
            return False
        if self.use_default_excludes and matches_any(relative_path, SCM_DEFAULT_EXCLUDES):
            return False
        return True

    def scan(self) -> list[str]:
        """Return selected files as sorted POSIX paths relative to :attr:`root`."""

        root = Path(self.root)
        if not root.is_dir():
            raise FileNotFoundError(f"Scan root '{root}' is not a directory")

        selected: list[str] = []
        for dirpath, dirnames, filenames in os.walk(root, topdown=True):
            dirnames.sort()
            filenames.sort()

            current_dir = Path(dirpath)
            relative_dir = current_dir.relative_to(root)
            for filename in filenames:
                if relative_dir != Path("."):
                    relative = (relative_dir / filename).as_posix()
                else:
                    relative = filename
                if self.is_selected(relative):
                    selected.append(relative)

        return selected


__all__ = [
    "DirectoryScanner",
    "SCM_DEFAULT_EXCLUDES",
    "compile_pattern",
    "matches",
    "matches_any",
    "normalize_pattern",
]
