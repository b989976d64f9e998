"""
Leveled console output for ejbpack runs.
"""
import sys
from typing import TextIO

from core.archive import ArchiveConsole


class Console(ArchiveConsole):
    """Print-based output with a threshold level and a dry-run flag.

    Levels: none < error < warn < info < debug
    Default: 'info'. Warnings and errors go to stderr; ``[DRY]`` lines are
    printed whenever dry-run is on, regardless of the level.
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "warn": 2,
        "info": 3,
        "debug": 4,
    }

    def __init__(self, level: str = "info", dry_run: bool = False):
        if level not in self.LEVELS:
            raise ValueError(f"Unknown log level '{level}'. Expected one of: {', '.join(self.LEVELS)}")
        self.level_name = level
        self.level = self.LEVELS[level]
        self.dry_run = dry_run

    @classmethod
    def from_options(cls, log: str | None, verbose: bool, dry_run: bool) -> "Console":
        """Build a console from ``--log``, ``--verbose`` and ``--dry-run``; ``--log`` wins."""

        return cls(level=log or ("debug" if verbose else "info"), dry_run=dry_run)

    def enabled(self, level: str) -> bool:
        return self.level >= self.LEVELS[level]

    def _emit(self, level: str, message: str, stream: TextIO | None = None) -> None:
        if self.enabled(level):
            print(f"[{level.upper()}] {message}", file=stream or sys.stdout)

    def info(self, message: str) -> None:
        self._emit("info", message)

    def warn(self, message: str) -> None:
        self._emit("warn", message, sys.stderr)

    def error(self, message: str) -> None:
        self._emit("error", message, sys.stderr)

    def debug(self, message: str) -> None:
        self._emit("debug", message)

    def dry(self, message: str) -> None:
        if self.dry_run:
            print(f"[DRY] {message}")
