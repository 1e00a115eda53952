"""Console output with configurable verbosity."""
from __future__ import annotations

from datetime import datetime
from typing import Callable
import sys

from .result import Result

MESSAGE_PREFIX = "cmake-ide"


class Console:
    """Simple console output handler with configurable log level.

    Levels: none < error < info < debug
    """

    LEVELS = {
        "none": 0,
        "error": 1,
        "info": 2,
        "debug": 3,
    }

    def __init__(
        self,
        level: str = "info",
        dry_run: bool = False,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if level not in self.LEVELS:
            raise ValueError(
                f"Unknown console level '{level}'. Expected one of: {', '.join(self.LEVELS)}"
            )
        self.level_name = level
        self.level = self.LEVELS[level]
        self.dry_run = dry_run
        self._clock = clock

    def info(self, message: str) -> None:
        if self.level >= self.LEVELS["info"]:
            print(f"[INFO] {message}")

    def error(self, message: str) -> None:
        if self.level >= self.LEVELS["error"]:
            print(f"[ERROR] {message}", file=sys.stderr)

    def dry(self, message: str) -> None:
        if self.dry_run:
            print(f"[DRY] {message}")

    def debug(self, message: str) -> None:
        if self.level >= self.LEVELS["debug"]:
            print(f"[DEBUG] {message}")

    def stamp(self, message: str) -> str:
        """Return ``message`` with the timestamped tool prefix."""

        return f"[{MESSAGE_PREFIX} {self._clock().strftime('%H:%M:%S')}] {message}"

    def report(self, result: Result) -> None:
        """Print the user-facing line for a failed envelope."""

        if result.ok:
            if result.message:
                self.info(result.message)
            return
        if self.level >= self.LEVELS["error"]:
            print(self.stamp(result.message), file=sys.stderr)
