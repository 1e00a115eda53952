from __future__ import annotations

from datetime import datetime
import io
import unittest
from contextlib import redirect_stderr, redirect_stdout

from cmake_ide.console import Console
from cmake_ide.result import Err, ErrorCode, Ok


def fixed_clock() -> datetime:
    return datetime(2024, 5, 17, 9, 30, 15)


class ConsoleTests(unittest.TestCase):
    def test_report_failure_is_timestamped(self) -> None:
        console = Console("error", clock=fixed_clock)
        buffer = io.StringIO()
        with redirect_stderr(buffer):
            console.report(Err(ErrorCode.NOT_CONFIGURED, "CMake project is not configured"))
        self.assertEqual(buffer.getvalue(), "[cmake-ide 09:30:15] CMake project is not configured\n")

    def test_none_level_is_silent(self) -> None:
        console = Console("none")
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            console.info("hello")
            console.report(Err(ErrorCode.NOT_CONFIGURED, "boom"))
        self.assertEqual(out.getvalue(), "")
        self.assertEqual(err.getvalue(), "")

    def test_levels(self) -> None:
        console = Console("info")
        out = io.StringIO()
        with redirect_stdout(out):
            console.info("shown")
            console.debug("hidden")
            console.report(Ok(data=None, message="done"))
        self.assertEqual(out.getvalue(), "[INFO] shown\n[INFO] done\n")

    def test_dry_messages(self) -> None:
        out = io.StringIO()
        with redirect_stdout(out):
            Console("none", dry_run=True).dry("cmake -B build")
        self.assertEqual(out.getvalue(), "[DRY] cmake -B build\n")

    def test_unknown_level(self) -> None:
        with self.assertRaises(ValueError):
            Console("verbose")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
