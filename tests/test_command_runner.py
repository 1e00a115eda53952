from __future__ import annotations

from pathlib import Path
import os
import sys
import tempfile
import unittest
from unittest.mock import patch

import psutil

from cmake_ide.command_runner import (
    PidFile,
    ProcessRegistry,
    RecordedProcess,
    RecordingCommandRunner,
    SubprocessCommandRunner,
    process_alive,
)


class RecordingCommandRunnerTests(unittest.TestCase):
    def test_spawn_records_and_completes(self) -> None:
        runner = RecordingCommandRunner()
        handle = runner.spawn(["cmake", "-B", "build dir"], name="configure", cwd=Path("/src"))

        self.assertFalse(handle.is_running())
        self.assertEqual(handle.future.result().returncode, 0)
        self.assertEqual(runner.commands[0].command, ["cmake", "-B", "build dir"])
        self.assertEqual(runner.commands[0].cwd, "/src")

    def test_iter_formatted_quotes_arguments(self) -> None:
        runner = RecordingCommandRunner()
        runner.spawn(["cmake", "-B", "build dir"], name="configure")
        lines = list(runner.iter_formatted(workspace=Path("/work")))
        self.assertEqual(lines, ["configure (cwd=/work) cmake -B 'build dir'"])


class SubprocessCommandRunnerTests(unittest.TestCase):
    def test_spawn_delivers_result_through_future(self) -> None:
        runner = SubprocessCommandRunner()
        handle = runner.spawn(
            [sys.executable, "-c", "import sys; print('configured'); sys.exit(3)"],
            name="configure",
        )
        result = handle.wait(timeout=30)

        self.assertEqual(result.returncode, 3)
        self.assertEqual(result.stdout.strip(), "configured")
        self.assertFalse(handle.is_running())

    def test_long_running_process_is_active(self) -> None:
        runner = SubprocessCommandRunner()
        handle = runner.spawn([sys.executable, "-c", "import time; time.sleep(30)"], name="configure")
        registry = ProcessRegistry()
        registry.track(handle)
        try:
            self.assertTrue(handle.is_running())
            self.assertTrue(registry.is_active("configure"))
        finally:
            psutil.Process(handle.pid).kill()
            handle.wait(timeout=30)
        self.assertFalse(registry.is_active("configure"))
        self.assertIsNone(registry.get("configure"))

    def test_vanished_process_is_not_running(self) -> None:
        runner = SubprocessCommandRunner()
        handle = runner.spawn([sys.executable, "-c", "import time; time.sleep(30)"], name="configure")
        try:
            with patch("cmake_ide.command_runner.psutil.Process", side_effect=psutil.NoSuchProcess(handle.pid)):
                self.assertFalse(handle.is_running())
        finally:
            psutil.Process(handle.pid).kill()
            handle.wait(timeout=30)

    def test_merges_environment(self) -> None:
        runner = SubprocessCommandRunner()
        handle = runner.spawn(
            [sys.executable, "-c", "import os; print(os.environ['CMAKE_IDE_TEST'])"],
            name="env",
            env={"CMAKE_IDE_TEST": "yes"},
        )
        self.assertEqual(handle.wait(timeout=30).stdout.strip(), "yes")


    def test_log_path_sends_output_to_file(self) -> None:
        with tempfile.TemporaryDirectory() as temp:
            log_path = Path(temp) / "build" / "configure.log"
            runner = SubprocessCommandRunner()
            handle = runner.spawn(
                [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"],
                name="configure",
                log_path=log_path,
            )
            result = handle.wait(timeout=30)

            self.assertEqual(result.returncode, 0)
            self.assertEqual(result.stdout, "")
            self.assertCountEqual(log_path.read_text().split(), ["out", "err"])


class PidFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self.temp_dir.name) / ".cmake-ide-configure.pid"

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_live_process_is_active(self) -> None:
        PidFile(self.path).write(os.getpid())
        self.assertTrue(PidFile(self.path).is_active())
        self.assertTrue(process_alive(os.getpid()))

    def test_dead_pid_is_cleared(self) -> None:
        self.path.write_text("999999999 0\n")
        self.assertFalse(PidFile(self.path).is_active())
        self.assertFalse(self.path.exists())

    def test_reused_pid_is_not_active(self) -> None:
        self.path.write_text(f"{os.getpid()} 1.0\n")
        self.assertFalse(PidFile(self.path).is_active())

    def test_garbage_is_ignored(self) -> None:
        self.path.write_text("not-a-pid\n")
        self.assertIsNone(PidFile(self.path).read())
        self.assertFalse(PidFile(self.path).is_active())


class ProcessRegistryTests(unittest.TestCase):
    def test_unknown_name_is_inactive(self) -> None:
        self.assertFalse(ProcessRegistry().is_active("configure"))

    def test_pid_file_is_shared_between_registries(self) -> None:
        with tempfile.TemporaryDirectory() as temp:
            pid_file = Path(temp) / ".configure.pid"
            handle = RecordedProcess(name="configure", command=["cmake"], pid=os.getpid())
            ProcessRegistry().track(handle, pid_file=pid_file)

            self.assertTrue(ProcessRegistry().is_active("configure", pid_file=pid_file))
            self.assertFalse(ProcessRegistry().is_active("configure"))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
