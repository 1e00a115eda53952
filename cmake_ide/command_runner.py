"""Utilities for spawning cmake with optional dry-run support."""
from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Protocol, Sequence
import os
import shlex
import subprocess
import threading

import psutil


@dataclass
class CommandResult:
    """Represents the outcome of an executed command."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str


class ProcessHandle(Protocol):
    """A spawned command whose completion is delivered through ``future``."""

    name: str
    command: Sequence[str]
    pid: int | None
    future: "Future[CommandResult]"

    def is_running(self) -> bool:
        ...


def process_alive(pid: int, create_time: float | None = None) -> bool:
    """Return whether ``pid`` is a live, non-zombie process.

    ``create_time`` guards against the pid having been reused.
    """

    try:
        process = psutil.Process(pid)
        if create_time is not None and abs(process.create_time() - create_time) > 0.01:
            return False
        return process.is_running() and process.status() != psutil.STATUS_ZOMBIE
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return False


class SpawnedProcess:
    """A child process watched by a daemon thread."""

    def __init__(self, name: str, command: Sequence[str], process: subprocess.Popen[str]) -> None:
        self.name = name
        self.command = list(command)
        self.future: Future[CommandResult] = Future()
        self._process = process
        self._watcher = threading.Thread(target=self._watch, name=f"{name}-watcher", daemon=True)
        self._watcher.start()

    @property
    def pid(self) -> int:
        return self._process.pid

    def _watch(self) -> None:
        self.future.set_running_or_notify_cancel()
        try:
            stdout, stderr = self._process.communicate()
        except (OSError, ValueError) as exc:
            self.future.set_exception(exc)
            return
        self.future.set_result(
            CommandResult(
                command=self.command,
                returncode=self._process.returncode,
                stdout=stdout or "",
                stderr=stderr or "",
            )
        )

    def is_running(self) -> bool:
        if self.future.done():
            return False
        return process_alive(self.pid)

    def wait(self, timeout: float | None = None) -> CommandResult:
        return self.future.result(timeout=timeout)


class PidFile:
    """On-disk record of a running process, shared between separate invocations.

    The file holds ``<pid> <create_time>``.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> tuple[int, float | None] | None:
        try:
            fields = self.path.read_text(encoding="utf-8").split()
        except FileNotFoundError:
            return None
        try:
            pid = int(fields[0])
            create_time = float(fields[1]) if len(fields) > 1 else None
        except (IndexError, ValueError):
            return None
        return pid, create_time

    def write(self, pid: int) -> None:
        try:
            create_time = psutil.Process(pid).create_time()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(f"{pid} {create_time}\n", encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def is_active(self) -> bool:
        entry = self.read()
        if entry is not None and process_alive(*entry):
            return True
        self.clear()
        return False


class ProcessRegistry:
    """Tracks spawned processes by logical name.

    Passing a ``pid_file`` makes the record visible to other processes.
    """

    def __init__(self) -> None:
        self._processes: Dict[str, ProcessHandle] = {}

    def track(self, handle: ProcessHandle, *, pid_file: Path | None = None) -> None:
        self._processes[handle.name] = handle
        if pid_file is not None and handle.pid is not None:
            PidFile(pid_file).write(handle.pid)

    def get(self, name: str) -> ProcessHandle | None:
        return self._processes.get(name)

    def is_active(self, name: str, *, pid_file: Path | None = None) -> bool:
        handle = self._processes.get(name)
        if handle is not None:
            if handle.is_running():
                return True
            del self._processes[name]
        if pid_file is not None:
            return PidFile(pid_file).is_active()
        return False


class CommandRunner:
    """Abstract command runner interface."""

    def spawn(
        self,
        command: Sequence[str],
        *,
        name: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        log_path: Path | None = None,
    ) -> ProcessHandle:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return " ".join(shlex.quote(part) for part in command)


class SubprocessCommandRunner(CommandRunner):
    """Command runner that starts commands via :mod:`subprocess`."""

    @staticmethod
    def _merge_environment(env: Mapping[str, str] | None) -> Dict[str, str] | None:
        if env is None:
            return None
        merged = os.environ.copy()
        merged.update(env)
        return merged

    def spawn(
        self,
        command: Sequence[str],
        *,
        name: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        log_path: Path | None = None,
    ) -> SpawnedProcess:
        """Start ``command`` without waiting for it.

        With ``log_path`` the child writes its output to that file and runs in
        its own session, so it outlives the calling process. Otherwise output
        is captured into the handle's result.
        """

        popen_args: Dict[str, Any] = {
            "cwd": str(cwd) if cwd else None,
            "env": self._merge_environment(env),
            "stdin": subprocess.DEVNULL,
            "text": True,
        }
        if log_path is None:
            process = subprocess.Popen(
                list(command), stdout=subprocess.PIPE, stderr=subprocess.PIPE, **popen_args
            )
            return SpawnedProcess(name, command, process)

        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("w", encoding="utf-8") as log:
            process = subprocess.Popen(
                list(command),
                stdout=log,
                stderr=subprocess.STDOUT,
                start_new_session=True,
                **popen_args,
            )
        return SpawnedProcess(name, command, process)


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    name: str
    cwd: str | None
    env: Dict[str, str]


@dataclass(slots=True)
class RecordedProcess:
    """Handle returned by :class:`RecordingCommandRunner`; already completed."""

    name: str
    command: Sequence[str]
    pid: int | None = None
    future: "Future[CommandResult]" = field(default_factory=Future)

    def is_running(self) -> bool:
        return not self.future.done()


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them."""

    def __init__(self) -> None:
        self.commands: List[RecordedCommand] = []

    def spawn(
        self,
        command: Sequence[str],
        *,
        name: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        log_path: Path | None = None,
    ) -> RecordedProcess:
        self.commands.append(
            RecordedCommand(
                command=list(command),
                name=name,
                cwd=str(cwd) if cwd else None,
                env=dict(env) if env else {},
            )
        )
        handle = RecordedProcess(name=name, command=list(command))
        handle.future.set_result(CommandResult(command=list(command), returncode=0, stdout="", stderr=""))
        return handle

    def iter_formatted(self, *, workspace: Path | None = None) -> Iterable[str]:
        default_cwd = str(workspace) if workspace else None
        for record in self.commands:
            cmd = self.format_command(record.command)
            cwd = record.cwd or default_cwd
            parts: List[str] = [record.name]
            if cwd:
                parts.append(f"(cwd={cwd})")
            parts.append(cmd)
            yield " ".join(parts)


__all__ = [
    "CommandResult",
    "CommandRunner",
    "PidFile",
    "ProcessHandle",
    "ProcessRegistry",
    "RecordedCommand",
    "RecordedProcess",
    "RecordingCommandRunner",
    "SpawnedProcess",
    "SubprocessCommandRunner",
    "process_alive",
]
