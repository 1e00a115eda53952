"""The configure state machine driving cmake."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .build_config import BUILD_TYPES, BuildConfig
from .command_runner import CommandRunner, ProcessRegistry
from .config_loader import Settings
from .console import Console
from .query import ensure_build_directory
from .result import ErrorCode, Err, Ok, Result

PROJECT_FILE_NAME = "CMakeLists.txt"

BuildTypePrompt = Callable[[Sequence[str]], Optional[str]]


class ConfigureState(str, Enum):
    IDLE = "idle"
    PREFLIGHT_CHECKING = "preflight-checking"
    AWAITING_BUILD_TYPE = "awaiting-build-type"
    DIRECTORY_ENSURING = "directory-ensuring"
    SPAWNING = "spawning"


def is_source_file(path: str | Path, extensions: Sequence[str]) -> bool:
    return Path(path).suffix in extensions


def pid_file_for(build_dir: Path, process_name: str) -> Path:
    return build_dir / f".{process_name}.pid"


def log_file_for(build_dir: Path, process_name: str) -> Path:
    return build_dir / f"{process_name}.log"


def configure_command(executable: str, config: BuildConfig) -> List[str]:
    build_dir = config.get_build_dir()
    if build_dir is None:
        raise ValueError("Build directory must be set before composing the configure command")
    return [
        executable,
        "-D",
        "CMAKE_EXPORT_COMPILE_COMMANDS=ON",
        "-B",
        str(build_dir),
        "-S",
        str(config.get_cwd()),
        "-D",
        f"CMAKE_BUILD_TYPE={config.get_build_type()}",
        *config.generate_options,
    ]


class ConfigureOrchestrator:
    """Runs one configure cycle at a time for a :class:`BuildConfig`.

    The spawned cmake process is not waited on; the success envelope carries
    its handle so callers can observe completion through ``handle.future``.
    A pid file in the build directory keeps separate invocations from
    configuring the same build directory concurrently. With ``detach`` cmake
    output goes to a log file next to it and the process outlives the caller.
    """

    def __init__(
        self,
        *,
        config: BuildConfig,
        settings: Settings,
        command_runner: CommandRunner,
        console: Console,
        prompt_build_type: BuildTypePrompt | None = None,
        registry: ProcessRegistry | None = None,
        detach: bool = False,
    ) -> None:
        self._config = config
        self._settings = settings
        self._command_runner = command_runner
        self._console = console
        self._prompt_build_type = prompt_build_type
        self._registry = registry if registry is not None else ProcessRegistry()
        self._detach = detach
        self.state = ConfigureState.IDLE

    def should_reconfigure(self, path: str | Path) -> bool:
        return is_source_file(path, self._settings.source_extensions)

    def on_file_saved(self, path: str | Path) -> Result | None:
        """Configure when ``path`` is a recognised source file; ``None`` otherwise."""

        if not self.should_reconfigure(path):
            self._console.debug(f"Ignoring save of {path}")
            return None
        return self.configure()

    def configure(self) -> Result:
        try:
            return self._configure()
        finally:
            self.state = ConfigureState.IDLE

    def _configure(self) -> Result:
        self.state = ConfigureState.PREFLIGHT_CHECKING
        name = self._settings.process_name
        source_dir = self._config.get_cwd()
        build_dir = self._settings.resolve_build_dir(source_dir)
        pid_file = pid_file_for(build_dir, name)
        if self._registry.is_active(name, pid_file=pid_file):
            return Err(ErrorCode.PROCESS_ALREADY_RUNNING, f"Process '{name}' is already running")

        if not (source_dir / PROJECT_FILE_NAME).is_file():
            return Err(
                ErrorCode.CANNOT_FIND_CONFIGURATION_FILE,
                f"Cannot find {PROJECT_FILE_NAME} in {source_dir}",
            )

        if self._config.get_build_type() is None:
            self.state = ConfigureState.AWAITING_BUILD_TYPE
            chosen = self._prompt_build_type(BUILD_TYPES) if self._prompt_build_type else None
            if not chosen:
                return Err(ErrorCode.BUILD_TYPE_NOT_SELECTED, "No build type selected")
            self._config.set_build_type(chosen)

        self.state = ConfigureState.DIRECTORY_ENSURING
        self._config.update_build_dir(build_dir)
        ensured = ensure_build_directory(self._config)
        if not ensured.ok:
            return ensured

        self.state = ConfigureState.SPAWNING
        command = configure_command(self._settings.executable, self._config)
        self._console.info(f"Configuring {source_dir} ({self._config.get_build_type()})")
        self._console.debug(self._command_runner.format_command(command))
        try:
            handle = self._command_runner.spawn(
                command,
                name=name,
                cwd=source_dir,
                log_path=log_file_for(build_dir, name) if self._detach else None,
            )
        except OSError as exc:
            return Err(
                ErrorCode.CANNOT_START_PROCESS,
                f"Cannot start {self._settings.executable}: {exc.strerror or exc}",
            )
        self._registry.track(handle, pid_file=pid_file)
        return Ok(handle)


__all__ = [
    "ConfigureOrchestrator",
    "ConfigureState",
    "PROJECT_FILE_NAME",
    "configure_command",
    "is_source_file",
    "log_file_for",
    "pid_file_for",
]
