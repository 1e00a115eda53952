"""State describing one CMake build directory."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

BUILD_TYPES = ("Debug", "Release", "RelWithDebInfo", "MinSizeRel")
FILE_API_ROOT = Path(".cmake") / "api" / "v1"


def query_dir_for(build_dir: Path) -> Path:
    return build_dir / FILE_API_ROOT / "query"


def reply_dir_for(build_dir: Path) -> Path:
    return build_dir / FILE_API_ROOT / "reply"


@dataclass(slots=True)
class BuildConfig:
    """Mutable build directory state shared by the configure and reply layers.

    ``query_dir`` and ``reply_dir`` are derived from ``build_dir`` and are only
    refreshed by :meth:`update_build_dir`.
    """

    build_dir: Path | None = None
    query_dir: Path | None = None
    reply_dir: Path | None = None
    generate_options: List[str] = field(default_factory=list)
    build_options: List[str] = field(default_factory=list)
    build_type: str | None = None
    build_target: str | None = None
    launch_target: str | None = None
    source_dir: Path | None = None

    def set_build_dir(self, path: str | Path) -> None:
        self.build_dir = Path(path)

    def update_build_dir(self, path: str | Path) -> None:
        build_dir = Path(path)
        self.build_dir = build_dir
        self.query_dir = query_dir_for(build_dir)
        self.reply_dir = reply_dir_for(build_dir)

    def get_build_dir(self) -> Path | None:
        return self.build_dir

    def get_query_dir(self) -> Path | None:
        return self.query_dir

    def get_reply_dir(self) -> Path | None:
        return self.reply_dir

    def set_build_type(self, build_type: str | None) -> None:
        # Values outside BUILD_TYPES are forwarded to cmake untouched.
        self.build_type = build_type

    def get_build_type(self) -> str | None:
        return self.build_type

    def set_build_target(self, name: str | None) -> None:
        self.build_target = name

    def set_launch_target(self, name: str | None) -> None:
        self.launch_target = name

    def set_generate_options(self, options: Sequence[str]) -> None:
        self.generate_options = list(options)

    def set_build_options(self, options: Sequence[str]) -> None:
        self.build_options = list(options)

    def get_cwd(self) -> Path:
        """Return the source tree root used for configuration."""

        if self.source_dir is not None:
            return self.source_dir
        return Path.cwd()


__all__ = [
    "BUILD_TYPES",
    "BuildConfig",
    "FILE_API_ROOT",
    "query_dir_for",
    "reply_dir_for",
]
