"""Locating, loading and merging cmake-ide settings files."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence

import json
import os
import tomllib

import yaml

from .build_config import BuildConfig

ConfigLoader = Callable[[Any], Mapping[str, Any]]

SETTINGS_STEM = "cmake-ide"
CONFIG_DIR_ENV = "CMAKE_IDE_CONFIG_DIR"
DEFAULT_SOURCE_EXTENSIONS = (".c", ".cpp", ".C", ".cxx", ".cc", ".h", ".hpp")

FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": lambda stream: tomllib.load(stream),
    ".json": lambda stream: json.load(stream),
    ".yaml": lambda stream: yaml.safe_load(stream),
    ".yml": lambda stream: yaml.safe_load(stream),
}
"""Mapping of file suffixes to loader callables."""


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Load and decode a configuration mapping from ``path``."""

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS)) or "<none>"
        raise ValueError(
            f"Unsupported configuration file extension: {suffix}. Supported: {supported}"
        )

    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"

    with path.open(mode, **kwargs) as handle:
        try:
            data = loader(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in '{path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")

    return data


def find_settings_file(directory: Path) -> Path | None:
    """Return the ``cmake-ide.<ext>`` file inside ``directory``, if any."""

    if not directory.is_dir():
        return None

    found: Path | None = None
    for path in sorted(directory.iterdir()):
        if not path.is_file() or path.stem != SETTINGS_STEM:
            continue
        if path.suffix.lower() not in FILE_LOADERS:
            continue
        if found is not None:
            raise ValueError(
                f"Multiple configuration files found for '{SETTINGS_STEM}': '{found.name}' and '{path.name}'. "
                "Only one format per configuration entry is allowed."
            )
        found = path
    return found


def merge_mappings(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """Deep merge two mapping objects."""

    result: Dict[str, Any] = dict(base)
    for key, value in overlay.items():
        existing = result.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            result[key] = merge_mappings(existing, value)
        else:
            result[key] = value
    return result


def normalize_string_list(value: Any, *, field_name: str | None = None) -> List[str]:
    """Coerce ``value`` into a list of trimmed strings."""

    if value is None:
        return []

    if isinstance(value, (str, bytes)):
        text = str(value).strip()
        return [text] if text else []

    if isinstance(value, Sequence):
        items: List[str] = []
        for item in value:
            if not isinstance(item, (str, bytes)):
                label = f"{field_name} " if field_name else ""
                raise TypeError(f"{label}entries must be strings")
            text = str(item).strip()
            if text:
                items.append(text)
        return items

    label = f"{field_name} " if field_name else ""
    raise TypeError(f"{label}must be a string or sequence of strings")


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, Mapping):
        raise TypeError(f"[{name}] must be a table")
    return section


@dataclass(slots=True)
class Settings:
    executable: str = "cmake"
    build_dir: str = "build"
    build_type: str | None = None
    generate_options: List[str] = field(default_factory=list)
    build_options: List[str] = field(default_factory=list)
    process_name: str = "cmake-ide-configure"
    source_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_EXTENSIONS))
    build_target: str | None = None
    launch_target: str | None = None
    console_level: str = "info"
    sources: List[Path] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Settings":
        cmake_section = _section(data, "cmake")
        targets_section = _section(data, "targets")
        console_section = _section(data, "console")

        extensions = cmake_section.get("source_extensions")
        return cls(
            executable=str(cmake_section.get("executable", "cmake")),
            build_dir=str(cmake_section.get("build_dir", "build")),
            build_type=_optional_str(cmake_section.get("build_type")),
            generate_options=normalize_string_list(
                cmake_section.get("generate_options"), field_name="cmake.generate_options"
            ),
            build_options=normalize_string_list(
                cmake_section.get("build_options"), field_name="cmake.build_options"
            ),
            process_name=str(cmake_section.get("process_name", "cmake-ide-configure")),
            source_extensions=(
                normalize_string_list(extensions, field_name="cmake.source_extensions")
                if extensions is not None
                else list(DEFAULT_SOURCE_EXTENSIONS)
            ),
            build_target=_optional_str(targets_section.get("build")),
            launch_target=_optional_str(targets_section.get("launch")),
            console_level=str(console_section.get("level", "info")),
        )

    def resolve_build_dir(self, source_dir: Path) -> Path:
        path = Path(os.path.expanduser(self.build_dir))
        return path if path.is_absolute() else source_dir / path

    def apply_to(self, config: BuildConfig) -> None:
        """Copy option and target selections into ``config``."""

        config.set_generate_options(self.generate_options)
        config.set_build_options(self.build_options)
        if self.build_type and config.get_build_type() is None:
            config.set_build_type(self.build_type)
        if self.build_target:
            config.set_build_target(self.build_target)
        if self.launch_target:
            config.set_launch_target(self.launch_target)


def _split_config_values(values: Iterable[str]) -> List[str]:
    parts: List[str] = []
    for value in values:
        if not value:
            continue
        for segment in value.split(os.pathsep):
            trimmed = segment.strip()
            if trimmed:
                parts.append(trimmed)
    return parts


def resolve_config_directories(project_root: Path, extra: Iterable[str] = ()) -> List[Path]:
    """Return settings directories in increasing precedence order."""

    directories: List[Path] = [project_root]
    env_value = os.environ.get(CONFIG_DIR_ENV)
    candidates = _split_config_values([env_value] if env_value else [])
    candidates.extend(_split_config_values(extra))
    for entry in candidates:
        path = Path(os.path.expanduser(entry))
        if not path.is_absolute():
            path = project_root / path
        directories.append(path)

    ordered: List[Path] = []
    for path in directories:
        if path in ordered:
            ordered.remove(path)
        ordered.append(path)
    return ordered


def load_settings(project_root: Path, extra_dirs: Iterable[str] = ()) -> Settings:
    """Merge every settings file found for ``project_root`` into :class:`Settings`."""

    merged: Dict[str, Any] = {}
    sources: List[Path] = []
    for directory in resolve_config_directories(project_root, extra_dirs):
        path = find_settings_file(directory)
        if path is None:
            continue
        merged = merge_mappings(merged, load_config_file(path))
        sources.append(path)

    settings = Settings.from_mapping(merged)
    settings.sources = sources
    return settings


__all__ = [
    "CONFIG_DIR_ENV",
    "ConfigLoader",
    "DEFAULT_SOURCE_EXTENSIONS",
    "FILE_LOADERS",
    "SETTINGS_STEM",
    "Settings",
    "find_settings_file",
    "load_config_file",
    "load_settings",
    "merge_mappings",
    "normalize_string_list",
    "resolve_config_directories",
]
