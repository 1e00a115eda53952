"""Reading the codemodel reply written by cmake."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping
import json
import os

from .build_config import BuildConfig
from .result import ErrorCode, Err, Ok, Result

CODEMODEL_PATTERN = "codemodel*"
LAUNCHABLE_TARGET_TYPES = frozenset({"EXECUTABLE"})


def _load_document(path: Path) -> Result:
    try:
        with path.open("r", encoding="utf-8") as handle:
            document = json.load(handle)
    except FileNotFoundError:
        return Err(ErrorCode.INVALID_REPLY, f"Reply file {path} is missing")
    except (OSError, ValueError) as exc:
        return Err(ErrorCode.INVALID_REPLY, f"Cannot parse reply file {path}: {exc}")
    if not isinstance(document, Mapping):
        return Err(ErrorCode.INVALID_REPLY, f"Reply file {path} must contain an object at the root")
    return Ok(document)


def find_codemodel_files(reply_dir: Path) -> List[Path]:
    return sorted(path for path in reply_dir.glob(CODEMODEL_PATTERN) if path.is_file())


def list_targets(config: BuildConfig) -> Result:
    """Return the target descriptors of the first configuration in the codemodel.

    Multi-config generators produce one entry per configuration; only the
    first one is consulted.
    """

    reply_dir = config.get_reply_dir()
    if reply_dir is None or not reply_dir.is_dir():
        return Err(ErrorCode.NOT_CONFIGURED, "CMake project is not configured")

    candidates = find_codemodel_files(reply_dir)
    if not candidates:
        return Err(ErrorCode.CANNOT_FIND_CODEMODEL_FILE, f"Cannot find codemodel file in {reply_dir}")

    loaded = _load_document(candidates[0])
    if not loaded.ok:
        return loaded

    configurations = loaded.data.get("configurations")
    if not isinstance(configurations, list) or not configurations:
        return Err(ErrorCode.INVALID_REPLY, f"Codemodel {candidates[0].name} has no configurations")
    first = configurations[0]
    targets = first.get("targets", []) if isinstance(first, Mapping) else None
    if not isinstance(targets, list):
        return Err(ErrorCode.INVALID_REPLY, f"Codemodel {candidates[0].name} has malformed targets")
    return Ok(list(targets))


def target_detail(config: BuildConfig, descriptor: Mapping[str, Any]) -> Result:
    """Load the detail document referenced by ``descriptor['jsonFile']``.

    The document is re-read on every call; a configure run rewrites it.
    """

    reply_dir = config.get_reply_dir()
    if reply_dir is None:
        return Err(ErrorCode.NOT_CONFIGURED, "CMake project is not configured")
    json_file = descriptor.get("jsonFile")
    if not json_file:
        return Err(
            ErrorCode.INVALID_REPLY,
            f"Target '{descriptor.get('name', '<unnamed>')}' has no jsonFile entry",
        )
    return _load_document(reply_dir / str(json_file))


def check_launch_target(config: BuildConfig) -> Result:
    """Check a launch target is selected; on success returns the full target list."""

    if config.get_build_dir() is None:
        return Err(ErrorCode.NOT_CONFIGURED, "CMake project is not configured")
    if not config.launch_target:
        return Err(ErrorCode.NO_LAUNCH_TARGET_SELECTED, "No launch target selected")
    return list_targets(config)


def find_target(config: BuildConfig, name: str) -> Result:
    listed = list_targets(config)
    if not listed.ok:
        return listed
    for descriptor in listed.data:
        if isinstance(descriptor, Mapping) and descriptor.get("name") == name:
            return Ok(descriptor)
    return Err(ErrorCode.TARGET_NOT_FOUND, f"Target '{name}' is not part of the codemodel")


def _artifact_paths(build_dir: Path, detail: Mapping[str, Any]) -> List[Path]:
    paths: List[Path] = []
    for artifact in detail.get("artifacts", []) or []:
        if not isinstance(artifact, Mapping):
            continue
        raw = artifact.get("path")
        if not raw:
            continue
        path = Path(str(raw))
        paths.append(path if path.is_absolute() else build_dir / path)
    return paths


def resolve_launch_target(config: BuildConfig) -> Result:
    """Resolve the selected launch target to a built, executable artifact path."""

    checked = check_launch_target(config)
    if not checked.ok:
        return checked

    name = config.launch_target
    descriptor = next(
        (item for item in checked.data if isinstance(item, Mapping) and item.get("name") == name),
        None,
    )
    if descriptor is None:
        return Err(ErrorCode.NOT_A_LAUNCH_TARGET, f"Target '{name}' is not part of the codemodel")

    detail = target_detail(config, descriptor)
    if not detail.ok:
        return detail
    document: Dict[str, Any] = dict(detail.data)
    if document.get("type") not in LAUNCHABLE_TARGET_TYPES:
        return Err(
            ErrorCode.NOT_A_LAUNCH_TARGET,
            f"Target '{name}' is a {document.get('type', 'unknown')} target, not an executable",
        )

    build_dir = config.get_build_dir() or Path()
    existing = [path for path in _artifact_paths(build_dir, document) if path.is_file()]
    if not existing:
        return Err(
            ErrorCode.SELECTED_LAUNCH_TARGET_NOT_BUILT,
            f"Launch target '{name}' has not been built yet",
        )
    executable = existing[0]
    if not os.access(executable, os.X_OK):
        return Err(ErrorCode.NOT_EXECUTABLE, f"{executable} is not executable")
    return Ok(executable)


__all__ = [
    "CODEMODEL_PATTERN",
    "LAUNCHABLE_TARGET_TYPES",
    "check_launch_target",
    "find_codemodel_files",
    "find_target",
    "list_targets",
    "resolve_launch_target",
    "target_detail",
]
