"""Creation of the CMake file-based API query layout."""
from __future__ import annotations

from .build_config import BuildConfig
from .result import ErrorCode, Err, Ok, Result

CODEMODEL_QUERY_FILE = "codemodel-v2"


def ensure_query_file(config: BuildConfig) -> Result:
    """Write the empty ``codemodel-v2`` marker that asks cmake for a codemodel reply."""

    query_dir = config.get_query_dir()
    if query_dir is None:
        return Err(ErrorCode.NOT_CONFIGURED, "Build directory is not configured")

    if not query_dir.exists():
        try:
            query_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return Err(
                ErrorCode.CANNOT_CREATE_DIRECTORY,
                f"Cannot create query directory {query_dir}: {exc.strerror or exc}",
            )

    query_file = query_dir / CODEMODEL_QUERY_FILE
    try:
        query_file.touch()
    except OSError as exc:
        return Err(
            ErrorCode.CANNOT_CREATE_CODEMODEL_QUERY_FILE,
            f"Cannot create codemodel query file {query_file}: {exc.strerror or exc}",
        )
    return Ok(query_file)


def ensure_build_directory(config: BuildConfig) -> Result:
    """Create the build directory and its query file when it does not exist yet.

    An existing build directory is left alone, so repeated configure runs do
    not touch the filesystem.
    """

    build_dir = config.get_build_dir()
    if build_dir is None:
        return Err(ErrorCode.NOT_CONFIGURED, "Build directory is not configured")

    if build_dir.exists():
        return Ok(build_dir)

    try:
        build_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return Err(
            ErrorCode.CANNOT_CREATE_DIRECTORY,
            f"Cannot create build directory {build_dir}: {exc.strerror or exc}",
        )

    query = ensure_query_file(config)
    if not query.ok:
        return query
    return Ok(build_dir)


__all__ = ["CODEMODEL_QUERY_FILE", "ensure_build_directory", "ensure_query_file"]
