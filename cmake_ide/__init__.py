"""Drive cmake and expose its file-based API codemodel."""
from __future__ import annotations

from .build_config import BUILD_TYPES, BuildConfig
from .cli import main
from .orchestrator import ConfigureOrchestrator, ConfigureState
from .result import Err, ErrorCode, Ok, Result, make_result

__all__ = [
    "BUILD_TYPES",
    "BuildConfig",
    "ConfigureOrchestrator",
    "ConfigureState",
    "Err",
    "ErrorCode",
    "Ok",
    "Result",
    "main",
    "make_result",
]
