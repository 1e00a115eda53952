"""Uniform result envelopes returned by every fallible operation."""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    SUCCESS = 0
    NOT_CONFIGURED = 1
    NO_LAUNCH_TARGET_SELECTED = 2
    SELECTED_LAUNCH_TARGET_NOT_BUILT = 3
    NOT_A_LAUNCH_TARGET = 4
    NOT_EXECUTABLE = 5
    CANNOT_FIND_CONFIGURATION_FILE = 6
    CANNOT_FIND_CODEMODEL_FILE = 7
    CANNOT_CREATE_CODEMODEL_QUERY_FILE = 8
    CANNOT_DEBUG_LAUNCH_TARGET = 9
    CANNOT_CREATE_DIRECTORY = 10
    PROCESS_ALREADY_RUNNING = 11
    BUILD_TYPE_NOT_SELECTED = 12
    INVALID_REPLY = 13
    CANNOT_START_PROCESS = 14
    TARGET_NOT_FOUND = 15


@dataclass(frozen=True, slots=True)
class Ok:
    """Successful outcome carrying ``data``."""

    data: Any = None
    message: str = ""

    @property
    def status(self) -> ErrorCode:
        return ErrorCode.SUCCESS

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Err:
    """Failed outcome; ``data`` is always ``None``."""

    status: ErrorCode
    message: str

    def __post_init__(self) -> None:
        if self.status == ErrorCode.SUCCESS:
            raise ValueError("Err cannot carry the SUCCESS status")

    @property
    def data(self) -> None:
        return None

    @property
    def ok(self) -> bool:
        return False


Result = Ok | Err


def make_result(status: ErrorCode, data: Any = None, message: str = "") -> Result:
    """Build the envelope variant matching ``status``."""

    if status == ErrorCode.SUCCESS:
        return Ok(data=data, message=message)
    return Err(status=ErrorCode(status), message=message)


def status(result: Result) -> ErrorCode:
    return result.status


def data(result: Result) -> Any:
    return result.data


def message(result: Result) -> str:
    return result.message


__all__ = [
    "Err",
    "ErrorCode",
    "Ok",
    "Result",
    "data",
    "make_result",
    "message",
    "status",
]
