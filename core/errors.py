"""Error taxonomy shared by every layer of the bridge.

Each error carries the JSON-RPC code it is reported with, so the MCP server
can turn any `BridgeError` into a protocol error without knowing where it
came from.
"""

from __future__ import annotations

from typing import Optional

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# JXA errAENoSuchObject: raised by Things when a specifier resolves to nothing.
NO_SUCH_OBJECT = -1728

THINGS_NOT_RUNNING_MESSAGE = "Things 3 is not running. Please launch Things 3 and try again."
THINGS_CHECK_FAILED_MESSAGE = "Failed to check if Things 3 is running"
JXA_TIMEOUT_MESSAGE = "JXA execution timed out"
JXA_FAILED_PREFIX = "JXA execution failed: "

MAX_RAW_OUTPUT = 500


class BridgeError(RuntimeError):
    code = INTERNAL_ERROR


class InvalidParamsError(BridgeError, ValueError):
    code = INVALID_PARAMS

    def __init__(self, message: str, field_name: str = "") -> None:
        super().__init__(message)
        self.field_name = field_name


class MethodNotFoundError(BridgeError):
    code = METHOD_NOT_FOUND


class InternalError(BridgeError):
    code = INTERNAL_ERROR


class ScriptExecutionError(InternalError):
    """osascript failed, produced garbage, or overflowed its buffer."""

    def __init__(
        self,
        message: str,
        *,
        stdout: str = "",
        stderr: str = "",
        returncode: Optional[int] = None,
        prefixed: bool = True,
    ) -> None:
        super().__init__(JXA_FAILED_PREFIX + message if prefixed else message)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode

    @property
    def raw_output(self) -> str:
        return (self.stdout or "")[:MAX_RAW_OUTPUT]


class ScriptTimeoutError(ScriptExecutionError):
    def __init__(self, timeout: float) -> None:
        super().__init__(JXA_TIMEOUT_MESSAGE, prefixed=False)
        self.timeout = timeout


class ScriptReportedError(InternalError):
    """The script ran and answered `success: false`."""

    def __init__(self, message: str, *, error_type: str = "UnknownError", script_code: int = -1) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.script_code = script_code

    @property
    def is_not_found(self) -> bool:
        return self.error_type == "NotFound" or self.script_code == NO_SUCH_OBJECT


class ThingsNotRunningError(InternalError):
    error_code = "THINGS_NOT_RUNNING"

    def __init__(self) -> None:
        super().__init__(THINGS_NOT_RUNNING_MESSAGE)


__all__ = [
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "NO_SUCH_OBJECT",
    "THINGS_NOT_RUNNING_MESSAGE",
    "THINGS_CHECK_FAILED_MESSAGE",
    "JXA_TIMEOUT_MESSAGE",
    "JXA_FAILED_PREFIX",
    "BridgeError",
    "InvalidParamsError",
    "MethodNotFoundError",
    "InternalError",
    "ScriptExecutionError",
    "ScriptTimeoutError",
    "ScriptReportedError",
    "ThingsNotRunningError",
]
