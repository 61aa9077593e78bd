"""Turn raw script output into data, or into one of the bridge errors."""

from __future__ import annotations

import json
import logging
from typing import Any

from application.ports import ExecutionOutput
from core.errors import MAX_RAW_OUTPUT, ScriptExecutionError, ScriptReportedError

logger = logging.getLogger("things_bridge.jxa")


def _preview(text: str) -> str:
    return text if len(text) <= MAX_RAW_OUTPUT else text[:MAX_RAW_OUTPUT] + "..."


def parse_script_output(stdout: str) -> Any:
    try:
        return json.loads(stdout)
    except (TypeError, ValueError) as exc:
        logger.error("Failed to parse JXA response: %s (raw: %r)", exc, _preview(stdout or ""))
        raise ScriptExecutionError(
            f"Invalid JXA response: {exc} (raw: {_preview(stdout or '')!r})",
            stdout=stdout or "",
        ) from exc


def normalize(output: ExecutionOutput) -> Any:
    """Return the script's `data`.

    `data` may legitimately be missing, None or False on success (the
    liveness check answers a bare boolean). A failed script raises
    ScriptReportedError keeping the script's error type and code.
    """
    payload = parse_script_output(output.stdout)
    if not isinstance(payload, dict) or not isinstance(payload.get("success"), bool):
        raise ScriptExecutionError(
            f"Invalid JXA response: missing success flag (raw: {_preview(output.stdout)!r})",
            stdout=output.stdout,
        )

    for warning in payload.get("warnings") or []:
        logger.warning("JXA: %s", warning)

    if payload["success"]:
        return payload.get("data")

    error = payload.get("error")
    if not isinstance(error, dict):
        raise ScriptExecutionError("script reported failure without error details", stdout=output.stdout)
    message = str(error.get("message") or "JXA script returned an error")
    code = error.get("code", -1)
    raise ScriptReportedError(
        message,
        error_type=str(error.get("type") or "UnknownError"),
        script_code=code if isinstance(code, int) and not isinstance(code, bool) else -1,
    )


__all__ = ["normalize", "parse_script_output"]
