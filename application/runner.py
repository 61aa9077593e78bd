from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from application.normalizer import normalize
from application.ports import ScriptExecutor
from config import DEFAULT_LIMITS, ServerLimits
from core.errors import (
    THINGS_CHECK_FAILED_MESSAGE,
    BridgeError,
    InternalError,
    InvalidParamsError,
    ScriptTimeoutError,
    ThingsNotRunningError,
)
from infrastructure.jxa import templates

logger = logging.getLogger("things_bridge.jxa")


class ScriptRunner:
    """Run generated scripts for a single tool call.

    Created fresh per call; the only thing it remembers is that Things was
    seen running during this call.
    """

    def __init__(self, executor: ScriptExecutor, limits: ServerLimits = DEFAULT_LIMITS, *, check_running: bool = True):
        self.executor = executor
        self.limits = limits
        self._things_checked = not check_running

    def run(self, script: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self.ensure_script_size(script)
        self.ensure_things_running()
        return self._execute(script, params or {})

    def ensure_script_size(self, script: str) -> None:
        size = len(script.encode("utf-8"))
        if size > self.limits.max_script_size:
            raise InvalidParamsError(
                f"Generated JXA script too large: {size} bytes (max: {self.limits.max_script_size})",
                "script",
            )

    def ensure_things_running(self) -> None:
        if self._things_checked:
            return
        try:
            running = self._execute(templates.is_things_running(), {})
        except ScriptTimeoutError:
            raise
        except BridgeError as exc:
            logger.error("Things 3 check failed: %s", exc)
            raise InternalError(THINGS_CHECK_FAILED_MESSAGE) from exc
        if running is not True:
            raise ThingsNotRunningError()
        self._things_checked = True

    def _execute(self, script: str, params: Dict[str, Any]) -> Any:
        clean = {key: value for key, value in params.items() if value is not None}
        output = self.executor.execute(script, clean, self.limits.jxa_timeout)
        return normalize(output)


__all__ = ["ScriptRunner"]
