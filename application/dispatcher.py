from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

from application.operations import OPERATIONS, Operation
from application.ports import ScriptExecutor
from application.runner import ScriptRunner
from config import DEFAULT_LIMITS, ServerLimits
from core.errors import (
    BridgeError,
    InternalError,
    InvalidParamsError,
    MethodNotFoundError,
    ScriptReportedError,
)
from core.validation import validate_string

logger = logging.getLogger("things_bridge.dispatch")


class OperationDispatcher:
    """Route a tool call to its handler and turn the outcome into a response.

    Holds no per-call state: every call gets its own `ScriptRunner`, so the
    dispatcher can be shared freely.
    """

    def __init__(
        self,
        executor: ScriptExecutor,
        limits: ServerLimits = DEFAULT_LIMITS,
        *,
        check_running: bool = True,
        operations: Mapping[str, Operation] = OPERATIONS,
    ) -> None:
        self.executor = executor
        self.limits = limits
        self.check_running = check_running
        self.operations = operations

    def dispatch(self, name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        operation = self.operations.get(name)
        if operation is None:
            raise MethodNotFoundError(f"Unknown tool: {name}")
        if args is None:
            args = {}
        if not isinstance(args, dict):
            raise InvalidParamsError("arguments must be an object", "arguments")
        self.ensure_request_size(name, args)

        runner = ScriptRunner(self.executor, self.limits, check_running=self.check_running)
        logger.debug("Dispatching %s with %s", name, sorted(args))
        try:
            return operation.handler(runner, args)
        except ScriptReportedError as exc:
            if operation.not_found_code and exc.is_not_found:
                item_id = validate_string(args.get("id"), "id")
                logger.info("%s not found: %s", operation.subject, item_id)
                return {
                    "success": False,
                    "message": f"{operation.subject} not found: {item_id}",
                    "error": operation.not_found_code,
                }
            logger.error("Tool %s failed: %s", name, exc)
            raise
        except BridgeError as exc:
            logger.error("Tool %s failed: %s", name, exc)
            raise
        except Exception as exc:
            logger.exception("Tool %s failed unexpectedly", name)
            raise InternalError(f"Tool execution failed: {exc}") from exc

    def ensure_request_size(self, name: str, args: Dict[str, Any]) -> None:
        try:
            encoded = json.dumps({"name": name, "arguments": args}, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise InvalidParamsError(f"arguments are not JSON serializable: {exc}", "arguments") from exc
        size = len(encoded.encode("utf-8"))
        if size > self.limits.max_request_size:
            raise InvalidParamsError(
                f"Request too large: {size} bytes (max: {self.limits.max_request_size})",
                "arguments",
            )


__all__ = ["OperationDispatcher"]
