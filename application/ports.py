from dataclasses import dataclass
from typing import Any, Dict, Protocol


@dataclass(frozen=True)
class ExecutionOutput:
    stdout: str
    stderr: str = ""


class ScriptExecutor(Protocol):
    def execute(self, script: str, params: Dict[str, Any], timeout: float) -> ExecutionOutput:
        """Run `script` with `params` passed out of band.

        Raises ScriptTimeoutError when `timeout` (seconds) elapses and
        ScriptExecutionError on any other launch or exit failure.
        """
        ...
