from __future__ import annotations

import json
import logging
import subprocess
import threading
from typing import Any, Dict, IO, List, Optional

from application.ports import ExecutionOutput
from config import DEFAULT_LIMITS
from core.errors import ScriptExecutionError, ScriptTimeoutError

logger = logging.getLogger("things_bridge.jxa")

OSASCRIPT = "osascript"

_CHUNK_SIZE = 64 * 1024
# Grace period for pipe readers once the child is gone.
_DRAIN_TIMEOUT = 1.0


class _BoundedCapture:
    """Drain a child's stdout and stderr, killing it once together they exceed `limit` bytes."""

    def __init__(self, proc: subprocess.Popen, limit: int) -> None:
        self.proc = proc
        self.limit = limit
        self.total = 0
        self.overflowed = False
        self._chunks: Dict[str, List[bytes]] = {"stdout": [], "stderr": []}
        self._lock = threading.Lock()
        self._threads = [
            threading.Thread(target=self._drain, args=(name, stream), daemon=True)
            for name, stream in (("stdout", proc.stdout), ("stderr", proc.stderr))
        ]
        for thread in self._threads:
            thread.start()

    def _drain(self, name: str, stream: IO[bytes]) -> None:
        try:
            while True:
                chunk = stream.read1(_CHUNK_SIZE)
                if not chunk:
                    break
                with self._lock:
                    if self.overflowed:
                        continue
                    self.total += len(chunk)
                    self._chunks[name].append(chunk)
                    if self.total > self.limit:
                        self.overflowed = True
                        self.proc.kill()
        finally:
            stream.close()

    def join(self) -> None:
        for thread in self._threads:
            thread.join(_DRAIN_TIMEOUT)

    def text(self, name: str, max_bytes: Optional[int] = None) -> str:
        with self._lock:
            data = b"".join(self._chunks[name])
        if max_bytes is not None:
            data = data[:max_bytes]
        # A cut may land inside a multi-byte character.
        return data.decode("utf-8", errors="ignore" if max_bytes is not None else "replace")


class OsascriptExecutor:
    """Run JXA through `osascript -l JavaScript`.

    The script and its JSON parameters are separate argv entries; no shell
    is involved, so nothing needs quoting. Output is read as it arrives and
    the child is killed as soon as it exceeds `max_buffer` bytes.
    """

    def __init__(self, max_buffer: int = DEFAULT_LIMITS.jxa_max_buffer, binary: str = OSASCRIPT) -> None:
        self.max_buffer = max_buffer
        self.binary = binary

    def command(self, script: str, params: Optional[Dict[str, Any]] = None) -> List[str]:
        payload = json.dumps(params or {}, ensure_ascii=False)
        return [self.binary, "-l", "JavaScript", "-e", script, payload]

    def execute(self, script: str, params: Dict[str, Any], timeout: float) -> ExecutionOutput:
        logger.debug("Executing JXA script (%d chars, %d params)", len(script), len(params or {}))
        try:
            proc = subprocess.Popen(
                self.command(script, params),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise ScriptExecutionError(f"cannot launch {self.binary}: {exc}") from exc

        capture = _BoundedCapture(proc, self.max_buffer)
        try:
            returncode = proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            proc.kill()
            proc.wait()
            capture.join()
            logger.error("JXA execution timed out after %ss", timeout)
            raise ScriptTimeoutError(timeout) from exc
        capture.join()

        if capture.overflowed:
            logger.error("JXA output exceeded %d bytes; script killed", self.max_buffer)
            raise ScriptExecutionError(
                f"output exceeded {self.max_buffer} bytes",
                stdout=capture.text("stdout", self.max_buffer),
                returncode=returncode,
            )

        stdout = capture.text("stdout")
        stderr = capture.text("stderr")
        if returncode != 0:
            logger.error("JXA exited with %s: %s", returncode, stderr.strip())
            raise ScriptExecutionError(
                stderr.strip() or f"osascript exited with status {returncode}",
                stdout=stdout,
                stderr=stderr,
                returncode=returncode,
            )
        if stderr.strip():
            logger.warning("JXA stderr output: %s", stderr.strip())
        return ExecutionOutput(stdout=stdout.strip(), stderr=stderr)


__all__ = ["OsascriptExecutor"]
