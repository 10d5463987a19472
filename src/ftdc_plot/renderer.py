"""Invoke the external gnuplot binary against a compiled script."""


import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderResult:
    """Outcome of one renderer invocation."""

    ok: bool
    returncode: int | None = None
    output: str = ""
    error: str | None = None

    def to_payload(self) -> dict[str, object]:
        """Serialize the result for tool output."""
        return {
            "ok": self.ok,
            "returncode": self.returncode,
            "error": self.error,
            "renderer_output": self.output,
        }


class GnuplotRenderer:
    """Run ``gnuplot <script>`` and capture combined stdout and stderr.

    Failures (missing binary, non-zero exit, timeout) are reported through
    :class:`RenderResult` and never raised.
    """

    def __init__(
        self,
        binary: str = "gnuplot",
        timeout: float | None = None,
        cwd: Path | None = None,
    ) -> None:
        self.binary = binary
        self.timeout = timeout
        self.cwd = cwd

    def run(self, script_path: Path) -> RenderResult:
        command = [self.binary, str(script_path)]
        logger.debug("running %s (timeout=%s)", command, self.timeout)
        try:
            completed = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=self.timeout,
                cwd=self.cwd,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            return RenderResult(
                ok=False,
                output=_decode(exc.output),
                error=f"timed out after {self.timeout} seconds",
            )
        except OSError as exc:
            return RenderResult(ok=False, error=str(exc))

        output = _decode(completed.stdout)
        if completed.returncode != 0:
            return RenderResult(
                ok=False,
                returncode=completed.returncode,
                output=output,
                error=f"exit status {completed.returncode}",
            )
        return RenderResult(ok=True, returncode=0, output=output)


def _decode(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")
