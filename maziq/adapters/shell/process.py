"""
Process runner — the single place installer processes are spawned.

Two entry points:

    run_capture(argv, timeout)   short, read-only checks (--version,
                                 mdls, package listings)
    stream(command, ...)         installer commands; merged stdout/stderr
                                 is pushed line by line to an observer

Neither raises for process failures: spawn errors, timeouts and
cancellation are reported in the returned result.
"""

from __future__ import annotations

import logging
import subprocess
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class CaptureResult:
    """Outcome of a short, captured check command."""

    returncode: int | None
    output: str = ""
    not_found: bool = False
    timed_out: bool = False
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class ProcessResult:
    """Outcome of a streamed installer command."""

    returncode: int | None
    lines: list[str] = field(default_factory=list)
    timed_out: bool = False
    cancelled: bool = False
    ignored_termination: bool = False   # still alive after the grace period
    error: str = ""                     # spawn failure
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return (
            self.returncode == 0
            and not self.error
            and not self.timed_out
            and not self.cancelled
        )

    def tail(self, n: int) -> list[str]:
        return self.lines[-n:] if n > 0 else []


class ProcessRunner:
    """Spawns commands through ``subprocess``.

    Args:
        shell: Interpreter used for recipe strings (they use pipes,
            ``&&`` and ``$(...)``).
        poll_interval: Seconds between deadline/cancel checks while a
            streamed process runs.
    """

    def __init__(self, shell: str = "/bin/bash", poll_interval: float = 0.1):
        self.shell = shell
        self.poll_interval = poll_interval

    def run_capture(self, argv: list[str], timeout: float = 30.0) -> CaptureResult:
        """Run a check command and capture its output.

        stdout is preferred; tools that print their version on stderr
        fall back to it.
        """
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
                stdin=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            return CaptureResult(returncode=None, not_found=True)
        except subprocess.TimeoutExpired:
            return CaptureResult(returncode=None, timed_out=True)
        except OSError as e:
            return CaptureResult(returncode=None, error=str(e))

        output = result.stdout if (result.stdout or "").strip() else (result.stderr or "")
        return CaptureResult(returncode=result.returncode, output=output)

    def stream(
        self,
        command: str,
        *,
        timeout: float,
        on_line: Callable[[str], None] | None = None,
        cancel: threading.Event | None = None,
        grace_period: float = 5.0,
    ) -> ProcessResult:
        """Run a shell command, pushing each output line to ``on_line``.

        On timeout or cancellation the process is terminated, then
        killed if it is still alive after ``grace_period`` seconds.
        """
        start = time.monotonic()
        try:
            proc = subprocess.Popen(
                [self.shell, "-c", command],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                errors="replace",   # installer noise must not kill the reader
                bufsize=1,
            )
        except OSError as e:
            logger.error("Failed to spawn %r: %s", command, e)
            return ProcessResult(
                returncode=None,
                error=str(e),
                elapsed_ms=int((time.monotonic() - start) * 1000),
            )

        lines: list[str] = []
        reader = threading.Thread(
            target=self._pump,
            args=(proc, lines, on_line),
            name="maziq-output",
            daemon=True,
        )
        reader.start()

        deadline = start + timeout
        timed_out = False
        cancelled = False
        while True:
            try:
                proc.wait(timeout=self.poll_interval)
                break
            except subprocess.TimeoutExpired:
                pass
            if cancel is not None and cancel.is_set():
                cancelled = True
                break
            if time.monotonic() >= deadline:
                timed_out = True
                break

        ignored = False
        if proc.poll() is None:
            ignored = not self._terminate(proc, grace_period)

        reader.join(timeout=max(grace_period, 1.0))
        return ProcessResult(
            returncode=proc.returncode,
            lines=list(lines),
            timed_out=timed_out,
            cancelled=cancelled,
            ignored_termination=ignored,
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )

    # ── Internals ───────────────────────────────────────────────

    @staticmethod
    def _pump(
        proc: subprocess.Popen,
        lines: list[str],
        on_line: Callable[[str], None] | None,
    ) -> None:
        if proc.stdout is None:
            return
        for raw in proc.stdout:
            line = raw.rstrip("\r\n")
            lines.append(line)
            if on_line is not None:
                try:
                    on_line(line)
                except Exception as e:
                    logger.debug("Output observer raised: %s", e)

    @staticmethod
    def _terminate(proc: subprocess.Popen, grace_period: float) -> bool:
        """Terminate, escalating to kill. True if terminate sufficed."""
        proc.terminate()
        try:
            proc.wait(timeout=grace_period)
            return True
        except subprocess.TimeoutExpired:
            logger.warning("Process %s ignored SIGTERM; killing", proc.pid)
        proc.kill()
        try:
            proc.wait(timeout=grace_period or 1.0)
        except subprocess.TimeoutExpired:
            logger.error("Process %s survived SIGKILL", proc.pid)
        return False
