"""
Fake process runner — test double for everything that spawns processes.

Stands in for ``ProcessRunner`` so the engine, orchestrator and CLI can
be exercised without touching the host. Streamed commands succeed by
default; captured checks report "not found" unless a capture is configured.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from maziq.adapters.shell.process import CaptureResult, ProcessResult, ProcessRunner


@dataclass
class ScriptedRun:
    """Canned behavior for one streamed command."""

    returncode: int = 0
    lines: tuple[str, ...] = ("[mock] executed",)
    delay: float = 0.0
    ignore_termination: bool = False


@dataclass
class _Stats:
    active: int = 0
    peak: int = 0
    snapshots: list[frozenset[str]] = field(default_factory=list)


class FakeRunner(ProcessRunner):
    """Universal fake runner for testing.

    Commands are matched exactly first, then by substring, against the
    configured responses.

    Args:
        delay: Default seconds each streamed command "runs" for.
    """

    def __init__(self, delay: float = 0.0):
        super().__init__(shell="/bin/sh", poll_interval=0.01)
        self._default = ScriptedRun(delay=delay)
        self._responses: dict[str, ScriptedRun] = {}
        self._captures: dict[str, CaptureResult] = {}
        self._call_log: list[str] = []
        self._capture_log: list[list[str]] = []
        self._capture_timeouts: list[float] = []
        self._running: set[str] = set()
        self._stats = _Stats()
        self._lock = threading.Lock()

    # ── Configuration ───────────────────────────────────────────

    def set_response(self, command: str, run: ScriptedRun) -> None:
        self._responses[command] = run

    def set_delay(self, seconds: float) -> None:
        """How long unconfigured commands "run" for."""
        self._default = ScriptedRun(delay=seconds)

    def set_failure(self, command: str, error: str = "mock failure", returncode: int = 1) -> None:
        """Configure a command to exit non-zero after printing ``error``."""
        self._responses[command] = ScriptedRun(returncode=returncode, lines=(error,))

    def set_capture(self, argv: list[str] | str, returncode: int = 0, output: str = "") -> None:
        """Configure a captured check; ``argv`` may be given as a joined string."""
        key = argv if isinstance(argv, str) else " ".join(argv)
        self._captures[key] = CaptureResult(returncode=returncode, output=output)

    def set_capture_timeout(self, argv: list[str] | str) -> None:
        key = argv if isinstance(argv, str) else " ".join(argv)
        self._captures[key] = CaptureResult(returncode=None, timed_out=True)

    def reset(self) -> None:
        """Clear call logs and custom responses."""
        with self._lock:
            self._call_log.clear()
            self._capture_log.clear()
            self._capture_timeouts.clear()
            self._responses.clear()
            self._captures.clear()
            self._stats = _Stats()

    # ── Inspection ──────────────────────────────────────────────

    @property
    def call_log(self) -> list[str]:
        """Every streamed command, in start order."""
        with self._lock:
            return list(self._call_log)

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    @property
    def capture_log(self) -> list[list[str]]:
        with self._lock:
            return list(self._capture_log)

    @property
    def capture_timeouts(self) -> list[float]:
        """Timeout passed with each captured check, parallel to ``capture_log``."""
        with self._lock:
            return list(self._capture_timeouts)

    @property
    def peak_concurrency(self) -> int:
        """Highest number of commands seen running at once."""
        return self._stats.peak

    @property
    def snapshots(self) -> list[frozenset[str]]:
        """Commands running at the moment each command started."""
        with self._lock:
            return list(self._stats.snapshots)

    # ── ProcessRunner interface ─────────────────────────────────

    def run_capture(self, argv: list[str], timeout: float = 30.0) -> CaptureResult:
        with self._lock:
            self._capture_log.append(list(argv))
            self._capture_timeouts.append(timeout)
        result = self._captures.get(" ".join(argv))
        if result is None:
            return CaptureResult(returncode=None, not_found=True)
        return result

    def stream(
        self,
        command: str,
        *,
        timeout: float,
        on_line: Callable[[str], None] | None = None,
        cancel: threading.Event | None = None,
        grace_period: float = 5.0,
    ) -> ProcessResult:
        run = self._lookup(command)
        start = time.monotonic()
        with self._lock:
            self._call_log.append(command)
            self._running.add(command)
            self._stats.active += 1
            self._stats.peak = max(self._stats.peak, self._stats.active)
            self._stats.snapshots.append(frozenset(self._running))

        try:
            for line in run.lines:
                if on_line is not None:
                    on_line(line)
            timed_out = cancelled = False
            if run.delay:
                waiter = cancel or threading.Event()
                limit = min(run.delay, timeout)
                if waiter.wait(limit):
                    cancelled = True
                elif run.delay > timeout:
                    timed_out = True
        finally:
            with self._lock:
                self._running.discard(command)
                self._stats.active -= 1

        interrupted = timed_out or cancelled
        return ProcessResult(
            returncode=-15 if interrupted else run.returncode,
            lines=list(run.lines),
            timed_out=timed_out,
            cancelled=cancelled,
            ignored_termination=interrupted and run.ignore_termination,
            elapsed_ms=int((time.monotonic() - start) * 1000),
        )

    def _lookup(self, command: str) -> ScriptedRun:
        if command in self._responses:
            return self._responses[command]
        for key, run in self._responses.items():
            if key in command:
                return run
        return self._default
