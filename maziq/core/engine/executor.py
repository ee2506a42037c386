"""
Execution engine — runs one action for one Software entry.

    recipe → validate → dry-run? → short-circuit? → spawn → classify

The engine NEVER raises for installer failures. Every way a command
can go wrong (non-zero exit, timeout, spawn error, cancellation) comes
back as a ``TaskOutcome``; the orchestrator decides what that means
for dependents.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from maziq.adapters.registry import AdapterRegistry
from maziq.adapters.shell.process import ProcessResult, ProcessRunner
from maziq.core.engine.detector import StatusDetector
from maziq.core.models.action import Action, TaskOutcome
from maziq.core.models.run import RunConfig
from maziq.core.models.software import Software
from maziq.core.models.status import Status, StatusState

logger = logging.getLogger(__name__)

OutputObserver = Callable[[str], None]


class ExecutionEngine:
    """Drives installer commands through the process runner.

    Args:
        runner: Spawns installer processes.
        registry: Installer kind → adapter.
        detector: Used for short-circuits and post-install version capture.
    """

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        registry: AdapterRegistry | None = None,
        detector: StatusDetector | None = None,
    ):
        self._runner = runner or ProcessRunner()
        self._registry = registry or AdapterRegistry.default()
        self._detector = detector or StatusDetector(runner=self._runner, registry=self._registry)

    @property
    def detector(self) -> StatusDetector:
        return self._detector

    def execute(
        self,
        software: Software,
        action: Action,
        config: RunConfig,
        *,
        on_output: OutputObserver | None = None,
        cancel: threading.Event | None = None,
    ) -> TaskOutcome:
        """Execute ``action`` for ``software`` under ``config``."""
        if action is Action.STATUS:
            return self._status(software, config, on_output)

        try:
            adapter = self._registry.for_software(software)
        except LookupError as e:
            return TaskOutcome.failure(str(e))

        recipe = adapter.recipe_for(software, action)
        if recipe is None:
            return TaskOutcome.failure(
                f"no {action.label} command for {software.id} ({adapter.name})"
            )
        if recipe.is_manual:
            _emit(on_output, f"manual step: {recipe.manual}")
            return TaskOutcome.skip(f"manual: {recipe.manual}")

        command = recipe.command
        is_valid, error = adapter.validate(software, command)
        if not is_valid:
            logger.warning("Refusing to run %s: %s", software.id, error)
            return TaskOutcome.failure(error, command=command)

        if config.dry_run:
            _emit(on_output, f"would run: {command}")
            return TaskOutcome.skip("dry-run", dry_run=True, command=command)

        shortcut = self._short_circuit(software, action, config, on_output)
        if shortcut is not None:
            return shortcut

        if cancel is not None and cancel.is_set():
            return TaskOutcome.cancel()

        timeout = config.timeout_for(action)
        logger.info("Running %s %s: %s", action.label, software.id, command)
        result = self._runner.stream(
            command,
            timeout=timeout,
            on_line=on_output,
            cancel=cancel,
            grace_period=config.grace_period,
        )
        return self._classify(software, action, config, command, timeout, result, on_output)

    # ── Steps ───────────────────────────────────────────────────

    def _detect(
        self,
        software: Software,
        config: RunConfig,
        on_output: OutputObserver | None,
        latest: str | None = None,
    ) -> Status:
        return self._detector.detect(
            software,
            latest,
            timeout=config.timeout_for(Action.STATUS),
            on_warning=lambda message: _emit(on_output, f"warning: {message}"),
        )

    def _status(
        self, software: Software, config: RunConfig, on_output: OutputObserver | None,
    ) -> TaskOutcome:
        status = self._detect(software, config, on_output, config.latest_for(software.id))
        return TaskOutcome.success(
            version=status.version,
            reason=status.describe(),
            detected=status,
        )

    def _short_circuit(
        self,
        software: Software,
        action: Action,
        config: RunConfig,
        on_output: OutputObserver | None,
    ) -> TaskOutcome | None:
        """Outcomes decided by the current status, without spawning."""
        if action is Action.UNINSTALL:
            status = self._detect(software, config, on_output)
            if status.state is StatusState.NOT_INSTALLED:
                return TaskOutcome.success(reason="already absent", detected=status)
            return None

        if config.force:
            return None

        if action is Action.INSTALL:
            status = self._detect(software, config, on_output, config.latest_for(software.id))
            if status.installed:
                return TaskOutcome.skip(
                    "already installed",
                    satisfied=True,
                    version=status.version,
                    detected=status,
                )
            return None

        latest = config.latest_for(software.id)
        if action is Action.UPDATE and latest:
            status = self._detect(software, config, on_output, latest)
            if status.state is StatusState.UP_TO_DATE:
                return TaskOutcome.skip(
                    "up to date",
                    satisfied=True,
                    version=status.version,
                    detected=status,
                )
        return None

    def _classify(
        self,
        software: Software,
        action: Action,
        config: RunConfig,
        command: str,
        timeout: float,
        result: ProcessResult,
        on_output: OutputObserver | None,
    ) -> TaskOutcome:
        meta = {"elapsed_ms": result.elapsed_ms}
        tail = result.tail(config.diagnostic_lines)

        if result.error:
            return TaskOutcome.failure(
                f"failed to start: {result.error}", command=command, metadata=meta,
            )

        if result.cancelled:
            if result.ignored_termination:
                return TaskOutcome.failure(
                    _with_tail(
                        f"timed out: process ignored termination for "
                        f"{config.grace_period:g}s after cancel",
                        tail,
                    ),
                    command=command,
                    metadata=meta,
                )
            return TaskOutcome.cancel(command=command, metadata=meta)

        if result.timed_out:
            return TaskOutcome.failure(
                _with_tail(f"timed out after {timeout:g}s", tail),
                command=command,
                metadata=meta,
            )

        if result.returncode != 0:
            return TaskOutcome.failure(
                "\n".join(tail) if tail else "(no output captured)",
                exit_code=result.returncode,
                command=command,
                metadata=meta,
            )

        if action is Action.UNINSTALL:
            return TaskOutcome.success(command=command, metadata=meta)

        # Single re-detection; a detection miss here does not fail the task.
        status = self._detect(software, config, on_output, config.latest_for(software.id))
        return TaskOutcome.success(
            version=status.version,
            command=command,
            detected=status,
            metadata=meta,
        )


def _emit(on_output: OutputObserver | None, line: str) -> None:
    if on_output is not None:
        on_output(line)


def _with_tail(head: str, tail: list[str]) -> str:
    if not tail:
        return head
    return head + "\n" + "\n".join(tail)
