"""
Task orchestrator — dependency-gated, bounded-parallel task execution.

Flow:
    order → tasks (with gates) → dispatch ready tasks → collect outcomes
          → cascade skips → RunReport

Scheduling rules:
    - A task is ready when every gate task has ended in a state that
      unblocks dependents (succeeded, or an already-satisfied/dry-run
      skip). Gates are the task's dependencies, or its dependents for
      uninstall (prerequisites are removed last).
    - A gate ending failed/skipped/cancelled marks the task
      skipped("dependency failed") without running it. Blocked tasks
      are settled until nothing changes, so the skip cascades.
    - Ready tasks are dispatched in resolver order, bounded by the
      global cap (``max_parallel``) and by per-lock-group caps.
    - Status checks have no gates and ignore lock-group caps.

Concurrency model:
    The dispatcher thread owns scheduling; it blocks only in
    ``concurrent.futures.wait(FIRST_COMPLETED)``, so readiness is driven
    by completions. Every state transition happens under ``_lock`` and
    its TaskEvent is published after the lock is released.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from collections.abc import Iterator
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any

from maziq.core.catalog import Catalog
from maziq.core.engine.executor import ExecutionEngine
from maziq.core.engine.resolver import dependents_of
from maziq.core.models.action import Action, TaskOutcome, TaskState
from maziq.core.models.run import RunConfig
from maziq.core.models.task import Task, TaskEvent
from maziq.core.persistence.history import HistoryRecord, HistorySink
from maziq.core.services.event_bus import EventBus, Subscription

logger = logging.getLogger(__name__)

DEPENDENCY_FAILED = "dependency failed"

_MARKERS = {
    TaskState.SUCCEEDED: "✓",
    TaskState.FAILED: "✗",
    TaskState.SKIPPED: "⊘",
    TaskState.CANCELLED: "■",
}


@dataclass
class RunReport:
    """Result of one orchestrated run."""

    action: Action
    tasks: list[Task] = field(default_factory=list)
    dry_run: bool = False
    was_cancelled: bool = False
    duration_ms: int = 0

    def count(self, state: TaskState) -> int:
        return sum(1 for t in self.tasks if t.state is state)

    @property
    def total(self) -> int:
        return len(self.tasks)

    @property
    def succeeded(self) -> int:
        return self.count(TaskState.SUCCEEDED)

    @property
    def failed(self) -> int:
        return self.count(TaskState.FAILED)

    @property
    def skipped(self) -> int:
        return self.count(TaskState.SKIPPED)

    @property
    def cancelled(self) -> int:
        return self.count(TaskState.CANCELLED)

    @property
    def failures(self) -> list[Task]:
        return [t for t in self.tasks if t.state is TaskState.FAILED]

    @property
    def ok(self) -> bool:
        """Whether the requested work is done.

        Status checks never fail a run. Otherwise any failure fails it,
        and a skip or cancellation does too unless it is an
        already-satisfied or dry-run skip.
        """
        if self.action is Action.STATUS:
            return True
        for task in self.tasks:
            if task.state is TaskState.SUCCEEDED:
                continue
            outcome = task.outcome
            if task.state is TaskState.SKIPPED and outcome and (outcome.satisfied or outcome.dry_run):
                continue
            return False
        return True

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    @property
    def status(self) -> str:
        if self.ok:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def get(self, software_id: str) -> Task | None:
        for task in self.tasks:
            if task.software_id == software_id:
                return task
        return None

    def summary(self) -> str:
        """Multi-line human summary: counts, then failed tasks."""
        lines = [
            f"{self.action.label}: {self.succeeded} succeeded, {self.failed} failed, "
            f"{self.skipped} skipped, {self.cancelled} cancelled"
            + (" (dry-run)" if self.dry_run else "")
        ]
        for task in self.failures:
            outcome = task.outcome
            lines.append(f"  {_MARKERS[TaskState.FAILED]} {task.software_id}: "
                         f"{outcome.message if outcome else 'failed'}")
            if outcome and outcome.diagnostic:
                lines.extend(f"      {line}" for line in outcome.diagnostic.splitlines())
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action.value,
            "status": self.status,
            "exit_code": self.exit_code,
            "dry_run": self.dry_run,
            "cancelled": self.was_cancelled,
            "duration_ms": self.duration_ms,
            "counts": {
                "total": self.total,
                "succeeded": self.succeeded,
                "failed": self.failed,
                "skipped": self.skipped,
                "cancelled": self.cancelled,
            },
            "tasks": [
                {
                    "id": t.id,
                    "software_id": t.software_id,
                    "state": t.state.value,
                    "message": t.outcome.message if t.outcome else "",
                    "version": t.outcome.version if t.outcome else None,
                    "command": t.outcome.command if t.outcome else "",
                    "diagnostic": t.outcome.diagnostic if t.outcome else "",
                    "status": (
                        t.outcome.detected.model_dump(mode="json")
                        if t.outcome and t.outcome.detected else None
                    ),
                    "started_at": t.started_at,
                    "ended_at": t.ended_at,
                }
                for t in self.tasks
            ],
        }


class TaskOrchestrator:
    """Schedules a resolved order onto a bounded worker pool.

    Args:
        catalog: Read-only catalog; shared by all workers without locking.
        engine: Executes one task.
        history: Receives one record per succeeded mutating task.
    """

    def __init__(
        self,
        catalog: Catalog,
        engine: ExecutionEngine | None = None,
        history: HistorySink | None = None,
    ):
        self._catalog = catalog
        self._engine = engine or ExecutionEngine()
        self._history = history

    def build_tasks(self, order: list[str], action: Action) -> list[Task]:
        """One task per id, gated on in-run dependencies (or dependents for uninstall)."""
        in_run = set(order)
        reverse = dependents_of(order, self._catalog)
        tasks = []
        for sid in order:
            software = self._catalog.get(sid)
            if action is Action.STATUS:
                gate_ids: list[str] = []
            elif action is Action.UNINSTALL:
                gate_ids = reverse[sid]
            else:
                gate_ids = [
                    c for c in (self._catalog.canonical(d) for d in software.dependencies)
                    if c in in_run
                ]
            tasks.append(Task(
                id=_task_id(action, sid),
                software_id=sid,
                action=action,
                lock_group=software.installer.lock_group,
                gates=tuple(_task_id(action, g) for g in gate_ids),
            ))
        return tasks

    def start(
        self,
        order: list[str],
        action: Action,
        config: RunConfig,
        *,
        cancel: threading.Event | None = None,
        bus: EventBus | None = None,
        subscribe: bool = False,
    ) -> RunHandle:
        """Run in a background thread; events are available immediately.

        With ``subscribe`` the first ``events()`` call sees every event of
        the run, however many the bus buffer would have dropped.
        """
        run = _Run(
            catalog=self._catalog,
            engine=self._engine,
            history=self._history,
            tasks=self.build_tasks(order, action),
            action=action,
            config=config,
            cancel=cancel or threading.Event(),
            bus=bus or EventBus(),
        )
        subscription = run.bus.subscribe() if subscribe else None
        thread = threading.Thread(target=run.execute, name="maziq-dispatcher", daemon=True)
        thread.start()
        return RunHandle(run, thread, subscription)

    def run(
        self,
        order: list[str],
        action: Action,
        config: RunConfig,
        *,
        cancel: threading.Event | None = None,
        bus: EventBus | None = None,
    ) -> RunReport:
        """Run to completion on the calling thread."""
        run = _Run(
            catalog=self._catalog,
            engine=self._engine,
            history=self._history,
            tasks=self.build_tasks(order, action),
            action=action,
            config=config,
            cancel=cancel or threading.Event(),
            bus=bus or EventBus(),
        )
        return run.execute()

    def stream(
        self,
        order: list[str],
        action: Action,
        config: RunConfig,
        *,
        cancel: threading.Event | None = None,
    ) -> Iterator[TaskEvent]:
        """Yield TaskEvents while the run proceeds in the background."""
        handle = self.start(order, action, config, cancel=cancel, subscribe=True)
        yield from handle.events()
        handle.wait()


class RunHandle:
    """A run in progress: its event stream, its report, its cancel switch."""

    def __init__(
        self,
        run: _Run,
        thread: threading.Thread,
        subscription: Subscription | None = None,
    ):
        self._run = run
        self._thread = thread
        self._subscription = subscription

    @property
    def bus(self) -> EventBus:
        return self._run.bus

    @property
    def done(self) -> bool:
        return not self._thread.is_alive()

    def events(self) -> Iterator[TaskEvent]:
        """Events of the run, ending when the run ends.

        The subscription taken by ``start(subscribe=True)`` is handed out
        once and holds every event. Other calls replay what the bus still
        buffers, then follow live.
        """
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            subscription = self._run.bus.subscribe()
        return iter(subscription)

    def cancel(self) -> None:
        self._run.cancel.set()

    def wait(self, timeout: float | None = None) -> RunReport | None:
        """Block until the run ends; None if ``timeout`` expires first."""
        self._thread.join(timeout)
        if self._thread.is_alive():
            return None
        if self._run.error is not None:
            raise self._run.error
        return self._run.report


class _Run:
    """State of one run. The dispatcher thread owns every transition."""

    def __init__(
        self,
        *,
        catalog: Catalog,
        engine: ExecutionEngine,
        history: HistorySink | None,
        tasks: list[Task],
        action: Action,
        config: RunConfig,
        cancel: threading.Event,
        bus: EventBus,
    ):
        self.catalog = catalog
        self.engine = engine
        self.history = history
        self.tasks = tasks
        self.by_id = {t.id: t for t in tasks}
        self.action = action
        self.config = config
        self.cancel = cancel
        self.bus = bus
        self.report: RunReport | None = None
        self.error: BaseException | None = None
        self._lock = threading.Lock()
        self._running: dict[Future, Task] = {}
        self._group_running: Counter[str] = Counter()

    def execute(self) -> RunReport:
        start = time.monotonic()
        try:
            for task in self.tasks:
                self._publish(TaskEvent.for_task(task, message="queued"))
            self._loop()
        except BaseException as e:
            self.error = e
            raise
        finally:
            self.report = RunReport(
                action=self.action,
                tasks=self.tasks,
                dry_run=self.config.dry_run,
                was_cancelled=self.cancel.is_set(),
                duration_ms=int((time.monotonic() - start) * 1000),
            )
            self.bus.close()
        logger.info(
            "Run %s finished: %d ok, %d failed, %d skipped, %d cancelled",
            self.action.label, self.report.succeeded, self.report.failed,
            self.report.skipped, self.report.cancelled,
        )
        return self.report

    # ── Dispatcher ──────────────────────────────────────────────

    def _loop(self) -> None:
        with ThreadPoolExecutor(
            max_workers=self.config.max_parallel,
            thread_name_prefix="maziq-worker",
        ) as pool:
            while True:
                if self.cancel.is_set():
                    self._cancel_pending()
                else:
                    self._settle_blocked()
                    self._dispatch(pool)
                if not self._running:
                    break
                done, _ = wait(list(self._running), return_when=FIRST_COMPLETED)
                for future in done:
                    self._complete(self._running.pop(future), future)

    def _gate_states(self, task: Task) -> tuple[bool, bool]:
        """(all gates done and unblocking, any gate blocking)."""
        ready = True
        blocked = False
        for gate_id in task.gates:
            gate = self.by_id[gate_id]
            if not gate.is_terminal:
                ready = False
            elif not (gate.outcome and gate.outcome.unblocks_dependents):
                blocked = True
        return ready and not blocked, blocked

    def _settle_blocked(self) -> None:
        # Repeat until stable so the cascade does not depend on task order.
        changed = True
        while changed:
            changed = False
            for task in self.tasks:
                if task.state is not TaskState.PENDING:
                    continue
                _, blocked = self._gate_states(task)
                if blocked:
                    self._finish(task, TaskOutcome.skip(DEPENDENCY_FAILED))
                    changed = True

    def _dispatch(self, pool: ThreadPoolExecutor) -> None:
        for task in self.tasks:
            if len(self._running) >= self.config.max_parallel:
                return
            if task.state is not TaskState.PENDING:
                continue
            ready, _ = self._gate_states(task)
            if not ready:
                continue
            gated = self.action is not Action.STATUS
            if gated and self._group_running[task.lock_group] >= self.config.limit_for(task.lock_group):
                continue

            with self._lock:
                task.transition(TaskState.RUNNING)
                event = TaskEvent.for_task(task, message="started")
            self._publish(event)
            if gated:
                self._group_running[task.lock_group] += 1
            self._running[pool.submit(self._work, task)] = task

    def _cancel_pending(self) -> None:
        for task in self.tasks:
            if task.state is TaskState.PENDING:
                self._finish(task, TaskOutcome.cancel())

    def _complete(self, task: Task, future: Future) -> None:
        if self.action is not Action.STATUS:
            self._group_running[task.lock_group] -= 1
        outcome = future.result()
        self._finish(task, outcome)

        if (
            self.history is not None
            and self.action.is_mutating
            and outcome.state is TaskState.SUCCEEDED
        ):
            software = self.catalog.get(task.software_id)
            record = HistoryRecord(
                software_id=task.software_id,
                action=self.action,
                version=outcome.version,
                source=software.installer.value,
            )
            try:
                self.history.append(record)
            except Exception as e:
                logger.error("History sink failed for %s: %s", task.id, e)

    def _finish(self, task: Task, outcome: TaskOutcome) -> None:
        with self._lock:
            task.finish(outcome)
            event = TaskEvent.for_task(task, message=outcome.message)
        level = logging.WARNING if outcome.failed else logging.INFO
        logger.log(level, "%s %s: %s", _MARKERS.get(task.state, "?"), task.id, outcome.message)
        self._publish(event)

    # ── Worker side ─────────────────────────────────────────────

    def _work(self, task: Task) -> TaskOutcome:
        software = self.catalog.get(task.software_id)

        def on_output(line: str) -> None:
            with self._lock:
                task.output.append(line)
                event = TaskEvent.for_task(task, output_line=line)
            self._publish(event)

        try:
            return self.engine.execute(
                software,
                self.action,
                self.config,
                on_output=on_output,
                cancel=self.cancel,
            )
        except Exception as e:
            logger.exception("Unexpected error running %s", task.id)
            return TaskOutcome.failure(f"unexpected error: {e}")

    def _publish(self, event: TaskEvent) -> None:
        self.bus.publish(event)


def _task_id(action: Action, software_id: str) -> str:
    return f"{action.value}:{software_id}"
