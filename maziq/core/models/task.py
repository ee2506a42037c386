"""
Task and TaskEvent — per-run scheduling state.

A Task is one (software, action) pair inside a run. Its state only
moves forward: pending → running → terminal, or pending → terminal
when it is skipped or cancelled before dispatch. The orchestrator owns
every transition; TaskEvents are the broadcast record of them.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from maziq.core.models.action import Action, TaskOutcome, TaskState


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


_TRANSITIONS: dict[TaskState, frozenset[TaskState]] = {
    TaskState.PENDING: frozenset({
        TaskState.RUNNING,
        TaskState.SKIPPED,
        TaskState.CANCELLED,
    }),
    TaskState.RUNNING: frozenset({
        TaskState.SUCCEEDED,
        TaskState.FAILED,
        TaskState.SKIPPED,
        TaskState.CANCELLED,
    }),
}


class InvalidTransition(RuntimeError):
    """A task was asked to leave a terminal state or move backwards."""


class Task(BaseModel):
    """One unit of scheduled work."""

    id: str
    software_id: str
    action: Action
    lock_group: str = ""
    gates: tuple[str, ...] = ()       # task ids that must finish first
    state: TaskState = TaskState.PENDING
    output: list[str] = Field(default_factory=list)
    started_at: str | None = None
    ended_at: str | None = None
    outcome: TaskOutcome | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def transition(self, new_state: TaskState) -> None:
        """Move to ``new_state``; raises on any non-forward move."""
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise InvalidTransition(
                f"Task {self.id}: {self.state.value} → {new_state.value} is not allowed"
            )
        self.state = new_state
        if new_state is TaskState.RUNNING:
            self.started_at = _now_iso()
        elif new_state.is_terminal:
            self.ended_at = _now_iso()

    def finish(self, outcome: TaskOutcome) -> None:
        """Commit a terminal outcome."""
        self.transition(outcome.state)
        self.outcome = outcome


class TaskEvent(BaseModel):
    """Broadcast record of a task transition or output line."""

    model_config = ConfigDict(frozen=True)

    task_id: str
    software_id: str
    action: Action
    state: TaskState
    timestamp: str = Field(default_factory=_now_iso)
    output_line: str | None = None
    message: str = ""
    seq: int = 0

    @classmethod
    def for_task(
        cls,
        task: Task,
        output_line: str | None = None,
        message: str = "",
    ) -> TaskEvent:
        return cls(
            task_id=task.id,
            software_id=task.software_id,
            action=task.action,
            state=task.state,
            output_line=output_line,
            message=message,
        )
