"""
Action, TaskState and TaskOutcome — the execution contract.

The orchestrator asks for an Action; the execution engine answers with
a TaskOutcome. The engine NEVER raises for a failing installer: exit
codes, timeouts and spawn failures are all captured in the outcome.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from maziq.core.models.status import Status


class Action(str, Enum):
    """What a task does to its software."""

    INSTALL = "install"
    UPDATE = "update"
    UNINSTALL = "uninstall"
    STATUS = "status"

    @property
    def is_mutating(self) -> bool:
        """Whether the action changes the host (everything but status)."""
        return self is not Action.STATUS

    @property
    def label(self) -> str:
        return self.value


class TaskState(str, Enum):
    """Task lifecycle: pending → running → one terminal state."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self not in (TaskState.PENDING, TaskState.RUNNING)


class TaskOutcome(BaseModel):
    """Terminal result of one task.

    ``satisfied`` marks skips for work that was already done before the
    run started (already installed, already up to date). Those skips
    neither block dependents nor count against the run's exit status.
    """

    model_config = ConfigDict(frozen=True)

    state: TaskState
    version: str | None = None
    exit_code: int | None = None
    diagnostic: str = ""
    reason: str = ""
    command: str = ""
    satisfied: bool = False
    dry_run: bool = False
    detected: Status | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.state is TaskState.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.state is TaskState.FAILED

    @property
    def unblocks_dependents(self) -> bool:
        """Whether tasks gated on this one may proceed."""
        if self.state is TaskState.SUCCEEDED:
            return True
        return self.state is TaskState.SKIPPED and (self.satisfied or self.dry_run)

    @property
    def message(self) -> str:
        """One-line human summary of the outcome."""
        if self.state is TaskState.FAILED:
            first = self.diagnostic.strip().splitlines()[-1:] if self.diagnostic else []
            code = f"exit {self.exit_code}" if self.exit_code is not None else "error"
            return f"{code}: {first[0]}" if first else code
        if self.state is TaskState.SUCCEEDED:
            return f"version {self.version}" if self.version else self.reason
        return self.reason

    @classmethod
    def success(
        cls,
        version: str | None = None,
        reason: str = "",
        **kwargs: Any,
    ) -> TaskOutcome:
        """Create a succeeded outcome."""
        return cls(state=TaskState.SUCCEEDED, version=version, reason=reason, **kwargs)

    @classmethod
    def failure(
        cls,
        diagnostic: str,
        exit_code: int | None = None,
        **kwargs: Any,
    ) -> TaskOutcome:
        """Create a failed outcome."""
        return cls(
            state=TaskState.FAILED,
            diagnostic=diagnostic,
            exit_code=exit_code,
            **kwargs,
        )

    @classmethod
    def skip(cls, reason: str, **kwargs: Any) -> TaskOutcome:
        """Create a skipped outcome."""
        return cls(state=TaskState.SKIPPED, reason=reason, **kwargs)

    @classmethod
    def cancel(cls, reason: str = "cancelled", **kwargs: Any) -> TaskOutcome:
        """Create a cancelled outcome."""
        return cls(state=TaskState.CANCELLED, reason=reason, **kwargs)
