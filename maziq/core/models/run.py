"""
RunConfig — the explicit, per-invocation run configuration.

Threaded through the orchestrator and execution engine at call time.
There is no global dry-run or parallelism switch anywhere else.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from maziq.core.models.action import Action

DEFAULT_MAX_PARALLEL = 4

# Homebrew and rustup hold a global lock on the host.
DEFAULT_GROUP_LIMITS: dict[str, int] = {
    "homebrew": 1,
    "rustup": 1,
}

DEFAULT_TIMEOUTS: dict[Action, float] = {
    Action.INSTALL: 1800.0,
    Action.UPDATE: 1800.0,
    Action.UNINSTALL: 600.0,
    Action.STATUS: 10.0,
}


class RunConfig(BaseModel):
    """Run-level switches and limits."""

    dry_run: bool = False
    force: bool = False
    max_parallel: int = Field(default=DEFAULT_MAX_PARALLEL, ge=1)
    group_limits: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_GROUP_LIMITS),
    )
    timeouts: dict[Action, float] = Field(
        default_factory=lambda: dict(DEFAULT_TIMEOUTS),
    )
    grace_period: float = Field(default=5.0, ge=0)
    diagnostic_lines: int = Field(default=20, ge=1)
    latest_versions: dict[str, str] = Field(default_factory=dict)

    def limit_for(self, lock_group: str) -> int:
        """Concurrency cap for one lock group, never above the global cap."""
        limit = self.group_limits.get(lock_group, self.max_parallel)
        return max(1, min(limit, self.max_parallel))

    def timeout_for(self, action: Action) -> float:
        return self.timeouts.get(action, DEFAULT_TIMEOUTS[action])

    def latest_for(self, software_id: str) -> str | None:
        return self.latest_versions.get(software_id)
