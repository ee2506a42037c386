"""
Error taxonomy — fatal, pre-run failures.

Per-task execution failures are NOT exceptions: they are captured in
a ``TaskOutcome`` and only affect the failing task's dependents.
Everything here aborts the run before a single task starts.
"""

from __future__ import annotations


class MaziqError(Exception):
    """Base class for all fatal MazIQ errors."""


class ConfigError(MaziqError):
    """Raised when catalog, template or manifest configuration is invalid."""


class ResolutionError(MaziqError):
    """Raised when a requested set cannot be ordered for execution."""


class MissingDependency(ResolutionError):
    """A requested id, or one of its dependencies, is not in the catalog."""

    def __init__(self, software_id: str, required_by: str | None = None):
        self.software_id = software_id
        self.required_by = required_by
        if required_by:
            message = f"'{required_by}' depends on unknown software '{software_id}'"
        else:
            message = f"Unknown software '{software_id}'"
        super().__init__(message)


class DependencyCycle(ResolutionError):
    """The dependency relation restricted to the request has a cycle."""

    def __init__(self, members: list[str]):
        self.members = members
        path = " → ".join([*members, members[0]]) if members else "?"
        super().__init__(f"Dependency cycle detected: {path}")
