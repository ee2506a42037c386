"""
Status use case — installed state for selected or all catalog entries.

Status checks are read-only: no dependency expansion, no gating, and
they never make the run fail.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from maziq.core.catalog import Catalog
from maziq.core.engine.executor import ExecutionEngine
from maziq.core.engine.orchestrator import TaskOrchestrator
from maziq.core.errors import MissingDependency
from maziq.core.models.action import Action
from maziq.core.models.run import RunConfig
from maziq.core.models.software import Software
from maziq.core.models.status import Status


@dataclass
class StatusEntry:
    software: Software
    status: Status


@dataclass
class StatusResult:
    """Statuses in request order."""

    entries: list[StatusEntry] = field(default_factory=list)
    error: str | None = None

    @property
    def exit_code(self) -> int:
        return 2 if self.error else 0

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"error": self.error}
        return {
            "software": [
                {
                    "id": e.software.id,
                    "name": e.software.display_name,
                    **e.status.model_dump(mode="json"),
                }
                for e in self.entries
            ],
        }


def check_status(
    ids: Iterable[str] | None,
    *,
    catalog: Catalog,
    config: RunConfig,
    engine: ExecutionEngine | None = None,
) -> StatusResult:
    """Detect the status of ``ids`` (every catalog entry when None)."""
    result = StatusResult()
    order: list[str] = []
    for sid in (catalog.ids if ids is None else ids):
        canonical = catalog.canonical(sid)
        if canonical is None:
            result.error = str(MissingDependency(sid))
            return result
        if canonical not in order:
            order.append(canonical)

    report = TaskOrchestrator(catalog, engine=engine).run(order, Action.STATUS, config)
    for task in report.tasks:
        outcome = task.outcome
        status = outcome.detected if outcome and outcome.detected else Status.unknown(
            outcome.message if outcome else "not checked"
        )
        result.entries.append(StatusEntry(software=catalog.get(task.software_id), status=status))
    return result
