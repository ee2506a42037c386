"""
Provision use case — resolve, run, report.

The vertical slice behind ``maziq software install|update|uninstall``
and ``maziq onboard fresh|update``: template lookup, dependency
resolution, orchestrated execution, history. Fatal configuration and
resolution errors come back as ``result.error`` (exit code 2) before
any task starts.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from maziq.core.catalog import Catalog
from maziq.core.config.template_loader import find_template, validate_template
from maziq.core.engine.executor import ExecutionEngine
from maziq.core.engine.orchestrator import RunReport, TaskOrchestrator
from maziq.core.engine.resolver import plan
from maziq.core.errors import ConfigError, ResolutionError
from maziq.core.models.action import Action
from maziq.core.models.run import RunConfig
from maziq.core.models.template import Template
from maziq.core.persistence.history import HistorySink
from maziq.core.services.event_bus import EventBus, Listener

logger = logging.getLogger(__name__)

EXIT_FATAL = 2


@dataclass
class ProvisionResult:
    """Result of a provisioning request."""

    action: Action
    order: list[str] = field(default_factory=list)
    report: RunReport | None = None
    template: Template | None = None
    error: str | None = None

    @property
    def exit_code(self) -> int:
        if self.error:
            return EXIT_FATAL
        return self.report.exit_code if self.report else 0

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"action": self.action.value}
        if self.error:
            result["error"] = self.error
            result["exit_code"] = self.exit_code
            return result
        if self.template:
            result["template"] = self.template.name
        result["order"] = self.order
        if self.report:
            result["report"] = self.report.to_dict()
        result["exit_code"] = self.exit_code
        return result


def plan_software(ids: Iterable[str], action: Action, catalog: Catalog) -> ProvisionResult:
    """Resolve only; never executes anything."""
    result = ProvisionResult(action=action)
    try:
        result.order = plan(ids, catalog, action)
    except ResolutionError as e:
        result.error = str(e)
    return result


def run_software(
    ids: Iterable[str],
    action: Action,
    *,
    catalog: Catalog,
    config: RunConfig,
    engine: ExecutionEngine | None = None,
    history: HistorySink | None = None,
    on_event: Listener | None = None,
    cancel: threading.Event | None = None,
) -> ProvisionResult:
    """Resolve ``ids`` with their dependencies and run ``action`` on all of them.

    Args:
        ids: Requested software ids or aliases.
        action: Install, update or uninstall.
        catalog: Catalog to resolve against.
        config: Run configuration (dry-run, caps, timeouts, manifest).
        engine: Execution engine (default: real process runner).
        history: Sink for succeeded mutating tasks.
        on_event: Called for every TaskEvent (live rendering).
        cancel: Run-scoped cancellation signal.
    """
    result = plan_software(ids, action, catalog)
    if result.error:
        logger.error("Resolution failed: %s", result.error)
        return result

    logger.info("Planned %s for %d entries: %s", action.label, len(result.order), result.order)
    result.report = _execute(
        result.order, action, catalog, config, engine, history, on_event, cancel,
    )
    return result


def run_template(
    name: str,
    action: Action,
    *,
    catalog: Catalog,
    templates: Path,
    config: RunConfig,
    engine: ExecutionEngine | None = None,
    history: HistorySink | None = None,
    on_event: Listener | None = None,
    cancel: threading.Event | None = None,
) -> ProvisionResult:
    """Run ``action`` over every entry of a named template."""
    try:
        template = find_template(name, templates)
        ids = validate_template(template, catalog)
    except ConfigError as e:
        logger.error("Template error: %s", e)
        return ProvisionResult(action=action, error=str(e))

    result = run_software(
        ids,
        action,
        catalog=catalog,
        config=config,
        engine=engine,
        history=history,
        on_event=on_event,
        cancel=cancel,
    )
    result.template = template
    return result


def _execute(
    order: list[str],
    action: Action,
    catalog: Catalog,
    config: RunConfig,
    engine: ExecutionEngine | None,
    history: HistorySink | None,
    on_event: Listener | None,
    cancel: threading.Event | None,
) -> RunReport:
    """Run in the background so Ctrl-C can cancel cooperatively."""
    bus = EventBus()
    if on_event is not None:
        bus.add_listener(on_event)
    orchestrator = TaskOrchestrator(catalog, engine=engine, history=history)
    handle = orchestrator.start(order, action, config, cancel=cancel, bus=bus)
    try:
        report = handle.wait()
    except KeyboardInterrupt:
        logger.warning("Interrupted; cancelling running tasks")
        handle.cancel()
        report = handle.wait()
    if report is None:
        raise RuntimeError("run ended without a report")
    return report
