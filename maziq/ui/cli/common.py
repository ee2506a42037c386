"""
Shared CLI helpers — context lookups, run options, live event rendering.
"""

from __future__ import annotations

import functools
import json
import sys
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from maziq.core.catalog import Catalog
from maziq.core.errors import ConfigError
from maziq.core.models.action import Action, TaskState
from maziq.core.models.run import DEFAULT_MAX_PARALLEL, RunConfig
from maziq.core.models.task import TaskEvent
from maziq.core.persistence.history import HistoryWriter

_STATE_STYLE: dict[TaskState, tuple[str, str]] = {
    TaskState.SUCCEEDED: ("✓", "green"),
    TaskState.FAILED: ("✗", "red"),
    TaskState.SKIPPED: ("⊘", "yellow"),
    TaskState.CANCELLED: ("■", "magenta"),
}


def load_catalog(ctx: click.Context) -> Catalog:
    """Catalog from --catalog / MAZIQ_CATALOG / built-in; exits 2 on error."""
    from maziq.core.config.loader import load_catalog as _load

    try:
        return _load(ctx.obj.get("catalog_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)


def templates_dir(ctx: click.Context) -> Path:
    from maziq.core.config.loader import templates_dir as _templates_dir

    return _templates_dir(ctx.obj.get("templates_dir"))


def history_sink(ctx: click.Context) -> HistoryWriter:
    from maziq.core.config.loader import history_path

    return HistoryWriter(history_path(ctx.obj.get("history_path")))


def run_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every mutating command."""

    @click.option("--dry-run", is_flag=True, help="Show what would run without running it.")
    @click.option("--force", is_flag=True, help="Reinstall/update even if already satisfied.")
    @click.option(
        "--max-parallel", "-j", type=click.IntRange(min=1), default=DEFAULT_MAX_PARALLEL, show_default=True,
        help="Global cap on concurrently running tasks.",
    )
    @click.option(
        "--manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None, help="YAML mapping of software id → latest version.",
    )
    @click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper


def build_config(
    dry_run: bool = False,
    force: bool = False,
    max_parallel: int = DEFAULT_MAX_PARALLEL,
    manifest: Path | None = None,
) -> RunConfig:
    """RunConfig from CLI flags; exits 2 on a bad manifest."""
    latest: dict[str, str] = {}
    if manifest is not None:
        from maziq.core.config.loader import load_manifest

        try:
            latest = load_manifest(manifest)
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(2)
    return RunConfig(
        dry_run=dry_run,
        force=force,
        max_parallel=max_parallel,
        latest_versions=latest,
    )


class EventPrinter:
    """Renders TaskEvents as they arrive (called from worker threads)."""

    def __init__(self, *, show_output: bool = True, quiet: bool = False):
        self._lock = threading.Lock()
        self._show_output = show_output
        self._quiet = quiet

    def __call__(self, event: TaskEvent) -> None:
        with self._lock:
            self._render(event)

    def _render(self, event: TaskEvent) -> None:
        if event.output_line is not None:
            if self._show_output and not self._quiet:
                click.secho(f"     │ {event.output_line}", dim=True)
            return
        if event.state is TaskState.RUNNING:
            if not self._quiet:
                click.secho(f"   → {event.action.label} {event.software_id}", fg="cyan")
            return
        if event.state.is_terminal:
            marker, color = _STATE_STYLE[event.state]
            click.secho(f"   {marker} {event.software_id}", fg=color, nl=False)
            click.echo(f"  {event.message}" if event.message else "")


def print_result(ctx: click.Context, result: Any, as_json: bool) -> None:
    """Print a ProvisionResult (summary or JSON) and exit with its code."""
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)

    report = result.report
    if report is None:
        return

    click.echo()
    status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(report.status, "white")
    click.secho(
        f"   Result: {report.succeeded} succeeded, {report.failed} failed, "
        f"{report.skipped} skipped, {report.cancelled} cancelled",
        fg=status_color,
        bold=True,
    )
    for task in report.failures:
        outcome = task.outcome
        click.secho(f"   ✗ {task.software_id}", fg="red", nl=False)
        click.echo(f"  {outcome.message if outcome else ''}")
        if outcome and outcome.diagnostic and not ctx.obj.get("quiet"):
            for line in outcome.diagnostic.splitlines()[-10:]:
                click.echo(f"     │ {line}")
    click.echo()
    if report.exit_code:
        sys.exit(report.exit_code)


def action_header(action: Action, target: str, dry_run: bool) -> None:
    label = "[dry-run] " if dry_run else ""
    click.secho(f"\n⚡ {label}{action.label} {target}", fg="cyan", bold=True)
