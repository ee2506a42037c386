"""
CLI commands for individual catalog entries.

Usage::

    maziq software list
    maziq software show rustup
    maziq software install rust --dry-run
    maziq software uninstall cursor zed_stable
    maziq software status firefox chrome
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from maziq.core.models.action import Action
from maziq.core.models.software import Software
from maziq.ui.cli.common import (
    EventPrinter,
    action_header,
    build_config,
    history_sink,
    load_catalog,
    print_result,
    run_options,
)


_MUTATING = (Action.INSTALL, Action.UPDATE, Action.UNINSTALL)


@click.group()
def software() -> None:
    """Software — list, inspect, install, update, uninstall."""


@software.command("list")
@click.option("--category", "-c", default=None, help="Only entries in this category.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, category: str | None, as_json: bool) -> None:
    """List all known software entries."""
    catalog = load_catalog(ctx)
    entries = [
        sw for sw in catalog
        if category is None or sw.category.lower() == category.lower()
    ]

    if as_json:
        click.echo(json.dumps([sw.model_dump(mode="json") for sw in entries], indent=2))
        return

    click.echo(f"{'Key':<20} {'Name':<30} {'Kind':<5} {'Installer':<16} Category")
    click.echo("-" * 96)
    for sw in entries:
        click.echo(
            f"{sw.id:<20} {sw.display_name:<30} {sw.kind.label:<5} "
            f"{sw.installer.value:<16} {sw.category}"
        )


@software.command()
@click.argument("software_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, software_id: str, as_json: bool) -> None:
    """Show detail for one software id."""
    from maziq.adapters.registry import AdapterRegistry

    catalog = load_catalog(ctx)
    sw = catalog.get(software_id)
    if sw is None:
        click.secho(f"❌ Unknown software id '{software_id}'", fg="red", err=True)
        sys.exit(2)

    if as_json:
        click.echo(json.dumps(sw.model_dump(mode="json"), indent=2))
        return

    adapter = AdapterRegistry.default().for_software(sw)
    _print_entry(sw, {a: adapter.recipe_for(sw, a) for a in _MUTATING})


def _print_entry(sw: Software, recipes: dict) -> None:
    click.secho(f"\n📦 {sw.display_name} ({sw.id})", fg="cyan", bold=True)
    if sw.summary:
        click.echo(f"   {sw.summary}")
    click.echo(f"   Category:     {sw.category}")
    click.echo(f"   Kind:         {sw.kind.label}")
    click.echo(f"   Installer:    {sw.installer.value}")
    if sw.aliases:
        click.echo(f"   Aliases:      {', '.join(sw.aliases)}")
    click.echo(f"   Depends on:   {', '.join(sw.dependencies) or '-'}")
    click.echo(f"   Detection:    {sw.detection.description()}")
    for action, recipe in recipes.items():
        if recipe is None:
            text = "(none)"
        elif recipe.is_manual:
            text = f"manual: {recipe.manual}"
        else:
            text = recipe.command
        click.echo(f"   {action.label.capitalize() + ':':<13} {text}")
    click.echo()


def _run_action(
    ctx: click.Context,
    action: Action,
    ids: tuple[str, ...],
    dry_run: bool,
    force: bool,
    max_parallel: int,
    manifest: Path | None,
    as_json: bool,
) -> None:
    from maziq.core.use_cases.provision import run_software

    catalog = load_catalog(ctx)
    config = build_config(dry_run, force, max_parallel, manifest)
    quiet = ctx.obj.get("quiet", False)

    if not as_json:
        action_header(action, ", ".join(ids), dry_run)
    result = run_software(
        list(ids),
        action,
        catalog=catalog,
        config=config,
        engine=ctx.obj.get("engine"),
        history=history_sink(ctx),
        on_event=None if as_json else EventPrinter(quiet=quiet),
    )
    print_result(ctx, result, as_json)


@software.command()
@click.argument("ids", nargs=-1, required=True)
@run_options
@click.pass_context
def install(ctx: click.Context, ids: tuple[str, ...], **opts) -> None:
    """Install software (dependencies first)."""
    _run_action(ctx, Action.INSTALL, ids, **opts)


@software.command()
@click.argument("ids", nargs=-1, required=True)
@run_options
@click.pass_context
def update(ctx: click.Context, ids: tuple[str, ...], **opts) -> None:
    """Update software (dependencies first)."""
    _run_action(ctx, Action.UPDATE, ids, **opts)


@software.command()
@click.argument("ids", nargs=-1, required=True)
@run_options
@click.pass_context
def uninstall(ctx: click.Context, ids: tuple[str, ...], **opts) -> None:
    """Uninstall software.

    Only the named entries are removed; dependents among them go first.
    """
    _run_action(ctx, Action.UNINSTALL, ids, **opts)


@software.command()
@click.argument("ids", nargs=-1, required=True)
@click.option(
    "--manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None, help="YAML mapping of software id → latest version.",
)
@click.option("--max-parallel", "-j", type=click.IntRange(min=1), default=4, show_default=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(
    ctx: click.Context,
    ids: tuple[str, ...],
    manifest: Path | None,
    max_parallel: int,
    as_json: bool,
) -> None:
    """Show current status/version for software entries."""
    from maziq.ui.cli.status_view import show_status

    show_status(ctx, list(ids), manifest=manifest, max_parallel=max_parallel, as_json=as_json)
