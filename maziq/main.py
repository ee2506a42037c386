"""
MazIQ — CLI entrypoint.

Usage:
    maziq --help
    maziq software install rust
    maziq onboard fresh --dry-run
    maziq versions
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from maziq import __version__
from maziq.core.models.action import Action
from maziq.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="maziq")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--catalog", "catalog_path", type=click.Path(dir_okay=False, path_type=Path),
    default=None, help="Catalog YAML (default: MAZIQ_CATALOG or built-in).",
)
@click.option(
    "--templates", "templates_path", type=click.Path(file_okay=False, path_type=Path),
    default=None, help="Template directory (default: MAZIQ_TEMPLATE_DIR or bundled).",
)
@click.option(
    "--history", "history_path", type=click.Path(dir_okay=False, path_type=Path),
    default=None, help="History file (default: MAZIQ_HISTORY_FILE or ~/.maziq/history.ndjson).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    catalog_path: Path | None,
    templates_path: Path | None,
    history_path: Path | None,
) -> None:
    """MazIQ — provision a developer machine from a software catalog."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["catalog_path"] = catalog_path
    ctx.obj["templates_dir"] = templates_path
    ctx.obj["history_path"] = history_path

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet, environ=os.environ),
        log_file=os.environ.get("MAZIQ_LOG_FILE"),
        log_file_level=os.environ.get("MAZIQ_LOG_FILE_LEVEL"),
        trace_internals=debug,
    )


@cli.command("plan")
@click.argument("ids", nargs=-1, required=True)
@click.option(
    "--action", "-a", "action_name",
    type=click.Choice([a.value for a in Action if a is not Action.STATUS]),
    default=Action.INSTALL.value, show_default=True,
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan_cmd(ctx: click.Context, ids: tuple[str, ...], action_name: str, as_json: bool) -> None:
    """Show the execution order for IDS without running anything."""
    from maziq.core.use_cases.provision import plan_software
    from maziq.ui.cli.common import load_catalog

    catalog = load_catalog(ctx)
    result = plan_software(list(ids), Action(action_name), catalog)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)

    click.secho(f"\n📋 {result.action.label} plan", fg="cyan", bold=True)
    for i, sid in enumerate(result.order, 1):
        sw = catalog.get(sid)
        deps = f"  (after {', '.join(sw.dependencies)})" if sw and sw.dependencies else ""
        click.echo(f"   {i:>2}. {sid}{deps}")
    click.echo()


@cli.command()
@click.option(
    "--manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None, help="YAML mapping of software id → latest version.",
)
@click.option("--max-parallel", "-j", type=click.IntRange(min=1), default=4, show_default=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def versions(ctx: click.Context, manifest: Path | None, max_parallel: int, as_json: bool) -> None:
    """Show installed versions for the whole catalog."""
    from maziq.ui.cli.status_view import show_status

    show_status(ctx, None, manifest=manifest, max_parallel=max_parallel, as_json=as_json)


@cli.command()
@click.option("-n", "limit", type=click.IntRange(min=1), default=20, show_default=True)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, limit: int, as_json: bool) -> None:
    """Show recent install/update/uninstall history."""
    from maziq.ui.cli.common import history_sink

    records = history_sink(ctx).read_recent(limit)

    if as_json:
        click.echo(json.dumps([r.model_dump(mode="json") for r in records], indent=2))
        return

    if not records:
        click.secho("No history recorded yet.", fg="yellow")
        return

    for r in records:
        version = f" {r.version}" if r.version else ""
        click.echo(f"   {r.timestamp}  {r.action.label:<9} {r.software_id}{version}  [{r.source}]")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def adapters(as_json: bool) -> None:
    """Show installer adapters and whether their tools are on PATH."""
    from maziq.adapters.registry import AdapterRegistry

    status = AdapterRegistry.default().adapter_status()

    if as_json:
        click.echo(json.dumps(status, indent=2))
        return

    for name, info in status.items():
        marker, color = ("✓", "green") if info["available"] else ("✗", "red")
        click.secho(f"   {marker} {name:<16}", fg=color, nl=False)
        click.echo(f" {info['type']}")


# ── Register sub-command groups from maziq/ui/cli/ ────────────────

from maziq.ui.cli.onboard import onboard
from maziq.ui.cli.software import software

cli.add_command(software)
cli.add_command(onboard)


if __name__ == "__main__":
    cli()
