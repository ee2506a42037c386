"""
CLI commands for template-driven onboarding.

Usage::

    maziq onboard templates
    maziq onboard fresh
    maziq onboard fresh -t rust --dry-run
    maziq onboard update -t "AI CLI" -j 4
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from maziq.core.config.template_loader import DEFAULT_TEMPLATE
from maziq.core.errors import ConfigError
from maziq.core.models.action import Action
from maziq.ui.cli.common import (
    EventPrinter,
    action_header,
    build_config,
    history_sink,
    load_catalog,
    print_result,
    run_options,
    templates_dir,
)


@click.group()
def onboard() -> None:
    """Onboarding — provision a machine from a named template."""


@onboard.command("templates")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def templates_cmd(ctx: click.Context, as_json: bool) -> None:
    """List available templates."""
    from maziq.core.config.template_loader import discover_templates

    directory = templates_dir(ctx)
    try:
        found = discover_templates(directory)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(2)

    if as_json:
        click.echo(json.dumps([t.model_dump(mode="json") for t in found], indent=2))
        return

    if not found:
        click.secho(f"No templates in {directory}", fg="yellow")
        return

    click.secho(f"\n📋 Templates ({directory})", fg="cyan", bold=True)
    for t in found:
        marker = " (default)" if t.path and Path(t.path).stem == DEFAULT_TEMPLATE else ""
        click.echo(f"   • {t.name}{marker}  [{len(t.software)} entries]")
        if t.description:
            click.echo(f"     {t.description}")
    click.echo()


def _run_template(ctx: click.Context, action: Action, template: str, **opts) -> None:
    from maziq.core.use_cases.provision import run_template

    as_json = opts.pop("as_json")
    catalog = load_catalog(ctx)
    config = build_config(**opts)

    if not as_json:
        action_header(action, f"template '{template}'", config.dry_run)
    result = run_template(
        template,
        action,
        catalog=catalog,
        templates=templates_dir(ctx),
        config=config,
        engine=ctx.obj.get("engine"),
        history=history_sink(ctx),
        on_event=None if as_json else EventPrinter(quiet=ctx.obj.get("quiet", False)),
    )
    print_result(ctx, result, as_json)


_template_option = click.option(
    "--template", "-t", default=DEFAULT_TEMPLATE, show_default=True,
    help="Template name, slug or file stem.",
)


@onboard.command()
@_template_option
@run_options
@click.pass_context
def fresh(ctx: click.Context, template: str, **opts) -> None:
    """Install everything a template lists (dependencies first)."""
    _run_template(ctx, Action.INSTALL, template, **opts)


@onboard.command()
@_template_option
@run_options
@click.pass_context
def update(ctx: click.Context, template: str, **opts) -> None:
    """Update everything a template lists."""
    _run_template(ctx, Action.UPDATE, template, **opts)
