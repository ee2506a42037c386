"""
Status table rendering shared by ``software status`` and ``versions``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from maziq.core.models.status import StatusState
from maziq.ui.cli.common import build_config, load_catalog

_STATE_COLOR = {
    StatusState.UP_TO_DATE: "green",
    StatusState.OUTDATED: "yellow",
    StatusState.NOT_INSTALLED: "red",
    StatusState.UNKNOWN: "white",
}


def show_status(
    ctx: click.Context,
    ids: list[str] | None,
    *,
    manifest: Path | None,
    max_parallel: int,
    as_json: bool,
) -> None:
    """Detect and print statuses. Always exits 0 unless an id is unknown."""
    from maziq.core.use_cases.status import check_status

    catalog = load_catalog(ctx)
    config = build_config(max_parallel=max_parallel, manifest=manifest)
    result = check_status(ids, catalog=catalog, config=config, engine=ctx.obj.get("engine"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)

    click.echo(f"{'Key':<20} {'Name':<30} Status")
    click.echo("-" * 80)
    for entry in result.entries:
        sw, st = entry.software, entry.status
        click.echo(f"{sw.id:<20} {sw.display_name:<30} ", nl=False)
        click.secho(st.describe(), fg=_STATE_COLOR[st.state])
