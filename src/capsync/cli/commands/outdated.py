"""Outdated command: report sources with available updates."""

import click

from capsync.cli.output import user_output
from capsync.config.loader import ConfigError
from capsync.core.context import CapsyncContext
from capsync.sync.updates import check_for_updates


@click.command("outdated")
@click.pass_obj
def outdated_cmd(ctx: CapsyncContext) -> None:
    """Check declared sources for updates without changing anything."""
    try:
        updates = check_for_updates(ctx)
    except ConfigError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    if not updates:
        user_output("No capability sources declared in capsync.toml")
        return

    available = 0
    for info in updates:
        if info.error is not None:
            marker = click.style("?", fg="yellow")
            user_output(f"  {marker} {info.capability_id}: {info.error}")
            continue
        if info.has_update:
            available += 1
            marker = click.style("↑", fg="cyan")
            user_output(
                f"  {marker} {info.capability_id}: {info.current_version} -> {info.latest_version}"
            )
        else:
            user_output(f"  = {info.capability_id}: {info.current_version} ({info.latest_version})")

    if available:
        user_output(f"{available} update(s) available. Run 'capsync sync' to apply.")
    else:
        user_output("All sources up to date")
