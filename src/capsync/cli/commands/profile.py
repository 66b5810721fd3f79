"""Profile command group: list profiles and switch the active one."""

import click

from capsync.cli.output import machine_output, user_output
from capsync.config.active_profile import (
    effective_profile,
    load_active_profile,
    save_active_profile,
)
from capsync.config.loader import ConfigError, load_project_config
from capsync.core.context import CapsyncContext


@click.group("profile")
def profile_group() -> None:
    """List and switch capability profiles."""
    pass


@click.command("list")
@click.pass_obj
def list_cmd(ctx: CapsyncContext) -> None:
    """List profiles declared in capsync.toml, marking the active one."""
    try:
        config = load_project_config(ctx.paths)
        active_profile = load_active_profile(ctx.paths.active_profile_path)
    except ConfigError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    if not config.profiles:
        user_output("No profiles declared in capsync.toml")
        return

    current = effective_profile(config, active_profile)
    for name in sorted(config.profiles):
        capabilities = ", ".join(config.profiles[name]) or "no capabilities"
        marker = click.style("●", fg="green") if name == current else "○"
        suffix = " (active)" if name == current else ""
        machine_output(f"{marker} {name}{suffix} {click.style(capabilities, dim=True)}")


@click.command("set")
@click.argument("name")
@click.pass_obj
def set_cmd(ctx: CapsyncContext, name: str) -> None:
    """Make NAME the active profile. Takes effect on the next sync."""
    try:
        config = load_project_config(ctx.paths)
    except ConfigError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    if name not in config.profiles:
        user_output(click.style("Error: ", fg="red") + f"Unknown profile '{name}'")
        raise SystemExit(1)

    save_active_profile(ctx.paths.active_profile_path, name)
    user_output(f"Switched to profile '{name}'. Run 'capsync sync' to apply.")


profile_group.add_command(list_cmd)
profile_group.add_command(set_cmd)
