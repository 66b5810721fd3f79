"""Capability command group: list, enable and disable capabilities."""

import click

from capsync.capability.mcp import mcp_capability_id
from capsync.cli.output import machine_output, user_output
from capsync.config.active_profile import load_active_profile
from capsync.config.capability_state import (
    disable_capability,
    enable_capability,
    load_capability_state,
    resolve_enabled_capabilities,
    save_capability_state,
)
from capsync.config.loader import ConfigError, load_project_config
from capsync.core.context import CapsyncContext
from capsync.lock.ledger import load_lock_file


@click.group("capability")
def capability_group() -> None:
    """List and toggle capabilities."""
    pass


@click.command("list")
@click.pass_obj
def list_cmd(ctx: CapsyncContext) -> None:
    """List declared capabilities with their enabled state and version."""
    try:
        config = load_project_config(ctx.paths)
        state = load_capability_state(ctx.paths.capability_state_path)
        active_profile = load_active_profile(ctx.paths.active_profile_path)
    except ConfigError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    declared = set(config.sources) | {mcp_capability_id(name) for name in config.mcps}
    if not declared:
        user_output("No capabilities declared in capsync.toml")
        return

    lock = load_lock_file(ctx.paths.lock_path)
    enabled = resolve_enabled_capabilities(
        config, state, declared, active_profile=active_profile
    )
    for capability_id in sorted(declared):
        marker = click.style("●", fg="green") if capability_id in enabled else "○"
        entry = lock.capabilities.get(capability_id)
        version = entry.version if entry is not None else "not synced"
        if capability_id not in config.sources:
            version = "generated"
        machine_output(f"{marker} {capability_id} {click.style(version, dim=True)}")


@click.command("enable")
@click.argument("capability_id")
@click.pass_obj
def enable_cmd(ctx: CapsyncContext, capability_id: str) -> None:
    """Enable CAPABILITY_ID. Takes effect on the next sync."""
    _update_state(ctx, capability_id, enable=True)
    user_output(f"Enabled {capability_id}. Run 'capsync sync' to write its artifacts.")


@click.command("disable")
@click.argument("capability_id")
@click.pass_obj
def disable_cmd(ctx: CapsyncContext, capability_id: str) -> None:
    """Disable CAPABILITY_ID. Its artifacts are removed on the next sync."""
    _update_state(ctx, capability_id, enable=False)
    user_output(f"Disabled {capability_id}. Run 'capsync sync' to remove its artifacts.")


def _update_state(ctx: CapsyncContext, capability_id: str, *, enable: bool) -> None:
    try:
        config = load_project_config(ctx.paths)
        state = load_capability_state(ctx.paths.capability_state_path)
    except ConfigError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    declared = set(config.sources) | {mcp_capability_id(name) for name in config.mcps}
    if capability_id not in declared:
        user_output(click.style("Error: ", fg="red") + f"Unknown capability '{capability_id}'")
        raise SystemExit(1)

    if enable:
        state = enable_capability(state, capability_id)
    else:
        state = disable_capability(state, capability_id)
    save_capability_state(ctx.paths.capability_state_path, state)


capability_group.add_command(list_cmd)
capability_group.add_command(enable_cmd)
capability_group.add_command(disable_cmd)
