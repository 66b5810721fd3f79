"""Lock command group: inspect capsync.lock.toml."""

import click

from capsync.cli.output import machine_output, user_output
from capsync.core.context import CapsyncContext
from capsync.lock.ledger import load_lock_file


@click.group("lock")
def lock_group() -> None:
    """Inspect the capability lock file."""
    pass


@click.command("show")
@click.pass_obj
def show_cmd(ctx: CapsyncContext) -> None:
    """Print every lock entry."""
    lock = load_lock_file(ctx.paths.lock_path)
    if not lock.capabilities:
        user_output("No lock entries")
        return

    for capability_id in sorted(lock.capabilities):
        entry = lock.capabilities[capability_id]
        machine_output(click.style(capability_id, bold=True))
        machine_output(f"  source:  {entry.source}")
        machine_output(f"  version: {entry.version}")
        if entry.commit is not None:
            machine_output(f"  commit:  {entry.commit}")
        if entry.content_hash is not None:
            machine_output(f"  hash:    {entry.content_hash}")
        if entry.ref is not None:
            machine_output(f"  ref:     {entry.ref}")
        machine_output(click.style(f"  updated: {entry.updated_at}", dim=True))


lock_group.add_command(show_cmd)
