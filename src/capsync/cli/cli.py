import logging
from pathlib import Path

import click

from capsync.cli.commands.capability import capability_group
from capsync.cli.commands.lock_cmd import lock_group
from capsync.cli.commands.outdated import outdated_cmd
from capsync.cli.commands.profile import profile_group
from capsync.cli.commands.sync_cmd import sync_cmd
from capsync.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="capsync")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root holding capsync.toml (defaults to the current directory)",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool, project_dir: Path | None) -> None:
    """Synchronize capability bundles into AI assistant configuration."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context(project_root=project_dir)


cli.add_command(sync_cmd)
cli.add_command(outdated_cmd)
cli.add_command(lock_group)
cli.add_command(capability_group)
cli.add_command(profile_group)
