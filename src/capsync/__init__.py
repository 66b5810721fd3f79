"""capsync CLI entry point.

This package resolves capability sources (local directories or git
repositories), materializes them under `.capsync/capabilities/`, records the
resolved versions in `capsync.lock.toml` and keeps generated assistant
artifacts in step with the enabled capability set. See `capsync --help`.
"""


def main() -> None:
    """CLI entry point used by the `capsync` console script."""
    from capsync.cli.cli import cli

    cli()
