"""Output helpers for CLI commands.

user_output is for messages meant for a person (progress, warnings, errors)
and goes to stderr; machine_output is for data other tools may consume and
goes to stdout.
"""

import click


def user_output(message: str = "", nl: bool = True) -> None:
    click.echo(message, err=True, nl=nl)


def machine_output(message: str = "", nl: bool = True) -> None:
    click.echo(message, nl=nl)
