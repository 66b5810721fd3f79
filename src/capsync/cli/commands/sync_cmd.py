"""Sync command: fetch capability sources and regenerate artifacts."""

import click

from capsync.cli.output import user_output
from capsync.config.loader import ConfigError
from capsync.core.context import CapsyncContext
from capsync.sync.engine import CapabilityOutcome, SyncReport, run_sync

_STATUS_STYLES = {
    "fetched": ("+", "green"),
    "updated": ("~", "cyan"),
    "unchanged": ("=", None),
    "failed": ("✗", "red"),
}


def _format_outcome(outcome: CapabilityOutcome) -> str:
    symbol, color = _STATUS_STYLES[outcome.status]
    line = f"  {click.style(symbol, fg=color)} {outcome.capability_id}: {outcome.status}"
    if outcome.status == "updated" and outcome.previous_version != outcome.version:
        line += f" {outcome.previous_version or 'new'} -> {outcome.version}"
    elif outcome.version is not None:
        line += f" {outcome.version}"
    if outcome.wrapped:
        line += click.style(" (wrapped)", dim=True)
    return line


def _display_report(report: SyncReport) -> None:
    if not report.outcomes and not report.mcp_capabilities:
        user_output("No capability sources declared in capsync.toml")

    for outcome in report.outcomes:
        user_output(_format_outcome(outcome))
    for capability_id in report.mcp_capabilities:
        user_output(f"  {click.style('*', fg='blue')} {capability_id}: generated")

    removed = len(report.cleanup.removed_paths) + len(report.cleanup.removed_mcp_servers)
    if removed:
        user_output(f"Removed {removed} stale artifact(s)")
    if report.pruned_lock_entries:
        pruned = ", ".join(report.pruned_lock_entries)
        user_output(f"Dropped lock entries for removed sources: {pruned}")
    if report.lock_written:
        user_output("Updated capsync.lock.toml")

    for warning in report.warnings:
        user_output(click.style("Warning: ", fg="yellow") + warning)

    if report.failures:
        user_output("")
        user_output(click.style("Failures:", fg="red", bold=True))
        for outcome in report.failures:
            suffix = "" if outcome.materialized else " (not materialized)"
            user_output(f"  {outcome.capability_id}{suffix}: {outcome.error}")


@click.command("sync")
@click.pass_obj
def sync_cmd(ctx: CapsyncContext) -> None:
    """Fetch capability sources and regenerate assistant artifacts.

    Exits non-zero only when a failed capability has no materialized copy.

    Examples:

    \b
      # Sync every declared source
      capsync sync
    """
    try:
        report = run_sync(ctx)
    except ConfigError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    _display_report(report)
    if report.has_unmaterialized_failure:
        raise SystemExit(1)
