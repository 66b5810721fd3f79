"""Sync engine: fetch sources, reconcile the lock, clean up and write artifacts.

Each capability source is processed independently. A failure for one source
is recorded in the report and the run continues; the lock ledger and the
resource manifest are written once, after every source has been attempted.
"""

import logging
import shutil
from dataclasses import dataclass, field
from typing import Literal

from capsync.capability.loader import CapabilityLoadError, LoadedCapability, load_capability
from capsync.capability.mcp import MCP_CAPABILITY_PREFIX, generate_mcp_capabilities
from capsync.capability.writer import (
    capability_resources,
    write_capability_artifacts,
    write_mcp_registrations,
)
from capsync.config.active_profile import load_active_profile
from capsync.config.capability_state import load_capability_state, resolve_enabled_capabilities
from capsync.config.loader import load_project_config
from capsync.core.context import CapsyncContext
from capsync.core.paths import ProjectPaths
from capsync.lock.ledger import LockLedger, format_utc_timestamp
from capsync.sources.descriptor import parse_source_reference, validate_capability_id
from capsync.sources.exceptions import CapabilitySourceError
from capsync.sources.fetch import fetch_capability_source
from capsync.state.resource_manifest import (
    CapabilityResources,
    CleanupResult,
    build_resource_manifest,
    cleanup_stale_resources,
    load_resource_manifest,
    save_resource_manifest,
)

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["fetched", "updated", "unchanged", "failed"]


@dataclass(frozen=True)
class CapabilityOutcome:
    """What happened to one declared source during a sync.

    Attributes:
        status: "fetched" for a first materialization, "updated" when existing
            content changed, "unchanged", or "failed"
        previous_version: Version recorded in the lock before this run
        materialized: Whether a materialized copy exists after this run
    """

    capability_id: str
    status: OutcomeStatus
    version: str | None
    previous_version: str | None
    wrapped: bool
    error: str | None
    materialized: bool


@dataclass(frozen=True)
class SyncReport:
    outcomes: list[CapabilityOutcome]
    mcp_capabilities: list[str]
    enabled: list[str]
    pruned_lock_entries: list[str]
    cleanup: CleanupResult
    lock_written: bool
    manifest_written: bool
    warnings: list[str] = field(default_factory=list)

    @property
    def failures(self) -> list[CapabilityOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "failed"]

    @property
    def has_unmaterialized_failure(self) -> bool:
        """True if some failed capability has no materialized copy at all."""
        return any(not outcome.materialized for outcome in self.failures)


def run_sync(ctx: CapsyncContext) -> SyncReport:
    """Synchronize every declared capability source into the project.

    Raises:
        ConfigError: If capsync.toml or a state file is malformed
    """
    paths = ctx.paths
    config = load_project_config(paths)
    state = load_capability_state(paths.capability_state_path)
    active_profile = load_active_profile(paths.active_profile_path)
    warnings: list[str] = []

    mcp_ids = generate_mcp_capabilities(config, paths)

    ledger = LockLedger(paths.lock_path, ctx.time)
    outcomes = [
        _sync_source(ctx, ledger, capability_id, config.sources[capability_id])
        for capability_id in sorted(config.sources)
    ]

    declared_ids = set(config.sources)
    pruned = ledger.prune(declared_ids)
    for capability_id in pruned:
        _discard_materialized(paths, capability_id)

    lock_written = False
    try:
        lock_written = ledger.save_if_dirty()
    except OSError as e:
        logger.warning("Failed to write %s: %s", paths.lock_path, e)
        warnings.append(f"Lock file not written: {e}")

    available = {
        capability_id
        for capability_id in declared_ids | set(mcp_ids)
        if _is_valid_id(capability_id) and paths.capability_dir(capability_id).is_dir()
    }
    enabled_ids = resolve_enabled_capabilities(
        config, state, available, active_profile=active_profile
    )
    previous = load_resource_manifest(paths.resource_manifest_path)

    loaded: list[LoadedCapability] = []
    current: dict[str, CapabilityResources] = {}
    for capability_id in sorted(enabled_ids):
        try:
            capability = load_capability(paths.capability_dir(capability_id))
        except CapabilityLoadError as e:
            logger.warning("Skipping capability '%s': %s", capability_id, e)
            warnings.append(f"{capability_id}: {e}")
            if capability_id in previous.capabilities:
                current[capability_id] = previous.capabilities[capability_id]
            continue
        loaded.append(capability)
        current[capability_id] = capability_resources(capability)

    cleanup = cleanup_stale_resources(previous, enabled_ids, paths.output)

    for capability in loaded:
        try:
            write_capability_artifacts(capability, paths.output)
        except OSError as e:
            logger.warning("Failed to write artifacts for '%s': %s", capability.id, e)
            warnings.append(f"{capability.id}: artifacts not written: {e}")

    previously_managed = {
        server
        for capability in loaded
        if capability.mcp is not None and capability.id in previous.capabilities
        for server in previous.capabilities[capability.id].mcp_servers
    }
    try:
        write_mcp_registrations(loaded, paths.output, previously_managed=previously_managed)
    except (OSError, ValueError) as e:
        logger.warning("Failed to update %s: %s", paths.output.mcp_json_path, e)
        warnings.append(f"MCP registrations not written: {e}")

    manifest_written = False
    snapshot = build_resource_manifest(current, synced_at=format_utc_timestamp(ctx.time.now()))
    if snapshot.capabilities != previous.capabilities:
        try:
            save_resource_manifest(paths.resource_manifest_path, snapshot)
            manifest_written = True
        except OSError as e:
            logger.warning("Failed to write %s: %s", paths.resource_manifest_path, e)
            warnings.append(f"Resource manifest not written: {e}")

    return SyncReport(
        outcomes=outcomes,
        mcp_capabilities=mcp_ids,
        enabled=sorted(enabled_ids),
        pruned_lock_entries=pruned,
        cleanup=cleanup,
        lock_written=lock_written,
        manifest_written=manifest_written,
        warnings=warnings,
    )


def _sync_source(
    ctx: CapsyncContext, ledger: LockLedger, capability_id: str, reference: object
) -> CapabilityOutcome:
    paths = ctx.paths
    existing = ledger.get(capability_id)
    previous_version = existing.version if existing is not None else None
    try:
        validate_capability_id(capability_id)
        descriptor = parse_source_reference(reference, base_dir=paths.root)
        if existing is not None and existing.source != descriptor.reference:
            logger.info(
                "Source of '%s' changed from %s to %s; fetching from scratch",
                capability_id,
                existing.source,
                descriptor.reference,
            )
            _discard_materialized(paths, capability_id)
        had_copy = paths.capability_dir(capability_id).is_dir()
        result = fetch_capability_source(capability_id, descriptor, git=ctx.git, paths=paths)
    except (CapabilitySourceError, OSError) as e:
        logger.debug("Fetching '%s' failed: %s", capability_id, e)
        return CapabilityOutcome(
            capability_id=capability_id,
            status="failed",
            version=previous_version,
            previous_version=previous_version,
            wrapped=False,
            error=str(e),
            materialized=_has_materialized_copy(paths, capability_id),
        )

    ledger.reconcile(capability_id, result, descriptor)
    status: OutcomeStatus = "unchanged"
    if result.changed:
        status = "updated" if had_copy else "fetched"
    return CapabilityOutcome(
        capability_id=capability_id,
        status=status,
        version=result.resolved_version,
        previous_version=previous_version,
        wrapped=result.was_wrapped,
        error=None,
        materialized=True,
    )


def _is_valid_id(capability_id: str) -> bool:
    try:
        validate_capability_id(capability_id)
    except CapabilitySourceError:
        return capability_id.startswith(MCP_CAPABILITY_PREFIX)
    return True


def _has_materialized_copy(paths: ProjectPaths, capability_id: str) -> bool:
    if not _is_valid_id(capability_id):
        return False
    return paths.capability_dir(capability_id).is_dir()


def _discard_materialized(paths: ProjectPaths, capability_id: str) -> None:
    if not _is_valid_id(capability_id):
        return
    for directory in (paths.capability_dir(capability_id), paths.repo_checkout_dir(capability_id)):
        if directory.exists():
            shutil.rmtree(directory)
