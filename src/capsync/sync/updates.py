"""Check declared sources for available updates without changing anything."""

import logging
from dataclasses import dataclass

from capsync.config.loader import load_project_config
from capsync.core.context import CapsyncContext
from capsync.lock.ledger import LockEntry, load_lock_file
from capsync.sources.content_hash import compute_directory_digest, short_digest
from capsync.sources.descriptor import parse_source_reference, validate_capability_id
from capsync.sources.exceptions import CapabilitySourceError
from capsync.sources.models import LocalSource, RemoteSource
from capsync.sources.remote import is_commit_pin
from capsync.sources.wrapping import SHORT_COMMIT_LENGTH

logger = logging.getLogger(__name__)

NOT_INSTALLED = "not installed"
SOURCE_MISSING = "source missing"
UNKNOWN = "unknown"


@dataclass(frozen=True)
class SourceUpdateInfo:
    """Update status of one declared source.

    Attributes:
        current_version: Locked version, or "not installed"
        latest_version: Short digest/commit available at the source, or a
            status word ("available", "unknown", "source missing")
        error: Why the source could not be checked, if it could not
    """

    capability_id: str
    source: str
    current_version: str
    latest_version: str
    has_update: bool
    error: str | None = None


def check_for_updates(ctx: CapsyncContext) -> list[SourceUpdateInfo]:
    """Compare every declared source against its lock entry.

    Local sources are re-hashed; remote sources are queried with
    `git ls-remote`. Nothing is fetched or written.

    Raises:
        ConfigError: If capsync.toml is malformed
    """
    config = load_project_config(ctx.paths)
    lock = load_lock_file(ctx.paths.lock_path)

    results: list[SourceUpdateInfo] = []
    for capability_id in sorted(config.sources):
        reference = config.sources[capability_id]
        try:
            validate_capability_id(capability_id)
            descriptor = parse_source_reference(reference, base_dir=ctx.paths.root)
        except CapabilitySourceError as e:
            results.append(
                SourceUpdateInfo(
                    capability_id=capability_id,
                    source=str(reference),
                    current_version=UNKNOWN,
                    latest_version=UNKNOWN,
                    has_update=False,
                    error=str(e),
                )
            )
            continue

        entry = lock.capabilities.get(capability_id)
        installed = entry is not None and ctx.paths.capability_dir(capability_id).is_dir()
        if isinstance(descriptor, LocalSource):
            results.append(_check_local(capability_id, descriptor, entry if installed else None))
        else:
            results.append(_check_remote(ctx, capability_id, descriptor, entry if installed else None))
    return results


def _check_local(
    capability_id: str, source: LocalSource, entry: LockEntry | None
) -> SourceUpdateInfo:
    if not source.path.is_dir():
        return SourceUpdateInfo(
            capability_id=capability_id,
            source=source.reference,
            current_version=entry.version if entry is not None else UNKNOWN,
            latest_version=SOURCE_MISSING,
            has_update=False,
        )
    if entry is None:
        return SourceUpdateInfo(
            capability_id=capability_id,
            source=source.reference,
            current_version=NOT_INSTALLED,
            latest_version="available",
            has_update=True,
        )

    try:
        digest = compute_directory_digest(source.path)
    except OSError as e:
        logger.debug("Failed to hash %s: %s", source.path, e)
        return SourceUpdateInfo(
            capability_id=capability_id,
            source=source.reference,
            current_version=entry.version,
            latest_version=UNKNOWN,
            has_update=False,
            error=f"Failed to read {source.path}",
        )
    return SourceUpdateInfo(
        capability_id=capability_id,
        source=source.reference,
        current_version=entry.version,
        latest_version=short_digest(digest),
        has_update=entry.content_hash != digest,
    )


def _check_remote(
    ctx: CapsyncContext, capability_id: str, source: RemoteSource, entry: LockEntry | None
) -> SourceUpdateInfo:
    if is_commit_pin(source.ref):
        latest: str | None = source.ref
    else:
        try:
            latest = ctx.git.resolve_remote_revision(source.url, source.ref, cwd=None)
        except RuntimeError as e:
            logger.debug("ls-remote failed for %s: %s", source.url, e)
            return SourceUpdateInfo(
                capability_id=capability_id,
                source=source.reference,
                current_version=entry.version if entry is not None else NOT_INSTALLED,
                latest_version=UNKNOWN,
                has_update=False,
                error=f"Failed to query {source.url}",
            )

    latest_version = latest[:SHORT_COMMIT_LENGTH] if latest is not None else UNKNOWN
    if entry is None:
        return SourceUpdateInfo(
            capability_id=capability_id,
            source=source.reference,
            current_version=NOT_INSTALLED,
            latest_version=latest_version,
            has_update=True,
        )
    if latest is None:
        return SourceUpdateInfo(
            capability_id=capability_id,
            source=source.reference,
            current_version=entry.version,
            latest_version=UNKNOWN,
            has_update=False,
            error=f"ref not found: '{source.ref or 'HEAD'}'",
        )
    return SourceUpdateInfo(
        capability_id=capability_id,
        source=source.reference,
        current_version=entry.version,
        latest_version=latest_version,
        has_update=entry.commit != latest,
    )
