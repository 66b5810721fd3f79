"""Lock ledger I/O for capsync.lock.toml.

The ledger records the resolved identity of every declared capability source:
the commit for git sources and the content digest for local ones. Entries are
replaced only when that identity changes, so re-running sync against an
unchanged upstream never bumps `updated_at`.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import tomli
import tomli_w

from capsync.gateway.time.abc import Time
from capsync.sources.models import FetchResult, RemoteSource, SourceDescriptor

logger = logging.getLogger(__name__)

LOCK_FILE_HEADER = (
    "# Auto-generated by capsync. Do not edit by hand.\n"
    "# Records the resolved version of each capability source.\n\n"
)


def format_utc_timestamp(moment: datetime) -> str:
    """Format an aware datetime as ISO-8601 UTC with a trailing Z."""
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class LockEntry:
    """Resolved identity of one capability source."""

    source: str
    version: str
    # Exactly one of commit (git sources) and content_hash (local sources) is set
    commit: str | None
    content_hash: str | None
    ref: str | None
    updated_at: str


@dataclass(frozen=True)
class LockFile:
    capabilities: dict[str, LockEntry]


def load_lock_file(path: Path) -> LockFile:
    """Load the lock file.

    A missing file yields an empty ledger. A malformed file is logged and also
    yields an empty ledger; the next dirty write regenerates it.
    """
    if not path.exists():
        return LockFile(capabilities={})

    try:
        with open(path, "rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        logger.warning("Ignoring unreadable lock file %s: %s", path, e)
        return LockFile(capabilities={})

    entries: dict[str, LockEntry] = {}
    capabilities = data.get("capabilities", {})
    if not isinstance(capabilities, dict):
        logger.warning("Ignoring lock file %s: 'capabilities' is not a table", path)
        return LockFile(capabilities={})

    for capability_id, entry_data in capabilities.items():
        entry = _parse_entry(entry_data)
        if entry is None:
            logger.warning("Dropping malformed lock entry '%s' in %s", capability_id, path)
            continue
        entries[capability_id] = entry
    return LockFile(capabilities=entries)


def _parse_entry(data: object) -> LockEntry | None:
    if not isinstance(data, dict):
        return None
    source = data.get("source")
    version = data.get("version")
    updated_at = data.get("updated_at")
    if not isinstance(source, str) or not isinstance(version, str):
        return None
    commit = data.get("commit")
    content_hash = data.get("content_hash")
    ref = data.get("ref")
    return LockEntry(
        source=source,
        version=version,
        commit=commit if isinstance(commit, str) else None,
        content_hash=content_hash if isinstance(content_hash, str) else None,
        ref=ref if isinstance(ref, str) else None,
        updated_at=updated_at if isinstance(updated_at, str) else "",
    )


def render_lock_file(lock: LockFile) -> str:
    """Serialize the lock file, sorted by capability id."""
    capabilities: dict[str, dict[str, str]] = {}
    for capability_id in sorted(lock.capabilities):
        entry = lock.capabilities[capability_id]
        table: dict[str, str] = {"source": entry.source, "version": entry.version}
        if entry.commit is not None:
            table["commit"] = entry.commit
        if entry.content_hash is not None:
            table["content_hash"] = entry.content_hash
        if entry.ref is not None:
            table["ref"] = entry.ref
        table["updated_at"] = entry.updated_at
        capabilities[capability_id] = table
    return LOCK_FILE_HEADER + tomli_w.dumps({"capabilities": capabilities})


def save_lock_file(path: Path, lock: LockFile) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_lock_file(lock), encoding="utf-8")


class LockLedger:
    """In-memory view of the lock file that tracks whether it needs saving.

    Mutations only mark the ledger dirty; save_if_dirty() persists once at the
    end of a sync.
    """

    def __init__(self, path: Path, time: Time) -> None:
        self._path = path
        self._time = time
        self._entries = dict(load_lock_file(path).capabilities)
        self._dirty = False

    @property
    def entries(self) -> dict[str, LockEntry]:
        return dict(self._entries)

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def get(self, capability_id: str) -> LockEntry | None:
        return self._entries.get(capability_id)

    def reconcile(
        self, capability_id: str, result: FetchResult, descriptor: SourceDescriptor
    ) -> bool:
        """Record a fetch result if its identity differs from the current entry.

        Identity is the commit for git sources and the content digest for
        local sources, together with the declared source. The ref pin is
        stored verbatim but does not count as a change on its own.

        Returns:
            True if the entry was added or replaced
        """
        existing = self._entries.get(capability_id)
        if existing is not None and _same_identity(existing, result, descriptor):
            return False

        self._entries[capability_id] = LockEntry(
            source=descriptor.reference,
            version=result.resolved_version,
            commit=result.revision,
            content_hash=result.content_digest,
            ref=descriptor.ref if isinstance(descriptor, RemoteSource) else None,
            updated_at=format_utc_timestamp(self._time.now()),
        )
        self._dirty = True
        logger.debug("Lock entry for '%s' updated", capability_id)
        return True

    def prune(self, declared_ids: set[str]) -> list[str]:
        """Drop entries for sources no longer declared.

        Returns:
            Ids of the removed entries, sorted
        """
        removed = sorted(set(self._entries) - declared_ids)
        for capability_id in removed:
            del self._entries[capability_id]
        if removed:
            self._dirty = True
        return removed

    def save_if_dirty(self) -> bool:
        """Write the lock file if anything changed since it was loaded.

        Returns:
            True if the file was written

        Raises:
            OSError: If the file cannot be written
        """
        if not self._dirty:
            return False
        save_lock_file(self._path, LockFile(capabilities=self._entries))
        self._dirty = False
        return True


def _same_identity(entry: LockEntry, result: FetchResult, descriptor: SourceDescriptor) -> bool:
    if entry.source != descriptor.reference:
        return False
    if result.revision is not None:
        return entry.commit == result.revision
    return entry.content_hash == result.content_digest
