"""Data models for capability sources and fetch outcomes."""

from dataclasses import dataclass
from pathlib import Path

# A source as written in capsync.toml: a bare string or a
# {source, ref?, path?} table.
SourceReference = str | dict[str, object]


@dataclass(frozen=True)
class LocalSource:
    """A directory on the local filesystem (declared as file://...)."""

    path: Path
    # The source string exactly as declared
    reference: str


@dataclass(frozen=True)
class RemoteSource:
    """A git repository, optionally pinned to a ref and narrowed to a subtree."""

    url: str
    # Declared source string, without a shorthand "#ref" suffix
    reference: str
    ref: str | None
    subdirectory: str | None


SourceDescriptor = LocalSource | RemoteSource


@dataclass(frozen=True)
class FetchResult:
    """Outcome of materializing one capability source.

    Attributes:
        capability_id: Id the source is declared under
        materialized_path: Directory holding the capability content
        resolved_version: Version string recorded in the lock ledger
        revision: Checked-out commit (remote sources only)
        content_digest: Tree digest of the source (local sources only)
        changed: True iff the materialized content differs from what was
            previously at materialized_path
        was_wrapped: True iff the capability manifest was synthesized
    """

    capability_id: str
    materialized_path: Path
    resolved_version: str
    revision: str | None
    content_digest: str | None
    changed: bool
    was_wrapped: bool
