"""Materialize capabilities copied from local directories."""

import logging
from dataclasses import dataclass
from pathlib import Path

from capsync.core.fs import replace_directory_with_copy
from capsync.core.paths import MANIFEST_FILE_NAME, ProjectPaths
from capsync.sources.content_hash import compute_directory_digest
from capsync.sources.exceptions import SourceReadError
from capsync.sources.models import LocalSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LocalMaterialization:
    path: Path
    digest: str
    changed: bool


def materialize_local_source(
    capability_id: str, source: LocalSource, *, paths: ProjectPaths
) -> LocalMaterialization:
    """Copy a local directory into the capability dir when its content differs.

    When the source has no capability.toml, the copy's generated manifest is
    left out of the comparison so a wrapped copy of an unchanged source
    compares equal.

    Raises:
        SourceReadError: If the source is missing, not a directory, or unreadable
    """
    if not source.path.exists():
        raise SourceReadError(f"Local source not found: {source.path}")
    if not source.path.is_dir():
        raise SourceReadError(f"Local source is not a directory: {source.path}")

    try:
        digest = compute_directory_digest(source.path)
    except OSError as e:
        raise SourceReadError(f"Failed to read local source {source.path}: {e}") from e

    target_dir = paths.capability_dir(capability_id)
    if target_dir.is_dir():
        exclude = frozenset()
        if not (source.path / MANIFEST_FILE_NAME).is_file():
            exclude = frozenset({MANIFEST_FILE_NAME})
        if compute_directory_digest(target_dir, exclude=exclude) == digest:
            logger.debug("%s is unchanged (%s)", source.path, digest)
            return LocalMaterialization(path=target_dir, digest=digest, changed=False)

    try:
        replace_directory_with_copy(source.path, target_dir)
    except OSError as e:
        raise SourceReadError(f"Failed to copy local source {source.path}: {e}") from e
    logger.debug("Copied %s to %s", source.path, target_dir)
    return LocalMaterialization(path=target_dir, digest=digest, changed=True)
