"""Materialize capabilities from git repositories.

The checkout for a capability is kept between runs. On each sync the remote
revision is queried first, so an unchanged upstream costs one `ls-remote` and
leaves the working tree untouched.
"""

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from capsync.core.fs import replace_directory_with_copy
from capsync.core.paths import MANIFEST_FILE_NAME, ProjectPaths
from capsync.gateway.git.abc import Git
from capsync.sources.content_hash import compute_directory_digest
from capsync.sources.exceptions import FetchError, PathNotFoundInRepositoryError
from capsync.sources.models import RemoteSource

logger = logging.getLogger(__name__)

CLONE_DEPTH = 1

_FULL_COMMIT_RE = re.compile(r"^[0-9a-f]{40}$")


@dataclass(frozen=True)
class CheckoutResult:
    revision: str
    changed: bool


@dataclass(frozen=True)
class RemoteMaterialization:
    """Where a remote capability landed and whether its content changed."""

    path: Path
    revision: str
    changed: bool


def is_commit_pin(ref: str | None) -> bool:
    return ref is not None and _FULL_COMMIT_RE.match(ref) is not None


def sync_checkout(git: Git, *, url: str, ref: str | None, checkout_dir: Path) -> CheckoutResult:
    """Clone or update a shallow checkout of url at ref.

    Raises:
        FetchError: If any git operation fails or the ref does not exist
    """
    if checkout_dir.exists() and not (checkout_dir / ".git").is_dir():
        logger.warning("%s is not a git checkout; cloning again", checkout_dir)
        shutil.rmtree(checkout_dir)

    if not checkout_dir.exists():
        return _clone(git, url=url, ref=ref, checkout_dir=checkout_dir)

    try:
        local_revision = git.resolve_revision(checkout_dir, "HEAD")
        if is_commit_pin(ref):
            target_revision = ref
        else:
            target_revision = git.resolve_remote_revision("origin", ref, cwd=checkout_dir)
        if target_revision is None:
            raise FetchError(f"ref not found: '{ref or 'HEAD'}' does not exist in {url}")
        if target_revision == local_revision:
            logger.debug("%s is up to date at %s", url, local_revision)
            return CheckoutResult(revision=local_revision, changed=False)

        logger.debug("Updating %s from %s to %s", url, local_revision, target_revision)
        git.fetch_ref(checkout_dir, ref=ref, depth=CLONE_DEPTH)
        git.checkout_fetched(checkout_dir)
        revision = git.resolve_revision(checkout_dir, "HEAD")
    except RuntimeError as e:
        raise FetchError(f"Failed to update {url}: {e}") from e
    return CheckoutResult(revision=revision, changed=True)


def _clone(git: Git, *, url: str, ref: str | None, checkout_dir: Path) -> CheckoutResult:
    checkout_dir.parent.mkdir(parents=True, exist_ok=True)
    try:
        if is_commit_pin(ref):
            git.clone(url, checkout_dir, ref=None, depth=CLONE_DEPTH)
            git.fetch_ref(checkout_dir, ref=ref, depth=CLONE_DEPTH)
            git.checkout_fetched(checkout_dir)
        else:
            git.clone(url, checkout_dir, ref=ref, depth=CLONE_DEPTH)
        revision = git.resolve_revision(checkout_dir, "HEAD")
    except RuntimeError as e:
        # A failed first clone has no previous state worth keeping
        if checkout_dir.exists():
            shutil.rmtree(checkout_dir)
        raise FetchError(f"Failed to clone {url}: {e}") from e
    logger.debug("Cloned %s at %s", url, revision)
    return CheckoutResult(revision=revision, changed=True)


def materialize_remote_source(
    capability_id: str, source: RemoteSource, *, git: Git, paths: ProjectPaths
) -> RemoteMaterialization:
    """Bring the materialized directory for a remote source up to date.

    Without a subdirectory the checkout itself is the materialized directory.
    With one, the repository is checked out under the temp dir and the subtree
    is copied over whenever it differs from the materialized copy.

    Raises:
        FetchError: If git fails
        PathNotFoundInRepositoryError: If the subdirectory is absent
    """
    target_dir = paths.capability_dir(capability_id)
    if source.subdirectory is None:
        checkout = sync_checkout(git, url=source.url, ref=source.ref, checkout_dir=target_dir)
        return RemoteMaterialization(
            path=target_dir, revision=checkout.revision, changed=checkout.changed
        )

    checkout_dir = paths.repo_checkout_dir(capability_id)
    checkout = sync_checkout(git, url=source.url, ref=source.ref, checkout_dir=checkout_dir)
    subtree = checkout_dir / source.subdirectory
    if not subtree.is_dir():
        raise PathNotFoundInRepositoryError(source.subdirectory, source.url)

    if target_dir.is_dir():
        exclude = frozenset()
        if not (subtree / MANIFEST_FILE_NAME).is_file():
            exclude = frozenset({MANIFEST_FILE_NAME})
        if compute_directory_digest(target_dir, exclude=exclude) == compute_directory_digest(subtree):
            return RemoteMaterialization(
                path=target_dir, revision=checkout.revision, changed=False
            )

    replace_directory_with_copy(subtree, target_dir)
    return RemoteMaterialization(path=target_dir, revision=checkout.revision, changed=True)
