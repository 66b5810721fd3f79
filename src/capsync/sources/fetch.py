"""Fetch one capability source and make sure it carries a manifest.

This is the per-source entry point used by the sync engine: it dispatches to
the remote fetcher or the local copier, then wraps the result when it has no
native capability.toml.
"""

import logging
from pathlib import Path

from capsync.core.paths import ProjectPaths
from capsync.gateway.git.abc import Git
from capsync.sources.content_hash import short_digest
from capsync.sources.discovery import read_package_version, read_plugin_metadata, should_wrap
from capsync.sources.local import materialize_local_source
from capsync.sources.models import FetchResult, LocalSource, RemoteSource, SourceDescriptor
from capsync.sources.remote import materialize_remote_source
from capsync.sources.wrapping import (
    SHORT_COMMIT_LENGTH,
    ManifestState,
    build_local_manifest,
    build_remote_manifest,
    inspect_manifest,
    render_manifest,
    write_manifest_if_changed,
)

logger = logging.getLogger(__name__)


def fetch_capability_source(
    capability_id: str,
    descriptor: SourceDescriptor,
    *,
    git: Git,
    paths: ProjectPaths,
) -> FetchResult:
    """Materialize a capability and reconcile its manifest.

    Raises:
        CapabilitySourceError: If the source cannot be materialized
    """
    if isinstance(descriptor, LocalSource):
        return _fetch_local(capability_id, descriptor, paths=paths)
    return _fetch_remote(capability_id, descriptor, git=git, paths=paths)


def _fetch_remote(
    capability_id: str, source: RemoteSource, *, git: Git, paths: ProjectPaths
) -> FetchResult:
    materialized = materialize_remote_source(capability_id, source, git=git, paths=paths)
    root = materialized.path
    state = inspect_manifest(root)

    wrapped = state == ManifestState.WRAPPED
    if state == ManifestState.MISSING:
        if should_wrap(root):
            wrapped = True
        else:
            logger.warning(
                "%s has no capability.toml and no recognizable content; not wrapping",
                source.reference,
            )
    if wrapped:
        manifest = build_remote_manifest(capability_id, root, source, materialized.revision)
        write_manifest_if_changed(root, render_manifest(manifest))
        version = manifest["capability"]["version"]
    else:
        version = _remote_version(root, materialized.revision)

    return FetchResult(
        capability_id=capability_id,
        materialized_path=root,
        resolved_version=version,
        revision=materialized.revision,
        content_digest=None,
        changed=materialized.changed,
        was_wrapped=wrapped,
    )


def _fetch_local(capability_id: str, source: LocalSource, *, paths: ProjectPaths) -> FetchResult:
    materialized = materialize_local_source(capability_id, source, paths=paths)
    root = materialized.path
    state = inspect_manifest(root)

    wrapped = state != ManifestState.NATIVE
    if wrapped:
        manifest = build_local_manifest(capability_id, root, source, materialized.digest)
        write_manifest_if_changed(root, render_manifest(manifest))
        version = manifest["capability"]["version"]
    else:
        version = read_package_version(root) or short_digest(materialized.digest)

    return FetchResult(
        capability_id=capability_id,
        materialized_path=root,
        resolved_version=version,
        revision=None,
        content_digest=materialized.digest,
        changed=materialized.changed,
        was_wrapped=wrapped,
    )


def _remote_version(root: Path, revision: str) -> str:
    plugin = read_plugin_metadata(root)
    if plugin is not None and plugin.version is not None:
        return plugin.version
    return read_package_version(root) or revision[:SHORT_COMMIT_LENGTH]
