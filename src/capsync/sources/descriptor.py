"""Parse declared source references into typed descriptors.

Supported forms:
- "file://./relative/path" or "file:///absolute/path" (local directory)
- "github:owner/repo" and "gitlab:group/repo", optionally suffixed "#ref"
- "git@host:owner/repo.git", "https://..." and any other git URL, verbatim
- {source = "...", ref = "...", path = "sub/dir"} tables for remote sources

Parsing is pure: nothing here touches the filesystem or the network.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path, PurePosixPath

from capsync.sources.exceptions import DescriptorError
from capsync.sources.models import LocalSource, RemoteSource, SourceDescriptor

FILE_SCHEME = "file://"

# Hosting shorthand prefix -> clone URL template
HOST_SHORTHANDS: dict[str, str] = {
    "github:": "https://github.com/{repo}.git",
    "gitlab:": "https://gitlab.com/{repo}.git",
}

_CAPABILITY_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_capability_id(capability_id: str) -> None:
    """Reject ids that cannot safely name a directory under the state dir.

    Raises:
        DescriptorError: If the id is empty or contains path separators
    """
    if not _CAPABILITY_ID_RE.match(capability_id):
        raise DescriptorError(
            f"Invalid capability id '{capability_id}': use letters, digits, '.', '_' or '-'"
        )


def parse_source_reference(reference: object, *, base_dir: Path) -> SourceDescriptor:
    """Parse a source reference from configuration.

    Args:
        reference: Bare string or {source, ref?, path?} mapping
        base_dir: Directory relative file:// paths are resolved against

    Returns:
        LocalSource or RemoteSource

    Raises:
        DescriptorError: If the reference is malformed
    """
    if isinstance(reference, str):
        return _parse_source_string(reference, table_ref=None, subdirectory=None, base_dir=base_dir)

    if isinstance(reference, Mapping):
        source = reference.get("source")
        if not isinstance(source, str) or not source:
            raise DescriptorError("Source table is missing a 'source' string")
        table_ref = _optional_string(reference, "ref")
        subdirectory = _optional_string(reference, "path")
        return _parse_source_string(
            source, table_ref=table_ref, subdirectory=subdirectory, base_dir=base_dir
        )

    raise DescriptorError(
        f"Source reference must be a string or a table, got {type(reference).__name__}"
    )


def _optional_string(table: Mapping, key: str) -> str | None:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value:
        raise DescriptorError(f"Source '{key}' must be a non-empty string")
    return value


def _parse_source_string(
    source: str,
    *,
    table_ref: str | None,
    subdirectory: str | None,
    base_dir: Path,
) -> SourceDescriptor:
    source = source.strip()
    if not source:
        raise DescriptorError("Source reference is empty")

    if source.startswith(FILE_SCHEME):
        if subdirectory is not None:
            raise DescriptorError(f"'path' is only supported for git sources: {source}")
        if table_ref is not None:
            raise DescriptorError(f"'ref' is only supported for git sources: {source}")
        return LocalSource(path=_resolve_file_path(source, base_dir), reference=source)

    url = source
    reference = source
    suffix_ref: str | None = None
    for prefix, template in HOST_SHORTHANDS.items():
        if source.startswith(prefix):
            repo, _, suffix = source[len(prefix) :].partition("#")
            if not repo:
                raise DescriptorError(f"Missing repository in shorthand source: {source}")
            url = template.format(repo=repo)
            reference = source[: len(prefix) + len(repo)]
            suffix_ref = suffix or None
            break

    return RemoteSource(
        url=url,
        reference=reference,
        ref=table_ref if table_ref is not None else suffix_ref,
        subdirectory=_normalize_subdirectory(subdirectory, source),
    )


def _resolve_file_path(source: str, base_dir: Path) -> Path:
    raw = source[len(FILE_SCHEME) :]
    if not raw:
        raise DescriptorError(f"Empty path in file source: {source}")
    path = Path(raw)
    if not path.is_absolute():
        path = base_dir / path
    return Path(os.path.normpath(path))


def _normalize_subdirectory(subdirectory: str | None, source: str) -> str | None:
    if subdirectory is None:
        return None
    posix = PurePosixPath(subdirectory.replace("\\", "/"))
    if posix.is_absolute() or ".." in posix.parts:
        raise DescriptorError(f"Subdirectory must stay inside the repository: {subdirectory}")
    parts = [part for part in posix.parts if part != "."]
    if not parts:
        raise DescriptorError(f"Empty subdirectory for source: {source}")
    return "/".join(parts)
