"""Deterministic content digests for directory trees.

The digest identifies a local source (and its materialized copy) in the lock
ledger, so it must depend only on entry names and file bytes: never on
directory listing order, timestamps or permissions.
"""

import hashlib
from collections.abc import Iterator
from pathlib import Path

# Version-control metadata never counts as capability content, whether it is a
# directory or a worktree/submodule `.git` file.
VCS_METADATA_NAMES = frozenset({".git", ".hg", ".svn"})

SHORT_DIGEST_LENGTH = 12

_DIR_MARKER = b"D"
_FILE_MARKER = b"F"
_END_OF_DIR = b"E"


def compute_directory_digest(root: Path, *, exclude: frozenset[str] = frozenset()) -> str:
    """Compute a SHA-256 hex digest over a directory tree.

    Entries are visited in lexicographic order of their names. Each entry
    contributes its NUL-terminated name and, for files, its length-prefixed
    byte content; directories are bracketed so that moving a file between
    directories changes the digest.

    Args:
        root: Directory to hash
        exclude: Entry names to skip at the top level only

    Returns:
        Lowercase hex digest (64 characters)
    """
    hasher = hashlib.sha256()
    for chunk in _iter_tree_chunks(root, exclude):
        hasher.update(chunk)
    return hasher.hexdigest()


def short_digest(digest: str) -> str:
    """Abbreviated digest used as a version string for local sources."""
    return digest[:SHORT_DIGEST_LENGTH]


def _iter_tree_chunks(directory: Path, exclude: frozenset[str]) -> Iterator[bytes]:
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.name in exclude or entry.name in VCS_METADATA_NAMES:
            continue
        name = entry.name.encode("utf-8", "surrogateescape") + b"\0"
        if entry.is_dir():
            yield name + _DIR_MARKER
            yield from _iter_tree_chunks(entry, frozenset())
            yield _END_OF_DIR
        elif entry.is_file():
            content = entry.read_bytes()
            yield name + _FILE_MARKER + len(content).to_bytes(8, "big")
            yield content
