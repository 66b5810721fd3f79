"""Narrow git interface for fetching capability repositories.

This module provides a clean abstraction over git subprocess calls so that the
remote fetcher's reconciliation logic can be tested without spawning git.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess
- FakeGit: In-memory implementation with configurable remotes
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path


class Git(ABC):
    """Abstract interface for the git operations the sync engine needs.

    All implementations (real, fake) must implement this interface. Mutating
    operations raise RuntimeError on failure; callers translate that into
    per-capability fetch errors.
    """

    @abstractmethod
    def clone(self, url: str, target: Path, *, ref: str | None, depth: int) -> None:
        """Clone a repository into target.

        Args:
            url: Clone URL (https, ssh or local path)
            target: Directory to create; its parent must exist
            ref: Branch or tag to check out, or None for the remote default
            depth: History depth (1 for a shallow clone)

        Raises:
            RuntimeError: If the clone fails
        """
        ...

    @abstractmethod
    def fetch_ref(self, repo_root: Path, *, ref: str | None, depth: int) -> None:
        """Fetch a ref (or commit) from origin into FETCH_HEAD.

        Does not modify the working tree.

        Args:
            repo_root: Existing checkout
            ref: Branch, tag or full commit hash; None fetches the remote HEAD
            depth: History depth of the fetch

        Raises:
            RuntimeError: If the fetch fails
        """
        ...

    @abstractmethod
    def checkout_fetched(self, repo_root: Path) -> None:
        """Move the working copy to the most recently fetched revision.

        Files not tracked by git are left in place unless the fetched
        revision tracks a file at the same path.

        Raises:
            RuntimeError: If the working copy cannot be updated
        """
        ...

    @abstractmethod
    def resolve_revision(self, repo_root: Path, revision: str) -> str:
        """Resolve a revision expression (e.g., "HEAD") to a full commit hash.

        Raises:
            RuntimeError: If the revision cannot be resolved
        """
        ...

    @abstractmethod
    def resolve_remote_revision(
        self, remote: str, ref: str | None, *, cwd: Path | None
    ) -> str | None:
        """Query the commit a remote ref points at without fetching objects.

        Uses `git ls-remote`, so it works with a remote name inside a checkout
        (remote="origin", cwd=checkout) or a URL without any checkout.

        Args:
            remote: Remote name or URL
            ref: Branch or tag; None queries the remote HEAD
            cwd: Checkout to run in (required when remote is a name)

        Returns:
            The commit hash, or None if the remote has no such ref

        Raises:
            RuntimeError: If the remote cannot be reached
        """
        ...


def parse_ls_remote_commit(output: str, ref: str | None = None) -> str | None:
    """Extract a commit hash from `git ls-remote` output.

    git matches ref patterns against trailing path components, so querying
    `main` also lists `refs/heads/feature/main`. When `ref` is given, only a
    line naming exactly that branch or tag counts, branches before tags, and
    an annotated tag resolves to its peeled commit (`refs/tags/<tag>^{}`).

    Without `ref`, the first peeled commit or else the first listed hash is
    returned.
    """
    commits: dict[str, str] = {}
    first: str | None = None
    for raw_line in output.splitlines():
        parts = raw_line.split()
        if not parts:
            continue
        commit = parts[0]
        commits.setdefault(parts[1] if len(parts) > 1 else "", commit)
        if first is None:
            first = commit

    if ref is None:
        peeled = next((c for name, c in commits.items() if name.endswith("^{}")), None)
        return peeled if peeled is not None else first

    for name in (f"refs/heads/{ref}", f"refs/tags/{ref}^{{}}", f"refs/tags/{ref}", ref):
        if name in commits:
            return commits[name]
    return None
