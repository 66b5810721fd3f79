"""Fake git implementation for testing.

FakeGit is an in-memory implementation of remote repositories that writes real
files into clone targets, so fetcher logic that reads the working tree can be
exercised without spawning git.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from capsync.gateway.git.abc import Git


@dataclass(frozen=True)
class CloneCall:
    url: str
    target: Path
    ref: str | None
    depth: int


@dataclass(frozen=True)
class FetchCall:
    repo_root: Path
    ref: str | None
    depth: int


@dataclass
class _Checkout:
    url: str
    head: str
    fetch_head: str | None


class FakeGit(Git):
    """In-memory fake git with configurable remotes.

    Constructor Injection:
        remotes: Mapping of URL -> {ref: commit}. The key "HEAD" is the
            remote's default branch.
        commit_files: Mapping of commit -> {relative path: file content}
        unreachable_urls: URLs for which every network operation fails

    Mutation Tracking:
        clone_calls: Clones performed, in order
        fetch_calls: Fetches performed, in order
        checkout_calls: Working copies moved to FETCH_HEAD
        ls_remote_calls: (remote, ref) pairs queried

    Use publish() to simulate an upstream push between syncs.
    """

    def __init__(
        self,
        *,
        remotes: dict[str, dict[str, str]] | None = None,
        commit_files: dict[str, dict[str, str]] | None = None,
        unreachable_urls: set[str] | None = None,
    ) -> None:
        self._remotes: dict[str, dict[str, str]] = {
            url: dict(refs) for url, refs in (remotes or {}).items()
        }
        self._commit_files: dict[str, dict[str, str]] = {
            commit: dict(files) for commit, files in (commit_files or {}).items()
        }
        self._unreachable_urls = set(unreachable_urls) if unreachable_urls else set()
        self._checkouts: dict[Path, _Checkout] = {}
        self._clone_calls: list[CloneCall] = []
        self._fetch_calls: list[FetchCall] = []
        self._checkout_calls: list[Path] = []
        self._ls_remote_calls: list[tuple[str, str | None]] = []

    def publish(self, url: str, ref: str, commit: str, files: dict[str, str]) -> None:
        """Point a remote ref at a new commit with the given tree."""
        self._commit_files[commit] = dict(files)
        self._remotes.setdefault(url, {})[ref] = commit

    def clone(self, url: str, target: Path, *, ref: str | None, depth: int) -> None:
        self._clone_calls.append(CloneCall(url=url, target=target, ref=ref, depth=depth))
        commit = self._lookup(url, ref)
        if commit is None:
            raise RuntimeError(f"Failed to clone {url}: Remote branch {ref} not found")
        if target.exists():
            raise RuntimeError(f"Failed to clone {url}: destination path '{target}' already exists")
        target.mkdir(parents=True)
        (target / ".git").mkdir()
        self._write_tree(target, commit)
        self._checkouts[target] = _Checkout(url=url, head=commit, fetch_head=None)

    def fetch_ref(self, repo_root: Path, *, ref: str | None, depth: int) -> None:
        self._fetch_calls.append(FetchCall(repo_root=repo_root, ref=ref, depth=depth))
        checkout = self._require_checkout(repo_root)
        if ref is not None and ref in self._commit_files and ref not in self._refs(checkout.url):
            self._require_reachable(checkout.url)
            checkout.fetch_head = ref
            return
        commit = self._lookup(checkout.url, ref)
        if commit is None:
            raise RuntimeError(f"Failed to fetch '{ref}' from origin: couldn't find remote ref")
        checkout.fetch_head = commit

    def checkout_fetched(self, repo_root: Path) -> None:
        self._checkout_calls.append(repo_root)
        checkout = self._require_checkout(repo_root)
        if checkout.fetch_head is None:
            raise RuntimeError("Failed to update working copy: FETCH_HEAD is not set")
        for rel_path in self._commit_files.get(checkout.head, {}):
            tracked = repo_root / rel_path
            if tracked.is_file():
                tracked.unlink()
        self._write_tree(repo_root, checkout.fetch_head)
        checkout.head = checkout.fetch_head

    def resolve_revision(self, repo_root: Path, revision: str) -> str:
        checkout = self._require_checkout(repo_root)
        if revision == "HEAD":
            return checkout.head
        if revision == "FETCH_HEAD" and checkout.fetch_head is not None:
            return checkout.fetch_head
        raise RuntimeError(f"Failed to resolve revision '{revision}'")

    def resolve_remote_revision(
        self, remote: str, ref: str | None, *, cwd: Path | None
    ) -> str | None:
        self._ls_remote_calls.append((remote, ref))
        url = remote
        if remote == "origin":
            if cwd is None:
                raise RuntimeError("Failed to query origin: not a git repository")
            url = self._require_checkout(cwd).url
        return self._lookup(url, ref)

    def _refs(self, url: str) -> dict[str, str]:
        self._require_reachable(url)
        if url not in self._remotes:
            raise RuntimeError(f"Failed to reach {url}: repository not found")
        return self._remotes[url]

    def _lookup(self, url: str, ref: str | None) -> str | None:
        return self._refs(url).get(ref if ref is not None else "HEAD")

    def _require_reachable(self, url: str) -> None:
        if url in self._unreachable_urls:
            raise RuntimeError(f"Failed to reach {url}: Could not resolve host")

    def _require_checkout(self, repo_root: Path) -> _Checkout:
        checkout = self._checkouts.get(repo_root)
        if checkout is None or not (repo_root / ".git").is_dir():
            raise RuntimeError(f"fatal: not a git repository: {repo_root}")
        return checkout

    def _write_tree(self, root: Path, commit: str) -> None:
        for rel_path, content in self._commit_files.get(commit, {}).items():
            file_path = root / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")

    @property
    def clone_calls(self) -> list[CloneCall]:
        return list(self._clone_calls)

    @property
    def fetch_calls(self) -> list[FetchCall]:
        return list(self._fetch_calls)

    @property
    def checkout_calls(self) -> list[Path]:
        return list(self._checkout_calls)

    @property
    def ls_remote_calls(self) -> list[tuple[str, str | None]]:
        return list(self._ls_remote_calls)
