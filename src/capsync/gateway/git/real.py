"""Production implementation of the git gateway using subprocess."""

from pathlib import Path

from capsync.gateway.git.abc import Git, parse_ls_remote_commit
from capsync.subprocess_utils import run_subprocess_with_context


class RealGit(Git):
    """Real implementation of git operations using subprocess."""

    def clone(self, url: str, target: Path, *, ref: str | None, depth: int) -> None:
        """Clone a repository into target."""
        cmd = ["git", "clone", "--depth", str(depth)]
        if ref is not None:
            cmd.extend(["--branch", ref])
        cmd.extend([url, str(target)])
        run_subprocess_with_context(cmd=cmd, operation_context=f"clone {url}")

    def fetch_ref(self, repo_root: Path, *, ref: str | None, depth: int) -> None:
        """Fetch a ref (or commit) from origin into FETCH_HEAD."""
        target = ref if ref is not None else "HEAD"
        run_subprocess_with_context(
            cmd=["git", "fetch", "--depth", str(depth), "origin", target],
            operation_context=f"fetch '{target}' from origin",
            cwd=repo_root,
        )

    def checkout_fetched(self, repo_root: Path) -> None:
        """Move the working copy to FETCH_HEAD.

        Shallow histories cannot be fast-forwarded by merge, so the working
        copy is reset onto the fetched commit instead.
        """
        run_subprocess_with_context(
            cmd=["git", "reset", "--hard", "FETCH_HEAD"],
            operation_context="update working copy to FETCH_HEAD",
            cwd=repo_root,
        )

    def resolve_revision(self, repo_root: Path, revision: str) -> str:
        """Resolve a revision expression to a full commit hash."""
        result = run_subprocess_with_context(
            cmd=["git", "rev-parse", revision],
            operation_context=f"resolve revision '{revision}'",
            cwd=repo_root,
        )
        return result.stdout.strip()

    def resolve_remote_revision(
        self, remote: str, ref: str | None, *, cwd: Path | None
    ) -> str | None:
        """Query the commit a remote ref points at via `git ls-remote`."""
        target = ref if ref is not None else "HEAD"
        result = run_subprocess_with_context(
            cmd=["git", "ls-remote", remote, target],
            operation_context=f"query '{target}' on {remote}",
            cwd=cwd,
        )
        return parse_ls_remote_commit(result.stdout, target)
