"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

from capsync.core.paths import ProjectPaths
from capsync.gateway.git.abc import Git
from capsync.gateway.git.real import RealGit
from capsync.gateway.time.abc import Time
from capsync.gateway.time.real import RealTime


@dataclass(frozen=True)
class CapsyncContext:
    """Immutable context holding all dependencies for capsync operations.

    Created once at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    git: Git
    time: Time
    paths: ProjectPaths

    @property
    def project_root(self) -> Path:
        return self.paths.root

    @staticmethod
    def for_test(
        *,
        project_root: Path,
        git: Git | None = None,
        time: Time | None = None,
    ) -> "CapsyncContext":
        """Create a context with fake gateways for tests.

        Args:
            project_root: Project directory (usually tmp_path)
            git: Optional Git implementation. Defaults to a FakeGit with no remotes.
            time: Optional Time implementation. Defaults to FakeTime.

        Example:
            >>> git = FakeGit(remotes={url: {"HEAD": "a" * 40}}, commit_files=...)
            >>> ctx = CapsyncContext.for_test(project_root=tmp_path, git=git)
        """
        from capsync.gateway.git.fake import FakeGit
        from capsync.gateway.time.fake import FakeTime

        return CapsyncContext(
            git=git if git is not None else FakeGit(),
            time=time if time is not None else FakeTime(),
            paths=ProjectPaths(root=project_root),
        )


def create_context(*, project_root: Path | None = None) -> CapsyncContext:
    """Create production context with real implementations.

    Args:
        project_root: Project directory; defaults to the current directory
    """
    root = project_root if project_root is not None else Path.cwd()
    return CapsyncContext(git=RealGit(), time=RealTime(), paths=ProjectPaths(root=root))
