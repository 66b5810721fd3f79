"""Integration tests for RealGit against a local upstream repository."""

import shutil
import subprocess
from pathlib import Path

import pytest

from capsync.core.paths import ProjectPaths
from capsync.gateway.git.real import RealGit
from capsync.sources.exceptions import FetchError
from capsync.sources.models import RemoteSource
from capsync.sources.remote import materialize_remote_source

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        [
            "git",
            "-c",
            "user.name=capsync",
            "-c",
            "user.email=capsync@example.com",
            "-c",
            "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def _commit(upstream: Path, rel_path: str, content: str) -> str:
    path = upstream / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    _git(upstream, "add", "-A")
    _git(upstream, "commit", "-q", "-m", f"update {rel_path}")
    return _git(upstream, "rev-parse", "HEAD")


@pytest.fixture
def upstream(tmp_path: Path) -> Path:
    repo = tmp_path / "upstream"
    repo.mkdir()
    _git(repo, "init", "-q")
    return repo


def test_clone_then_noop_then_update(tmp_path: Path, upstream: Path) -> None:
    first_commit = _commit(upstream, "skills/triage/SKILL.md", "# Triage")
    source = RemoteSource(
        url=upstream.as_uri(), reference=upstream.as_uri(), ref=None, subdirectory=None
    )
    paths = ProjectPaths(root=tmp_path / "project")
    git = RealGit()

    first = materialize_remote_source("tasks", source, git=git, paths=paths)
    second = materialize_remote_source("tasks", source, git=git, paths=paths)
    new_commit = _commit(upstream, "skills/triage/SKILL.md", "# Triage v2")
    third = materialize_remote_source("tasks", source, git=git, paths=paths)

    assert first.revision == first_commit
    assert first.changed is True
    assert second.changed is False
    assert third.revision == new_commit
    assert third.changed is True
    skill = paths.capability_dir("tasks") / "skills" / "triage" / "SKILL.md"
    assert skill.read_text(encoding="utf-8") == "# Triage v2"


def test_missing_branch_raises_fetch_error(tmp_path: Path, upstream: Path) -> None:
    _commit(upstream, "README.md", "hello")
    source = RemoteSource(
        url=upstream.as_uri(), reference=upstream.as_uri(), ref="no-such-branch", subdirectory=None
    )

    with pytest.raises(FetchError):
        materialize_remote_source(
            "tasks", source, git=RealGit(), paths=ProjectPaths(root=tmp_path / "project")
        )
