"""Tests for materializing git sources against FakeGit."""

from pathlib import Path

import pytest

from capsync.core.paths import ProjectPaths
from capsync.gateway.git.fake import FakeGit
from capsync.sources.exceptions import FetchError, PathNotFoundInRepositoryError
from capsync.sources.models import RemoteSource
from capsync.sources.remote import CLONE_DEPTH, is_commit_pin, materialize_remote_source

URL = "https://example.com/acme/tasks.git"
COMMIT_A = "a" * 40
COMMIT_B = "b" * 40


def _source(*, ref: str | None = None, subdirectory: str | None = None) -> RemoteSource:
    return RemoteSource(url=URL, reference=URL, ref=ref, subdirectory=subdirectory)


def _git() -> FakeGit:
    return FakeGit(
        remotes={URL: {"HEAD": COMMIT_A, "main": COMMIT_A}},
        commit_files={
            COMMIT_A: {
                "skills/triage/SKILL.md": "# Triage",
                "commands/old.md": "# Old",
            }
        },
    )


def test_first_fetch_clones_shallow(tmp_path: Path) -> None:
    """A source without a checkout is cloned at depth 1 into its capability dir."""
    git = _git()
    paths = ProjectPaths(root=tmp_path)

    result = materialize_remote_source("tasks", _source(), git=git, paths=paths)

    assert result.changed is True
    assert result.revision == COMMIT_A
    assert result.path == paths.capability_dir("tasks")
    assert (result.path / "skills" / "triage" / "SKILL.md").read_text(encoding="utf-8") == "# Triage"
    assert len(git.clone_calls) == 1
    assert git.clone_calls[0].depth == CLONE_DEPTH


def test_second_fetch_against_unchanged_upstream_does_nothing(tmp_path: Path) -> None:
    """An unchanged remote costs one ls-remote and no fetch."""
    git = _git()
    paths = ProjectPaths(root=tmp_path)
    materialize_remote_source("tasks", _source(ref="main"), git=git, paths=paths)

    result = materialize_remote_source("tasks", _source(ref="main"), git=git, paths=paths)

    assert result.changed is False
    assert result.revision == COMMIT_A
    assert git.fetch_calls == []
    assert git.ls_remote_calls == [("origin", "main")]


def test_upstream_push_updates_working_tree(tmp_path: Path) -> None:
    """A new upstream commit is fetched and replaces the tracked files."""
    git = _git()
    paths = ProjectPaths(root=tmp_path)
    materialize_remote_source("tasks", _source(ref="main"), git=git, paths=paths)
    git.publish(URL, "main", COMMIT_B, {"skills/triage/SKILL.md": "# Triage v2"})

    result = materialize_remote_source("tasks", _source(ref="main"), git=git, paths=paths)

    assert result.changed is True
    assert result.revision == COMMIT_B
    target = paths.capability_dir("tasks")
    assert (target / "skills" / "triage" / "SKILL.md").read_text(encoding="utf-8") == "# Triage v2"
    assert not (target / "commands" / "old.md").exists()
    assert len(git.fetch_calls) == 1


def test_untracked_files_survive_update(tmp_path: Path) -> None:
    """A generated manifest in the checkout is kept across updates."""
    git = _git()
    paths = ProjectPaths(root=tmp_path)
    materialize_remote_source("tasks", _source(), git=git, paths=paths)
    manifest = paths.capability_dir("tasks") / "capability.toml"
    manifest.write_text("[capability]\n", encoding="utf-8")
    git.publish(URL, "HEAD", COMMIT_B, {"skills/triage/SKILL.md": "# v2"})

    materialize_remote_source("tasks", _source(), git=git, paths=paths)

    assert manifest.exists()


def test_unknown_ref_fails_and_leaves_no_checkout(tmp_path: Path) -> None:
    git = _git()
    paths = ProjectPaths(root=tmp_path)

    with pytest.raises(FetchError, match="Failed to clone"):
        materialize_remote_source("tasks", _source(ref="nope"), git=git, paths=paths)

    assert not paths.capability_dir("tasks").exists()


def test_unreachable_remote_on_update_raises_fetch_error(tmp_path: Path) -> None:
    """A git failure after the first sync keeps the existing checkout."""
    git = _git()
    paths = ProjectPaths(root=tmp_path)
    materialize_remote_source("tasks", _source(), git=git, paths=paths)
    unreachable = FakeGit(
        remotes={URL: {"HEAD": COMMIT_A}},
        commit_files={COMMIT_A: {}},
        unreachable_urls={URL},
    )

    with pytest.raises(FetchError):
        materialize_remote_source("tasks", _source(), git=unreachable, paths=paths)

    assert (paths.capability_dir("tasks") / "skills" / "triage" / "SKILL.md").exists()


def test_directory_without_git_metadata_is_recloned(tmp_path: Path) -> None:
    git = _git()
    paths = ProjectPaths(root=tmp_path)
    stray = paths.capability_dir("tasks")
    stray.mkdir(parents=True)
    (stray / "leftover.md").write_text("x", encoding="utf-8")

    result = materialize_remote_source("tasks", _source(), git=git, paths=paths)

    assert result.changed is True
    assert not (stray / "leftover.md").exists()
    assert len(git.clone_calls) == 1


def test_subdirectory_source_copies_only_the_subtree(tmp_path: Path) -> None:
    git = FakeGit(
        remotes={URL: {"HEAD": COMMIT_A}},
        commit_files={
            COMMIT_A: {
                "README.md": "# Monorepo",
                "plugins/docs/skills/writer/SKILL.md": "# Writer",
            }
        },
    )
    paths = ProjectPaths(root=tmp_path)

    result = materialize_remote_source(
        "docs", _source(subdirectory="plugins/docs"), git=git, paths=paths
    )

    target = paths.capability_dir("docs")
    assert result.changed is True
    assert (target / "skills" / "writer" / "SKILL.md").exists()
    assert not (target / "README.md").exists()
    assert not (target / ".git").exists()
    assert git.clone_calls[0].target == paths.repo_checkout_dir("docs")


def test_subdirectory_source_unchanged_on_second_fetch(tmp_path: Path) -> None:
    """A generated manifest in the copy does not count as a difference."""
    git = FakeGit(
        remotes={URL: {"HEAD": COMMIT_A}},
        commit_files={COMMIT_A: {"plugins/docs/skills/writer/SKILL.md": "# Writer"}},
    )
    paths = ProjectPaths(root=tmp_path)
    source = _source(subdirectory="plugins/docs")
    materialize_remote_source("docs", source, git=git, paths=paths)
    (paths.capability_dir("docs") / "capability.toml").write_text("[capability]\n", encoding="utf-8")

    result = materialize_remote_source("docs", source, git=git, paths=paths)

    assert result.changed is False


def test_missing_subdirectory_raises_path_not_found(tmp_path: Path) -> None:
    git = _git()
    paths = ProjectPaths(root=tmp_path)

    with pytest.raises(PathNotFoundInRepositoryError, match="Path not found in repository: plugins/x"):
        materialize_remote_source("tasks", _source(subdirectory="plugins/x"), git=git, paths=paths)


def test_commit_pin_checks_out_exact_commit_without_ls_remote(tmp_path: Path) -> None:
    """A full commit hash is fetched directly and never re-queried."""
    git = FakeGit(
        remotes={URL: {"HEAD": COMMIT_A}},
        commit_files={
            COMMIT_A: {"skills/a/SKILL.md": "# A"},
            COMMIT_B: {"skills/b/SKILL.md": "# B"},
        },
    )
    paths = ProjectPaths(root=tmp_path)

    first = materialize_remote_source("tasks", _source(ref=COMMIT_B), git=git, paths=paths)
    second = materialize_remote_source("tasks", _source(ref=COMMIT_B), git=git, paths=paths)

    target = paths.capability_dir("tasks")
    assert first.revision == COMMIT_B
    assert (target / "skills" / "b" / "SKILL.md").exists()
    assert not (target / "skills" / "a" / "SKILL.md").exists()
    assert second.changed is False
    assert git.ls_remote_calls == []


def test_is_commit_pin() -> None:
    assert is_commit_pin(COMMIT_A)
    assert not is_commit_pin("main")
    assert not is_commit_pin(None)
    assert not is_commit_pin("A" * 40)
