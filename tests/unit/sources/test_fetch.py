"""Tests for fetch_capability_source: materialize, then wrap when needed."""

from pathlib import Path

from capsync.core.paths import ProjectPaths
from capsync.gateway.git.fake import FakeGit
from capsync.sources.fetch import fetch_capability_source
from capsync.sources.models import LocalSource, RemoteSource
from capsync.sources.wrapping import ManifestState, inspect_manifest

URL = "https://example.com/acme/tasks.git"
COMMIT_A = "a" * 40
COMMIT_B = "b" * 40

NATIVE_MANIFEST = '[capability]\nid = "tasks"\nname = "Tasks"\nversion = "3.0.0"\n'


def _remote() -> RemoteSource:
    return RemoteSource(url=URL, reference=URL, ref=None, subdirectory=None)


def test_remote_without_manifest_is_wrapped(tmp_path: Path) -> None:
    git = FakeGit(
        remotes={URL: {"HEAD": COMMIT_A}},
        commit_files={COMMIT_A: {"skills/triage/SKILL.md": "# Triage"}},
    )
    paths = ProjectPaths(root=tmp_path)

    result = fetch_capability_source("tasks", _remote(), git=git, paths=paths)

    assert result.was_wrapped is True
    assert result.resolved_version == "aaaaaaa"
    assert result.revision == COMMIT_A
    assert result.content_digest is None
    assert inspect_manifest(result.materialized_path) == ManifestState.WRAPPED


def test_wrapped_manifest_is_regenerated_after_update(tmp_path: Path) -> None:
    git = FakeGit(
        remotes={URL: {"HEAD": COMMIT_A}},
        commit_files={COMMIT_A: {"skills/triage/SKILL.md": "# Triage"}},
    )
    paths = ProjectPaths(root=tmp_path)
    fetch_capability_source("tasks", _remote(), git=git, paths=paths)
    git.publish(URL, "HEAD", COMMIT_B, {"skills/triage/SKILL.md": "# v2"})

    result = fetch_capability_source("tasks", _remote(), git=git, paths=paths)

    manifest = (result.materialized_path / "capability.toml").read_text(encoding="utf-8")
    assert result.changed is True
    assert result.resolved_version == "bbbbbbb"
    assert COMMIT_B in manifest


def test_native_manifest_is_left_untouched(tmp_path: Path) -> None:
    git = FakeGit(
        remotes={URL: {"HEAD": COMMIT_A}},
        commit_files={
            COMMIT_A: {"capability.toml": NATIVE_MANIFEST, "skills/triage/SKILL.md": "# Triage"}
        },
    )
    paths = ProjectPaths(root=tmp_path)

    result = fetch_capability_source("tasks", _remote(), git=git, paths=paths)

    assert result.was_wrapped is False
    assert (result.materialized_path / "capability.toml").read_text(
        encoding="utf-8"
    ) == NATIVE_MANIFEST


def test_remote_without_recognizable_content_is_not_wrapped(tmp_path: Path) -> None:
    git = FakeGit(
        remotes={URL: {"HEAD": COMMIT_A}},
        commit_files={COMMIT_A: {"src/main.py": "print('hi')"}},
    )
    paths = ProjectPaths(root=tmp_path)

    result = fetch_capability_source("tasks", _remote(), git=git, paths=paths)

    assert result.was_wrapped is False
    assert not (result.materialized_path / "capability.toml").exists()


def test_local_source_is_always_wrapped_without_manifest(tmp_path: Path) -> None:
    """Local copies get a manifest even without conventional directories."""
    source_dir = tmp_path / "caps" / "notes"
    source_dir.mkdir(parents=True)
    (source_dir / "notes.txt").write_text("hello", encoding="utf-8")
    source = LocalSource(path=source_dir, reference="file://./caps/notes")
    paths = ProjectPaths(root=tmp_path)

    first = fetch_capability_source("notes", source, git=FakeGit(), paths=paths)
    second = fetch_capability_source("notes", source, git=FakeGit(), paths=paths)

    assert first.was_wrapped is True
    assert first.revision is None
    assert first.content_digest is not None
    assert first.resolved_version == first.content_digest[:12]
    assert second.changed is False
    assert second.content_digest == first.content_digest
