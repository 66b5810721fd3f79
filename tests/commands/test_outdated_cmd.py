"""Tests for capsync outdated."""

from pathlib import Path

from click.testing import CliRunner

from capsync.cli.cli import cli
from capsync.core.context import CapsyncContext
from capsync.gateway.git.fake import FakeGit

URL = "https://example.com/acme/tasks.git"
COMMIT_A = "a" * 40
COMMIT_B = "b" * 40


def _context(tmp_path: Path) -> tuple[CapsyncContext, FakeGit]:
    (tmp_path / "capsync.toml").write_text(
        f'[capabilities.sources]\ntasks = "{URL}"\n', encoding="utf-8"
    )
    git = FakeGit(
        remotes={URL: {"HEAD": COMMIT_A}},
        commit_files={COMMIT_A: {"skills/triage/SKILL.md": "# Triage"}},
    )
    return CapsyncContext.for_test(project_root=tmp_path, git=git), git


def test_up_to_date(tmp_path: Path) -> None:
    ctx, _ = _context(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["sync"], obj=ctx)

    result = runner.invoke(cli, ["outdated"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "All sources up to date" in result.output


def test_update_available(tmp_path: Path) -> None:
    ctx, git = _context(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["sync"], obj=ctx)
    git.publish(URL, "HEAD", COMMIT_B, {"skills/triage/SKILL.md": "# v2"})

    result = runner.invoke(cli, ["outdated"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "tasks: aaaaaaa -> bbbbbbb" in result.output
    assert "1 update(s) available" in result.output


def test_unreachable_remote(tmp_path: Path) -> None:
    (tmp_path / "capsync.toml").write_text(
        f'[capabilities.sources]\ntasks = "{URL}"\n', encoding="utf-8"
    )
    git = FakeGit(remotes={URL: {"HEAD": COMMIT_A}}, unreachable_urls={URL})
    ctx = CapsyncContext.for_test(project_root=tmp_path, git=git)
    runner = CliRunner()

    result = runner.invoke(cli, ["outdated"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert f"tasks: Failed to query {URL}" in result.output
