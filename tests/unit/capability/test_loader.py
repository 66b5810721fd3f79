"""Tests for loading materialized capability directories."""

from pathlib import Path

import pytest

from capsync.capability.loader import CapabilityLoadError, load_capability


def _write(root: Path, rel_path: str, content: str) -> None:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_load_full_capability(tmp_path: Path) -> None:
    root = tmp_path / "tasks"
    _write(root, "capability.toml", '[capability]\nname = "Tasks"\nversion = "1.0.0"\n')
    _write(root, "skills/triage/SKILL.md", "---\ndescription: Sort issues\n---\n# Triage\n")
    _write(root, "skills/triage/helper.py", "print('hi')\n")
    _write(root, "skills/quick.md", "# Quick\n")
    _write(root, "rules/style.md", "Use tabs.")
    _write(root, "commands/deploy.md", "# Deploy")
    _write(root, "agents/reviewer.md", "# Reviewer")
    _write(root, "docs/guide.md", "Guide")

    capability = load_capability(root)

    assert capability.id == "tasks"
    assert capability.name == "Tasks"
    assert capability.version == "1.0.0"
    assert [s.name for s in capability.skills] == ["quick", "triage"]
    triage = capability.skills[1]
    assert triage.is_folder is True
    assert triage.description == "Sort issues"
    assert capability.skills[0].is_folder is False
    assert [r.name for r in capability.rules] == ["style"]
    assert [c.name for c in capability.commands] == ["deploy"]
    assert [a.name for a in capability.subagents] == ["reviewer"]
    assert [d.name for d in capability.docs] == ["guide"]
    assert capability.mcp is None


def test_frontmatter_name_overrides_directory_name(tmp_path: Path) -> None:
    root = tmp_path / "tasks"
    _write(root, "capability.toml", "[capability]\n")
    _write(root, "skills/dir-name/SKILL.md", "---\nname: triage-issues\n---\nBody\n")

    capability = load_capability(root)

    assert [s.name for s in capability.skills] == ["triage-issues"]


def test_unsafe_frontmatter_name_falls_back_to_directory_name(tmp_path: Path) -> None:
    root = tmp_path / "tasks"
    _write(root, "capability.toml", "[capability]\n")
    _write(root, "skills/triage/SKILL.md", "---\nname: ../escape\n---\nBody\n")

    capability = load_capability(root)

    assert [s.name for s in capability.skills] == ["triage"]


def test_malformed_frontmatter_still_loads_skill(tmp_path: Path) -> None:
    root = tmp_path / "tasks"
    _write(root, "capability.toml", "[capability]\n")
    _write(root, "skills/triage/SKILL.md", "---\nname: [unclosed\n---\nBody\n")

    capability = load_capability(root)

    assert [s.name for s in capability.skills] == ["triage"]


def test_mcp_table_is_parsed(tmp_path: Path) -> None:
    root = tmp_path / "fs"
    _write(
        root,
        "capability.toml",
        '[capability]\nid = "fs"\n[mcp]\ncommand = "npx"\nargs = ["-y", "server"]\n'
        '[mcp.env]\nTOKEN = "abc"\n',
    )

    capability = load_capability(root)

    assert capability.mcp is not None
    assert capability.mcp.command == "npx"
    assert capability.mcp.args == ["-y", "server"]
    assert capability.mcp.env == {"TOKEN": "abc"}


def test_missing_manifest_raises(tmp_path: Path) -> None:
    (tmp_path / "tasks").mkdir()

    with pytest.raises(CapabilityLoadError, match="No capability.toml"):
        load_capability(tmp_path / "tasks")


def test_malformed_manifest_raises(tmp_path: Path) -> None:
    root = tmp_path / "tasks"
    _write(root, "capability.toml", "[capability\n")

    with pytest.raises(CapabilityLoadError, match="Failed to parse"):
        load_capability(root)


@pytest.mark.parametrize(
    ("mcp_table", "message"),
    [
        ('command = "x"\nenv = "oops"\n', "env must be a table"),
        ('command = "x"\nargs = "abc"\n', "args must be an array"),
    ],
)
def test_mcp_table_with_wrong_value_types_raises(
    tmp_path: Path, mcp_table: str, message: str
) -> None:
    root = tmp_path / "fs"
    _write(root, "capability.toml", f'[capability]\nid = "fs"\n[mcp]\n{mcp_table}')

    with pytest.raises(CapabilityLoadError, match=message):
        load_capability(root)
