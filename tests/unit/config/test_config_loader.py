"""Tests for loading capsync.toml."""

from pathlib import Path

import pytest

from capsync.config.loader import ConfigError, load_project_config
from capsync.core.paths import ProjectPaths


def _write_config(tmp_path: Path, text: str) -> ProjectPaths:
    (tmp_path / "capsync.toml").write_text(text, encoding="utf-8")
    return ProjectPaths(root=tmp_path)


def test_missing_config_is_empty(tmp_path: Path) -> None:
    config = load_project_config(ProjectPaths(root=tmp_path))

    assert config.sources == {}
    assert config.enabled is None
    assert config.mcps == {}


def test_full_config(tmp_path: Path) -> None:
    paths = _write_config(
        tmp_path,
        """
[capabilities]
enabled = ["tasks"]

[capabilities.sources]
tasks = "github:acme/tasks#v1"
docs = { source = "https://github.com/acme/docs.git", path = "plugins/docs" }

[mcps.filesystem]
command = "npx"
args = ["-y", "server"]
env = { ROOT = "." }
transport = "stdio"
""",
    )

    config = load_project_config(paths)

    assert config.enabled == ["tasks"]
    assert config.sources["tasks"] == "github:acme/tasks#v1"
    assert config.sources["docs"] == {
        "source": "https://github.com/acme/docs.git",
        "path": "plugins/docs",
    }
    server = config.mcps["filesystem"]
    assert server.command == "npx"
    assert server.args == ["-y", "server"]
    assert server.env == {"ROOT": "."}
    assert server.transport == "stdio"
    assert server.cwd is None


def test_invalid_toml_raises(tmp_path: Path) -> None:
    paths = _write_config(tmp_path, "[capabilities\n")

    with pytest.raises(ConfigError, match="Failed to read"):
        load_project_config(paths)


def test_enabled_must_be_list_of_strings(tmp_path: Path) -> None:
    paths = _write_config(tmp_path, "[capabilities]\nenabled = \"tasks\"\n")

    with pytest.raises(ConfigError, match="list of strings"):
        load_project_config(paths)


def test_sources_must_be_table(tmp_path: Path) -> None:
    paths = _write_config(tmp_path, "[capabilities]\nsources = [\"x\"]\n")

    with pytest.raises(ConfigError, match="'sources' must be a table"):
        load_project_config(paths)


def test_mcp_without_command_raises(tmp_path: Path) -> None:
    paths = _write_config(tmp_path, "[mcps.filesystem]\nargs = []\n")

    with pytest.raises(ConfigError, match="missing 'command'"):
        load_project_config(paths)


def test_mcp_with_unsafe_name_raises(tmp_path: Path) -> None:
    paths = _write_config(tmp_path, '[mcps."../x"]\ncommand = "x"\n')

    with pytest.raises(ConfigError, match="invalid MCP server name"):
        load_project_config(paths)


def test_mcp_env_must_be_table(tmp_path: Path) -> None:
    paths = _write_config(tmp_path, '[mcps.filesystem]\ncommand = "x"\nenv = "oops"\n')

    with pytest.raises(ConfigError, match="env must be a table"):
        load_project_config(paths)


def test_mcp_args_must_be_array(tmp_path: Path) -> None:
    paths = _write_config(tmp_path, '[mcps.filesystem]\ncommand = "x"\nargs = "abc"\n')

    with pytest.raises(ConfigError, match="args must be an array"):
        load_project_config(paths)


def test_profiles_are_parsed(tmp_path: Path) -> None:
    paths = _write_config(
        tmp_path,
        '[profiles.default]\ncapabilities = ["tasks"]\n[profiles.empty]\n',
    )

    config = load_project_config(paths)

    assert config.profiles == {"default": ["tasks"], "empty": []}


def test_profile_capabilities_must_be_list_of_strings(tmp_path: Path) -> None:
    paths = _write_config(tmp_path, '[profiles.work]\ncapabilities = "tasks"\n')

    with pytest.raises(ConfigError, match="profiles.work.capabilities"):
        load_project_config(paths)
