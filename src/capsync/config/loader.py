"""Load the project configuration from capsync.toml."""

import tomllib
from dataclasses import dataclass

from capsync.core.paths import ProjectPaths
from capsync.sources.descriptor import validate_capability_id
from capsync.sources.exceptions import DescriptorError
from capsync.sources.models import SourceReference


class ConfigError(Exception):
    """capsync.toml is unreadable or structurally invalid."""


@dataclass(frozen=True)
class McpServerConfig:
    """An MCP server declared under [mcps.<name>]."""

    command: str
    args: list[str]
    env: dict[str, str]
    cwd: str | None
    transport: str | None


@dataclass(frozen=True)
class ProjectConfig:
    """In-memory representation of capsync.toml.

    Example capsync.toml:
      [capabilities]
      # Optional: defaults to every declared source
      enabled = ["tasks"]

      [capabilities.sources]
      tasks = "github:acme/tasks#v1"
      local-demo = "file://./caps/demo"
      docs = { source = "https://github.com/acme/docs.git", path = "plugins/docs" }

      [mcps.filesystem]
      command = "npx"
      args = ["-y", "@modelcontextprotocol/server-filesystem"]

      # Named capability sets; `capsync profile set work` switches to one
      [profiles.work]
      capabilities = ["tasks", "docs"]
    """

    # Source references are validated per capability at sync time
    sources: dict[str, SourceReference]
    enabled: list[str] | None
    mcps: dict[str, McpServerConfig]
    profiles: dict[str, list[str]]


def empty_project_config() -> ProjectConfig:
    return ProjectConfig(sources={}, enabled=None, mcps={}, profiles={})


def load_project_config(paths: ProjectPaths) -> ProjectConfig:
    """Load capsync.toml, or return an empty config if it does not exist.

    Raises:
        ConfigError: If the file is not valid TOML or has the wrong shape
    """
    cfg_path = paths.config_path
    if not cfg_path.exists():
        return empty_project_config()

    try:
        data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to read {cfg_path}: {e}") from e

    capabilities = _table(data, "capabilities", cfg_path=str(cfg_path))
    sources = _table(capabilities, "sources", cfg_path=str(cfg_path))

    enabled = capabilities.get("enabled")
    if enabled is not None:
        if not isinstance(enabled, list) or not all(isinstance(x, str) for x in enabled):
            raise ConfigError(f"{cfg_path}: capabilities.enabled must be a list of strings")
        enabled = list(enabled)

    mcps: dict[str, McpServerConfig] = {}
    for name, raw in _table(data, "mcps", cfg_path=str(cfg_path)).items():
        mcps[name] = _parse_mcp_server(name, raw, cfg_path=str(cfg_path))

    profiles: dict[str, list[str]] = {}
    for name, raw in _table(data, "profiles", cfg_path=str(cfg_path)).items():
        profiles[name] = _parse_profile(name, raw, cfg_path=str(cfg_path))

    return ProjectConfig(sources=dict(sources), enabled=enabled, mcps=mcps, profiles=profiles)


def _table(data: dict, key: str, *, cfg_path: str) -> dict:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"{cfg_path}: '{key}' must be a table")
    return value


def _parse_mcp_server(name: str, raw: object, *, cfg_path: str) -> McpServerConfig:
    try:
        validate_capability_id(name)
    except DescriptorError as e:
        raise ConfigError(f"{cfg_path}: invalid MCP server name: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{cfg_path}: mcps.{name} must be a table")
    command = raw.get("command")
    if not isinstance(command, str) or not command:
        raise ConfigError(f"{cfg_path}: mcps.{name} is missing 'command'")
    args = raw.get("args", [])
    if not isinstance(args, list):
        raise ConfigError(f"{cfg_path}: mcps.{name}.args must be an array")
    env = raw.get("env", {})
    if not isinstance(env, dict):
        raise ConfigError(f"{cfg_path}: mcps.{name}.env must be a table")
    cwd = raw.get("cwd")
    transport = raw.get("transport")
    return McpServerConfig(
        command=command,
        args=[str(x) for x in args],
        env={str(k): str(v) for k, v in env.items()},
        cwd=str(cwd) if cwd is not None else None,
        transport=str(transport) if transport is not None else None,
    )


def _parse_profile(name: str, raw: object, *, cfg_path: str) -> list[str]:
    if not isinstance(raw, dict):
        raise ConfigError(f"{cfg_path}: profiles.{name} must be a table")
    capabilities = raw.get("capabilities", [])
    if not isinstance(capabilities, list) or not all(isinstance(x, str) for x in capabilities):
        raise ConfigError(f"{cfg_path}: profiles.{name}.capabilities must be a list of strings")
    return list(capabilities)
