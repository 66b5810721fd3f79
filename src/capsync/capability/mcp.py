"""Synthesized capabilities for MCP servers declared in capsync.toml.

Each [mcps.<name>] entry becomes a materialized capability `_mcps-<name>`
whose manifest carries an [mcp] table, so MCP servers flow through the same
enable/disable and cleanup machinery as fetched capabilities.
"""

import logging
import shutil

from capsync.config.loader import McpServerConfig, ProjectConfig
from capsync.core.paths import ProjectPaths
from capsync.sources.wrapping import render_manifest, write_manifest_if_changed

logger = logging.getLogger(__name__)

MCP_CAPABILITY_PREFIX = "_mcps-"


def mcp_capability_id(name: str) -> str:
    return f"{MCP_CAPABILITY_PREFIX}{name}"


def build_mcp_manifest(name: str, server: McpServerConfig) -> dict:
    mcp: dict = {"command": server.command}
    if server.args:
        mcp["args"] = list(server.args)
    if server.transport is not None:
        mcp["transport"] = server.transport
    if server.cwd is not None:
        mcp["cwd"] = server.cwd
    if server.env:
        mcp["env"] = dict(server.env)
    return {
        "capability": {
            "id": mcp_capability_id(name),
            "name": f"{name} (MCP)",
            "version": "1.0.0",
            "description": "MCP server defined in capsync.toml",
            "metadata": {"wrapped": True, "generated_from_config": True},
        },
        "mcp": mcp,
    }


def generate_mcp_capabilities(config: ProjectConfig, paths: ProjectPaths) -> list[str]:
    """Materialize one capability per [mcps] entry and drop stale ones.

    Returns:
        Ids of the generated capabilities, sorted
    """
    generated: list[str] = []
    for name in sorted(config.mcps):
        capability_id = mcp_capability_id(name)
        capability_dir = paths.capability_dir(capability_id)
        capability_dir.mkdir(parents=True, exist_ok=True)
        text = render_manifest(build_mcp_manifest(name, config.mcps[name]))
        write_manifest_if_changed(capability_dir, text)
        generated.append(capability_id)

    if paths.capabilities_dir.is_dir():
        for entry in sorted(paths.capabilities_dir.iterdir()):
            if (
                entry.is_dir()
                and entry.name.startswith(MCP_CAPABILITY_PREFIX)
                and entry.name not in generated
            ):
                logger.debug("Removing stale MCP capability %s", entry.name)
                shutil.rmtree(entry)
    return generated
