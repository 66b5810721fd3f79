"""Write enabled capabilities into the assistant configuration trees.

Every write is skipped when the target already holds identical content, so a
sync with no upstream changes leaves the output trees untouched.
"""

import logging
from pathlib import Path

from capsync.capability.loader import LoadedCapability, McpServer, Skill
from capsync.capability.mcp_json import merge_mcp_servers
from capsync.core.fs import replace_directory_with_copy
from capsync.core.paths import OutputLayout
from capsync.sources.content_hash import compute_directory_digest
from capsync.state.resource_manifest import CapabilityResources

logger = logging.getLogger(__name__)

SKILL_FILE_NAME = "SKILL.md"


def write_capability_artifacts(
    capability: LoadedCapability, layout: OutputLayout
) -> CapabilityResources:
    """Write skills, rules, commands and subagents for one capability.

    MCP registrations are merged separately by write_mcp_registrations, since
    .mcp.json is shared by all capabilities.

    Returns:
        Names of everything generated, for the resource manifest
    """
    for skill in capability.skills:
        _write_skill(skill, layout.skill_dir(skill.name))
    for rule in capability.rules:
        _write_text_if_changed(layout.rule_path(rule.name), rule.content)
    for command in capability.commands:
        _write_text_if_changed(layout.command_path(command.name), command.content)
    for subagent in capability.subagents:
        _write_text_if_changed(layout.subagent_path(subagent.name), subagent.content)

    return capability_resources(capability)


def capability_resources(capability: LoadedCapability) -> CapabilityResources:
    """Names of the artifacts write_capability_artifacts produces for a capability."""
    return CapabilityResources(
        skills=tuple(skill.name for skill in capability.skills),
        rules=tuple(rule.name for rule in capability.rules),
        commands=tuple(command.name for command in capability.commands),
        subagents=tuple(subagent.name for subagent in capability.subagents),
        mcp_servers=(capability.id,) if capability.mcp is not None else (),
    )


def write_mcp_registrations(
    capabilities: list[LoadedCapability],
    layout: OutputLayout,
    *,
    previously_managed: set[str],
) -> bool:
    """Register the MCP servers of enabled capabilities in .mcp.json.

    Servers are keyed by capability id. Entries capsync registered before are
    replaced; entries it never registered are preserved.

    Returns:
        True if .mcp.json was written
    """
    servers = {
        capability.id: mcp_registration(capability.mcp)
        for capability in capabilities
        if capability.mcp is not None
    }
    return merge_mcp_servers(layout.mcp_json_path, servers, replaced_names=previously_managed)


def mcp_registration(server: McpServer) -> dict:
    registration: dict = {"command": server.command, "args": list(server.args)}
    if server.env:
        registration["env"] = dict(server.env)
    if server.cwd is not None:
        registration["cwd"] = server.cwd
    if server.transport is not None:
        registration["type"] = server.transport
    return registration


def _write_skill(skill: Skill, target_dir: Path) -> None:
    if skill.is_folder:
        if target_dir.is_dir() and compute_directory_digest(target_dir) == compute_directory_digest(
            skill.source_path
        ):
            return
        replace_directory_with_copy(skill.source_path, target_dir)
        logger.debug("Wrote skill %s", target_dir)
        return
    _write_text_if_changed(target_dir / SKILL_FILE_NAME, skill.content)


def _write_text_if_changed(path: Path, content: str) -> bool:
    if path.is_file() and path.read_text(encoding="utf-8") == content:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.debug("Wrote %s", path)
    return True
