"""Load materialized capability directories.

A loadable capability directory holds a capability.toml plus content in the
conventional directories understood by capsync.sources.discovery.
"""

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path

from capsync.capability.frontmatter import frontmatter_string, parse_markdown_frontmatter
from capsync.core.paths import MANIFEST_FILE_NAME
from capsync.sources.discovery import (
    CONTENT_KINDS,
    ContentItem,
    discover_content,
    find_marker_file,
)
from capsync.state.resource_manifest import is_safe_artifact_name

logger = logging.getLogger(__name__)


class CapabilityLoadError(Exception):
    """A capability directory has no usable manifest."""


@dataclass(frozen=True)
class Skill:
    name: str
    description: str | None
    # Folder skills are copied whole; single-file skills are written as SKILL.md
    source_path: Path
    is_folder: bool
    content: str


@dataclass(frozen=True)
class MarkdownItem:
    """A rule, command, subagent or doc: one named markdown document."""

    name: str
    content: str


@dataclass(frozen=True)
class McpServer:
    command: str
    args: list[str]
    env: dict[str, str]
    cwd: str | None
    transport: str | None


@dataclass(frozen=True)
class LoadedCapability:
    id: str
    name: str
    version: str
    description: str
    path: Path
    skills: tuple[Skill, ...]
    rules: tuple[MarkdownItem, ...]
    commands: tuple[MarkdownItem, ...]
    subagents: tuple[MarkdownItem, ...]
    docs: tuple[MarkdownItem, ...]
    mcp: McpServer | None


def load_capability(path: Path) -> LoadedCapability:
    """Parse a capability directory's manifest and content collections.

    The directory name is the capability id.

    Raises:
        CapabilityLoadError: If capability.toml is missing or malformed
    """
    manifest_path = path / MANIFEST_FILE_NAME
    if not manifest_path.is_file():
        raise CapabilityLoadError(f"No {MANIFEST_FILE_NAME} in {path}")
    try:
        data = tomllib.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        raise CapabilityLoadError(f"Failed to parse {manifest_path}: {e}") from e

    capability = data.get("capability", {})
    if not isinstance(capability, dict):
        raise CapabilityLoadError(f"{manifest_path}: [capability] must be a table")

    try:
        content = discover_content(path)
        skills = _load_skills(content.items_of("skills"))
        rules = _load_markdown_items(content.items_of("rules"), "rules")
        commands = _load_markdown_items(content.items_of("commands"), "commands")
        subagents = _load_markdown_items(content.items_of("subagents"), "subagents")
        docs = _load_markdown_items(content.items_of("docs"), "docs")
    except (OSError, UnicodeDecodeError) as e:
        raise CapabilityLoadError(f"Failed to read content of {path}: {e}") from e

    return LoadedCapability(
        id=path.name,
        name=str(capability.get("name", path.name)),
        version=str(capability.get("version", "")),
        description=str(capability.get("description", "")),
        path=path,
        skills=skills,
        rules=rules,
        commands=commands,
        subagents=subagents,
        docs=docs,
        mcp=_parse_mcp(data.get("mcp"), manifest_path),
    )


def _load_skills(items: tuple[ContentItem, ...]) -> tuple[Skill, ...]:
    skills: dict[str, Skill] = {}
    for item in items:
        markdown_path = item.path
        if item.is_folder:
            marker = find_marker_file(item.path, CONTENT_KINDS["skills"])
            if marker is None:
                continue
            markdown_path = marker
        text = markdown_path.read_text(encoding="utf-8")
        parsed = parse_markdown_frontmatter(text)
        if parsed.error is not None:
            logger.warning("%s: %s", markdown_path, parsed.error)

        name = frontmatter_string(parsed, "name") or item.name
        if not is_safe_artifact_name(name):
            logger.warning("%s: ignoring unsafe skill name '%s'", markdown_path, name)
            name = item.name
        if name in skills:
            logger.warning("Duplicate skill '%s' in %s; keeping the first", name, item.path)
            continue
        skills[name] = Skill(
            name=name,
            description=frontmatter_string(parsed, "description"),
            source_path=item.path,
            is_folder=item.is_folder,
            content=text,
        )
    return tuple(skills.values())


def _load_markdown_items(items: tuple[ContentItem, ...], kind_name: str) -> tuple[MarkdownItem, ...]:
    loaded: dict[str, MarkdownItem] = {}
    for item in items:
        markdown_path = item.path
        if item.is_folder:
            marker = find_marker_file(item.path, CONTENT_KINDS[kind_name])
            if marker is None:
                continue
            markdown_path = marker
        if item.name in loaded:
            logger.warning("Duplicate %s item '%s' in %s", kind_name, item.name, item.path)
            continue
        loaded[item.name] = MarkdownItem(
            name=item.name, content=markdown_path.read_text(encoding="utf-8")
        )
    return tuple(loaded.values())


def _parse_mcp(raw: object, manifest_path: Path) -> McpServer | None:
    if raw is None:
        return None
    if not isinstance(raw, dict) or not isinstance(raw.get("command"), str):
        logger.warning("%s: ignoring [mcp] table without a command", manifest_path)
        return None
    args = raw.get("args", [])
    if not isinstance(args, list):
        raise CapabilityLoadError(f"{manifest_path}: [mcp] args must be an array")
    env = raw.get("env", {})
    if not isinstance(env, dict):
        raise CapabilityLoadError(f"{manifest_path}: [mcp] env must be a table")
    cwd = raw.get("cwd")
    transport = raw.get("transport")
    return McpServer(
        command=raw["command"],
        args=[str(x) for x in args],
        env={str(k): str(v) for k, v in env.items()},
        cwd=str(cwd) if cwd is not None else None,
        transport=str(transport) if transport is not None else None,
    )
