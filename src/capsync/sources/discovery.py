"""Discover capability content in directories laid out by convention.

Foreign repositories (plugin bundles, skill collections) rarely ship a
capability.toml. This module recognizes their conventional directory names
and reads whatever metadata they do provide, so the wrapper can synthesize a
manifest.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

PLUGIN_METADATA_PATH = Path(".claude-plugin") / "plugin.json"
README_FILE_NAME = "README.md"
PACKAGE_JSON_FILE_NAME = "package.json"

README_DESCRIPTION_LIMIT = 200


@dataclass(frozen=True)
class ContentKind:
    """A kind of capability content and the names it is found under.

    Attributes:
        directory_names: Accepted directory names, in lookup order
        marker_files: Files that mark a subdirectory as one content item
            (matched case-insensitively); empty when only .md files count
        label: Singular noun used in structural summaries, or None when the
            kind is not counted
    """

    directory_names: tuple[str, ...]
    marker_files: tuple[str, ...]
    label: str | None


CONTENT_KINDS: dict[str, ContentKind] = {
    "skills": ContentKind(
        directory_names=("skills", "skill"),
        marker_files=("SKILL.md",),
        label="skill",
    ),
    "subagents": ContentKind(
        directory_names=("agents", "agent", "subagents", "subagent"),
        marker_files=("AGENT.md", "SUBAGENT.md"),
        label="agent",
    ),
    "commands": ContentKind(
        directory_names=("commands", "command"),
        marker_files=("COMMAND.md",),
        label="command",
    ),
    "rules": ContentKind(
        directory_names=("rules", "rule"),
        marker_files=(),
        label=None,
    ),
    "docs": ContentKind(
        directory_names=("docs", "doc", "documentation"),
        marker_files=(),
        label=None,
    ),
}


@dataclass(frozen=True)
class ContentItem:
    """One discovered item: a folder holding a marker file, or a single .md file."""

    name: str
    path: Path
    is_folder: bool


@dataclass(frozen=True)
class DiscoveredContent:
    """Content found in a directory, keyed by CONTENT_KINDS name."""

    directories: dict[str, Path]
    items: dict[str, tuple[ContentItem, ...]]

    def items_of(self, kind: str) -> tuple[ContentItem, ...]:
        return self.items.get(kind, ())

    def structural_summary(self) -> str:
        """Summarize counted kinds, e.g. "1 skill, 2 commands"; empty if none."""
        parts: list[str] = []
        for kind_name, kind in CONTENT_KINDS.items():
            if kind.label is None:
                continue
            count = len(self.items_of(kind_name))
            if count == 0:
                continue
            plural = "s" if count > 1 else ""
            parts.append(f"{count} {kind.label}{plural}")
        return ", ".join(parts)


@dataclass(frozen=True)
class PluginMetadata:
    """Fields read from .claude-plugin/plugin.json."""

    name: str | None
    version: str | None
    description: str | None
    author_name: str | None
    author_email: str | None


def find_content_dir(root: Path, kind: ContentKind) -> Path | None:
    """Return the first accepted directory for a content kind, if any."""
    for dir_name in kind.directory_names:
        candidate = root / dir_name
        if candidate.is_dir():
            return candidate
    return None


def should_wrap(root: Path) -> bool:
    """Check whether a directory looks like capability content.

    True when plugin.json exists or any conventional content directory exists,
    even an empty one.
    """
    if (root / PLUGIN_METADATA_PATH).is_file():
        return True
    return any(find_content_dir(root, kind) is not None for kind in CONTENT_KINDS.values())


def discover_content(root: Path) -> DiscoveredContent:
    """Enumerate content items under each conventional directory."""
    directories: dict[str, Path] = {}
    items: dict[str, tuple[ContentItem, ...]] = {}
    for kind_name, kind in CONTENT_KINDS.items():
        content_dir = find_content_dir(root, kind)
        if content_dir is None:
            continue
        directories[kind_name] = content_dir
        items[kind_name] = _find_content_items(content_dir, kind)
    return DiscoveredContent(directories=directories, items=items)


def _find_content_items(content_dir: Path, kind: ContentKind) -> tuple[ContentItem, ...]:
    markers = {marker.lower() for marker in kind.marker_files}
    found: list[ContentItem] = []
    for entry in sorted(content_dir.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            if markers and any(child.name.lower() in markers for child in entry.iterdir()):
                found.append(ContentItem(name=entry.name, path=entry, is_folder=True))
        elif entry.is_file() and entry.suffix.lower() == ".md":
            found.append(ContentItem(name=entry.stem, path=entry, is_folder=False))
    return tuple(found)


def find_marker_file(item_dir: Path, kind: ContentKind) -> Path | None:
    """Locate the marker file inside a folder item, ignoring case."""
    markers = {marker.lower() for marker in kind.marker_files}
    for child in sorted(item_dir.iterdir(), key=lambda p: p.name):
        if child.is_file() and child.name.lower() in markers:
            return child
    return None


def read_plugin_metadata(root: Path) -> PluginMetadata | None:
    """Read .claude-plugin/plugin.json.

    Returns None when the file is absent. A malformed file is logged as a
    warning and also yields None, so wrapping continues with degraded metadata.
    """
    data = _read_json_object(root / PLUGIN_METADATA_PATH)
    if data is None:
        return None
    author = data.get("author")
    author_name = None
    author_email = None
    if isinstance(author, dict):
        author_name = _string_field(author, "name")
        author_email = _string_field(author, "email")
    elif isinstance(author, str) and author:
        author_name = author
    return PluginMetadata(
        name=_string_field(data, "name"),
        version=_string_field(data, "version"),
        description=_string_field(data, "description"),
        author_name=author_name,
        author_email=author_email,
    )


def read_package_version(root: Path) -> str | None:
    """Read the version field of package.json, if present and well-formed."""
    data = _read_json_object(root / PACKAGE_JSON_FILE_NAME)
    if data is None:
        return None
    return _string_field(data, "version")


def read_readme_description(root: Path) -> str | None:
    """Extract a short description from README.md.

    Skips headings, blank lines, images and fenced code, joins the remaining
    lines with spaces until the limit is reached, and truncates to
    197 characters plus "..." when longer than the limit.
    """
    readme_path = root / README_FILE_NAME
    if not readme_path.is_file():
        return None
    try:
        content = readme_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read %s: %s", readme_path, e)
        return None

    description = ""
    in_code_block = False
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith("```"):
            in_code_block = not in_code_block
            continue
        if in_code_block or not stripped or stripped.startswith("#") or stripped.startswith("!["):
            continue
        description = f"{description} {stripped}" if description else stripped
        if len(description) >= README_DESCRIPTION_LIMIT:
            break

    if len(description) > README_DESCRIPTION_LIMIT:
        description = description[: README_DESCRIPTION_LIMIT - 3] + "..."
    return description or None


def _read_json_object(path: Path) -> dict | None:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Ignoring malformed %s: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", path)
        return None
    return data


def _string_field(data: dict, key: str) -> str | None:
    value = data.get(key)
    if isinstance(value, str) and value:
        return value
    return None
