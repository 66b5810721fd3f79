"""Resource manifest: the record of every artifact capsync generated.

Cleanup diffs the previous manifest against the currently enabled
capabilities and deletes exactly the artifacts recorded for capabilities that
dropped out. Anything never recorded here, such as files a user added by
hand, is never eligible for deletion.
"""

import json
import logging
import os
import shutil
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from capsync.capability.mcp_json import remove_mcp_servers
from capsync.core.paths import OutputLayout

logger = logging.getLogger(__name__)

RESOURCE_MANIFEST_VERSION = 1

RESOURCE_KINDS = ("skills", "rules", "commands", "subagents", "mcp_servers")


@dataclass(frozen=True)
class CapabilityResources:
    """Names of the artifacts generated for one capability."""

    skills: tuple[str, ...] = ()
    rules: tuple[str, ...] = ()
    commands: tuple[str, ...] = ()
    subagents: tuple[str, ...] = ()
    mcp_servers: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResourceManifest:
    version: int
    synced_at: str
    capabilities: dict[str, CapabilityResources]


@dataclass(frozen=True)
class CleanupResult:
    removed_paths: list[Path] = field(default_factory=list)
    removed_mcp_servers: list[str] = field(default_factory=list)


def empty_resource_manifest() -> ResourceManifest:
    return ResourceManifest(version=RESOURCE_MANIFEST_VERSION, synced_at="", capabilities={})


def load_resource_manifest(path: Path) -> ResourceManifest:
    """Load the manifest, treating a missing or unreadable file as empty."""
    if not path.exists():
        return empty_resource_manifest()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable resource manifest %s: %s", path, e)
        return empty_resource_manifest()

    if not isinstance(data, dict) or data.get("version") != RESOURCE_MANIFEST_VERSION:
        logger.warning("Ignoring resource manifest %s with unsupported version", path)
        return empty_resource_manifest()

    capabilities: dict[str, CapabilityResources] = {}
    raw_capabilities = data.get("capabilities", {})
    if isinstance(raw_capabilities, dict):
        for capability_id, raw in raw_capabilities.items():
            if isinstance(raw, dict):
                capabilities[capability_id] = CapabilityResources(
                    skills=_names(raw, "skills"),
                    rules=_names(raw, "rules"),
                    commands=_names(raw, "commands"),
                    subagents=_names(raw, "subagents"),
                    mcp_servers=_names(raw, "mcp_servers"),
                )

    synced_at = data.get("synced_at")
    return ResourceManifest(
        version=RESOURCE_MANIFEST_VERSION,
        synced_at=synced_at if isinstance(synced_at, str) else "",
        capabilities=capabilities,
    )


def _names(raw: dict, key: str) -> tuple[str, ...]:
    values = raw.get(key, [])
    if not isinstance(values, list):
        return ()
    return tuple(value for value in values if isinstance(value, str))


def build_resource_manifest(
    resources: Mapping[str, CapabilityResources], *, synced_at: str
) -> ResourceManifest:
    """Snapshot the artifacts of the currently enabled capabilities."""
    return ResourceManifest(
        version=RESOURCE_MANIFEST_VERSION,
        synced_at=synced_at,
        capabilities={capability_id: resources[capability_id] for capability_id in sorted(resources)},
    )


def save_resource_manifest(path: Path, manifest: ResourceManifest) -> None:
    """Replace the manifest file atomically.

    Raises:
        OSError: If the file cannot be written
    """
    data = {
        "version": manifest.version,
        "synced_at": manifest.synced_at,
        "capabilities": {
            capability_id: {
                "skills": list(entry.skills),
                "rules": list(entry.rules),
                "commands": list(entry.commands),
                "subagents": list(entry.subagents),
                "mcp_servers": list(entry.mcp_servers),
            }
            for capability_id, entry in manifest.capabilities.items()
        },
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.parent / f".{path.name}.{uuid4().hex}.tmp"
    temp_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    os.replace(temp_path, path)


def cleanup_stale_resources(
    previous: ResourceManifest, enabled_ids: set[str], layout: OutputLayout
) -> CleanupResult:
    """Delete artifacts recorded for capabilities that are no longer enabled.

    Only names listed in `previous` under a disabled or removed capability are
    deleted. Artifacts of enabled capabilities are left untouched, and a name
    that an enabled capability also lists is never deleted.

    Args:
        previous: Manifest written by the last sync
        enabled_ids: Capabilities enabled for this sync
        layout: Output locations the names resolve against
    """
    claimed = {kind: _claimed(previous, enabled_ids, kind) for kind in RESOURCE_KINDS}

    removed_paths: list[Path] = []
    stale_servers: set[str] = set()
    for capability_id in sorted(previous.capabilities):
        if capability_id in enabled_ids:
            continue
        logger.debug("Cleaning up artifacts of disabled capability '%s'", capability_id)
        entry = previous.capabilities[capability_id]
        for name in _unclaimed(entry.skills, claimed["skills"]):
            _remove_path(layout.skill_dir(name), removed_paths)
        for name in _unclaimed(entry.rules, claimed["rules"]):
            _remove_path(layout.rule_path(name), removed_paths)
        for name in _unclaimed(entry.commands, claimed["commands"]):
            _remove_path(layout.command_path(name), removed_paths)
        for name in _unclaimed(entry.subagents, claimed["subagents"]):
            _remove_path(layout.subagent_path(name), removed_paths)
        stale_servers.update(_unclaimed(entry.mcp_servers, claimed["mcp_servers"]))

    try:
        removed_servers = remove_mcp_servers(layout.mcp_json_path, stale_servers)
    except (OSError, ValueError) as e:
        logger.warning("Failed to update %s: %s", layout.mcp_json_path, e)
        removed_servers = []
    return CleanupResult(removed_paths=removed_paths, removed_mcp_servers=removed_servers)


def _claimed(previous: ResourceManifest, enabled_ids: set[str], kind: str) -> set[str]:
    names: set[str] = set()
    for capability_id in enabled_ids:
        entry = previous.capabilities.get(capability_id)
        if entry is not None:
            names.update(getattr(entry, kind))
    return names


def _unclaimed(names: tuple[str, ...], claimed: set[str]) -> list[str]:
    result: list[str] = []
    for name in names:
        if name in claimed:
            continue
        if not is_safe_artifact_name(name):
            logger.warning("Refusing to delete artifact with unsafe name '%s'", name)
            continue
        result.append(name)
    return result


def is_safe_artifact_name(name: str) -> bool:
    """Reject names that could resolve outside their artifact directory."""
    return bool(name) and "/" not in name and "\\" not in name and name not in (".", "..")


def _remove_path(path: Path, removed: list[Path]) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()
    else:
        return
    removed.append(path)
