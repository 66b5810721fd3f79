"""Synthesize capability.toml manifests for foreign directory layouts.

A manifest is either authored (native) or generated here (wrapped). Wrapped
manifests carry `metadata.wrapped = true` and are regenerated whenever their
inputs change; native manifests are never touched.
"""

import logging
from enum import Enum
from pathlib import Path

import tomli
import tomli_w

from capsync.core.paths import MANIFEST_FILE_NAME
from capsync.sources.content_hash import short_digest
from capsync.sources.discovery import (
    discover_content,
    read_package_version,
    read_plugin_metadata,
    read_readme_description,
)
from capsync.sources.models import LocalSource, RemoteSource

logger = logging.getLogger(__name__)

SHORT_COMMIT_LENGTH = 7

MANIFEST_HEADER = (
    "# Generated by capsync from the capability source. Changes are overwritten\n"
    "# on the next sync; remove metadata.wrapped to take ownership of this file.\n\n"
)


class ManifestState(Enum):
    MISSING = "missing"
    WRAPPED = "wrapped"
    NATIVE = "native"


def inspect_manifest(capability_dir: Path) -> ManifestState:
    """Classify the capability.toml in a directory.

    A manifest that cannot be parsed is treated as native: it was not written
    by capsync, so it must not be overwritten.
    """
    manifest_path = capability_dir / MANIFEST_FILE_NAME
    if not manifest_path.is_file():
        return ManifestState.MISSING
    try:
        data = tomli.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomli.TOMLDecodeError) as e:
        logger.warning("Leaving unparseable manifest %s untouched: %s", manifest_path, e)
        return ManifestState.NATIVE

    capability = data.get("capability")
    metadata = capability.get("metadata") if isinstance(capability, dict) else None
    if isinstance(metadata, dict) and metadata.get("wrapped") is True:
        return ManifestState.WRAPPED
    return ManifestState.NATIVE


def build_remote_manifest(
    capability_id: str, root: Path, source: RemoteSource, commit: str
) -> dict:
    """Build the manifest for a repository checkout lacking one.

    Metadata precedence: plugin.json, then README.md, then a structural
    summary of the discovered content, then the source reference.
    """
    content = discover_content(root)
    plugin = read_plugin_metadata(root)

    description = plugin.description if plugin is not None else None
    if description is None:
        description = read_readme_description(root)
    if description is None:
        description = content.structural_summary() or f"Wrapped from {source.reference}"

    version = plugin.version if plugin is not None else None
    if version is None:
        version = read_package_version(root)
    if version is None:
        version = commit[:SHORT_COMMIT_LENGTH]

    name = plugin.name if plugin is not None and plugin.name else f"{capability_id} (wrapped)"

    capability: dict = {
        "id": capability_id,
        "name": name,
        "version": version,
        "description": description,
    }
    if plugin is not None and (plugin.author_name or plugin.author_email):
        author: dict[str, str] = {}
        if plugin.author_name:
            author["name"] = plugin.author_name
        if plugin.author_email:
            author["email"] = plugin.author_email
        capability["author"] = author

    metadata: dict = {
        "wrapped": True,
        "origin": source.reference,
        "repository": source.url,
        "commit": commit,
    }
    if source.subdirectory is not None:
        metadata["path"] = source.subdirectory
    capability["metadata"] = metadata
    return {"capability": capability}


def build_local_manifest(
    capability_id: str, root: Path, source: LocalSource, digest: str
) -> dict:
    """Build the manifest for a copied local directory lacking one."""
    summary = discover_content(root).structural_summary()
    description = f"Copied from {source.reference}"
    if summary:
        description = f"{description} ({summary})"

    version = read_package_version(root)
    if version is None:
        version = short_digest(digest)

    return {
        "capability": {
            "id": capability_id,
            "name": f"{capability_id} (file source)",
            "version": version,
            "description": description,
            "metadata": {
                "wrapped": True,
                "origin": source.reference,
                "source_path": str(source.path),
                "content_hash": digest,
            },
        }
    }


def render_manifest(data: dict) -> str:
    """Serialize a generated manifest, including the ownership header."""
    return MANIFEST_HEADER + tomli_w.dumps(data)


def write_manifest_if_changed(capability_dir: Path, text: str) -> bool:
    """Write capability.toml unless it already holds exactly this text.

    Returns:
        True if the file was written
    """
    manifest_path = capability_dir / MANIFEST_FILE_NAME
    if manifest_path.is_file() and manifest_path.read_text(encoding="utf-8") == text:
        return False
    manifest_path.write_text(text, encoding="utf-8")
    logger.debug("Wrote generated manifest %s", manifest_path)
    return True
