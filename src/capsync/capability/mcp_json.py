"""Read-modify-write helpers for the project's .mcp.json.

capsync only ever touches the `mcpServers` entries it registered itself;
every other key and server in the file is preserved as-is.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

MCP_SERVERS_KEY = "mcpServers"


def load_mcp_json(path: Path) -> dict:
    """Load .mcp.json, returning an empty document if it is missing.

    Raises:
        ValueError: If the file exists but is not a JSON object
    """
    if not path.exists():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


def save_mcp_json(path: Path, data: dict) -> None:
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def merge_mcp_servers(
    path: Path, servers: dict[str, dict], *, replaced_names: set[str]
) -> bool:
    """Register servers, first removing previously managed registrations.

    Args:
        path: Location of .mcp.json
        servers: Server name -> registration to write
        replaced_names: Names capsync registered on the previous sync

    Returns:
        True if the file was written
    """
    data = load_mcp_json(path)
    existing = data.get(MCP_SERVERS_KEY)
    current: dict = dict(existing) if isinstance(existing, dict) else {}
    updated = {name: entry for name, entry in current.items() if name not in replaced_names}
    updated.update(servers)

    if updated == current and MCP_SERVERS_KEY in data:
        return False
    if not updated and not path.exists():
        return False
    data[MCP_SERVERS_KEY] = updated
    save_mcp_json(path, data)
    logger.debug("Updated MCP registrations in %s", path)
    return True


def remove_mcp_servers(path: Path, names: set[str]) -> list[str]:
    """Remove the named servers from .mcp.json.

    Returns:
        Names that were present and removed, sorted
    """
    if not names or not path.exists():
        return []
    data = load_mcp_json(path)
    existing = data.get(MCP_SERVERS_KEY)
    if not isinstance(existing, dict):
        return []
    removed = sorted(name for name in names if name in existing)
    if not removed:
        return []
    data[MCP_SERVERS_KEY] = {
        name: entry for name, entry in existing.items() if name not in names
    }
    save_mcp_json(path, data)
    return removed
