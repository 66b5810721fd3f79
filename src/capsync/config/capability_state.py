"""Enabled/disabled overrides stored in .capsync/capabilities.toml.

`capsync capability enable|disable` edits these lists; the sync engine folds
them over the active profile, or the enabled list from capsync.toml.
"""

from dataclasses import dataclass
from pathlib import Path

import tomli
import tomli_w

from capsync.capability.mcp import mcp_capability_id
from capsync.config.active_profile import effective_profile
from capsync.config.loader import ConfigError, ProjectConfig


@dataclass(frozen=True)
class CapabilityState:
    enabled: list[str]
    disabled: list[str]


def load_capability_state(path: Path) -> CapabilityState:
    """Load overrides; a missing file means no overrides.

    Raises:
        ConfigError: If the file exists but is not valid TOML
    """
    if not path.exists():
        return CapabilityState(enabled=[], disabled=[])
    try:
        with open(path, "rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    return CapabilityState(
        enabled=[str(x) for x in data.get("enabled", [])],
        disabled=[str(x) for x in data.get("disabled", [])],
    )


def save_capability_state(path: Path, state: CapabilityState) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"enabled": sorted(state.enabled), "disabled": sorted(state.disabled)}
    with open(path, "wb") as f:
        tomli_w.dump(data, f)


def enable_capability(state: CapabilityState, capability_id: str) -> CapabilityState:
    enabled = set(state.enabled) | {capability_id}
    disabled = set(state.disabled) - {capability_id}
    return CapabilityState(enabled=sorted(enabled), disabled=sorted(disabled))


def disable_capability(state: CapabilityState, capability_id: str) -> CapabilityState:
    enabled = set(state.enabled) - {capability_id}
    disabled = set(state.disabled) | {capability_id}
    return CapabilityState(enabled=sorted(enabled), disabled=sorted(disabled))


def resolve_enabled_capabilities(
    config: ProjectConfig,
    state: CapabilityState,
    available_ids: set[str],
    *,
    active_profile: str | None,
) -> set[str]:
    """Compute which capability ids should have artifacts.

    The base set is the effective profile's capabilities, else
    capabilities.enabled from capsync.toml (every declared source when unset),
    plus every synthesized MCP capability. Overrides are applied on top, so a
    disabled id stays disabled whatever the profile says. The result is limited
    to ids that actually exist.
    """
    profile = effective_profile(config, active_profile)
    if profile is not None:
        base = set(config.profiles[profile])
    elif config.enabled is not None:
        base = set(config.enabled)
    else:
        base = set(config.sources)
    base.update(mcp_capability_id(name) for name in config.mcps)
    resolved = (base | set(state.enabled)) - set(state.disabled)
    return resolved & available_ids
