"""Explicit handles for every file and directory capsync reads or writes.

All state lives under a project root that is passed in, never discovered from
process-wide globals, so tests can point the engine at a tmp_path.
"""

from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "capsync.toml"
LOCK_FILE_NAME = "capsync.lock.toml"
STATE_DIR_NAME = ".capsync"
MANIFEST_FILE_NAME = "capability.toml"

# Prefix for rule files generated into .cursor/rules/
CURSOR_RULE_PREFIX = "capsync-"


@dataclass(frozen=True)
class ProjectPaths:
    """Locations of capsync's configuration and state for one project."""

    root: Path

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE_NAME

    @property
    def lock_path(self) -> Path:
        return self.root / LOCK_FILE_NAME

    @property
    def state_dir(self) -> Path:
        return self.root / STATE_DIR_NAME

    @property
    def resource_manifest_path(self) -> Path:
        return self.state_dir / "state" / "manifest.json"

    @property
    def active_profile_path(self) -> Path:
        """Profile selected with `capsync profile set`."""
        return self.state_dir / "state" / "active-profile.toml"

    @property
    def capability_state_path(self) -> Path:
        """Enabled/disabled overrides written by `capsync capability`."""
        return self.state_dir / "capabilities.toml"

    @property
    def capabilities_dir(self) -> Path:
        return self.state_dir / "capabilities"

    @property
    def temp_dir(self) -> Path:
        """Scratch checkouts for sources that only use a repository subdirectory."""
        return self.state_dir / "_temp"

    def capability_dir(self, capability_id: str) -> Path:
        return self.capabilities_dir / capability_id

    def repo_checkout_dir(self, capability_id: str) -> Path:
        return self.temp_dir / f"{capability_id}-repo"

    @property
    def output(self) -> "OutputLayout":
        return OutputLayout(root=self.root)


@dataclass(frozen=True)
class OutputLayout:
    """Where generated artifacts land in the assistant configuration trees.

    The artifact writer and the garbage collector both resolve names through
    this layout, so a name recorded in the resource manifest always maps back
    to the exact path that was written.
    """

    root: Path

    @property
    def claude_dir(self) -> Path:
        return self.root / ".claude"

    @property
    def cursor_rules_dir(self) -> Path:
        return self.root / ".cursor" / "rules"

    @property
    def mcp_json_path(self) -> Path:
        return self.root / ".mcp.json"

    def skill_dir(self, name: str) -> Path:
        return self.claude_dir / "skills" / name

    def rule_path(self, name: str) -> Path:
        return self.cursor_rules_dir / f"{CURSOR_RULE_PREFIX}{name}.mdc"

    def command_path(self, name: str) -> Path:
        return self.claude_dir / "commands" / f"{name}.md"

    def subagent_path(self, name: str) -> Path:
        return self.claude_dir / "agents" / f"{name}.md"
