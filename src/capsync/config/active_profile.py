"""The active profile, stored in .capsync/state/active-profile.toml.

Profiles are named capability sets declared under [profiles.<name>] in
capsync.toml. With no profile selected, a profile named "default" applies if
one is declared.
"""

import logging
from pathlib import Path

import tomli
import tomli_w

from capsync.config.loader import ConfigError, ProjectConfig

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"


def load_active_profile(path: Path) -> str | None:
    """Return the selected profile name, or None if none was selected.

    Raises:
        ConfigError: If the file exists but is not valid TOML
    """
    if not path.exists():
        return None
    try:
        with open(path, "rb") as f:
            data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    profile = data.get("profile")
    if not isinstance(profile, str) or not profile.strip():
        return None
    return profile.strip()


def save_active_profile(path: Path, profile: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        tomli_w.dump({"profile": profile}, f)


def effective_profile(config: ProjectConfig, active_profile: str | None) -> str | None:
    """Pick the profile whose capabilities form the enabled base set.

    A selected profile that capsync.toml no longer declares is ignored.
    """
    if active_profile is not None:
        if active_profile in config.profiles:
            return active_profile
        logger.warning("Active profile '%s' is not declared in capsync.toml", active_profile)
    if DEFAULT_PROFILE in config.profiles:
        return DEFAULT_PROFILE
    return None
