"""CLI path policy.

Centralizes where config-sync keeps its own files. Library code receives
paths via injection; this module provides the CLI's choices.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .settings import SyncSettings
    from .state_store import StateManager

HOME_ENV_VAR = "CONFIG_SYNC_HOME"
PROJECT_DIR_NAME = ".config-sync"


def get_install_dir() -> Path:
    """Directory holding state.json and global settings.

    ``$CONFIG_SYNC_HOME`` wins, otherwise ``~/.config-sync``.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / PROJECT_DIR_NAME


def get_project_dir() -> Path:
    return Path.cwd() / PROJECT_DIR_NAME


def backup_path_for(target: Path) -> Path:
    """Sibling backup file, e.g. settings.json -> settings.json.backup."""
    return target.with_name(target.name + ".backup")


# ===== DEPENDENCY INJECTION HELPERS =====


def create_state_manager() -> "StateManager":
    """Create a StateManager rooted at the CLI install dir."""
    from .state_store import StateManager

    return StateManager(get_install_dir())


def create_settings() -> "SyncSettings":
    """Create SyncSettings with the CLI's standard scope paths."""
    from .settings import SyncSettings

    return SyncSettings()
