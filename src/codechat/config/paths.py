"""Platform-aware configuration path resolution.

Handles config file locations for:
- Windows: %PROGRAMDATA% (system), %APPDATA% (user)
- Unix: /etc/ (system), $XDG_CONFIG_HOME, ~/.config/codechat/ or ~/.codechat/ (user)
- Project: $workspace/.codechat/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
HISTORY_FILENAME = "history"
APP_NAME = "codechat"
SHORT_NAME = ".codechat"


def get_system_config_path() -> Path | None:
    """Get system-level config path (the file may not exist)."""
    if sys.platform == "win32":
        program_data = os.environ.get("PROGRAMDATA")
        if program_data:
            return Path(program_data) / APP_NAME / CONFIG_FILENAME
        return None
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_config_dir() -> Path | None:
    """Get the user-level config directory.

    This directory also holds the persisted workspace trust list and the
    prompt history, so it is the one place codechat ever writes settings to.
    """
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME
        return None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME

    home = Path.home()
    xdg_default = home / ".config"
    if xdg_default.exists():
        return xdg_default / APP_NAME

    return home / SHORT_NAME


def get_user_config_path() -> Path | None:
    """Get user-level config path (the file may not exist)."""
    config_dir = get_user_config_dir()
    if config_dir is None:
        return None
    return config_dir / CONFIG_FILENAME


def get_history_path() -> Path | None:
    """Get the prompt history file path."""
    config_dir = get_user_config_dir()
    if config_dir is None:
        return None
    return config_dir / HISTORY_FILENAME


def get_project_config_path(workspace: str | os.PathLike[str]) -> Path:
    """Get project-level config path for a workspace root."""
    return Path(workspace) / SHORT_NAME / CONFIG_FILENAME


def get_config_paths(workspace: str | os.PathLike[str] | None = None) -> list[Path]:
    """Get all config paths in priority order (lowest to highest).

    Later paths override earlier ones when merging.
    """
    paths: list[Path] = []

    system_path = get_system_config_path()
    if system_path:
        paths.append(system_path)

    user_path = get_user_config_path()
    if user_path:
        paths.append(user_path)

    if workspace is not None:
        paths.append(get_project_config_path(workspace))

    return paths
