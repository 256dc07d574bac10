# SPDX-License-Identifier: MIT
"""Centralized path resolution for histscope.

All path resolution should go through this module to ensure consistency.
"""
import os
from pathlib import Path


class PathResolver:
    """Resolves paths for histscope components."""

    @staticmethod
    def config_home() -> Path:
        """XDG_CONFIG_HOME, or ~/.config when unset."""
        xdg_config = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config:
            return Path(xdg_config)
        return Path.home() / ".config"

    @staticmethod
    def settings_path() -> Path:
        """Get the histscope settings.json path.

        Resolution order:
        1. HISTSCOPE_SETTINGS env var
        2. XDG_CONFIG_HOME/histscope/settings.json
        3. ~/.config/histscope/settings.json
        """
        custom = os.environ.get("HISTSCOPE_SETTINGS")
        if custom:
            return Path(custom)
        return PathResolver.config_home() / "histscope" / "settings.json"

    @staticmethod
    def state_dir() -> Path:
        """Get the state directory for mutable data (debug log).

        Resolution order:
        1. HISTSCOPE_STATE env var
        2. XDG_STATE_HOME/histscope
        3. ~/.local/state/histscope
        """
        state = os.environ.get("HISTSCOPE_STATE")
        if state:
            return Path(state)
        xdg_state = os.environ.get("XDG_STATE_HOME")
        if xdg_state:
            return Path(xdg_state) / "histscope"
        return Path.home() / ".local" / "state" / "histscope"

    @staticmethod
    def default_history_db() -> Path:
        """The nushell SQLite history under the config home."""
        return PathResolver.config_home() / "nushell" / "history.sqlite3"

    @staticmethod
    def history_db() -> Path:
        """Get the history database path.

        Resolution order:
        1. HISTSCOPE_HISTORY_DB env var
        2. "historyPath" setting
        3. XDG_CONFIG_HOME/nushell/history.sqlite3
        4. ~/.config/nushell/history.sqlite3
        """
        explicit = os.environ.get("HISTSCOPE_HISTORY_DB")
        if explicit:
            return Path(explicit).expanduser()

        from histscope.config import get_setting

        configured = get_setting("historyPath")
        if configured:
            return Path(str(configured)).expanduser()
        return PathResolver.default_history_db()
