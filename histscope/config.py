# SPDX-License-Identifier: MIT
"""Settings for histscope.

settings.json is a small JSON object, for example:

    {
        "defaultScope": "machine",
        "historyPath": "~/.config/nushell/history.sqlite3",
        "debugLevel": 1,
        "picker": {"maxResults": 1000, "showPreview": true}
    }

The file is re-read on every lookup, so tests and long-lived callers see
edits immediately. A missing file, invalid JSON or a top level that is not
an object all mean "no settings".
"""
import json
from typing import Any, Dict

from histscope.paths import PathResolver

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_MISSING = object()


def load_settings() -> Dict[str, Any]:
    """Return the parsed settings object, or {} when there is none."""
    path = PathResolver.settings_path()
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def get_setting(key: str, default: Any = None) -> Any:
    """Look up a dot-separated key such as "picker.maxResults"."""
    node: Any = load_settings()
    for part in key.split("."):
        node = node.get(part, _MISSING) if isinstance(node, dict) else _MISSING
        if node is _MISSING:
            return default
    return node


def get_bool_setting(key: str, default: bool = False) -> bool:
    value = get_setting(key, default)
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_WORDS
    return bool(value)


def get_int_setting(key: str, default: int = 0) -> int:
    """Integer setting; values that do not convert fall back to default."""
    try:
        return int(get_setting(key, default))
    except (TypeError, ValueError):
        return default
