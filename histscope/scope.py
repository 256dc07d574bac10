#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Search scopes and their display tables.

A scope is the breadth of the history search. Scopes cycle in a fixed
order: session -> directory -> machine -> everywhere -> session.
Every table below is keyed by every Scope member; a new scope must be
added to all of them (enforced by _check_tables at import time).
"""

from enum import Enum
from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from histscope.models import EnvironmentFacts


class Scope(str, Enum):
    """Active breadth of the history search."""
    SESSION = "session"
    DIRECTORY = "directory"
    MACHINE = "machine"
    EVERYWHERE = "everywhere"


DEFAULT_SCOPE = Scope.DIRECTORY

_NEXT_SCOPE: Dict[Scope, Scope] = {
    Scope.SESSION: Scope.DIRECTORY,
    Scope.DIRECTORY: Scope.MACHINE,
    Scope.MACHINE: Scope.EVERYWHERE,
    Scope.EVERYWHERE: Scope.SESSION,
}

_LABELS: Dict[Scope, str] = {
    Scope.SESSION: "Session history",
    Scope.DIRECTORY: "Directory history",
    Scope.MACHINE: "Machine history",
    Scope.EVERYWHERE: "Everywhere",
}

# Tab strip with the active scope drawn in heavy lines.
_HEADERS: Dict[Scope, str] = {
    Scope.SESSION: (
        " ┏━━━━━━━┱─────────┬────┬──────────┐\n"
        " ┃Session┃Directory│Host│Everywhere│\n"
        "━┛       ┗━━━━━━━━━┷━━━━┷━━━━━━━━━━┷━━━━━━━━━━━━━━━━━"
    ),
    Scope.DIRECTORY: (
        " ┌───────┲━━━━━━━━━┱────┬──────────┐\n"
        " │Session┃Directory┃Host│Everywhere│\n"
        "━┷━━━━━━━┛         ┗━━━━┷━━━━━━━━━━┷━━━━━━━━━━━━━━━━━"
    ),
    Scope.MACHINE: (
        " ┌───────┬─────────┲━━━━┱──────────┐\n"
        " │Session│Directory┃Host┃Everywhere│\n"
        "━┷━━━━━━━┷━━━━━━━━━┛    ┗━━━━━━━━━━┷━━━━━━━━━━━━━━━━━"
    ),
    Scope.EVERYWHERE: (
        " ┌───────┬─────────┬────┲━━━━━━━━━━┓\n"
        " │Session│Directory│Host┃Everywhere┃\n"
        "━┷━━━━━━━┷━━━━━━━━━┷━━━━┛          ┗━━━━━━━━━━━━━━━━━"
    ),
}


def _check_tables() -> None:
    for name, table in (("next", _NEXT_SCOPE), ("labels", _LABELS), ("headers", _HEADERS)):
        missing = set(Scope) - set(table)
        if missing:
            raise RuntimeError(
                f"Scope table '{name}' is missing: {sorted(s.value for s in missing)}"
            )


_check_tables()


def next_scope(scope: Scope) -> Scope:
    """Return the scope that follows `scope` in the cycle."""
    return _NEXT_SCOPE[scope]


def scope_label(scope: Scope) -> str:
    """Human-readable name of a scope, e.g. "Directory history"."""
    return _LABELS[scope]


def parse_scope(value: Optional[str], default: Scope = DEFAULT_SCOPE) -> Scope:
    """Parse a scope name (case-insensitive), falling back to `default`.

    "host" is accepted as an alias of machine since the header calls it Host.

    Raises:
        ValueError: If value is non-empty and names no scope.
    """
    if not value:
        return default
    key = value.strip().lower()
    if key == "host":
        return Scope.MACHINE
    try:
        return Scope(key)
    except ValueError:
        choices = ", ".join(s.value for s in Scope)
        raise ValueError(f"Unknown scope '{value}' (expected one of: {choices})") from None


def _scope_detail(scope: Scope, env: "EnvironmentFacts") -> str:
    if scope == Scope.SESSION:
        return str(env.session_id) if env.session_id is not None else "<unknown>"
    if scope == Scope.DIRECTORY:
        return env.cwd
    if scope == Scope.MACHINE:
        return env.hostname
    return ""


def scope_title(scope: Scope, env: Optional["EnvironmentFacts"] = None) -> str:
    """
    Build the picker header for a scope.

    The first line names the scope and, when environment facts are given,
    what it is pinned to (session id, directory or host). Below it the tab
    strip highlights the active scope among all four.

    Args:
        scope: The active scope
        env: Environment facts used for the detail text (optional)

    Returns:
        Multi-line header text, identical for identical input
    """
    label = scope_label(scope)
    detail = _scope_detail(scope, env) if env is not None else ""
    first_line = f"{label} {detail}".rstrip()
    return f"{first_line}\n{_HEADERS[scope]}\n"
