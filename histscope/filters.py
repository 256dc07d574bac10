#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Filter builder: turns a scope and the typed query into a store filter.

build_filter is pure; everything it needs about the process environment
arrives as an EnvironmentFacts value from current_environment().
"""

import os
import socket
from typing import Dict, Optional

from histscope.models import EnvironmentFacts, SearchFilter
from histscope.scope import Scope


def _session_id_from_env() -> Optional[int]:
    raw = os.environ.get("HISTSCOPE_SESSION_ID", "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def current_environment() -> EnvironmentFacts:
    """Read the working directory, hostname and shell session id."""
    return EnvironmentFacts(
        cwd=os.getcwd(),
        hostname=socket.gethostname(),
        session_id=_session_id_from_env(),
    )


def build_filter(scope: Scope, query_text: str, env: EnvironmentFacts) -> SearchFilter:
    """
    Build the store filter for one scope.

    - command substring is the query text verbatim ("" matches everything)
    - hostname is pinned for every scope except EVERYWHERE
    - working directory is pinned only for DIRECTORY
    - session id is pinned only for SESSION, and only when it is known

    Args:
        scope: Active search scope
        query_text: Text typed by the user
        env: Environment facts for this query

    Returns:
        A new SearchFilter
    """
    session_id = env.session_id if scope == Scope.SESSION else None
    return SearchFilter(
        command_substring=query_text,
        hostname=None if scope == Scope.EVERYWHERE else env.hostname,
        cwd=env.cwd if scope == Scope.DIRECTORY else None,
        session_id=session_id,
    )


def describe_filter(search_filter: SearchFilter) -> Dict[str, object]:
    """Constrained fields of a filter, for debug logging."""
    described: Dict[str, object] = {"command_len": len(search_filter.command_substring)}
    if search_filter.hostname is not None:
        described["hostname"] = search_filter.hostname
    if search_filter.cwd is not None:
        described["cwd"] = search_filter.cwd
    if search_filter.session_id is not None:
        described["session_id"] = search_filter.session_id
    return described
