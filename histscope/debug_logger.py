#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Structured debug logging for histscope.

Events are appended as JSON lines to <state_dir>/debug.log.

Debug levels (HISTSCOPE_DEBUG env var, else "debugLevel" setting):
    0 - off
    1 - lifecycle: session start/end, scope changes, picker exits, errors (default)
    2 - adds per-query timing
"""

import json
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from histscope.config import get_int_setting
from histscope.paths import PathResolver

DEFAULT_DEBUG_LEVEL = 1
LOG_FILE_NAME = "debug.log"


def _resolve_level() -> int:
    raw = os.environ.get("HISTSCOPE_DEBUG")
    if raw is not None:
        try:
            return int(raw)
        except ValueError:
            return DEFAULT_DEBUG_LEVEL
    return get_int_setting("debugLevel", DEFAULT_DEBUG_LEVEL)


class DebugLogger:
    """Writes debug events for one histscope process."""

    def __init__(self, log_path: Optional[Path] = None) -> None:
        self.level = _resolve_level()
        self.log_path = log_path or (PathResolver.state_dir() / LOG_FILE_NAME)
        self.pid = os.getpid()
        self.session_id = os.environ.get("HISTSCOPE_SESSION_ID")
        self.cwd = os.getcwd()

    def _write(self, event: Dict[str, Any]) -> None:
        """Append one event. Logging must never break the picker."""
        record = {
            "event": event.get("event", "unknown"),
            "level": event.get("level", "info"),
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "pid": self.pid,
            "session_id": self.session_id,
            "cwd": self.cwd,
        }
        record.update(event)
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a") as f:
                f.write(json.dumps(record) + "\n")
        except OSError:
            pass

    # --- level 1 ---

    def session_start(self, scope: str, query: str, db_path: str) -> None:
        if self.level < 1:
            return
        self._write({
            "event": "session_start",
            "scope": scope,
            "query_len": len(query),
            "db_path": db_path,
        })

    def scope_change(self, old_scope: str, new_scope: str, query: str) -> None:
        if self.level < 1:
            return
        self._write({
            "event": "scope_change",
            "from": old_scope,
            "to": new_scope,
            "query_len": len(query),
        })

    def picker_exit(self, scope: str, final_key: Optional[str], selected: int) -> None:
        """Log how a picker session ended. final_key None means picker failure."""
        if self.level < 1:
            return
        self._write({
            "event": "picker_exit",
            "level": "info" if final_key is not None else "error",
            "scope": scope,
            "key": final_key,
            "selected": selected,
        })

    def session_end(self, outcome: str, iterations: int) -> None:
        if self.level < 1:
            return
        self._write({
            "event": "session_end",
            "outcome": outcome,
            "iterations": iterations,
        })

    def error(self, op: str, err: str) -> None:
        if self.level < 1:
            return
        self._write({
            "event": "error",
            "level": "error",
            "op": op,
            "err": err[:500],
        })

    # --- level 2 ---

    def query_start(self, scope: str, filters: Dict[str, Any]) -> float:
        """Log a store query starting. Returns the start time for query_end."""
        start = time.perf_counter()
        if self.level >= 2:
            self._write({
                "event": "query_start",
                "level": "debug",
                "scope": scope,
                "filter": filters,
            })
        return start

    def query_end(self, scope: str, start: float, rows: int, error: Optional[str] = None) -> None:
        if self.level < 2:
            return
        event: Dict[str, Any] = {
            "event": "query_end",
            "level": "debug" if error is None else "error",
            "scope": scope,
            "rows": rows,
            "total_ms": round((time.perf_counter() - start) * 1000, 2),
        }
        if error is not None:
            event["err"] = error[:500]
        self._write(event)


_logger: Optional[DebugLogger] = None


def get_logger() -> DebugLogger:
    """Return the process-wide logger, creating it on first use."""
    global _logger
    if _logger is None:
        _logger = DebugLogger()
    return _logger


def reset_logger() -> None:
    """Drop the cached logger so the next get_logger() re-reads env/settings."""
    global _logger
    _logger = None
