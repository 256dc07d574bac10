#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Read-only access to the nushell SQLite command history.

The history table (written by the shell, never by histscope):

    history(id, command_line, start_timestamp, session_id, hostname,
            cwd, duration_ms, exit_status, more_info)

start_timestamp is milliseconds since the epoch (UTC), duration_ms is
milliseconds.
"""

import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple

from histscope.errors import HistoryStoreError
from histscope.models import HistoryEntry, SearchDirection, SearchQuery

_COLUMNS = (
    "id, command_line, start_timestamp, session_id, hostname, cwd, "
    "duration_ms, exit_status"
)
_ORDER_BY = {SearchDirection.BACKWARD: "id DESC"}


def _to_millis(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def row_to_entry(row: Tuple[Any, ...]) -> HistoryEntry:
    """Convert one history row (in _COLUMNS order) to a HistoryEntry."""
    entry_id, command_line, start_ms, session_id, hostname, cwd, duration_ms, exit_status = row
    start = (
        datetime.fromtimestamp(start_ms / 1000, tz=timezone.utc)
        if start_ms is not None
        else None
    )
    duration = timedelta(milliseconds=duration_ms) if duration_ms is not None else None
    return HistoryEntry(
        command_line=command_line,
        id=entry_id,
        start_timestamp=start,
        duration=duration,
        exit_status=exit_status,
        hostname=hostname,
        cwd=cwd,
        session_id=session_id,
    )


def build_sql(query: SearchQuery) -> Tuple[str, List[Any]]:
    """Translate a SearchQuery to SQL and its parameters."""
    wheres: List[str] = []
    params: List[Any] = []
    flt = query.filter

    # instr() is case-sensitive and "" matches every row
    wheres.append("instr(command_line, ?) >= 1")
    params.append(flt.command_substring)
    if flt.hostname is not None:
        wheres.append("hostname = ?")
        params.append(flt.hostname)
    if flt.cwd is not None:
        wheres.append("cwd = ?")
        params.append(flt.cwd)
    if flt.session_id is not None:
        wheres.append("session_id = ?")
        params.append(flt.session_id)
    if query.start_time is not None:
        wheres.append("start_timestamp >= ?")
        params.append(_to_millis(query.start_time))
    if query.end_time is not None:
        wheres.append("start_timestamp <= ?")
        params.append(_to_millis(query.end_time))

    order_by = _ORDER_BY[query.direction]
    sql = f"SELECT {_COLUMNS} FROM history WHERE {' AND '.join(wheres)} ORDER BY {order_by}"
    if query.limit is not None:
        sql += " LIMIT ?"
        params.append(query.limit)
    return sql, params


class HistoryStore:
    """Queries a nushell history database without ever writing to it."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        if not self.db_path.is_file():
            raise HistoryStoreError(f"History database not found: {self.db_path}")
        uri = f"{self.db_path.resolve().as_uri()}?mode=ro"
        try:
            return sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            raise HistoryStoreError(f"Cannot open history database {self.db_path}: {e}") from e

    def check(self) -> None:
        """Verify the database opens and has a readable history table.

        Raises:
            HistoryStoreError: If the store is missing, unreadable or malformed.
        """
        conn = self._connect()
        try:
            conn.execute(f"SELECT {_COLUMNS} FROM history LIMIT 1").fetchall()
        except sqlite3.Error as e:
            raise HistoryStoreError(f"Unreadable history database {self.db_path}: {e}") from e
        finally:
            conn.close()

    def search(self, query: SearchQuery) -> Iterator[HistoryEntry]:
        """
        Run one query and stream its results.

        The query executes before this returns, so open/SQL errors raise
        here; rows are then fetched lazily as the iterator is consumed.

        Raises:
            HistoryStoreError: On any store-level failure, including while
                iterating and on rows whose columns cannot be converted.
        """
        sql, params = build_sql(query)
        conn = self._connect()
        try:
            cursor = conn.execute(sql, params)
        except sqlite3.Error as e:
            conn.close()
            raise HistoryStoreError(f"History query failed: {e}") from e
        return self._iter_entries(conn, cursor)

    @staticmethod
    def _iter_entries(conn: sqlite3.Connection, cursor: sqlite3.Cursor) -> Iterator[HistoryEntry]:
        try:
            for row in cursor:
                try:
                    entry = row_to_entry(row)
                except (ValueError, OverflowError, OSError, TypeError) as e:
                    raise HistoryStoreError(f"Malformed history row {row[0]}: {e}") from e
                yield entry
        except sqlite3.Error as e:
            raise HistoryStoreError(f"History query failed: {e}") from e
        finally:
            conn.close()


def open_store(db_path: Optional[Path] = None) -> HistoryStore:
    """Create a store for db_path, or for the configured default path."""
    if db_path is None:
        from histscope.paths import PathResolver

        db_path = PathResolver.history_db()
    return HistoryStore(db_path)
