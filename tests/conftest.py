"""
Pytest configuration and fixtures for histscope tests.
"""

import sys
from pathlib import Path

# Ensure project root is in sys.path for 'histscope' imports
# This must happen before any imports from histscope
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import sqlite3
from datetime import datetime, timezone
from typing import Optional

import pytest

from histscope.models import EnvironmentFacts

HISTORY_SCHEMA = """
CREATE TABLE history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    command_line TEXT NOT NULL,
    start_timestamp INTEGER,
    session_id INTEGER,
    hostname TEXT,
    cwd TEXT,
    duration_ms INTEGER,
    exit_status INTEGER,
    more_info TEXT
)
"""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "tui: marks TUI tests")


@pytest.fixture
def temp_state_dir(tmp_path: Path, monkeypatch) -> Path:
    """Create and return a temporary state directory.

    Sets HISTSCOPE_STATE and resets the debug logger so it picks up the
    new path. Settings point at a file that does not exist.
    """
    state_dir = tmp_path / ".local" / "state" / "histscope"
    state_dir.mkdir(parents=True)
    monkeypatch.setenv("HISTSCOPE_STATE", str(state_dir))
    monkeypatch.setenv("HISTSCOPE_SETTINGS", str(tmp_path / "no-settings.json"))
    monkeypatch.delenv("HISTSCOPE_DEBUG", raising=False)
    monkeypatch.delenv("HISTSCOPE_SESSION_ID", raising=False)
    monkeypatch.delenv("HISTSCOPE_HISTORY_DB", raising=False)

    from histscope.debug_logger import reset_logger
    reset_logger()

    return state_dir


@pytest.fixture(autouse=True)
def isolate_state_dir(temp_state_dir: Path):
    """Autouse fixture so no test writes to the real ~/.local/state/histscope."""
    yield temp_state_dir

    from histscope.debug_logger import reset_logger
    reset_logger()


def insert_history(
    db_path: Path,
    command_line: str,
    *,
    start: Optional[datetime] = None,
    session_id: Optional[int] = None,
    hostname: Optional[str] = None,
    cwd: Optional[str] = None,
    duration_ms: Optional[int] = None,
    exit_status: Optional[int] = None,
) -> int:
    """Append one row the way the shell would. Returns the row id."""
    start_ms = int(start.timestamp() * 1000) if start is not None else None
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.execute(
            "INSERT INTO history (command_line, start_timestamp, session_id, hostname,"
            " cwd, duration_ms, exit_status) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (command_line, start_ms, session_id, hostname, cwd, duration_ms, exit_status),
        )
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()


@pytest.fixture
def empty_history_db(tmp_path: Path) -> Path:
    """A history database with the nushell schema and no rows."""
    db_path = tmp_path / "history.sqlite3"
    conn = sqlite3.connect(db_path)
    conn.execute(HISTORY_SCHEMA)
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def history_db(empty_history_db: Path) -> Path:
    """
    A history database with rows from two hosts, two directories and
    two sessions. Row ids follow insertion order (oldest first).
    """
    base = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    rows = [
        ("ls -la", "alpha", "/home/u/proj", 1, 120, 0),
        ("git status", "alpha", "/home/u/proj", 1, 300, 0),
        ("cargo build", "alpha", "/home/u/other", 2, 45_000, 101),
        ("ssh beta", "beta", "/root", 3, 7_200_000, 0),
        ("git push", "alpha", "/home/u/proj", 2, 2_500, 1),
    ]
    for offset, (cmd, host, cwd, session, duration, status) in enumerate(rows):
        insert_history(
            empty_history_db,
            cmd,
            start=base.replace(minute=offset),
            session_id=session,
            hostname=host,
            cwd=cwd,
            duration_ms=duration,
            exit_status=status,
        )
    return empty_history_db


@pytest.fixture
def alpha_env() -> EnvironmentFacts:
    """Environment facts matching the 'alpha' rows of history_db."""
    return EnvironmentFacts(cwd="/home/u/proj", hostname="alpha", session_id=2)


@pytest.fixture
def add_history():
    """The insert_history helper, for tests that build their own rows."""
    return insert_history
