#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Data models for histscope.

Contains the dataclasses, enums, and constants shared by the store,
the filter builder, the producer, the picker and the controller.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional


# =============================================================================
# Constants
# =============================================================================

DATE_FORMAT_LENGTH = 16  # "YYYY-MM-DD HH:MM"
DURATION_FORMAT_LENGTH = 3  # numeric part; the unit suffix adds " s"
DURATION_COLUMN_WIDTH = DURATION_FORMAT_LENGTH + 2

PROMPT = "history〉"
DEFAULT_MAX_RESULTS = 1000

# Picker exit keys (Textual key names)
KEY_ESCAPE = "escape"
KEY_INTERRUPT = "ctrl+c"
KEY_EOF = "ctrl+d"
KEY_SUSPEND = "ctrl+z"
KEY_ACCEPT = "enter"
KEY_CYCLE_SCOPE = "ctrl+r"

ABORT_KEYS = frozenset({KEY_ESCAPE, KEY_INTERRUPT, KEY_EOF, KEY_SUSPEND})


# =============================================================================
# Enums
# =============================================================================


class SearchDirection(str, Enum):
    """Chronological direction of a store query."""
    BACKWARD = "backward"  # most recent first


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class HistoryEntry:
    """One recorded command execution, as read from the history store."""
    command_line: str
    id: Optional[int] = None
    start_timestamp: Optional[datetime] = None  # timezone-aware
    duration: Optional[timedelta] = None
    exit_status: Optional[int] = None
    hostname: Optional[str] = None
    cwd: Optional[str] = None
    session_id: Optional[int] = None


@dataclass(frozen=True)
class EnvironmentFacts:
    """Where the search is being run from.

    Read once per filter construction and passed in explicitly so the
    filter builder stays a pure function.
    """
    cwd: str
    hostname: str
    session_id: Optional[int] = None


@dataclass(frozen=True)
class SearchFilter:
    """Constraints for one history store query. None means unconstrained."""
    command_substring: str = ""
    hostname: Optional[str] = None
    cwd: Optional[str] = None
    session_id: Optional[int] = None


@dataclass(frozen=True)
class SearchQuery:
    """A complete history store query."""
    filter: SearchFilter = field(default_factory=SearchFilter)
    direction: SearchDirection = SearchDirection.BACKWARD
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    limit: Optional[int] = None


@dataclass
class PickerOutcome:
    """How an interactive picker session ended.

    final_key is the key that ended the session, query is the text in the
    query buffer at that moment, and selected holds the accepted entries
    (empty unless the session ended with the accept key on an entry).
    """
    final_key: str
    query: str = ""
    selected: List[HistoryEntry] = field(default_factory=list)
