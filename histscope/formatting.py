#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Entry formatting for the picker.

Every function here is pure: a HistoryEntry goes in, text comes out.
Display and preview text carry ANSI color codes; match and output text
are always the bare command line.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

from histscope.models import (
    DATE_FORMAT_LENGTH,
    DURATION_COLUMN_WIDTH,
    DURATION_FORMAT_LENGTH,
    HistoryEntry,
)

# ANSI color codes for terminal output
ANSI_COLORS = {
    "warning": "\033[33m",  # yellow
    "alert": "\033[31m",  # red
    "success": "\033[32m",  # green
    "failure": "\033[31m",  # red
    "bold": "\033[1m",
    "reset": "\033[0m",
}

UNKNOWN = "<unknown>"
MISSING_DATE = "??:??"
MISSING_DURATION = " " * DURATION_COLUMN_WIDTH

_MAX_DURATION_VALUE = 10 ** DURATION_FORMAT_LENGTH - 1


def _paint(text: str, color: str) -> str:
    return f"{ANSI_COLORS[color]}{text}{ANSI_COLORS['reset']}"


def _to_local(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone()


def pretty_date_str(dt: datetime, today: Optional[date] = None) -> str:
    """HH:MM for timestamps from today (local time), else YYYY-MM-DD HH:MM."""
    local_dt = _to_local(dt)
    if today is None:
        today = datetime.now().astimezone().date()
    if local_dt.date() == today:
        return local_dt.strftime("%H:%M")
    return local_dt.strftime("%Y-%m-%d %H:%M")


def pretty_duration_str(d: timedelta) -> str:
    """
    Format a duration as a fixed-width number plus unit.

    Under a second shows one decimal ("0.4 s"), then whole seconds,
    whole minutes and whole hours. Hours are capped at 999 so the column
    never grows.
    """
    secs = d.total_seconds()
    width = DURATION_FORMAT_LENGTH
    if secs < 1:
        return f"{secs:>{width}.1f} s"
    if secs < 60:
        return f"{int(secs):>{width}} s"
    if secs < 60 * 60:
        return f"{int(secs) // 60:>{width}} m"
    hours = min(int(secs) // 3600, _MAX_DURATION_VALUE)
    return f"{hours:>{width}} h"


def ansi_duration_str(d: timedelta, color: bool = True) -> str:
    """Duration text colored by tier: <5s plain, <60s warning, else alert."""
    text = pretty_duration_str(d)
    secs = d.total_seconds()
    if not color or secs < 5:
        return text
    if secs < 60:
        return _paint(text, "warning")
    return _paint(text, "alert")


def display_line(entry: HistoryEntry, today: Optional[date] = None, color: bool = True) -> str:
    """
    One picker row: date column, duration column, command line.

    Both columns have fixed widths; missing values render as placeholders
    of the same width.

    Args:
        entry: The history entry to format
        today: Local date treated as today (default: now)
        color: Whether to use ANSI colors (default True)
    """
    if entry.start_timestamp is not None:
        date_part = pretty_date_str(entry.start_timestamp, today)
    else:
        date_part = MISSING_DATE
    duration_part = (
        ansi_duration_str(entry.duration, color)
        if entry.duration is not None
        else MISSING_DURATION
    )
    return f"{date_part:>{DATE_FORMAT_LENGTH}} | {duration_part} | {entry.command_line}"


def _exit_status_line(exit_status: Optional[int]) -> str:
    if exit_status == 0:
        return _paint("Exit Status: 0", "success")
    shown = str(exit_status) if exit_status is not None else UNKNOWN
    return _paint(f"Exit Status: {shown}", "failure")


def preview_text(entry: HistoryEntry) -> str:
    """Multi-line detail block for the preview pane."""
    entry_id = str(entry.id) if entry.id is not None else UNKNOWN
    timestamp = str(_to_local(entry.start_timestamp)) if entry.start_timestamp else UNKNOWN
    duration = ansi_duration_str(entry.duration) if entry.duration is not None else UNKNOWN
    session = str(entry.session_id) if entry.session_id is not None else UNKNOWN
    lines = [
        _paint(f"Details for entry {entry_id}", "bold"),
        f"Host: {entry.hostname or UNKNOWN}",
        f"Directory: {entry.cwd or UNKNOWN}",
        f"Session: {session}",
        f"Timestamp: {timestamp}",
        f"Duration: {duration}",
        _exit_status_line(entry.exit_status),
        "Command:",
        "",
        entry.command_line,
    ]
    return "\n".join(lines) + "\n"


def match_text(entry: HistoryEntry) -> str:
    """Text the picker ranks against: the command line only."""
    return entry.command_line


def output_text(entry: HistoryEntry) -> str:
    """Text emitted when the entry is selected: the command line only."""
    return entry.command_line
