#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Command-line entry point for histscope.

Usage:
    histscope                      # Picker over the current directory's history
    histscope "git push"           # Start with a query
    histscope --scope everywhere   # Start in another scope
    histscope --list -s machine    # Print matches without the picker

Exit codes: 0 after a selection (printed to stdout) or a user abort
(nothing printed), 1 on a history store or configuration error,
2 when the picker fails internally.

Nushell binding example (config.nu):

    {
        name: histscope
        modifier: control
        keycode: char_r
        mode: [emacs vi_insert]
        event: { send: executehostcommand
                 cmd: "commandline edit --replace (histscope (commandline))" }
    }
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from histscope._version import __version__
from histscope.config import get_setting
from histscope.controller import Aborted, SessionController
from histscope.debug_logger import get_logger
from histscope.errors import HistscopeError
from histscope.filters import build_filter, current_environment
from histscope.formatting import display_line
from histscope.producer import SearchProducer
from histscope.scope import DEFAULT_SCOPE, Scope, parse_scope
from histscope.store import HistoryStore, open_store

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PICKER_FAILED = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="histscope",
        description="Fuzzy-search shell history by session, directory, machine or everywhere",
        epilog="In the picker: Ctrl-R cycles the scope, Enter selects, Esc aborts",
    )
    parser.add_argument(
        "--version", action="version", version=f"histscope {__version__}"
    )
    parser.add_argument("query", nargs="?", default="", help="Initial query text")
    parser.add_argument(
        "--scope", "-s",
        choices=[s.value for s in Scope],
        help="Scope to start in (default: defaultScope setting, else directory)",
    )
    parser.add_argument("--db", type=Path, help="History database path")
    parser.add_argument(
        "--list", action="store_true", help="Print matching entries without the picker"
    )
    return parser


def _list_entries(store: HistoryStore, scope: Scope, query: str) -> None:
    """Print every entry matching the scope and query, most recent first."""
    color = sys.stdout.isatty()
    producer = SearchProducer(store)
    channel = producer.start(
        build_filter(scope, query, current_environment()), scope_name=scope.value
    )
    try:
        for entry in channel:
            print(display_line(entry, color=color))
    finally:
        producer.join()


def _run_picker(store: HistoryStore, scope: Scope, query: str) -> int:
    from histscope.tui.app import TextualPicker

    controller = SessionController(
        store, TextualPicker(), query=query, scope=scope, env_provider=current_environment
    )
    result = controller.run()
    if isinstance(result, Aborted):
        return EXIT_PICKER_FAILED if result.failed else EXIT_OK
    print(result.text)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = _build_parser().parse_args(argv)
    logger = get_logger()

    try:
        scope = parse_scope(args.scope or get_setting("defaultScope"), DEFAULT_SCOPE)
    except ValueError as e:
        logger.error("config", str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    try:
        store = open_store(args.db)
        store.check()
        logger.session_start(scope.value, args.query, str(store.db_path))
        if args.list:
            _list_entries(store, scope, args.query)
            return EXIT_OK
        return _run_picker(store, scope, args.query)
    except HistscopeError as e:
        logger.error("main", str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
