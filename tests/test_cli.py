#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""Tests for the histscope command-line entry point."""

import json
import sqlite3
from pathlib import Path

import pytest

from histscope import cli
from histscope.models import (
    KEY_ACCEPT,
    KEY_CYCLE_SCOPE,
    KEY_ESCAPE,
    EnvironmentFacts,
    PickerOutcome,
)


@pytest.fixture
def alpha_cwd(monkeypatch, alpha_env: EnvironmentFacts) -> EnvironmentFacts:
    """Pretend histscope runs on host alpha in /home/u/proj."""
    monkeypatch.setattr(cli, "current_environment", lambda: alpha_env)
    return alpha_env


def commands(output: str):
    return [line.split(" | ", 2)[2] for line in output.splitlines()]


class TestListMode:
    """Tests for --list (no picker)."""

    def test_everywhere_lists_all_most_recent_first(self, history_db: Path, capsys):
        code = cli.main(["--list", "--scope", "everywhere", "--db", str(history_db)])
        out = capsys.readouterr().out
        assert code == 0
        assert commands(out) == ["git push", "ssh beta", "cargo build", "git status", "ls -la"]

    def test_default_scope_is_directory(self, history_db: Path, capsys, alpha_cwd):
        assert cli.main(["--list", "--db", str(history_db)]) == 0
        assert commands(capsys.readouterr().out) == ["git push", "git status", "ls -la"]

    def test_query_narrows_by_substring(self, history_db: Path, capsys, alpha_cwd):
        assert cli.main(["git", "--list", "-s", "machine", "--db", str(history_db)]) == 0
        assert commands(capsys.readouterr().out) == ["git push", "git status"]

    def test_session_scope(self, history_db: Path, capsys, alpha_cwd):
        assert cli.main(["--list", "-s", "session", "--db", str(history_db)]) == 0
        assert commands(capsys.readouterr().out) == ["git push", "cargo build"]

    def test_output_is_plain_when_not_a_tty(self, history_db: Path, capsys):
        cli.main(["--list", "-s", "everywhere", "--db", str(history_db)])
        assert "\x1b" not in capsys.readouterr().out

    def test_db_from_env_var(self, history_db: Path, capsys, monkeypatch):
        monkeypatch.setenv("HISTSCOPE_HISTORY_DB", str(history_db))
        assert cli.main(["--list", "-s", "everywhere"]) == 0
        assert len(capsys.readouterr().out.splitlines()) == 5

    def test_default_scope_setting(self, history_db: Path, capsys, tmp_path, monkeypatch):
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"defaultScope": "everywhere"}))
        monkeypatch.setenv("HISTSCOPE_SETTINGS", str(settings))
        assert cli.main(["--list", "--db", str(history_db)]) == 0
        assert len(capsys.readouterr().out.splitlines()) == 5

    def test_empty_store(self, empty_history_db: Path, capsys):
        assert cli.main(["--list", "-s", "everywhere", "--db", str(empty_history_db)]) == 0
        assert capsys.readouterr().out == ""


class TestErrors:
    """Store and configuration failures exit 1 with a message on stderr."""

    def test_missing_database(self, tmp_path: Path, capsys):
        code = cli.main(["--list", "--db", str(tmp_path / "missing.sqlite3")])
        captured = capsys.readouterr()
        assert code == 1
        assert captured.out == ""
        assert "History database not found" in captured.err

    def test_missing_database_in_picker_mode(self, tmp_path: Path, capsys):
        assert cli.main(["--db", str(tmp_path / "missing.sqlite3")]) == 1

    def test_malformed_row_exits_cleanly(self, history_db: Path, capsys):
        conn = sqlite3.connect(history_db)
        conn.execute(
            "INSERT INTO history (command_line, start_timestamp, duration_ms) VALUES (?, ?, ?)",
            ("broken", 99_999_999_999_999_999, "abc"),
        )
        conn.commit()
        conn.close()

        code = cli.main(["--list", "-s", "everywhere", "--db", str(history_db)])
        captured = capsys.readouterr()
        assert code == 1
        assert "Error: Malformed history row" in captured.err

    def test_bad_default_scope_setting(self, history_db: Path, tmp_path, monkeypatch, capsys):
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"defaultScope": "galaxy"}))
        monkeypatch.setenv("HISTSCOPE_SETTINGS", str(settings))
        assert cli.main(["--list", "--db", str(history_db)]) == 1
        assert "Unknown scope" in capsys.readouterr().err

    def test_unknown_scope_option(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--scope", "galaxy"])
        assert exc_info.value.code == 2

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])
        assert exc_info.value.code == 0
        assert "histscope" in capsys.readouterr().out

    def test_errors_are_logged(self, tmp_path: Path, temp_state_dir: Path):
        cli.main(["--list", "--db", str(tmp_path / "missing.sqlite3")])
        events = [json.loads(line) for line in (temp_state_dir / "debug.log").read_text().splitlines()]
        assert events[-1]["event"] == "error"
        assert "not found" in events[-1]["err"]


class TestPickerMode:
    """The picker is replaced by scripted responses."""

    @pytest.fixture
    def script_picker(self, monkeypatch):
        """Replace TextualPicker.run; each response is an outcome or a callable."""
        app_module = pytest.importorskip("histscope.tui.app")
        seen = []

        def install(*responses):
            remaining = list(responses)

            def fake_run(self, query, header, channel):
                entries = list(channel)
                seen.append((query, header, entries))
                response = remaining.pop(0)
                return response(query, entries) if callable(response) else response

            monkeypatch.setattr(app_module.TextualPicker, "run", fake_run)
            return seen

        return install

    def test_selection_is_printed(self, history_db: Path, capsys, alpha_cwd, script_picker):
        script_picker(lambda query, entries: PickerOutcome(KEY_ACCEPT, query, entries[:1]))
        assert cli.main(["--db", str(history_db)]) == 0
        assert capsys.readouterr().out == "git push\n"

    def test_abort_prints_nothing(self, history_db: Path, capsys, alpha_cwd, script_picker):
        seen = script_picker(PickerOutcome(KEY_ESCAPE, query="gi"))
        assert cli.main(["gi", "--db", str(history_db)]) == 0
        assert capsys.readouterr().out == ""
        query, header, entries = seen[0]
        assert query == "gi"
        assert header.startswith("Directory history /home/u/proj")
        assert [e.command_line for e in entries] == ["git push", "git status"]

    def test_cycle_then_select(self, history_db: Path, capsys, alpha_cwd, script_picker):
        seen = script_picker(
            PickerOutcome(KEY_CYCLE_SCOPE, query="cargo"),
            lambda query, entries: PickerOutcome(KEY_ACCEPT, query, entries[:1]),
        )
        assert cli.main(["--db", str(history_db)]) == 0
        assert capsys.readouterr().out == "cargo build\n"
        assert [len(entries) for _, _, entries in seen] == [3, 1]

    def test_picker_failure_exits_2(self, history_db: Path, capsys, alpha_cwd, script_picker):
        script_picker(None)
        assert cli.main(["--db", str(history_db)]) == 2
        assert capsys.readouterr().out == ""
