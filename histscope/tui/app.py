#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Interactive history picker.

A Textual app that consumes an EntryChannel while it is still filling,
fuzzy-ranks the entries against the query buffer, and exits with a
PickerOutcome describing the key that ended the session:

- escape / ctrl+c / ctrl+d / ctrl+z: abort keys
- enter: accept the highlighted entry
- ctrl+r: cycle to the next scope

Ranking starts as soon as the first entries arrive; the store query may
still be running.
"""

import asyncio
import heapq
from typing import List, Optional, Tuple

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.fuzzy import Matcher
from textual.widgets import Input, OptionList, Static
from textual.widgets.option_list import Option

from histscope.config import get_bool_setting, get_int_setting
from histscope.controller import Picker
from histscope.formatting import display_line, match_text, preview_text
from histscope.models import (
    DEFAULT_MAX_RESULTS,
    KEY_ACCEPT,
    KEY_CYCLE_SCOPE,
    KEY_EOF,
    KEY_ESCAPE,
    KEY_INTERRUPT,
    KEY_SUSPEND,
    PROMPT,
    HistoryEntry,
    PickerOutcome,
)
from histscope.producer import EntryChannel

CHANNEL_POLL_INTERVAL = 0.02  # seconds between empty channel polls
RESULTS_REFRESH_INTERVAL = 0.1  # seconds between result list rebuilds


class HistoryPickerApp(App[PickerOutcome]):
    """
    Full-screen picker over a stream of history entries.

    Returns a PickerOutcome from run(), or None when the entry source
    failed or the app crashed.
    """

    CSS_PATH = "styles/picker.tcss"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("escape", f"finish('{KEY_ESCAPE}')", "Abort", priority=True),
        Binding("ctrl+c", f"finish('{KEY_INTERRUPT}')", show=False, priority=True),
        Binding("ctrl+d", f"finish('{KEY_EOF}')", show=False, priority=True),
        Binding("ctrl+z", f"finish('{KEY_SUSPEND}')", show=False, priority=True),
        Binding("ctrl+r", f"finish('{KEY_CYCLE_SCOPE}')", "Scope", priority=True),
        Binding("enter", "accept", "Select", priority=True),
        Binding("up", "move('cursor_up')", show=False, priority=True),
        Binding("down", "move('cursor_down')", show=False, priority=True),
        Binding("pageup", "move('page_up')", show=False, priority=True),
        Binding("pagedown", "move('page_down')", show=False, priority=True),
    ]

    def __init__(
        self,
        channel: EntryChannel,
        query: str = "",
        header: str = "",
        max_results: int = DEFAULT_MAX_RESULTS,
        show_preview: bool = True,
    ) -> None:
        super().__init__()
        self.channel = channel
        self.initial_query = query
        self.header_text = header
        self.max_results = max_results
        self.show_preview = show_preview
        # Arrival order is store order: most recent first
        self.entries: List[HistoryEntry] = []
        # (-score, arrival index) for entries matching the current query
        self._scored: List[Tuple[float, int]] = []
        self._matcher: Optional[Matcher] = Matcher(query) if query else None
        self.shown: List[HistoryEntry] = []
        self.source_finished = False
        self._results_dirty = True

    def compose(self) -> ComposeResult:
        with Horizontal(id="prompt-row"):
            yield Static(PROMPT, id="prompt-label")
            yield Input(value=self.initial_query, id="query-input")
            yield Static("", id="match-count")
        yield Static(Text(self.header_text), id="scope-header")
        with Horizontal(id="results-row"):
            yield OptionList(id="results")
            if self.show_preview:
                yield Static("", id="preview")

    def on_mount(self) -> None:
        self.query_one("#query-input", Input).focus()
        self.set_interval(RESULTS_REFRESH_INTERVAL, self._flush_results)
        self._consume_channel()
        self._flush_results()

    # --- entry intake ---

    @work(exclusive=True, group="channel")
    async def _consume_channel(self) -> None:
        """Pull entries off the channel without blocking the event loop.

        Yields to the event loop after every batch, so keys, the results
        flush and redraws keep running while the producer streams.
        """
        while True:
            batch, finished = self.channel.receive_batch(timeout=0)
            if batch:
                self._ingest(batch)
            if finished:
                self.source_finished = True
                self._results_dirty = True
                if self.channel.error is not None:
                    # The controller re-raises the store error after join
                    self.exit(None)
                    return
                self._flush_results()
                return
            await asyncio.sleep(0 if batch else CHANNEL_POLL_INTERVAL)

    def _ingest(self, batch: List[HistoryEntry]) -> None:
        start = len(self.entries)
        self.entries.extend(batch)
        if self._matcher is not None:
            self._scored.extend(self._score(start, batch))
        self._results_dirty = True

    def _score(self, start: int, batch: List[HistoryEntry]) -> List[Tuple[float, int]]:
        matcher = self._matcher
        scored = []
        for offset, entry in enumerate(batch):
            score = matcher.match(match_text(entry))
            if score > 0:
                scored.append((-score, start + offset))
        return scored

    # --- ranking and display ---

    def on_input_changed(self, event: Input.Changed) -> None:
        query = event.value
        self._matcher = Matcher(query) if query else None
        self._scored = self._score(0, self.entries) if self._matcher is not None else []
        self._results_dirty = True
        self._flush_results()

    def _ranked(self) -> List[HistoryEntry]:
        if self._matcher is None:
            return self.entries[: self.max_results]
        best = heapq.nsmallest(self.max_results, self._scored)
        return [self.entries[index] for _, index in best]

    def _flush_results(self) -> None:
        if not self._results_dirty:
            return
        self._results_dirty = False
        option_list = self.query_one("#results", OptionList)
        previous = self.highlighted_entry()

        self.shown = self._ranked()
        option_list.clear_options()
        option_list.add_options(
            [Option(Text.from_ansi(display_line(entry))) for entry in self.shown]
        )
        if self.shown:
            index = 0
            if previous is not None:
                for i, entry in enumerate(self.shown):
                    if entry is previous:
                        index = i
                        break
            option_list.highlighted = index
        self._update_count()
        self._update_preview()

    def _update_count(self) -> None:
        suffix = "" if self.source_finished else " …"
        self.query_one("#match-count", Static).update(
            f"{len(self.shown)}/{len(self.entries)}{suffix}"
        )

    def _update_preview(self) -> None:
        if not self.show_preview:
            return
        entry = self.highlighted_entry()
        preview = self.query_one("#preview", Static)
        preview.update(Text.from_ansi(preview_text(entry)) if entry is not None else "")

    def on_option_list_option_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        self._update_preview()

    def highlighted_entry(self) -> Optional[HistoryEntry]:
        index = self.query_one("#results", OptionList).highlighted
        if index is None or index >= len(self.shown):
            return None
        return self.shown[index]

    # --- actions ---

    def _current_query(self) -> str:
        return self.query_one("#query-input", Input).value

    def action_move(self, action: str) -> None:
        option_list = self.query_one("#results", OptionList)
        getattr(option_list, f"action_{action}")()

    def action_finish(self, key: str) -> None:
        self.exit(PickerOutcome(final_key=key, query=self._current_query()))

    def action_accept(self) -> None:
        entry = self.highlighted_entry()
        self.exit(
            PickerOutcome(
                final_key=KEY_ACCEPT,
                query=self._current_query(),
                selected=[entry] if entry is not None else [],
            )
        )


class TextualPicker(Picker):
    """Picker backed by HistoryPickerApp, one app run per session."""

    def __init__(
        self,
        max_results: Optional[int] = None,
        show_preview: Optional[bool] = None,
    ) -> None:
        self.max_results = (
            max_results
            if max_results is not None
            else get_int_setting("picker.maxResults", DEFAULT_MAX_RESULTS)
        )
        self.show_preview = (
            show_preview
            if show_preview is not None
            else get_bool_setting("picker.showPreview", True)
        )

    def build_app(self, query: str, header: str, channel: EntryChannel) -> HistoryPickerApp:
        return HistoryPickerApp(
            channel,
            query=query,
            header=header,
            max_results=self.max_results,
            show_preview=self.show_preview,
        )

    def run(self, query: str, header: str, channel: EntryChannel) -> Optional[PickerOutcome]:
        return self.build_app(query, header, channel).run()
