#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Session controller: the scope-cycling search loop.

States:
    Running(scope) - one picker session per iteration
    Selected(text) - terminal, the caller prints text
    Aborted        - terminal, nothing is printed

Each iteration builds a filter for the active scope, starts a search
producer, hands its channel to the picker, joins the producer, and then
reads the picker's exit key to pick the next state.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Union

from histscope.debug_logger import DebugLogger, get_logger
from histscope.filters import build_filter, current_environment
from histscope.formatting import output_text
from histscope.models import (
    ABORT_KEYS,
    KEY_ACCEPT,
    KEY_CYCLE_SCOPE,
    EnvironmentFacts,
    PickerOutcome,
)
from histscope.producer import EntryChannel, SearchProducer
from histscope.scope import DEFAULT_SCOPE, Scope, next_scope, scope_title
from histscope.store import HistoryStore


class Picker(ABC):
    """Interactive ranking/selection UI fed from an entry channel."""

    @abstractmethod
    def run(self, query: str, header: str, channel: EntryChannel) -> Optional[PickerOutcome]:
        """
        Run one picker session until the user ends it.

        Args:
            query: Initial contents of the query buffer
            header: Header text (the scope title)
            channel: Source of entries; may still be filling while the
                picker runs

        Returns:
            The outcome, or None if the picker failed internally.
        """
        pass


@dataclass(frozen=True)
class Running:
    scope: Scope


@dataclass(frozen=True)
class Selected:
    text: str


@dataclass(frozen=True)
class Aborted:
    """Loop ended without a selection.

    key is the abort key pressed; failed is True when the picker broke
    instead of the user leaving.
    """
    key: Optional[str] = None
    failed: bool = False


State = Union[Running, Selected, Aborted]


class SessionController:
    """Drives picker sessions until a selection is made or the user aborts."""

    def __init__(
        self,
        store: HistoryStore,
        picker: Picker,
        query: str = "",
        scope: Scope = DEFAULT_SCOPE,
        env_provider: Callable[[], EnvironmentFacts] = current_environment,
        logger: Optional[DebugLogger] = None,
    ) -> None:
        self.picker = picker
        self.query_text = query
        self.state: State = Running(scope)
        self.env_provider = env_provider
        self.logger = logger or get_logger()
        self.producer = SearchProducer(store, logger=self.logger)
        self.iterations = 0

    @property
    def finished(self) -> bool:
        return not isinstance(self.state, Running)

    def step(self) -> State:
        """Run one picker session in the current scope and advance the state."""
        if not isinstance(self.state, Running):
            return self.state
        scope = self.state.scope
        env = self.env_provider()
        title = scope_title(scope, env)

        channel = self.producer.start(
            build_filter(scope, self.query_text, env), scope_name=scope.value
        )
        try:
            outcome = self.picker.run(self.query_text, title, channel)
        finally:
            # No producer outlives its iteration
            self.producer.join()
        self.iterations += 1

        self.state = self._next_state(scope, outcome)
        return self.state

    def _next_state(self, scope: Scope, outcome: Optional[PickerOutcome]) -> State:
        if outcome is None:
            self.logger.picker_exit(scope.value, None, 0)
            return Aborted(failed=True)

        key = outcome.final_key
        self.logger.picker_exit(scope.value, key, len(outcome.selected))

        if key in ABORT_KEYS:
            return Aborted(key=key)
        if key == KEY_ACCEPT and outcome.selected:
            return Selected(output_text(outcome.selected[0]))
        if key == KEY_CYCLE_SCOPE:
            new_scope = next_scope(scope)
            self.query_text = outcome.query
            self.logger.scope_change(scope.value, new_scope.value, self.query_text)
            return Running(new_scope)
        # Accept with nothing highlighted, or an unrecognized key
        return Running(scope)

    def run(self) -> Union[Selected, Aborted]:
        """Loop until a terminal state is reached and return it."""
        while isinstance(self.state, Running):
            self.step()
        final = self.state
        outcome = "selected" if isinstance(final, Selected) else (
            "failed" if final.failed else "aborted"
        )
        self.logger.session_end(outcome, self.iterations)
        return final
