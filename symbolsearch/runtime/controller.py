"""Incremental search controller driven by keystrokes and a host loop.

The controller runs entirely on the host's thread. Text changes restart a
debounce deadline; ``poll`` fires due searches and applies finished ones.
Each issued search gets a strictly increasing sequence number and only the
latest one may change the visible state, so late answers from slower
partition loads are dropped instead of cancelled.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from concurrent.futures import Future
from queue import Empty, Queue

from ..render import ResultRenderer
from ..search.engine import QueryEngine, SearchResult, strip_query
from .config import DEBOUNCE_SECONDS
from .state import (
    PHASE_DEBOUNCING,
    PHASE_ERROR,
    PHASE_IDLE,
    PHASE_LOADING,
    PHASE_READY,
    SearchFrame,
    SearchState,
)

logger = logging.getLogger(__name__)


class IncrementalSearchController:
    """State machine: idle, debouncing, loading, ready and error."""

    def __init__(
        self,
        engine: QueryEngine,
        renderer: ResultRenderer | None = None,
        *,
        navigate: Callable[[str], None] | None = None,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine
        self.renderer = renderer
        self.navigate = navigate
        self.debounce_seconds = max(0.0, debounce_seconds)
        self.clock = clock
        self.state = SearchState()
        self._completions: Queue[tuple[int, Future[SearchResult]]] = Queue()

    @property
    def phase(self) -> str:
        return self.state.phase

    def frame(self) -> SearchFrame:
        return SearchFrame(
            phase=self.state.phase,
            query=self.state.query,
            results=self.state.results,
            selected=self.state.selected,
            selected_hit=self.state.selected_hit,
        )

    def _render(self) -> None:
        if self.renderer is not None:
            self.renderer.render(self.frame())

    def _clear_results(self) -> None:
        self.state.results = ()
        self.state.selected = 0
        self.state.selected_hit = 0

    # text input
    def set_query(self, text: str) -> None:
        """Handle a text-input change event."""
        self.state.query = text
        # Whatever is still in flight no longer matches the input.
        self.state.active_sequence = None
        self._clear_results()

        if not strip_query(text):
            self.state.phase = PHASE_IDLE
            self.state.debounce_deadline = None
        else:
            self.state.phase = PHASE_DEBOUNCING
            self.state.debounce_deadline = self.clock() + self.debounce_seconds
        self._render()

    def clear(self) -> None:
        self.set_query("")

    def next_deadline(self, now: float | None = None) -> float | None:
        """Seconds until the debounce timer fires, or ``None`` when not debouncing."""
        if self.state.phase != PHASE_DEBOUNCING or self.state.debounce_deadline is None:
            return None
        current = self.clock() if now is None else now
        return max(0.0, self.state.debounce_deadline - current)

    def has_pending_work(self) -> bool:
        return self.state.phase in (PHASE_DEBOUNCING, PHASE_LOADING)

    # loop integration
    def poll(self, timeout_seconds: float = 0.0) -> bool:
        """Fire a due search and apply finished ones; return whether state changed.

        With ``timeout_seconds`` > 0 and a search in flight, wait up to that
        long for its completion before draining.
        """
        changed = False
        if (
            self.state.phase == PHASE_DEBOUNCING
            and self.state.debounce_deadline is not None
            and self.clock() >= self.state.debounce_deadline
        ):
            self._issue_search()
            changed = True

        if timeout_seconds > 0 and self.state.phase == PHASE_LOADING:
            try:
                first = self._completions.get(timeout=timeout_seconds)
            except Empty:
                first = None
            if first is not None:
                changed = self._apply_completion(*first) or changed

        while True:
            try:
                completion = self._completions.get_nowait()
            except Empty:
                break
            changed = self._apply_completion(*completion) or changed
        return changed

    def _issue_search(self) -> None:
        self.state.issued_sequence += 1
        sequence = self.state.issued_sequence
        self.state.active_sequence = sequence
        self.state.phase = PHASE_LOADING
        self.state.debounce_deadline = None
        self._render()

        query = self.state.query
        try:
            future = self.engine.search(query)
        except Exception:
            logger.exception("search #%d for %r failed to start", sequence, query)
            self._enter_error()
            return
        future.add_done_callback(lambda done, seq=sequence: self._completions.put((seq, done)))

    def _apply_completion(self, sequence: int, future: Future[SearchResult]) -> bool:
        if sequence != self.state.active_sequence:
            logger.debug("discarding stale search result #%d", sequence)
            return False
        self.state.active_sequence = None

        try:
            result = future.result()
        except Exception:
            logger.exception("search #%d for %r failed", sequence, self.state.query)
            self._enter_error()
            return True

        if result.failed:
            self._enter_error()
            return True

        self.state.phase = PHASE_READY
        self.state.results = result.entries
        self.state.selected = 0
        self.state.selected_hit = 0
        self._render()
        return True

    def _enter_error(self) -> None:
        self.state.active_sequence = None
        self.state.phase = PHASE_ERROR
        self._clear_results()
        self._render()

    # navigation
    def _move_selection(self, direction: int) -> None:
        previous = self.state.selected
        self.state.selected = max(0, min(len(self.state.results) - 1, self.state.selected + direction))
        if self.state.selected != previous:
            self.state.selected_hit = 0
            self._render()

    def _move_hit(self, direction: int) -> None:
        hits = self.state.results[self.state.selected].hits
        previous = self.state.selected_hit
        self.state.selected_hit = max(0, min(len(hits) - 1, self.state.selected_hit + direction))
        if self.state.selected_hit != previous:
            self._render()

    def activate_selection(self) -> str | None:
        """Navigate to the selected hit and return its anchor."""
        hit = self.frame().selected_hit_value
        if hit is None:
            return None
        if self.navigate is not None:
            self.navigate(hit.anchor)
        return hit.anchor

    def handle_key(self, key: str) -> bool:
        """Handle one navigation key; return whether it was consumed.

        ``ESC`` clears the query from any non-idle state. Every other key only
        acts on a ready, non-empty result list.
        """
        if key == "ESC":
            if self.state.phase == PHASE_IDLE and not self.state.query:
                return False
            self.clear()
            return True

        if self.state.phase != PHASE_READY or not self.state.results:
            return False
        if key == "UP":
            self._move_selection(-1)
            return True
        if key == "DOWN":
            self._move_selection(1)
            return True
        if key == "LEFT":
            self._move_hit(-1)
            return True
        if key == "RIGHT":
            self._move_hit(1)
            return True
        if key == "ENTER":
            self.activate_selection()
            return True
        return False


__all__ = ["IncrementalSearchController"]
