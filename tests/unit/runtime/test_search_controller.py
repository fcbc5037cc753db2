"""Tests for the debounced, sequence-numbered search state machine."""

from __future__ import annotations

import unittest
from concurrent.futures import Future

from symbolsearch.index.model import Entry, Hit
from symbolsearch.runtime.controller import IncrementalSearchController
from symbolsearch.runtime.state import (
    PHASE_DEBOUNCING,
    PHASE_ERROR,
    PHASE_IDLE,
    PHASE_LOADING,
    PHASE_READY,
    SearchFrame,
)
from symbolsearch.search.engine import SearchResult


class _ManualClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _FakeEngine:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.futures: list[Future[SearchResult]] = []

    def search(self, query: str) -> Future[SearchResult]:
        future: Future[SearchResult] = Future()
        self.queries.append(query)
        self.futures.append(future)
        return future


class _RecordingRenderer:
    def __init__(self) -> None:
        self.frames: list[SearchFrame] = []

    def render(self, frame: SearchFrame) -> None:
        self.frames.append(frame)


def _entry(label: str, *anchors: str) -> Entry:
    return Entry.from_label(label, [Hit(anchor=anchor, disambiguator=f"sig {idx}") for idx, anchor in enumerate(anchors)])


def _result(query: str, *entries: Entry) -> SearchResult:
    return SearchResult(query=query, normalized=query, entries=entries)


class IncrementalSearchControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = _ManualClock()
        self.engine = _FakeEngine()
        self.renderer = _RecordingRenderer()
        self.navigated: list[str] = []
        self.controller = IncrementalSearchController(
            self.engine,
            self.renderer,
            navigate=self.navigated.append,
            debounce_seconds=0.5,
            clock=self.clock,
        )

    def _issue(self, query: str) -> Future[SearchResult]:
        self.controller.set_query(query)
        self.clock.advance(0.5)
        self.controller.poll()
        return self.engine.futures[-1]

    def _ready_with(self, *entries: Entry) -> None:
        self._issue("p").set_result(_result("p", *entries))
        self.controller.poll()
        self.assertEqual(self.controller.phase, PHASE_READY)

    def test_starts_idle(self) -> None:
        self.assertEqual(self.controller.phase, PHASE_IDLE)
        self.assertFalse(self.controller.poll())
        self.assertIsNone(self.controller.next_deadline())

    def test_keystroke_debounces_before_searching(self) -> None:
        self.controller.set_query("p")

        self.assertEqual(self.controller.phase, PHASE_DEBOUNCING)
        self.assertEqual(self.controller.next_deadline(), 0.5)
        self.clock.advance(0.25)
        self.assertFalse(self.controller.poll())
        self.assertEqual(self.engine.queries, [])

        self.clock.advance(0.25)
        self.assertTrue(self.controller.poll())
        self.assertEqual(self.controller.phase, PHASE_LOADING)
        self.assertEqual(self.engine.queries, ["p"])
        self.assertTrue(self.controller.has_pending_work())

    def test_each_keystroke_restarts_the_timer(self) -> None:
        self.controller.set_query("p")
        self.clock.advance(0.25)
        self.controller.set_query("pa")
        self.clock.advance(0.25)
        self.controller.poll()

        self.assertEqual(self.engine.queries, [])
        self.clock.advance(0.25)
        self.controller.poll()
        self.assertEqual(self.engine.queries, ["pa"])

    def test_matching_result_makes_state_ready(self) -> None:
        path = _entry("path", "structtum__font.html#a71")
        future = self._issue("pat")

        future.set_result(_result("pat", path))
        self.assertTrue(self.controller.poll())

        self.assertEqual(self.controller.phase, PHASE_READY)
        self.assertEqual(self.controller.state.results, (path,))
        self.assertEqual(self.renderer.frames[-1].results, (path,))
        self.assertEqual(self.controller.state.issued_sequence, 1)

    def test_older_result_arriving_late_is_discarded(self) -> None:
        first = self._issue("p")
        second = self._issue("pa")
        newer = _entry("pass", "pass.html")

        second.set_result(_result("pa", newer))
        self.controller.poll()
        frames_after_newer = len(self.renderer.frames)
        first.set_result(_result("p", _entry("pink", "pink.html")))

        self.assertFalse(self.controller.poll())
        self.assertEqual(self.controller.phase, PHASE_READY)
        self.assertEqual(self.controller.state.results, (newer,))
        self.assertEqual(len(self.renderer.frames), frames_after_newer)
        self.assertEqual(self.controller.state.issued_sequence, 2)

    def test_stale_result_during_debounce_keeps_debouncing(self) -> None:
        first = self._issue("p")
        self.controller.set_query("pa")

        first.set_result(_result("p", _entry("pink", "pink.html")))
        self.controller.poll()

        self.assertEqual(self.controller.phase, PHASE_DEBOUNCING)
        self.assertEqual(self.controller.state.results, ())

    def test_failed_result_enters_error_state(self) -> None:
        future = self._issue("zap")

        future.set_result(SearchResult(query="zap", normalized="zap", failed=True))
        self.controller.poll()

        self.assertEqual(self.controller.phase, PHASE_ERROR)
        self.assertTrue(self.renderer.frames[-1].no_matches)
        self.assertEqual(self.engine.queries, ["zap"])

    def test_exception_from_search_enters_error_state(self) -> None:
        future = self._issue("zap")

        future.set_exception(RuntimeError("lost"))
        with self.assertLogs("symbolsearch.runtime.controller", level="ERROR"):
            self.controller.poll()

        self.assertEqual(self.controller.phase, PHASE_ERROR)

    def test_error_state_accepts_new_keystrokes(self) -> None:
        self._issue("zap").set_result(SearchResult(query="zap", failed=True))
        self.controller.poll()

        self.controller.set_query("zip")

        self.assertEqual(self.controller.phase, PHASE_DEBOUNCING)

    def test_clearing_query_discards_pending_results(self) -> None:
        future = self._issue("p")

        self.controller.set_query("")
        future.set_result(_result("p", _entry("pink", "pink.html")))
        self.controller.poll()

        self.assertEqual(self.controller.phase, PHASE_IDLE)
        self.assertEqual(self.controller.state.results, ())

    def test_blank_query_counts_as_cleared(self) -> None:
        self.controller.set_query("   ")

        self.assertEqual(self.controller.phase, PHASE_IDLE)

    def test_navigation_is_ignored_outside_ready(self) -> None:
        self.assertFalse(self.controller.handle_key("DOWN"))
        self.controller.set_query("p")
        self.assertFalse(self.controller.handle_key("DOWN"))
        self.clock.advance(0.5)
        self.controller.poll()
        self.assertFalse(self.controller.handle_key("ENTER"))
        self.assertEqual(self.navigated, [])

    def test_up_down_move_between_entries_and_clamp(self) -> None:
        self._ready_with(_entry("path", "a.html"), _entry("pink", "b.html"))

        self.assertTrue(self.controller.handle_key("DOWN"))
        self.assertTrue(self.controller.handle_key("DOWN"))
        self.assertEqual(self.controller.state.selected, 1)
        self.assertTrue(self.controller.handle_key("UP"))
        self.assertTrue(self.controller.handle_key("UP"))
        self.assertEqual(self.controller.state.selected, 0)

    def test_left_right_move_between_hits_of_selected_entry(self) -> None:
        self._ready_with(_entry("pcreateball", "ball.h.html#1", "ball.c.html#2"))

        self.controller.handle_key("RIGHT")
        self.controller.handle_key("RIGHT")
        self.assertEqual(self.controller.state.selected_hit, 1)
        self.assertEqual(self.renderer.frames[-1].selected_hit_value.disambiguator, "sig 1")
        self.controller.handle_key("LEFT")
        self.assertEqual(self.controller.state.selected_hit, 0)

    def test_enter_navigates_to_selected_hit(self) -> None:
        self._ready_with(_entry("path", "a.html#x"), _entry("pcreateball", "ball.h.html#1", "ball.c.html#2"))

        self.controller.handle_key("DOWN")
        self.controller.handle_key("RIGHT")
        self.assertTrue(self.controller.handle_key("ENTER"))

        self.assertEqual(self.navigated, ["ball.c.html#2"])

    def test_escape_clears_query(self) -> None:
        self._ready_with(_entry("path", "a.html"))

        self.assertTrue(self.controller.handle_key("ESC"))

        self.assertEqual(self.controller.phase, PHASE_IDLE)
        self.assertEqual(self.controller.state.query, "")
        self.assertFalse(self.controller.handle_key("ESC"))

    def test_unknown_keys_are_not_consumed(self) -> None:
        self._ready_with(_entry("path", "a.html"))

        self.assertFalse(self.controller.handle_key("TAB"))

    def test_renderer_sees_each_phase(self) -> None:
        self._ready_with(_entry("path", "a.html"))

        phases = [frame.phase for frame in self.renderer.frames]
        self.assertEqual(phases, [PHASE_DEBOUNCING, PHASE_LOADING, PHASE_READY])


if __name__ == "__main__":
    unittest.main()
