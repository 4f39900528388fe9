"""Tests for picker query editing, selection, history, and update merging."""

from __future__ import annotations

import unittest

from lazygrep.picker.state import QUERY_CHANGED, SELECTION_MOVED, PickerState, handle_key
from lazygrep.picker.types import CANCEL, COMMIT
from lazygrep.search.matches import MatchRecord, format_candidate
from lazygrep.search.session import SessionState, SessionUpdate


def _candidates(count: int):
    return [format_candidate(MatchRecord("a.txt", idx + 1, 1, f"row {idx}")) for idx in range(count)]


class QueryEditingTests(unittest.TestCase):
    def test_typing_inserts_at_cursor(self) -> None:
        state = PickerState()
        for key in "fo":
            self.assertEqual(handle_key(state, key), QUERY_CHANGED)
        handle_key(state, "LEFT")
        handle_key(state, "x")
        self.assertEqual((state.query, state.cursor), ("fxo", 2))

    def test_backspace_and_delete(self) -> None:
        state = PickerState()
        state.set_query("abc")
        self.assertEqual(handle_key(state, "BACKSPACE"), QUERY_CHANGED)
        self.assertEqual(state.query, "ab")
        self.assertIsNone(handle_key(state, "DELETE"))
        handle_key(state, "HOME")
        self.assertIsNone(handle_key(state, "BACKSPACE"))
        self.assertEqual(handle_key(state, "DELETE"), QUERY_CHANGED)
        self.assertEqual(state.query, "b")

    def test_ctrl_w_deletes_previous_word(self) -> None:
        state = PickerState()
        state.set_query("foo bar  ")
        self.assertEqual(handle_key(state, "CTRL_W"), QUERY_CHANGED)
        self.assertEqual(state.query, "foo ")
        handle_key(state, "CTRL_W")
        self.assertEqual(state.query, "")
        self.assertIsNone(handle_key(state, "CTRL_W"))

    def test_ctrl_u_clears_query(self) -> None:
        state = PickerState()
        state.set_query("foo -- -w")
        self.assertEqual(handle_key(state, "CTRL_U"), QUERY_CHANGED)
        self.assertEqual((state.query, state.cursor), ("", 0))

    def test_cursor_keys_do_not_change_query(self) -> None:
        state = PickerState()
        state.set_query("abc")
        for key in ("LEFT", "CTRL_A", "END", "RIGHT", "HOME", "CTRL_E"):
            self.assertIsNone(handle_key(state, key))
        self.assertEqual((state.query, state.cursor), ("abc", 3))

    def test_commit_and_cancel_keys(self) -> None:
        state = PickerState()
        self.assertEqual(handle_key(state, "ENTER_CR"), COMMIT)
        self.assertEqual(handle_key(state, "ENTER_LF"), COMMIT)
        for key in ("ESC", "CTRL_C", "CTRL_G"):
            self.assertEqual(handle_key(state, key), CANCEL)

    def test_unknown_keys_are_ignored(self) -> None:
        state = PickerState()
        self.assertIsNone(handle_key(state, "F13"))
        self.assertIsNone(handle_key(state, ""))
        self.assertEqual(state.query, "")


class SelectionTests(unittest.TestCase):
    def test_selection_moves_within_bounds(self) -> None:
        state = PickerState(candidates=_candidates(3))
        self.assertEqual(handle_key(state, "DOWN"), SELECTION_MOVED)
        self.assertEqual(handle_key(state, "CTRL_N"), SELECTION_MOVED)
        self.assertIsNone(handle_key(state, "DOWN"))
        self.assertEqual(state.selected, 2)
        self.assertEqual(handle_key(state, "PAGE_UP", page_rows=10), SELECTION_MOVED)
        self.assertEqual(state.selected, 0)
        self.assertEqual(handle_key(state, "PAGE_DOWN", page_rows=1), SELECTION_MOVED)
        self.assertEqual(state.selected_candidate(), state.candidates[1])

    def test_empty_list_has_no_selection(self) -> None:
        state = PickerState()
        self.assertIsNone(state.selected_candidate())
        self.assertIsNone(handle_key(state, "CTRL_N"))


class HistoryTests(unittest.TestCase):
    def test_up_and_down_walk_history_when_list_is_empty(self) -> None:
        state = PickerState(history=["first", "second"])
        self.assertEqual(handle_key(state, "UP"), QUERY_CHANGED)
        self.assertEqual(state.query, "second")
        handle_key(state, "UP")
        self.assertEqual(state.query, "first")
        handle_key(state, "UP")
        self.assertEqual(state.query, "first")
        handle_key(state, "DOWN")
        self.assertEqual(state.query, "second")
        self.assertEqual(handle_key(state, "DOWN"), QUERY_CHANGED)
        self.assertEqual(state.query, "")
        self.assertIsNone(state.history_index)

    def test_alt_keys_recall_even_with_candidates(self) -> None:
        state = PickerState(history=["old"], candidates=_candidates(2))
        self.assertEqual(handle_key(state, "ALT_P"), QUERY_CHANGED)
        self.assertEqual(state.query, "old")
        self.assertEqual(handle_key(state, "ALT_N"), QUERY_CHANGED)
        self.assertEqual(state.query, "")

    def test_typing_leaves_history_navigation(self) -> None:
        state = PickerState(history=["old"])
        handle_key(state, "UP")
        handle_key(state, "x")
        self.assertEqual(state.query, "oldx")
        self.assertIsNone(state.history_index)

    def test_no_history_means_no_recall(self) -> None:
        state = PickerState()
        self.assertIsNone(handle_key(state, "UP"))
        self.assertIsNone(handle_key(state, "ALT_N"))


class ApplyUpdateTests(unittest.TestCase):
    def test_reset_replaces_and_later_batches_append(self) -> None:
        state = PickerState(candidates=_candidates(4), selected=3, list_start=2)
        first, second = _candidates(2)
        state.apply_update(SessionUpdate(2, SessionState.STREAMING, candidates=(first,), reset=True))
        self.assertEqual(state.candidates, [first])
        self.assertEqual((state.selected, state.list_start), (0, 0))
        self.assertTrue(state.loading)

        state.apply_update(SessionUpdate(2, SessionState.STREAMING, candidates=(second,)))
        self.assertEqual(state.candidates, [first, second])

        state.apply_update(SessionUpdate(2, SessionState.COMPLETED))
        self.assertFalse(state.loading)
        self.assertEqual(len(state.candidates), 2)

    def test_failure_keeps_candidates_and_sets_notice(self) -> None:
        state = PickerState(candidates=_candidates(1))
        state.begin_revision()
        self.assertTrue(state.loading)
        state.apply_update(SessionUpdate(3, SessionState.FAILED, notice="ag is not installed."))
        self.assertEqual(state.notice, "ag is not installed.")
        self.assertEqual(len(state.candidates), 1)
        self.assertFalse(state.loading)

    def test_begin_revision_clears_notice(self) -> None:
        state = PickerState(notice="old notice")
        state.begin_revision()
        self.assertIsNone(state.notice)


if __name__ == "__main__":
    unittest.main()
