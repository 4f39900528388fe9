"""Picker state and keyboard handling.

Pure state transitions over query text, candidate list, selection, and
history recall. No terminal I/O happens here.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..search.matches import Candidate
from ..search.session import SessionState, SessionUpdate
from .types import CANCEL, COMMIT

QUERY_CHANGED = "query"
SELECTION_MOVED = "move"
NO_MATCH_NOTICE = "No match"

_COMMIT_KEYS = {"ENTER_CR", "ENTER_LF"}
_CANCEL_KEYS = {"ESC", "CTRL_C", "CTRL_G"}
_LOADING_STATES = {SessionState.STARTING, SessionState.STREAMING}


@dataclass
class PickerState:
    """Mutable state of one picker session."""

    query: str = ""
    cursor: int = 0
    candidates: list[Candidate] = field(default_factory=list)
    selected: int = 0
    list_start: int = 0
    notice: str | None = None
    loading: bool = False
    history: list[str] = field(default_factory=list)
    history_index: int | None = None
    dirty: bool = True

    def set_query(self, text: str) -> None:
        self.query = text
        self.cursor = len(text)
        self.dirty = True

    def _edit(self, query: str, cursor: int) -> bool:
        if query == self.query and cursor == self.cursor:
            return False
        changed = query != self.query
        self.query = query
        self.cursor = max(0, min(cursor, len(query)))
        self.dirty = True
        if changed:
            self.history_index = None
        return changed

    def insert(self, text: str) -> bool:
        return self._edit(self.query[: self.cursor] + text + self.query[self.cursor :], self.cursor + len(text))

    def backspace(self) -> bool:
        if self.cursor == 0:
            return False
        return self._edit(self.query[: self.cursor - 1] + self.query[self.cursor :], self.cursor - 1)

    def delete_forward(self) -> bool:
        if self.cursor >= len(self.query):
            return False
        return self._edit(self.query[: self.cursor] + self.query[self.cursor + 1 :], self.cursor)

    def delete_word_backward(self) -> bool:
        """Delete the word before the cursor, including trailing spaces."""
        head = self.query[: self.cursor]
        stripped = head.rstrip(" ")
        cut = stripped.rfind(" ") + 1
        return self._edit(self.query[:cut] + self.query[self.cursor :], cut)

    def clear_query(self) -> bool:
        return self._edit("", 0)

    def move_cursor(self, delta: int) -> None:
        self._edit(self.query, self.cursor + delta)

    def move_cursor_to(self, cursor: int) -> None:
        self._edit(self.query, cursor)

    def selected_candidate(self) -> Candidate | None:
        if 0 <= self.selected < len(self.candidates):
            return self.candidates[self.selected]
        return None

    def move_selection(self, direction: int) -> bool:
        """Move selection by ``direction`` while clamping to list bounds."""
        if not self.candidates:
            return False
        previous = self.selected
        self.selected = max(0, min(len(self.candidates) - 1, self.selected + direction))
        if self.selected != previous:
            self.dirty = True
            return True
        return False

    def recall_history(self, direction: int) -> bool:
        """Step through stored queries; ``-1`` goes back in time, ``1`` forward."""
        if not self.history:
            return False
        if self.history_index is None:
            if direction > 0:
                return False
            index = len(self.history) - 1
        else:
            index = self.history_index + direction
        if index >= len(self.history):
            self.history_index = None
            self.set_query("")
            return True
        index = max(0, index)
        self.set_query(self.history[index])
        self.history_index = index
        return True

    def begin_revision(self) -> None:
        """Mark that the current query was sent to the source."""
        self.loading = True
        self.notice = None
        self.dirty = True

    def apply_update(self, update: SessionUpdate) -> None:
        """Merge one source delivery: replace on reset, append otherwise."""
        if update.reset:
            self.candidates = list(update.candidates)
            self.selected = 0
            self.list_start = 0
        elif update.candidates:
            self.candidates.extend(update.candidates)
        self.loading = update.state in _LOADING_STATES
        if update.notice:
            self.notice = update.notice
        self.dirty = True


def handle_key(state: PickerState, key: str, page_rows: int = 10) -> str | None:
    """Apply ``key`` to ``state`` and return the resulting picker action.

    Returns :data:`QUERY_CHANGED`, :data:`SELECTION_MOVED`, ``COMMIT``,
    ``CANCEL``, or ``None`` when the key changed nothing that matters.
    """
    if not key:
        return None
    if key in _COMMIT_KEYS:
        return COMMIT
    if key in _CANCEL_KEYS:
        return CANCEL

    if key in {"DOWN", "CTRL_N"}:
        if key == "DOWN" and not state.candidates and state.history_index is not None:
            return QUERY_CHANGED if state.recall_history(1) else None
        return SELECTION_MOVED if state.move_selection(1) else None
    if key in {"UP", "CTRL_P"}:
        if key == "UP" and not state.candidates:
            return QUERY_CHANGED if state.recall_history(-1) else None
        return SELECTION_MOVED if state.move_selection(-1) else None
    if key == "PAGE_DOWN":
        return SELECTION_MOVED if state.move_selection(max(1, page_rows)) else None
    if key == "PAGE_UP":
        return SELECTION_MOVED if state.move_selection(-max(1, page_rows)) else None
    if key == "ALT_P":
        return QUERY_CHANGED if state.recall_history(-1) else None
    if key == "ALT_N":
        return QUERY_CHANGED if state.recall_history(1) else None

    if key == "LEFT":
        state.move_cursor(-1)
        return None
    if key == "RIGHT":
        state.move_cursor(1)
        return None
    if key in {"HOME", "CTRL_A"}:
        state.move_cursor_to(0)
        return None
    if key in {"END", "CTRL_E"}:
        state.move_cursor_to(len(state.query))
        return None

    if key == "BACKSPACE":
        changed = state.backspace()
    elif key == "DELETE":
        changed = state.delete_forward()
    elif key == "CTRL_W":
        changed = state.delete_word_backward()
    elif key == "CTRL_U":
        changed = state.clear_query()
    elif key == "TAB":
        changed = state.insert(" ")
    elif len(key) == 1 and key.isprintable():
        changed = state.insert(key)
    else:
        changed = False
    return QUERY_CHANGED if changed else None


__all__ = [
    "NO_MATCH_NOTICE",
    "PickerState",
    "QUERY_CHANGED",
    "SELECTION_MOVED",
    "handle_key",
]
