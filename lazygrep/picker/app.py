"""Interactive picker loop.

``run_picker_loop`` is the terminal-independent core: it debounces query
revisions into the source, applies streamed updates, tracks the previewed
candidate, and dispatches keys. ``TerminalPicker`` binds it to a raw-mode tty.
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable

from ..search.matches import Candidate
from ..ui_theme import PLAIN_THEME, UITheme
from .keys import read_key
from .render import Frame, layout_heights, render_frame
from .state import NO_MATCH_NOTICE, QUERY_CHANGED, PickerState, handle_key
from .terminal import TerminalController
from .types import CANCEL, COMMIT, PREVIEW, PickerRequest, PickerResult

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 0.05
DEFAULT_DEBOUNCE_SECONDS = 0.1


def run_picker_loop(
    request: PickerRequest,
    next_key: Callable[[float], str],
    draw: Callable[[PickerState, int], None],
    *,
    page_rows: Callable[[], int] = lambda: 10,
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    tick_seconds: float = DEFAULT_TICK_SECONDS,
    clock: Callable[[], float] = time.monotonic,
) -> PickerResult:
    """Drive one picker session until commit or cancel.

    ``next_key(timeout)`` returns a key name or ``""`` when nothing arrived.
    ``draw(state, tick)`` repaints when the state is dirty or loading.
    """
    state = PickerState(history=list(request.history))
    state.set_query(request.initial_input)
    pending_since: float | None = float("-inf")
    previewed: Candidate | None = None
    tick = 0

    while True:
        now = clock()
        if pending_since is not None and now - pending_since >= debounce_seconds:
            pending_since = None
            state.begin_revision()
            request.source.update(state.query)

        for update in request.source.poll(0.0):
            state.apply_update(update)

        candidate = state.selected_candidate()
        if candidate is not None and candidate is not previewed:
            request.state(PREVIEW, candidate)
            previewed = candidate
            state.dirty = True

        if state.dirty or state.loading:
            draw(state, tick)
            state.dirty = False
        tick += 1

        key = next_key(tick_seconds)
        if not key:
            continue
        action = handle_key(state, key, page_rows())
        if action == QUERY_CHANGED:
            pending_since = clock()
            continue
        if action == COMMIT:
            selected = state.selected_candidate()
            if selected is None and request.require_match:
                state.notice = NO_MATCH_NOTICE
                state.dirty = True
                continue
            logger.debug("picker committed %r", selected.text if selected is not None else state.query)
            request.state(COMMIT, selected)
            return PickerResult(candidate=selected, query=state.query)
        if action == CANCEL:
            logger.debug("picker cancelled with query %r", state.query)
            request.state(CANCEL, None)
            return PickerResult(candidate=None, query=state.query)


class TerminalPicker:
    """Picker frontend drawing into the controlling terminal."""

    def __init__(
        self,
        theme: UITheme = PLAIN_THEME,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        stdin_fd: int | None = None,
        stdout_fd: int | None = None,
    ) -> None:
        self.theme = theme
        self.debounce_seconds = debounce_seconds
        self.stdin_fd = sys.stdin.fileno() if stdin_fd is None else stdin_fd
        self.stdout_fd = sys.stdout.fileno() if stdout_fd is None else stdout_fd

    def run(self, request: PickerRequest) -> PickerResult:
        terminal = TerminalController(self.stdin_fd, self.stdout_fd)
        preview_cache: dict[tuple[int, int, int], list[str]] = {}

        def preview_for(candidate: Candidate | None, height: int, width: int) -> tuple[str | None, list[str] | None]:
            if request.preview is None:
                return None, None
            if candidate is None or height <= 0:
                return None, []
            path, line, column = request.lookup(candidate)
            key = (id(candidate), height, width)
            rows = preview_cache.get(key)
            if rows is None:
                preview_cache.clear()
                rows = request.preview(candidate, height, width)
                preview_cache[key] = rows
            return f"{path}:{line}:{column}", rows

        def draw(state: PickerState, tick: int) -> None:
            width, height = terminal.size()
            _list_height, preview_height = layout_heights(height, request.preview is not None)
            title, rows = preview_for(state.selected_candidate(), preview_height, width)
            frame: Frame = render_frame(
                state,
                request.prompt,
                width,
                height,
                group=request.group,
                preview_title=title,
                preview_rows=rows,
                theme=self.theme,
                spinner_frame=tick // 4,
            )
            terminal.draw(frame.rows, frame.cursor_row, frame.cursor_col)

        def page_rows() -> int:
            _width, height = terminal.size()
            list_height, _preview_height = layout_heights(height, request.preview is not None)
            return max(1, list_height - 1)

        def next_key(timeout_seconds: float) -> str:
            return read_key(self.stdin_fd, timeout_ms=int(timeout_seconds * 1000))

        with terminal.raw_mode():
            return run_picker_loop(
                request,
                next_key,
                draw,
                page_rows=page_rows,
                debounce_seconds=self.debounce_seconds,
            )


__all__ = ["DEFAULT_DEBOUNCE_SECONDS", "TerminalPicker", "run_picker_loop"]
