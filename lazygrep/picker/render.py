"""Frame rendering for the picker.

Builds the full screen as a list of styled rows: prompt, status line,
candidate list (optionally grouped by file), and the preview pane.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ..ansi import display_width, pad_ansi_line, sanitize_terminal_text
from ..search.matches import Candidate
from ..ui_theme import PLAIN_THEME, UITheme
from .state import PickerState

SPINNER_FRAMES = ("|", "/", "-", "\\")
MIN_LIST_ROWS = 3

GroupFn = Callable[[Candidate, bool], str]


@dataclass(frozen=True)
class ListRow:
    """One row of the candidate list: a group title or a candidate."""

    text: str
    candidate_index: int | None = None


@dataclass(frozen=True)
class Frame:
    rows: list[str]
    cursor_row: int
    cursor_col: int


def layout_heights(height: int, has_preview: bool) -> tuple[int, int]:
    """Split a ``height``-row screen into ``(list rows, preview rows)``.

    Two rows go to prompt and status; a preview also takes one divider row.
    """
    body_height = max(1, height - 2)
    if not has_preview:
        return body_height, 0
    list_height = min(body_height, max(MIN_LIST_ROWS, body_height // 2))
    return list_height, max(0, body_height - list_height - 1)


def list_rows(state: PickerState, group: GroupFn | None, height: int) -> list[ListRow]:
    """Return up to ``height`` list rows starting at ``state.list_start``."""
    rows: list[ListRow] = []
    previous_title: str | None = None
    idx = state.list_start
    while idx < len(state.candidates) and len(rows) < height:
        candidate = state.candidates[idx]
        if group is None:
            rows.append(ListRow(candidate.display, idx))
            idx += 1
            continue
        title = group(candidate, False)
        if title != previous_title:
            if len(rows) + 1 >= height:
                break
            rows.append(ListRow(title))
            previous_title = title
        rows.append(ListRow("  " + group(candidate, True), idx))
        idx += 1
    return rows


def scroll_to_selection(state: PickerState, group: GroupFn | None, height: int) -> None:
    """Adjust ``state.list_start`` so the selected candidate is visible."""
    if not state.candidates:
        state.list_start = 0
        return
    state.selected = max(0, min(state.selected, len(state.candidates) - 1))
    if state.selected < state.list_start:
        state.list_start = state.selected
        return
    while state.list_start < state.selected:
        shown = {row.candidate_index for row in list_rows(state, group, height)}
        if state.selected in shown:
            return
        state.list_start += 1


def status_line(state: PickerState, spinner_frame: int, theme: UITheme) -> str:
    count = len(state.candidates)
    parts = [f"{count} match" if count == 1 else f"{count} matches"]
    if state.loading:
        parts.append(SPINNER_FRAMES[spinner_frame % len(SPINNER_FRAMES)])
    text = f"{theme.status}{' '.join(parts)}{theme.reset}" if theme.status else " ".join(parts)
    if state.notice:
        notice = sanitize_terminal_text(state.notice)
        text += "  " + (f"{theme.notice}{notice}{theme.reset}" if theme.notice else notice)
    return text


def render_frame(
    state: PickerState,
    prompt: str,
    width: int,
    height: int,
    *,
    group: GroupFn | None = None,
    preview_title: str | None = None,
    preview_rows: list[str] | None = None,
    theme: UITheme = PLAIN_THEME,
    spinner_frame: int = 0,
) -> Frame:
    """Lay out one full frame of ``height`` rows and ``width`` columns."""
    width = max(1, width)
    height = max(3, height)
    has_preview = preview_rows is not None
    list_height, _preview_height = layout_heights(height, has_preview)

    prompt_text = f"{theme.prompt}{prompt}{theme.reset}" if theme.prompt else prompt
    query_text = sanitize_terminal_text(state.query)
    query_styled = f"{theme.prompt_query}{query_text}{theme.reset}" if theme.prompt_query else query_text
    rows = [pad_ansi_line(prompt_text + query_styled, width), pad_ansi_line(status_line(state, spinner_frame, theme), width)]

    scroll_to_selection(state, group, list_height)
    for row in list_rows(state, group, list_height):
        text = row.text
        if row.candidate_index is None:
            text = sanitize_terminal_text(text)
            text = f"{theme.group_title}{text}{theme.reset}" if theme.group_title else text
            rows.append(pad_ansi_line(text, width))
            continue
        selected = row.candidate_index == state.selected
        marker = "> " if selected else "  "
        line = pad_ansi_line(marker + text, width)
        if selected and theme.reverse:
            # Re-apply reverse video after every reset inside the styled row.
            line = theme.reverse + line.replace(theme.reset, theme.reset + theme.reverse) + theme.reset
        rows.append(line)
    while len(rows) < 2 + list_height:
        rows.append(" " * width)

    if has_preview:
        title = f" {preview_title} " if preview_title else ""
        rule = "-" * 2 + title
        rule += "-" * max(0, width - display_width(rule))
        rows.append(pad_ansi_line(f"{theme.divider}{rule}{theme.reset}" if theme.divider else rule, width))
        for preview_row in preview_rows or []:
            if len(rows) >= height:
                break
            rows.append(pad_ansi_line(preview_row, width))
    while len(rows) < height:
        rows.append(" " * width)

    cursor_col = min(width - 1, display_width(prompt) + display_width(sanitize_terminal_text(state.query[: state.cursor])))
    return Frame(rows=rows[:height], cursor_row=0, cursor_col=cursor_col)


__all__ = [
    "Frame",
    "ListRow",
    "SPINNER_FRAMES",
    "layout_heights",
    "list_rows",
    "render_frame",
    "scroll_to_selection",
    "status_line",
]
