"""Vimgrep line parsing and candidate formatting.

Parses ``path:line:column:text`` output lines into match records and renders
them as picker candidates that carry their location structurally.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from ..ansi import sanitize_terminal_text
from ..regexp import Highlighter, Span
from ..ui_theme import PLAIN_THEME, UITheme
from .command import DEFAULT_MAX_COLUMNS

VIMGREP_LINE_RE = re.compile(r"\A([^:]+):(\d+):(\d+):(.*)\Z", re.DOTALL)


@dataclass(frozen=True)
class MatchRecord:
    path: str
    line: int  # 1-based
    column: int  # 1-based
    text: str


@dataclass(frozen=True)
class Candidate:
    """One selectable search hit: display text plus its location."""

    text: str
    display: str
    path: str
    line: int  # 1-based
    column: int  # 1-based
    match_text: str
    highlights: tuple[Span, ...] = ()
    # ``display`` without the leading path, for rows grouped under a file title.
    detail: str = ""


def parse_line(
    raw: str,
    max_columns: int = DEFAULT_MAX_COLUMNS,
    previous_path: str | None = None,
) -> MatchRecord | None:
    """Parse one vimgrep output line, returning ``None`` for anything else.

    Match text longer than ``max_columns`` keeps its first ``max_columns``
    characters. When the path equals ``previous_path`` that string object is
    reused for the record.
    """
    match = VIMGREP_LINE_RE.match(raw.rstrip("\r\n"))
    if match is None:
        return None
    path, line_text, column_text, text = match.groups()
    if previous_path is not None and previous_path == path:
        path = previous_path
    if len(text) > max_columns:
        text = text[:max_columns]
    try:
        line, column = int(line_text), int(column_text)
    except ValueError:
        # Digit runs past the interpreter's int conversion limit.
        return None
    return MatchRecord(path=path, line=line, column=column, text=text)


def _styled(text: str, style: str, reset: str) -> str:
    text = sanitize_terminal_text(text)
    if not style or not text:
        return text
    return f"{style}{text}{reset}"


def highlight_text(text: str, spans: Iterable[Span], theme: UITheme) -> str:
    """Wrap ``spans`` of ``text`` in the theme's match-emphasis style."""
    out: list[str] = []
    cursor = 0
    for start, end in spans:
        start = max(start, cursor)
        end = min(end, len(text))
        if start >= end:
            continue
        out.append(sanitize_terminal_text(text[cursor:start]))
        out.append(_styled(text[start:end], theme.grep_match, theme.reset))
        cursor = end
    out.append(sanitize_terminal_text(text[cursor:]))
    return "".join(out)


def format_candidate(
    record: MatchRecord,
    highlighter: Highlighter | None = None,
    theme: UITheme = PLAIN_THEME,
) -> Candidate:
    """Render ``record`` as ``path:line:column:text`` with theme styles applied."""
    location = f"{record.line}:{record.column}"
    spans = tuple(highlighter(record.text)) if highlighter is not None else ()
    detail = "".join(
        (
            _styled(location, theme.grep_location, theme.reset),
            ":",
            highlight_text(record.text, spans, theme) if spans else sanitize_terminal_text(record.text),
        )
    )
    display = f"{_styled(record.path, theme.grep_path, theme.reset)}:{detail}"
    return Candidate(
        text=f"{record.path}:{location}:{record.text}",
        display=display,
        path=record.path,
        line=record.line,
        column=record.column,
        match_text=record.text,
        highlights=spans,
        detail=detail,
    )


class CandidateFormatter:
    """Turn raw output lines into candidates for one search run.

    Keeps the last seen path so consecutive hits in one file share it. An
    instance belongs to a single reader and is not shared between threads.
    """

    def __init__(
        self,
        highlighter: Highlighter | None = None,
        theme: UITheme = PLAIN_THEME,
        max_columns: int = DEFAULT_MAX_COLUMNS,
    ) -> None:
        self.highlighter = highlighter
        self.theme = theme
        self.max_columns = max_columns
        self._last_path: str | None = None

    def format_line(self, raw: str) -> Candidate | None:
        record = parse_line(raw, self.max_columns, self._last_path)
        if record is None:
            return None
        self._last_path = record.path
        return format_candidate(record, self.highlighter, self.theme)

    def format_lines(self, lines: Iterable[str]) -> list[Candidate]:
        out: list[Candidate] = []
        for raw in lines:
            candidate = self.format_line(raw)
            if candidate is not None:
                out.append(candidate)
        return out


def group_candidate(candidate: Candidate, transform: bool) -> str:
    """Grouping hook: the file path as title, or the row without its path prefix."""
    if not transform:
        return candidate.path
    return candidate.detail


def candidate_location(candidate: Candidate) -> tuple[str, int, int]:
    """Lookup hook: the candidate's ``(path, line, column)`` with 1-based column."""
    return candidate.path, candidate.line, candidate.column


__all__ = [
    "Candidate",
    "CandidateFormatter",
    "MatchRecord",
    "VIMGREP_LINE_RE",
    "candidate_location",
    "format_candidate",
    "group_candidate",
    "highlight_text",
    "parse_line",
]
