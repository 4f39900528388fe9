"""Preview rendering for one file location.

Shows a window of the buffer around the hit line, syntax highlighted with
Pygments, with a line-number gutter and the hit line marked.
"""

from __future__ import annotations

from pathlib import Path

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .ansi import clip_ansi_line, sanitize_terminal_text
from .navigation import Buffer
from .ui_theme import PLAIN_THEME, UITheme

DEFAULT_STYLE = "monokai"

_FORMATTERS: dict[str, Terminal256Formatter] = {}
_VALID_STYLES: set[str] = set()
_INVALID_STYLES: set[str] = set()


def normalize_style(style: str) -> str:
    """Validate/canonicalize requested style name with cache-backed checks."""
    if style in _VALID_STYLES:
        return style
    if style in _INVALID_STYLES:
        return DEFAULT_STYLE
    try:
        get_style_by_name(style)
    except ClassNotFound:
        _INVALID_STYLES.add(style)
        return DEFAULT_STYLE
    _VALID_STYLES.add(style)
    return style


def _formatter_for_style(style: str) -> Terminal256Formatter:
    formatter = _FORMATTERS.get(style)
    if formatter is None:
        formatter = Terminal256Formatter(style=style)
        _FORMATTERS[style] = formatter
    return formatter


def colorize_lines(lines: list[str], path: Path, style: str = DEFAULT_STYLE) -> list[str]:
    """Highlight ``lines`` as a fragment of ``path`` and return one row per line."""
    if not lines:
        return []
    source = "\n".join(lines) + "\n"
    try:
        lexer = get_lexer_for_filename(path.name, source, stripnl=False)
    except ClassNotFound:
        lexer = TextLexer(stripnl=False)
    rendered = highlight(source, lexer, _formatter_for_style(normalize_style(style)))
    rows = rendered.split("\n")
    # Pygments may merge or drop the final empty row; keep exactly one row per input line.
    rows = rows[: len(lines)]
    rows.extend([""] * (len(lines) - len(rows)))
    return rows


def preview_window(line: int, line_count: int, height: int) -> tuple[int, int]:
    """Return the 1-based inclusive line range of a ``height`` window centered on ``line``."""
    height = max(1, height)
    first = max(1, line - height // 2)
    last = min(line_count, first + height - 1)
    first = max(1, last - height + 1)
    return first, last


def render_preview(
    buffer: Buffer,
    line: int,
    height: int,
    width: int,
    *,
    theme: UITheme = PLAIN_THEME,
    style: str = DEFAULT_STYLE,
    no_color: bool = False,
) -> list[str]:
    """Render up to ``height`` rows of ``buffer`` around 1-based ``line``."""
    if height <= 0 or width <= 0:
        return []
    first, last = preview_window(line, buffer.line_count, height)
    texts = [sanitize_terminal_text(buffer.line_text(number)).replace("\t", "    ") for number in range(first, last + 1)]
    bodies = texts if no_color else colorize_lines(texts, buffer.path, style)

    gutter_width = len(str(last))
    rows: list[str] = []
    for number, body in zip(range(first, last + 1), bodies):
        marker = ">" if number == line else " "
        number_text = f"{marker}{number:>{gutter_width}} "
        gutter_style = theme.preview_current_line if number == line else theme.preview_gutter
        gutter = f"{gutter_style}{number_text}{theme.reset}" if gutter_style else number_text
        rows.append(clip_ansi_line(gutter + body, width) + theme.reset)
    return rows


__all__ = [
    "DEFAULT_STYLE",
    "colorize_lines",
    "normalize_style",
    "preview_window",
    "render_preview",
]
