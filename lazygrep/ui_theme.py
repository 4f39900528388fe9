"""UI theme definitions and selection helpers.

Themes are UI-only ANSI palettes (candidate list, prompt, status line).
Syntax highlighting style for the preview pane remains a separate setting.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UITheme:
    """Semantic ANSI palette used by formatters and renderers."""

    name: str
    reset: str
    reverse: str
    divider: str
    grep_path: str
    grep_location: str
    grep_match: str
    group_title: str
    prompt: str
    prompt_query: str
    status: str
    notice: str
    preview_gutter: str
    preview_current_line: str


DEFAULT_THEME = UITheme(
    name="default",
    reset="\033[0m",
    reverse="\033[7m",
    divider="\033[2m",
    grep_path="\033[38;5;176m",
    grep_location="\033[38;5;109m",
    grep_match="\033[1;38;5;214m",
    group_title="\033[1;38;5;81m",
    prompt="\033[1;38;5;81m",
    prompt_query="\033[38;5;229m",
    status="\033[2;38;5;250m",
    notice="\033[38;5;203m",
    preview_gutter="\033[38;5;242m",
    preview_current_line="\033[1;38;5;229m",
)

OCEAN_THEME = UITheme(
    name="ocean",
    reset="\033[0m",
    reverse="\033[7m",
    divider="\033[2;38;5;31m",
    grep_path="\033[38;5;117m",
    grep_location="\033[38;5;73m",
    grep_match="\033[1;38;5;215m",
    group_title="\033[1;38;5;45m",
    prompt="\033[1;38;5;45m",
    prompt_query="\033[38;5;153m",
    status="\033[2;38;5;110m",
    notice="\033[38;5;209m",
    preview_gutter="\033[38;5;24m",
    preview_current_line="\033[1;38;5;153m",
)

PLAIN_THEME = UITheme(
    name="plain",
    reset="",
    reverse="",
    divider="",
    grep_path="",
    grep_location="",
    grep_match="",
    group_title="",
    prompt="",
    prompt_query="",
    status="",
    notice="",
    preview_gutter="",
    preview_current_line="",
)

_THEMES: dict[str, UITheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def normalize_theme_name(name: str | None) -> str:
    """Return a valid theme name, falling back to default."""
    if not name:
        return DEFAULT_THEME.name
    candidate = str(name).strip().lower()
    if candidate in _THEMES:
        return candidate
    return DEFAULT_THEME.name


def resolve_theme(name: str | None, *, no_color: bool = False) -> UITheme:
    """Return concrete theme for requested name and color mode."""
    if no_color:
        return PLAIN_THEME
    return _THEMES[normalize_theme_name(name)]


__all__ = [
    "UITheme",
    "DEFAULT_THEME",
    "OCEAN_THEME",
    "PLAIN_THEME",
    "available_theme_names",
    "normalize_theme_name",
    "resolve_theme",
]
