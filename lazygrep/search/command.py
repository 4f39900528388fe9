"""Search command construction for one query revision.

Turns raw query text into the argv of a line-buffered ``ag --vimgrep`` run.
Query text may carry extra tool flags after a `` -- `` separator.
"""

from __future__ import annotations

import logging
import re
import shlex
from collections.abc import Callable
from dataclasses import dataclass

from ..regexp import (
    DIALECT_PCRE,
    Highlighter,
    RegexpCompileError,
    compile_query,
    ignore_case_for_flags,
)

logger = logging.getLogger(__name__)

COMMAND_ARGS_SEPARATOR_RE = re.compile(r" +--(?: +|$)")
# Empty negative lookahead: valid PCRE that can never match.
UNSATISFIABLE_PATTERN = "(?!)"
DEFAULT_MAX_COLUMNS = 300
DEFAULT_MIN_INPUT = 3


@dataclass(frozen=True)
class SearchSettings:
    """Static knobs for building and parsing search commands."""

    program: tuple[str, ...] = ("ag",)
    base_args: tuple[str, ...] = ("--vimgrep",)
    line_buffer_prefix: tuple[str, ...] = ("stdbuf", "-oL")
    dialect: str = DIALECT_PCRE
    max_columns: int = DEFAULT_MAX_COLUMNS
    min_input: int = DEFAULT_MIN_INPUT


DEFAULT_SETTINGS = SearchSettings()


@dataclass(frozen=True)
class SearchCommand:
    """Immutable command line for one search process."""

    argv: tuple[str, ...]
    tool: str
    paths: tuple[str, ...]
    pattern: str
    highlighter: Highlighter | None = None
    prefix_length: int = 0
    compile_error: str | None = None

    def without_prefix(self) -> SearchCommand:
        """Return the same command without its line-buffering wrapper."""
        if self.prefix_length == 0:
            return self
        return SearchCommand(
            argv=self.argv[self.prefix_length :],
            tool=self.tool,
            paths=self.paths,
            pattern=self.pattern,
            highlighter=self.highlighter,
            prefix_length=0,
            compile_error=self.compile_error,
        )


def split_command_args(query: str) -> tuple[str, list[str]]:
    """Split ``query`` into its pattern part and extra tool flags.

    ``"foo bar -- -w --hidden"`` yields ``("foo bar", ["-w", "--hidden"])``.
    Unbalanced quotes in the flag part yield no flags.
    """
    match = COMMAND_ARGS_SEPARATOR_RE.search(query)
    if match is None:
        return query, []
    pattern = query[: match.start()]
    try:
        flags = shlex.split(query[match.end() :])
    except ValueError:
        flags = []
    return pattern, flags


def build_search_command(
    query: str,
    paths: tuple[str, ...] | list[str],
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> SearchCommand | None:
    """Build the search command for ``query``, or ``None`` for a blank pattern.

    A pattern that fails to compile still produces a command; it searches for
    :data:`UNSATISFIABLE_PATTERN` so the run completes with no matches.
    """
    pattern, flags = split_command_args(query)
    if not pattern.strip():
        return None

    compile_error: str | None = None
    highlighter: Highlighter | None = None
    try:
        compiled = compile_query(
            pattern,
            settings.dialect,
            ignore_case=ignore_case_for_flags(pattern, flags),
        )
    except RegexpCompileError as exc:
        logger.debug("query %r does not compile: %s", pattern, exc)
        compiled = None
        compile_error = str(exc)

    if compiled is not None:
        tool_pattern = compiled.joined()
        highlighter = compiled.highlighter
    else:
        tool_pattern = UNSATISFIABLE_PATTERN

    paths = tuple(str(path) for path in paths)
    prefix = tuple(settings.line_buffer_prefix)
    argv = (*prefix, *settings.program, *settings.base_args, *flags, "--", tool_pattern, *paths)
    return SearchCommand(
        argv=argv,
        tool=settings.program[0],
        paths=paths,
        pattern=tool_pattern,
        highlighter=highlighter,
        prefix_length=len(prefix),
        compile_error=compile_error,
    )


def make_command_builder(
    paths: tuple[str, ...] | list[str],
    settings: SearchSettings = DEFAULT_SETTINGS,
) -> Callable[[str], SearchCommand | None]:
    """Return a query -> command builder bound to ``paths`` and ``settings``."""
    bound_paths = tuple(str(path) for path in paths)

    def build(query: str) -> SearchCommand | None:
        return build_search_command(query, bound_paths, settings)

    return build


__all__ = [
    "COMMAND_ARGS_SEPARATOR_RE",
    "DEFAULT_MAX_COLUMNS",
    "DEFAULT_MIN_INPUT",
    "DEFAULT_SETTINGS",
    "SearchCommand",
    "SearchSettings",
    "UNSATISFIABLE_PATTERN",
    "build_search_command",
    "make_command_builder",
    "split_command_args",
]
