"""Query regex compilation for the external search tool.

Queries are written in Python ``re`` syntax, one regexp per whitespace
separated word. Each word is validated locally, converted to the tool's
dialect, and the words are joined into one "all words, any order" expression.
The compiled words double as the highlighter for candidate text.
"""

from __future__ import annotations

import itertools
import re
from collections.abc import Callable
from dataclasses import dataclass

DIALECT_PCRE = "pcre"
DIALECT_EXTENDED = "extended"
DIALECTS = (DIALECT_PCRE, DIALECT_EXTENDED)
EXTENDED_PERMUTATION_LIMIT = 3

Span = tuple[int, int]
Highlighter = Callable[[str], list[Span]]

_EXTENDED_ESCAPES = {
    "d": "[0-9]",
    "D": "[^0-9]",
    "w": "[[:alnum:]_]",
    "W": "[^[:alnum:]_]",
    "s": "[[:space:]]",
    "S": "[^[:space:]]",
}
_EXTENDED_CLASS_ESCAPES = {
    "d": "0-9",
    "w": "[:alnum:]_",
    "s": "[:space:]",
}


class RegexpCompileError(ValueError):
    """Raised when one query word is not a valid regular expression."""

    def __init__(self, word: str, reason: str) -> None:
        super().__init__(f"invalid regexp {word!r}: {reason}")
        self.word = word
        self.reason = reason


@dataclass(frozen=True)
class CompiledQuery:
    """Query words translated to the tool dialect plus a local highlighter."""

    regexps: tuple[str, ...]
    dialect: str
    ignore_case: bool
    highlighter: Highlighter

    def joined(self) -> str:
        """Return the single tool-dialect expression for all words."""
        return join_regexps(self.regexps, self.dialect)


def split_escaped(text: str) -> list[str]:
    """Split ``text`` on unescaped whitespace; ``\\ `` is a literal space."""
    words: list[str] = []
    current: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\" and i + 1 < n and text[i + 1] == " ":
            current.append(" ")
            i += 2
            continue
        if ch == "\\" and i + 1 < n:
            current.append(text[i : i + 2])
            i += 2
            continue
        if ch.isspace():
            if current:
                words.append("".join(current))
                current = []
            i += 1
            continue
        current.append(ch)
        i += 1
    if current:
        words.append("".join(current))
    return words


def _convert_pcre(pattern: str) -> str:
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\" and i + 1 < n:
            nxt = pattern[i + 1]
            # Python's end-of-string anchor is spelled \z in PCRE.
            out.append("\\z" if nxt == "Z" else ch + nxt)
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _convert_extended(pattern: str) -> str:
    out: list[str] = []
    in_class = False
    i = 0
    n = len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "\\" and i + 1 < n:
            nxt = pattern[i + 1]
            if in_class and nxt in _EXTENDED_CLASS_ESCAPES:
                out.append(_EXTENDED_CLASS_ESCAPES[nxt])
            elif not in_class and nxt in _EXTENDED_ESCAPES:
                out.append(_EXTENDED_ESCAPES[nxt])
            else:
                out.append(ch + nxt)
            i += 2
            continue
        if in_class:
            if ch == "]" and out and out[-1] not in {"[", "[^"}:
                in_class = False
            out.append(ch)
            i += 1
            continue
        if ch == "[":
            in_class = True
            if pattern.startswith("[^", i):
                out.append("[^")
                i += 2
            else:
                out.append("[")
                i += 1
            continue
        if pattern.startswith("(?:", i):
            out.append("(")
            i += 3
            continue
        if ch == "?" and out and out[-1] in {"*", "+", "?", "}"}:
            # Lazy quantifier: ERE has no laziness, the greedy form matches the same lines.
            i += 1
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def convert_regexp(pattern: str, dialect: str) -> str:
    """Translate one Python-syntax regexp into ``dialect``."""
    if dialect == DIALECT_PCRE:
        return _convert_pcre(pattern)
    if dialect == DIALECT_EXTENDED:
        return _convert_extended(pattern)
    raise ValueError(f"unknown regexp dialect: {dialect!r}")


def join_regexps(regexps: tuple[str, ...] | list[str], dialect: str) -> str:
    """Join words into one expression matching lines containing all of them."""
    regexps = [regexp for regexp in regexps if regexp]
    if not regexps:
        return ""
    if len(regexps) == 1:
        return regexps[0]
    if dialect == DIALECT_PCRE:
        return "^" + "".join(f"(?=.*{regexp})" for regexp in regexps)
    head = regexps[:EXTENDED_PERMUTATION_LIMIT]
    return "|".join(
        ".*".join(f"({regexp})" for regexp in ordering) for ordering in itertools.permutations(head)
    )


def smart_case_ignores_case(pattern: str) -> bool:
    """Return whether ``pattern`` should match case-insensitively (no uppercase letter)."""
    return not any(ch.isupper() for ch in pattern)


def ignore_case_for_flags(pattern: str, flags: list[str] | tuple[str, ...]) -> bool:
    """Resolve case sensitivity from explicit tool flags, then smart case."""
    for flag in reversed(list(flags)):
        if flag in {"-i", "--ignore-case"}:
            return True
        if flag in {"-s", "--case-sensitive"}:
            return False
    return smart_case_ignores_case(pattern)


def make_highlighter(compiled: list[re.Pattern[str]]) -> Highlighter:
    """Return a highlighter marking every non-empty match of ``compiled`` words."""

    def highlight(text: str) -> list[Span]:
        spans: list[Span] = []
        for regexp in compiled:
            for match in regexp.finditer(text):
                if match.end() > match.start():
                    spans.append((match.start(), match.end()))
        spans.sort()
        merged: list[Span] = []
        for start, end in spans:
            if merged and start <= merged[-1][1]:
                merged[-1] = (merged[-1][0], max(merged[-1][1], end))
            else:
                merged.append((start, end))
        return merged

    return highlight


def compile_query(
    pattern: str,
    dialect: str = DIALECT_PCRE,
    ignore_case: bool | None = None,
) -> CompiledQuery | None:
    """Compile a user query into tool-dialect regexps and a highlighter.

    Returns ``None`` when the pattern holds no words. Raises
    :class:`RegexpCompileError` when any word fails to compile.
    """
    words = split_escaped(pattern)
    if not words:
        return None
    if ignore_case is None:
        ignore_case = smart_case_ignores_case(pattern)

    flags = re.IGNORECASE if ignore_case else 0
    compiled: list[re.Pattern[str]] = []
    for word in words:
        try:
            compiled.append(re.compile(word, flags))
        except re.error as exc:
            raise RegexpCompileError(word, str(exc)) from exc

    return CompiledQuery(
        regexps=tuple(convert_regexp(word, dialect) for word in words),
        dialect=dialect,
        ignore_case=ignore_case,
        highlighter=make_highlighter(compiled),
    )


__all__ = [
    "DIALECT_EXTENDED",
    "DIALECT_PCRE",
    "DIALECTS",
    "CompiledQuery",
    "Highlighter",
    "RegexpCompileError",
    "Span",
    "compile_query",
    "convert_regexp",
    "ignore_case_for_flags",
    "join_regexps",
    "make_highlighter",
    "smart_case_ignores_case",
    "split_escaped",
]
