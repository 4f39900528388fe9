"""Picker contract shared by the session controller and picker frontends."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from ..search.matches import Candidate
from ..search.session import SessionUpdate

PREVIEW = "preview"
COMMIT = "commit"
CANCEL = "cancel"


class PickerSource(Protocol):
    """Incremental candidate source keyed by the current query text."""

    def update(self, query: str) -> None: ...

    def poll(self, timeout_seconds: float = 0.0) -> list[SessionUpdate]: ...

    def close(self) -> None: ...


@dataclass(frozen=True)
class PickerRequest:
    """Everything a picker needs for one interactive selection."""

    prompt: str
    source: PickerSource
    lookup: Callable[[Candidate], tuple[str, int, int]]
    state: Callable[[str, Candidate | None], None]
    group: Callable[[Candidate, bool], str] | None = None
    require_match: bool = True
    initial_input: str = ""
    history_key: str = ""
    history: tuple[str, ...] = ()
    preview: Callable[[Candidate, int, int], list[str]] | None = None


@dataclass(frozen=True)
class PickerResult:
    candidate: Candidate | None
    query: str


class Picker(Protocol):
    def run(self, request: PickerRequest) -> PickerResult: ...


__all__ = [
    "CANCEL",
    "COMMIT",
    "PREVIEW",
    "Picker",
    "PickerRequest",
    "PickerResult",
    "PickerSource",
]
