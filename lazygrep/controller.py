"""Interactive search session wiring.

Binds a command builder to the search root, streams a ``SearchSession`` into
the picker, previews hits through a ``TemporaryFileRegistry``, and resolves
the final selection to a jump position. Files opened only for preview are
closed again when the session ends.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from . import config
from .navigation import (
    NavigationError,
    Position,
    TemporaryFileRegistry,
    Workspace,
    resolve_selection,
)
from .picker.types import PREVIEW, Picker, PickerRequest
from .preview import DEFAULT_STYLE, render_preview
from .search.command import (
    DEFAULT_SETTINGS,
    SearchCommand,
    SearchSettings,
    make_command_builder,
    split_command_args,
)
from .search.matches import Candidate, candidate_location, group_candidate
from .search.session import SearchSession, SessionUpdate
from .ui_theme import PLAIN_THEME, UITheme

logger = logging.getLogger(__name__)

HISTORY_KEY = "lazygrep-search"
PROMPT = "ag> "


@dataclass(frozen=True)
class SearchTarget:
    """Working directory and path arguments for the search tool."""

    cwd: Path
    paths: tuple[str, ...]


def resolve_search_target(targets: list[Path], cwd: Path | None = None) -> SearchTarget:
    """Turn CLI targets into a search root.

    One directory is searched as ``.`` from inside it, one file from its
    parent directory, several targets as given from ``cwd``.
    """
    base = (cwd or Path.cwd()).resolve()
    if not targets:
        return SearchTarget(cwd=base, paths=(".",))
    if len(targets) == 1:
        target = (base / targets[0]).resolve()
        if target.is_dir():
            return SearchTarget(cwd=target, paths=(".",))
        return SearchTarget(cwd=target.parent, paths=(target.name,))
    return SearchTarget(cwd=base, paths=tuple(str(target) for target in targets))


def prompt_for_root(default: Path, ask: Callable[[str], str] | None = None) -> Path:
    """Ask for a search root, keeping ``default`` on empty input."""
    answer = (ask or input)(f"Search root [{default}]: ").strip()
    return Path(answer).expanduser() if answer else default


class SearchSource:
    """Picker source that restarts the search session on every query revision."""

    def __init__(
        self,
        builder: Callable[[str], SearchCommand | None],
        session: SearchSession,
        min_input: int = 0,
    ) -> None:
        self.builder = builder
        self.session = session
        self.min_input = min_input

    def update(self, query: str) -> None:
        pattern, _flags = split_command_args(query)
        if len(pattern.strip()) < self.min_input:
            command = None
        else:
            command = self.builder(query)
        self.session.start(command)

    def poll(self, timeout_seconds: float = 0.0) -> list[SessionUpdate]:
        return self.session.poll(timeout_seconds)

    def close(self) -> None:
        self.session.stop()


@dataclass(frozen=True)
class SearchOutcome:
    """Result of one interactive search: where we jumped, or why not."""

    position: Position | None
    query: str
    error: str | None = None


class SearchController:
    """Run one interactive search from query input to jump."""

    def __init__(
        self,
        target: SearchTarget,
        picker: Picker,
        jump: Callable[[Position], str | None],
        *,
        settings: SearchSettings = DEFAULT_SETTINGS,
        workspace: Workspace | None = None,
        theme: UITheme = PLAIN_THEME,
        style: str = DEFAULT_STYLE,
        no_color: bool = True,
        load_history: Callable[[str], list[str]] = config.load_history,
        save_history: Callable[[str, str], None] = config.add_history,
        session_factory: Callable[..., SearchSession] = SearchSession,
    ) -> None:
        self.target = target
        self.picker = picker
        self.jump = jump
        self.settings = settings
        self.workspace = workspace if workspace is not None else Workspace()
        self.theme = theme
        self.style = style
        self.no_color = no_color
        self.load_history = load_history
        self.save_history = save_history
        self.session_factory = session_factory

    def _candidate_path(self, candidate: Candidate) -> Path:
        path = Path(candidate.path)
        return path if path.is_absolute() else self.target.cwd / path

    def _state_callback(self, registry: TemporaryFileRegistry) -> Callable[[str, Candidate | None], None]:
        def on_state(action: str, candidate: Candidate | None) -> None:
            if action != PREVIEW or candidate is None:
                return
            try:
                registry.open_or_reuse(self._candidate_path(candidate))
            except OSError as exc:
                logger.debug("cannot preview %s: %s", candidate.path, exc)

        return on_state

    def _preview_renderer(self, registry: TemporaryFileRegistry) -> Callable[[Candidate, int, int], list[str]]:
        def render(candidate: Candidate, height: int, width: int) -> list[str]:
            path = self._candidate_path(candidate)
            try:
                buffer = registry.open_or_reuse(path)
            except OSError as exc:
                return [f"cannot preview {candidate.path}: {exc.strerror or exc}"]
            return render_preview(
                buffer,
                candidate.line,
                height,
                width,
                theme=self.theme,
                style=self.style,
                no_color=self.no_color,
            )

        return render

    def run(self, initial_input: str = "") -> SearchOutcome:
        """Run the picker, then resolve and jump to the selection.

        Never raises for search or navigation failures; they are reported in
        the returned outcome.
        """
        registry = TemporaryFileRegistry(self.workspace)
        session = self.session_factory(
            cwd=self.target.cwd,
            theme=self.theme,
            max_columns=self.settings.max_columns,
        )
        source = SearchSource(
            make_command_builder(self.target.paths, self.settings),
            session,
            self.settings.min_input,
        )
        request = PickerRequest(
            prompt=PROMPT,
            source=source,
            lookup=candidate_location,
            state=self._state_callback(registry),
            group=group_candidate,
            require_match=True,
            initial_input=initial_input,
            history_key=HISTORY_KEY,
            history=tuple(self.load_history(HISTORY_KEY)),
            preview=self._preview_renderer(registry),
        )

        jump_errors: list[str] = []

        def jump(position: Position) -> None:
            error = self.jump(position)
            if error:
                jump_errors.append(error)

        try:
            try:
                result = self.picker.run(request)
            finally:
                source.close()

            if result.query.strip():
                self.save_history(HISTORY_KEY, result.query)

            try:
                position = resolve_selection(result.candidate, registry, jump, root=self.target.cwd)
            except NavigationError as exc:
                logger.warning("navigation failed: %s", exc)
                return SearchOutcome(position=None, query=result.query, error=str(exc))
            if position is not None:
                registry.keep(position.path)
                logger.debug("jumped to %s:%s:%s", position.path, position.line, position.column)
            return SearchOutcome(
                position=position,
                query=result.query,
                error=jump_errors[0] if jump_errors else None,
            )
        finally:
            if registry.temporary_paths:
                registry.close_if_unused()


__all__ = [
    "HISTORY_KEY",
    "PROMPT",
    "SearchController",
    "SearchOutcome",
    "SearchSource",
    "SearchTarget",
    "prompt_for_root",
    "resolve_search_target",
]
