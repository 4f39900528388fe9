"""Open buffers, temporary-file tracking, and selection resolution.

A ``Workspace`` is the set of files the editing session holds open. Preview
and selection open files through a ``TemporaryFileRegistry`` so files that
were not already open can be closed again when the session ends.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .search.matches import Candidate

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    """Read text using tolerant encoding fallback order.

    Attempts UTF-8, UTF-8 with BOM, then latin-1; as a final fallback decodes
    raw bytes with UTF-8 replacement semantics.
    """
    for encoding in ("utf-8", "utf-8-sig", "latin-1"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Position:
    """Concrete jump target inside an open buffer."""

    path: Path
    line: int  # 1-based
    column: int  # 0-based
    offset: int  # 0-based character offset into the buffer text


class Buffer:
    """In-memory text of one opened file."""

    def __init__(self, path: Path, text: str) -> None:
        self.path = path
        self.text = text
        self.lines = text.splitlines(keepends=True)

    @classmethod
    def load(cls, path: Path) -> Buffer:
        return cls(path, read_text(path))

    @property
    def line_count(self) -> int:
        return max(1, len(self.lines))

    def line_text(self, line: int) -> str:
        """Return 1-based ``line`` without its terminator, or ``""`` past the end."""
        if 1 <= line <= len(self.lines):
            return self.lines[line - 1].rstrip("\r\n")
        return ""

    def position(self, line: int, column: int) -> Position:
        """Return the position of 1-based ``line`` and 0-based ``column``.

        The line is clamped to the buffer; the column is kept as given and
        only the character offset is bounded by the line length.
        """
        line = max(1, min(line, self.line_count))
        line_start = sum(len(text) for text in self.lines[: line - 1])
        offset = line_start + max(0, min(column, len(self.line_text(line))))
        return Position(path=self.path, line=line, column=column, offset=offset)


class Workspace:
    """Files currently open in the editing session, keyed by resolved path."""

    def __init__(self, loader: Callable[[Path], Buffer] = Buffer.load) -> None:
        self._loader = loader
        self._buffers: dict[Path, Buffer] = {}

    @staticmethod
    def _key(path: Path) -> Path:
        return Path(path).resolve()

    def is_open(self, path: Path) -> bool:
        return self._key(path) in self._buffers

    def get(self, path: Path) -> Buffer | None:
        return self._buffers.get(self._key(path))

    def open(self, path: Path) -> Buffer:
        """Return the open buffer for ``path``, loading it first if needed.

        Raises ``OSError`` when the file cannot be read.
        """
        key = self._key(path)
        buffer = self._buffers.get(key)
        if buffer is None:
            buffer = self._loader(key)
            self._buffers[key] = buffer
            logger.debug("opened %s", key)
        return buffer

    def close(self, path: Path) -> bool:
        closed = self._buffers.pop(self._key(path), None) is not None
        if closed:
            logger.debug("closed %s", path)
        return closed

    def paths(self) -> list[Path]:
        return list(self._buffers)


class TemporaryFileRegistry:
    """Track files opened on demand so unused ones can be closed again.

    Calling the registry implements the file-open strategy used by
    :func:`resolve_selection`: ``registry(path)`` opens or reuses a buffer and
    ``registry(None)`` closes every tracked file.
    """

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace
        self._temporary: dict[Path, Buffer] = {}

    @property
    def temporary_paths(self) -> list[Path]:
        return list(self._temporary)

    def open_or_reuse(self, path: Path) -> Buffer:
        """Return an open buffer for ``path``, tracking it when newly opened."""
        key = Path(path).resolve()
        existing = self.workspace.get(key)
        if existing is not None:
            return existing
        buffer = self.workspace.open(key)
        self._temporary[key] = buffer
        return buffer

    def keep(self, path: Path) -> None:
        """Stop tracking ``path`` so cleanup leaves it open."""
        self._temporary.pop(Path(path).resolve(), None)

    def close_if_unused(self) -> list[Path]:
        """Close every still-tracked file and clear the registry."""
        closed = [path for path in self._temporary if self.workspace.close(path)]
        self._temporary.clear()
        return closed

    def __call__(self, path: Path | None) -> Buffer | None:
        if path is None:
            self.close_if_unused()
            return None
        return self.open_or_reuse(path)


class NavigationError(Exception):
    """Raised when the selected file cannot be opened."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"cannot open {path}: {reason}")
        self.path = path
        self.reason = reason


OpenStrategy = Callable[[Path | None], Buffer | None]
JumpTarget = Callable[[Position], object]


def resolve_selection(
    candidate: Candidate | None,
    open_file: OpenStrategy,
    jump: JumpTarget,
    root: Path | None = None,
) -> Position | None:
    """Map a chosen candidate to a buffer position and jump there.

    With no candidate the open strategy is called with ``None`` to release
    temporary files, and nothing is jumped to. Reported columns are 1-based;
    the returned position's column is 0-based.
    """
    if candidate is None:
        open_file(None)
        return None

    path = Path(candidate.path)
    if root is not None and not path.is_absolute():
        path = root / path
    try:
        buffer = open_file(path)
    except OSError as exc:
        raise NavigationError(path, exc.strerror or str(exc)) from exc
    if buffer is None:
        raise NavigationError(path, "open strategy returned no buffer")

    position = buffer.position(candidate.line, candidate.column - 1)
    jump(position)
    return position


__all__ = [
    "Buffer",
    "JumpTarget",
    "NavigationError",
    "OpenStrategy",
    "Position",
    "TemporaryFileRegistry",
    "Workspace",
    "read_text",
    "resolve_selection",
]
