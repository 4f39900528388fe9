"""Jump targets for a resolved selection.

``launch_editor`` runs ``$EDITOR`` at the selected line and column;
``print_location`` writes ``path:line:column`` for shell pipelines.
Both return an error message string instead of raising.
"""

from __future__ import annotations

import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import TextIO

from .navigation import Position

_EMACS_EDITORS = {"emacs", "emacsclient"}
_NANO_EDITORS = {"nano", "pico"}


def editor_position_args(editor_cmd: list[str], position: Position) -> list[str]:
    """Return the ``+line`` style argument the editor understands (1-based column)."""
    name = Path(editor_cmd[0]).name if editor_cmd else ""
    column = position.column + 1
    if name in _EMACS_EDITORS:
        return [f"+{position.line}:{column}"]
    if name in _NANO_EDITORS:
        return [f"+{position.line},{column}"]
    return [f"+{position.line}"]


def launch_editor(position: Position) -> str | None:
    editor_env = os.environ.get("EDITOR", "").strip()
    if not editor_env:
        return "Cannot edit: $EDITOR is not set."
    cmd = shlex.split(editor_env)
    if not cmd:
        return "Cannot edit: $EDITOR is empty."

    try:
        subprocess.run([*cmd, *editor_position_args(cmd, position), str(position.path)], check=False)
    except OSError as exc:
        return f"Failed to launch editor: {exc}"
    return None


def print_location(position: Position, stream: TextIO | None = None) -> str | None:
    out = sys.stdout if stream is None else stream
    out.write(f"{position.path}:{position.line}:{position.column + 1}\n")
    out.flush()
    return None


__all__ = ["editor_position_args", "launch_editor", "print_location"]
