"""Terminal control helpers for the picker session.

Owns raw-mode lifecycle, alternate-screen switching, and frame output.
"""

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty


class TerminalController:
    """Manage terminal mode transitions and write full frames."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        """Capture tty state and bind stdin/stdout file descriptors."""
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, b"\x1b[?1049h")

    def disable_tui_mode(self) -> None:
        """Restore normal terminal state and the main screen buffer."""
        os.write(self.stdout_fd, b"\x1b[?25h\x1b[?1049l")
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def size(self) -> tuple[int, int]:
        """Return ``(columns, rows)`` of the controlling terminal."""
        try:
            term = os.get_terminal_size(self.stdout_fd)
        except OSError:
            term = shutil.get_terminal_size((80, 24))
        return max(1, term.columns), max(3, term.lines)

    def draw(self, rows: list[str], cursor_row: int, cursor_col: int) -> None:
        """Repaint the screen with ``rows`` and park the cursor."""
        out = ["\x1b[?25l\x1b[H"]
        for idx, row in enumerate(rows):
            if idx:
                out.append("\r\n")
            out.append(row)
            out.append("\x1b[0m\x1b[K")
        out.append(f"\x1b[{cursor_row + 1};{cursor_col + 1}H\x1b[?25h")
        os.write(self.stdout_fd, "".join(out).encode("utf-8", errors="replace"))

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()


__all__ = ["TerminalController"]
