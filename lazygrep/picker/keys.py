"""Raw terminal key decoding for the picker.

Maps bytes read from a raw-mode tty to symbolic key names. Printable input
is returned as the decoded character itself.
"""

from __future__ import annotations

import os
import select

ESC_SEQUENCE_TIMEOUT_MS = 25

_CONTROL_KEYS = {
    b"\x01": "CTRL_A",
    b"\x03": "CTRL_C",
    b"\x05": "CTRL_E",
    b"\x07": "CTRL_G",
    b"\x08": "BACKSPACE",
    b"\t": "TAB",
    b"\n": "ENTER_LF",
    b"\r": "ENTER_CR",
    b"\x0e": "CTRL_N",
    b"\x10": "CTRL_P",
    b"\x15": "CTRL_U",
    b"\x17": "CTRL_W",
    b"\x7f": "BACKSPACE",
}

_CSI_FINAL_KEYS = {
    b"A": "UP",
    b"B": "DOWN",
    b"C": "RIGHT",
    b"D": "LEFT",
    b"H": "HOME",
    b"F": "END",
}

_CSI_TILDE_KEYS = {
    "1": "HOME",
    "3": "DELETE",
    "4": "END",
    "5": "PAGE_UP",
    "6": "PAGE_DOWN",
    "7": "HOME",
    "8": "END",
}


def _wait_readable(fd: int, timeout_ms: int) -> bool:
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    return bool(ready)


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _read_escape(fd: int) -> str:
    if not _wait_readable(fd, ESC_SEQUENCE_TIMEOUT_MS):
        return "ESC"
    seq = os.read(fd, 1)
    if not seq:
        return "ESC"
    if seq != b"[":
        if seq in {b"p", b"n"}:
            return f"ALT_{seq.decode('ascii').upper()}"
        return "ESC"

    params: list[bytes] = []
    while True:
        part = os.read(fd, 1)
        if not part:
            return "ESC"
        if part in _CSI_FINAL_KEYS and not params:
            return _CSI_FINAL_KEYS[part]
        if part == b"~":
            return _CSI_TILDE_KEYS.get(b"".join(params).decode("ascii", errors="replace"), "ESC")
        if not (part.isdigit() or part == b";"):
            return "ESC"
        params.append(part)
        if len(params) > 16:
            return "ESC"


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Read one key from ``fd``; returns ``""`` when ``timeout_ms`` expires."""
    if timeout_ms is not None and not _wait_readable(fd, timeout_ms):
        return ""

    ch = os.read(fd, 1)
    if not ch:
        return ""
    if ch == b"\x1b":
        return _read_escape(fd)
    if ch in _CONTROL_KEYS:
        return _CONTROL_KEYS[ch]

    length = _utf8_length(ch[0])
    if length > 1:
        ch += os.read(fd, length - 1)
    return ch.decode("utf-8", errors="replace")


__all__ = ["ESC_SEQUENCE_TIMEOUT_MS", "read_key"]
