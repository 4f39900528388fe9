"""Root logger configuration for the lazygrep entry point.

The terminal belongs to the picker while a session runs, so log records go
to a file rather than to stderr.
"""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(log_level: int | str, log_file: Path) -> logging.Logger:
    """Install a single file handler on the root logger.

    ``log_level`` is a numeric level or a level name such as ``"DEBUG"``.
    When the log file cannot be created, records are discarded instead.
    """
    resolved_level = (
        log_level if isinstance(log_level, int) else getattr(logging, str(log_level).upper(), logging.WARNING)
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)
    root_logger.handlers.clear()

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    except OSError:
        handler = logging.NullHandler()
    handler.setLevel(resolved_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(handler)
    return root_logger


__all__ = ["configure_logging"]
