"""Persistent JSON config helpers.

Stores search-tool settings, UI preferences, and per-key query history.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from platformdirs import user_config_dir, user_log_dir

from .regexp import DIALECTS
from .search.command import DEFAULT_SETTINGS, SearchSettings

logger = logging.getLogger(__name__)

APP_NAME = "lazygrep"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME
DEFAULT_LOG_PATH = Path(user_log_dir(APP_NAME, appauthor=False)) / f"{APP_NAME}.log"
MAX_HISTORY_ENTRIES = 100
DEFAULT_INPUT_DEBOUNCE_SECONDS = 0.1


def load_config() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem errors are logged and otherwise ignored so a read-only config
    directory never breaks a search session.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("could not write config %s: %s", CONFIG_PATH, exc)


def _string_tuple(value: object) -> tuple[str, ...] | None:
    """Return ``value`` as a tuple of strings, or ``None`` when it is not a string list."""
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return None
    return tuple(value)


def _positive_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return None
    return value


def _nonnegative_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return None
    return value


def load_search_settings() -> SearchSettings:
    """Build search settings from config, ignoring invalid entries."""
    data = load_config()
    program = _string_tuple(data.get("program"))
    base_args = _string_tuple(data.get("base_args"))
    prefix = _string_tuple(data.get("line_buffer_prefix"))
    dialect = data.get("dialect")
    max_columns = _positive_int(data.get("max_columns"))
    min_input = _nonnegative_int(data.get("min_input"))
    return SearchSettings(
        program=program if program else DEFAULT_SETTINGS.program,
        base_args=base_args if base_args is not None else DEFAULT_SETTINGS.base_args,
        line_buffer_prefix=prefix if prefix is not None else DEFAULT_SETTINGS.line_buffer_prefix,
        dialect=dialect if dialect in DIALECTS else DEFAULT_SETTINGS.dialect,
        max_columns=max_columns if max_columns is not None else DEFAULT_SETTINGS.max_columns,
        min_input=min_input if min_input is not None else DEFAULT_SETTINGS.min_input,
    )


def load_input_debounce_seconds() -> float:
    """Return the picker's query debounce delay in seconds."""
    value = load_config().get("input_debounce_seconds")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        return DEFAULT_INPUT_DEBOUNCE_SECONDS
    return float(value)


def _load_name(key: str) -> str | None:
    value = load_config().get(key)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped if stripped else None


def load_theme_name() -> str | None:
    """Load persisted UI theme name, returning ``None`` when unset/invalid."""
    return _load_name("theme")


def load_style_name() -> str | None:
    """Load persisted Pygments preview style, returning ``None`` when unset/invalid."""
    return _load_name("style")


def load_history(key: str) -> list[str]:
    """Return stored queries for ``key``, oldest first."""
    history = load_config().get("history")
    if not isinstance(history, dict):
        return []
    entries = history.get(key)
    if not isinstance(entries, list):
        return []
    return [entry for entry in entries if isinstance(entry, str) and entry]


def add_history(key: str, query: str, max_entries: int = MAX_HISTORY_ENTRIES) -> None:
    """Append ``query`` as the most recent entry for ``key``.

    Earlier copies of the same query are dropped and the list is bounded to
    ``max_entries`` newest entries. Blank queries are not stored.
    """
    if not query.strip():
        return
    entries = [entry for entry in load_history(key) if entry != query]
    entries.append(query)
    overflow = len(entries) - max(1, max_entries)
    if overflow > 0:
        del entries[:overflow]

    config = load_config()
    history = config.get("history")
    if not isinstance(history, dict):
        history = {}
    history[key] = entries
    config["history"] = history
    save_config(config)


def last_history_entry(key: str) -> str | None:
    """Return the most recent query stored for ``key``."""
    entries = load_history(key)
    return entries[-1] if entries else None


__all__ = [
    "APP_NAME",
    "CONFIG_PATH",
    "DEFAULT_INPUT_DEBOUNCE_SECONDS",
    "DEFAULT_LOG_PATH",
    "MAX_HISTORY_ENTRIES",
    "add_history",
    "last_history_entry",
    "load_config",
    "load_history",
    "load_input_debounce_seconds",
    "load_search_settings",
    "load_style_name",
    "load_theme_name",
    "save_config",
]
