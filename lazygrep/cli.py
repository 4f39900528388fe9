"""Command-line front door for lazygrep.

Parses CLI options, resolves the search root, and configures logging.
Then runs one interactive search and jumps to the selected hit.
"""

from __future__ import annotations

import argparse
import dataclasses
import os
import sys
from collections.abc import Callable
from pathlib import Path

from . import config
from .controller import HISTORY_KEY, SearchController, prompt_for_root, resolve_search_target
from .editor import launch_editor, print_location
from .logging_utils import configure_logging
from .navigation import Position
from .picker import TerminalPicker
from .preview import DEFAULT_STYLE, normalize_style
from .ui_theme import available_theme_names, resolve_theme

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazygrep",
        description="Search files interactively with ag and jump to the selected match.",
    )
    parser.add_argument(
        "targets",
        nargs="*",
        type=Path,
        metavar="TARGET",
        help="Directory or files to search. Defaults to current directory.",
    )
    parser.add_argument("-q", "--query", default=None, help="Initial query.")
    parser.add_argument("--resume", action="store_true", help="Start with the last query from history.")
    parser.add_argument("--ask-root", action="store_true", help="Prompt for the search root before starting.")
    parser.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Print path:line:column of the selection instead of opening $EDITOR.",
    )
    parser.add_argument(
        "--theme",
        default=None,
        help=f"UI theme name ({', '.join(available_theme_names())}).",
    )
    parser.add_argument("--style", default=None, help="Pygments style name for the preview pane.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument(
        "--max-columns",
        type=_positive_int,
        default=None,
        help="Truncate match text to this many characters.",
    )
    parser.add_argument("--log-level", default="WARNING", choices=LOG_LEVELS, help="Log verbosity.")
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help=f"Log file (default: {config.DEFAULT_LOG_PATH}).",
    )
    return parser


def _initial_query(args: argparse.Namespace) -> str:
    if args.query is not None:
        return args.query
    if args.resume:
        return config.last_history_entry(HISTORY_KEY) or ""
    return ""


def _jump_strategy(print_only: bool) -> Callable[[Position], str | None]:
    if print_only or not os.environ.get("EDITOR", "").strip():
        return print_location
    return launch_editor


def _terminal_fd() -> int | None:
    """Return a ``/dev/tty`` descriptor when stdio is redirected, else ``None``."""
    if sys.stdin.isatty() and sys.stdout.isatty():
        return None
    try:
        return os.open("/dev/tty", os.O_RDWR)
    except OSError as exc:
        raise SystemExit(f"lazygrep needs a terminal: {exc}") from exc


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and run one interactive search.

    Exits with status 1 when the selected location cannot be opened.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level, args.log_file or config.DEFAULT_LOG_PATH)

    for target in args.targets:
        if not target.exists():
            raise SystemExit(f"Path not found: {target}")
    targets = list(args.targets)
    if args.ask_root:
        default_root = targets[0] if len(targets) == 1 else Path.cwd()
        root = prompt_for_root(default_root)
        if not root.exists():
            raise SystemExit(f"Path not found: {root}")
        targets = [root]
    target = resolve_search_target(targets)

    settings = config.load_search_settings()
    if args.max_columns is not None:
        settings = dataclasses.replace(settings, max_columns=args.max_columns)
    theme_name = args.theme if args.theme is not None else config.load_theme_name()
    no_color = args.no_color
    theme = resolve_theme(theme_name, no_color=no_color)
    style = normalize_style(args.style or config.load_style_name() or DEFAULT_STYLE)

    tty_fd = _terminal_fd()
    try:
        picker = TerminalPicker(
            theme=theme,
            debounce_seconds=config.load_input_debounce_seconds(),
            stdin_fd=tty_fd,
            stdout_fd=tty_fd,
        )
        controller = SearchController(
            target,
            picker,
            _jump_strategy(args.print_only),
            settings=settings,
            theme=theme,
            style=style,
            no_color=no_color,
        )
        outcome = controller.run(_initial_query(args))
    finally:
        if tty_fd is not None:
            os.close(tty_fd)

    if outcome.error:
        print(outcome.error, file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
