"""Search pipeline exports: command building, line parsing, streaming sessions.

Also re-exports ``shutil``/``subprocess`` from the session module for tests
that patch process launching.
"""

from __future__ import annotations

from . import session as _session
from .command import (
    DEFAULT_SETTINGS,
    UNSATISFIABLE_PATTERN,
    SearchCommand,
    SearchSettings,
    build_search_command,
    make_command_builder,
    split_command_args,
)
from .matches import (
    Candidate,
    CandidateFormatter,
    MatchRecord,
    candidate_location,
    format_candidate,
    group_candidate,
    parse_line,
)
from .session import FINISHED_STATES, SearchSession, SessionState, SessionUpdate

shutil = _session.shutil
subprocess = _session.subprocess

__all__ = [
    "Candidate",
    "CandidateFormatter",
    "DEFAULT_SETTINGS",
    "FINISHED_STATES",
    "MatchRecord",
    "SearchCommand",
    "SearchSession",
    "SearchSettings",
    "SessionState",
    "SessionUpdate",
    "UNSATISFIABLE_PATTERN",
    "build_search_command",
    "candidate_location",
    "format_candidate",
    "group_candidate",
    "make_command_builder",
    "parse_line",
    "split_command_args",
]
