"""Streaming search process lifecycle.

One ``SearchSession`` owns at most one running search process. Each
``start`` supersedes the previous run: its process is killed, its reader is
told to stop, and its generation stops being accepted by ``poll``. Output is
parsed on a daemon reader thread and handed to the controlling thread through
a bounded queue, tagged with the generation that produced it.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from queue import Empty, Full, Queue
from typing import IO

from ..ui_theme import PLAIN_THEME, UITheme
from .command import DEFAULT_MAX_COLUMNS, SearchCommand
from .matches import Candidate, CandidateFormatter

logger = logging.getLogger(__name__)

# ag exits with 1 when nothing matched.
NO_MATCH_EXIT_CODES = frozenset({0, 1})
DEFAULT_QUEUE_SIZE = 4096
QUEUE_PUT_TIMEOUT_SECONDS = 0.05
WORKER_JOIN_TIMEOUT_SECONDS = 0.25
STDERR_JOIN_TIMEOUT_SECONDS = 1.0
# Only the start of stderr feeds the failure notice.
STDERR_KEEP_CHARS = 4096


def _collect_stderr(stream: IO[str] | None, sink: list[str], limit: int = STDERR_KEEP_CHARS) -> None:
    """Read ``stream`` to EOF, keeping at most ``limit`` characters in ``sink``."""
    if stream is None:
        return
    kept = 0
    try:
        for line in stream:
            if kept < limit:
                sink.append(line[: limit - kept])
                kept += len(sink[-1])
    except (OSError, ValueError) as exc:
        logger.debug("stderr reader stopped: %s", exc)
    finally:
        stream.close()


class SessionState(Enum):
    IDLE = "idle"
    STARTING = "starting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    SUPERSEDED = "superseded"
    FAILED = "failed"


FINISHED_STATES = frozenset({SessionState.IDLE, SessionState.COMPLETED, SessionState.FAILED})


@dataclass(frozen=True)
class SessionUpdate:
    """One delivery from the session to the picker.

    ``reset`` means the candidates replace everything shown so far; otherwise
    they are appended.
    """

    generation: int
    state: SessionState
    candidates: tuple[Candidate, ...] = ()
    notice: str | None = None
    reset: bool = False


class _SessionHandle:
    """Live process, reader thread, and cancel flag for one generation."""

    def __init__(self, generation: int, command: SearchCommand, process: subprocess.Popen) -> None:
        self.generation = generation
        self.command = command
        self.process = process
        self.cancel_event = threading.Event()
        self.worker: threading.Thread | None = None
        self.state = SessionState.STREAMING

    def close(self) -> None:
        """Stop the reader and kill the process if it is still running."""
        self.cancel_event.set()
        if self.process.poll() is not None:
            return
        try:
            self.process.kill()
        except ProcessLookupError:
            logger.debug("search process %s exited before kill", self.process.pid)


class SearchSession:
    """Run one search process at a time and stream its candidates."""

    def __init__(
        self,
        cwd: Path | None = None,
        theme: UITheme = PLAIN_THEME,
        max_columns: int = DEFAULT_MAX_COLUMNS,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self.cwd = cwd
        self.theme = theme
        self.max_columns = max_columns
        self.state = SessionState.IDLE
        self._generation = 0
        self._active_generation: int | None = None
        self._handle: _SessionHandle | None = None
        self._delivered = False
        self._pending: list[SessionUpdate] = []
        self._events: Queue[tuple[object, ...]] = Queue(maxsize=max(1, queue_size))

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def running(self) -> bool:
        return self._handle is not None and self.state is SessionState.STREAMING

    def _supersede(self) -> None:
        handle = self._handle
        self._handle = None
        self._active_generation = None
        self._pending.clear()
        if handle is None:
            return
        handle.close()
        handle.state = SessionState.SUPERSEDED
        logger.debug("superseded search generation %s", handle.generation)

    def _fail(self, generation: int, notice: str) -> None:
        logger.warning("search failed: %s", notice)
        self.state = SessionState.FAILED
        self._pending.append(SessionUpdate(generation, SessionState.FAILED, notice=notice))

    def start(self, command: SearchCommand | None) -> int:
        """Supersede the running search and launch ``command``.

        ``None`` clears the results without launching anything. Launch
        failures are reported through :meth:`poll` as one ``FAILED`` update.
        Returns the new generation number.
        """
        self._supersede()
        self._generation += 1
        generation = self._generation
        self._delivered = False
        self.state = SessionState.STARTING

        if command is None:
            self.state = SessionState.IDLE
            self._pending.append(SessionUpdate(generation, SessionState.IDLE, reset=True))
            return generation

        if shutil.which(command.tool) is None:
            self._fail(generation, f"{command.tool} is not installed.")
            return generation
        if command.prefix_length and shutil.which(command.argv[0]) is None:
            logger.debug("%s not found; running %s without line buffering", command.argv[0], command.tool)
            command = command.without_prefix()

        try:
            process = subprocess.Popen(
                list(command.argv),
                cwd=self.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            self._fail(generation, f"failed to run {command.tool}: {exc}")
            return generation

        logger.debug("search generation %s started: %s", generation, command.argv)
        handle = _SessionHandle(generation, command, process)
        formatter = CandidateFormatter(command.highlighter, self.theme, self.max_columns)
        worker = threading.Thread(
            target=self._read_output,
            args=(handle, formatter),
            name=f"lazygrep-search-{generation}",
            daemon=True,
        )
        handle.worker = worker
        self._handle = handle
        self._active_generation = generation
        self.state = SessionState.STREAMING
        worker.start()
        return generation

    def _put(self, handle: _SessionHandle, event: tuple[object, ...]) -> bool:
        """Queue ``event`` unless ``handle`` is cancelled while waiting for room."""
        while not handle.cancel_event.is_set():
            try:
                self._events.put(event, timeout=QUEUE_PUT_TIMEOUT_SECONDS)
                return True
            except Full:
                continue
        return False

    def _stream_matches(self, handle: _SessionHandle, formatter: CandidateFormatter) -> None:
        assert handle.process.stdout is not None
        for raw in handle.process.stdout:
            if handle.cancel_event.is_set():
                return
            candidate = formatter.format_line(raw)
            if candidate is None:
                logger.debug("skipping non-match output: %r", raw[:200])
                continue
            if not self._put(handle, ("match", handle.generation, candidate)):
                return

    def _read_output(self, handle: _SessionHandle, formatter: CandidateFormatter) -> None:
        """Reader thread body: parse stdout line by line, then report the exit.

        Stderr is drained concurrently so a chatty tool never blocks on a full
        pipe. If parsing breaks unexpectedly the process is killed and the
        generation still ends with a ``FAILED`` update.
        """
        process = handle.process
        stderr_lines: list[str] = []
        stderr_reader = threading.Thread(
            target=_collect_stderr,
            args=(process.stderr, stderr_lines),
            name=f"lazygrep-search-{handle.generation}-stderr",
            daemon=True,
        )
        stderr_reader.start()
        crash: str | None = None
        try:
            self._stream_matches(handle, formatter)
        except Exception as exc:
            logger.exception("reader for search generation %s stopped", handle.generation)
            crash = f"{handle.command.tool} output could not be read: {exc}"
            try:
                process.kill()
            except ProcessLookupError:
                logger.debug("search process %s exited before kill", process.pid)
        finally:
            if process.stdout is not None:
                process.stdout.close()
            returncode = process.wait()
            stderr_reader.join(timeout=STDERR_JOIN_TIMEOUT_SECONDS)

        if handle.cancel_event.is_set():
            return
        if crash is not None:
            self._put(handle, ("error", handle.generation, crash))
            return
        self._put(handle, ("exit", handle.generation, returncode, "".join(stderr_lines)))

    def _end(self, state: SessionState) -> tuple[int, _SessionHandle | None]:
        generation = self._generation
        handle = self._handle
        self._handle = None
        self._active_generation = None
        self.state = state
        if handle is not None:
            handle.state = state
        return generation, handle

    def _abort(self, notice: str) -> SessionUpdate:
        generation, _handle = self._end(SessionState.FAILED)
        logger.warning("search generation %s failed: %s", generation, notice)
        return SessionUpdate(generation, SessionState.FAILED, notice=notice)

    def _finish(self, returncode: int, stderr_text: str) -> SessionUpdate:
        if returncode in NO_MATCH_EXIT_CODES:
            generation, _handle = self._end(SessionState.COMPLETED)
            logger.debug("search generation %s completed with status %s", generation, returncode)
            return SessionUpdate(generation, SessionState.COMPLETED, reset=not self._delivered)

        tool = self._handle.command.tool if self._handle is not None else "search"
        first_error = next((line.strip() for line in stderr_text.splitlines() if line.strip()), "")
        return self._abort(first_error or f"{tool} failed with exit code {returncode}")

    def poll(self, timeout_seconds: float = 0.0) -> list[SessionUpdate]:
        """Drain pending output for the current generation.

        Waits up to ``timeout_seconds`` for the first event when nothing is
        pending. Events from superseded generations are dropped. Consecutive
        candidates are coalesced into one update in arrival order.
        """
        updates = list(self._pending)
        self._pending.clear()

        events: list[tuple[object, ...]] = []
        if timeout_seconds > 0 and not updates:
            try:
                events.append(self._events.get(timeout=timeout_seconds))
            except Empty:
                pass
        while True:
            try:
                events.append(self._events.get_nowait())
            except Empty:
                break

        batch: list[Candidate] = []

        def flush() -> None:
            if not batch:
                return
            updates.append(
                SessionUpdate(
                    self._generation,
                    SessionState.STREAMING,
                    candidates=tuple(batch),
                    reset=not self._delivered,
                )
            )
            self._delivered = True
            batch.clear()

        for event in events:
            kind = event[0]
            generation = event[1]
            if generation != self._active_generation:
                continue
            if kind == "match":
                batch.append(event[2])
                continue
            if kind == "exit":
                flush()
                updates.append(self._finish(event[2], event[3]))
            elif kind == "error":
                flush()
                updates.append(self._abort(event[2]))
        flush()
        return updates

    def stop(self) -> None:
        """Kill the running search, if any, and return to ``IDLE``."""
        handle = self._handle
        self._supersede()
        self.state = SessionState.IDLE
        if handle is not None and handle.worker is not None:
            handle.worker.join(timeout=WORKER_JOIN_TIMEOUT_SECONDS)


__all__ = [
    "FINISHED_STATES",
    "NO_MATCH_EXIT_CODES",
    "SearchSession",
    "SessionState",
    "SessionUpdate",
]
