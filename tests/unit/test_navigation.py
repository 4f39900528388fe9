"""Tests for buffers, temporary-file tracking, and selection resolution."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazygrep.navigation import (
    Buffer,
    NavigationError,
    TemporaryFileRegistry,
    Workspace,
    read_text,
    resolve_selection,
)
from lazygrep.search.matches import MatchRecord, format_candidate


def _candidate(path: str, line: int, column: int, text: str = "x"):
    return format_candidate(MatchRecord(path, line, column, text))


class BufferTests(unittest.TestCase):
    def test_position_offsets_follow_line_starts(self) -> None:
        buffer = Buffer(Path("/tmp/a.txt"), "one\ntwo\r\nthree\n")
        position = buffer.position(3, 2)
        self.assertEqual((position.line, position.column), (3, 2))
        self.assertEqual(position.offset, len("one\ntwo\r\n") + 2)

    def test_line_is_clamped_and_offset_bounded(self) -> None:
        buffer = Buffer(Path("/tmp/a.txt"), "ab\ncd\n")
        past_end = buffer.position(10, 0)
        self.assertEqual(past_end.line, 2)
        wide = buffer.position(1, 50)
        self.assertEqual(wide.column, 50)
        self.assertEqual(wide.offset, 2)

    def test_empty_buffer_has_one_line(self) -> None:
        buffer = Buffer(Path("/tmp/empty"), "")
        self.assertEqual(buffer.line_count, 1)
        self.assertEqual(buffer.line_text(1), "")
        self.assertEqual(buffer.position(1, 0).offset, 0)

    def test_read_text_falls_back_to_latin1(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "latin.txt"
            path.write_bytes("caf\xe9\n".encode("latin-1"))
            self.assertEqual(read_text(path), "caf\xe9\n")


class TemporaryFileRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        (self.root / "a.txt").write_text("alpha\n", encoding="utf-8")
        (self.root / "b.txt").write_text("beta\n", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_open_or_reuse_tracks_only_newly_opened_files(self) -> None:
        workspace = Workspace()
        workspace.open(self.root / "a.txt")
        registry = TemporaryFileRegistry(workspace)

        registry.open_or_reuse(self.root / "a.txt")
        registry.open_or_reuse(self.root / "b.txt")
        registry.open_or_reuse(self.root / "b.txt")

        self.assertEqual(registry.temporary_paths, [self.root / "b.txt"])

    def test_close_if_unused_closes_tracked_files_only(self) -> None:
        workspace = Workspace()
        workspace.open(self.root / "a.txt")
        registry = TemporaryFileRegistry(workspace)
        registry.open_or_reuse(self.root / "b.txt")

        closed = registry.close_if_unused()

        self.assertEqual(closed, [self.root / "b.txt"])
        self.assertTrue(workspace.is_open(self.root / "a.txt"))
        self.assertFalse(workspace.is_open(self.root / "b.txt"))
        self.assertEqual(registry.temporary_paths, [])

    def test_keep_leaves_file_open_after_cleanup(self) -> None:
        workspace = Workspace()
        registry = TemporaryFileRegistry(workspace)
        registry.open_or_reuse(self.root / "a.txt")
        registry.open_or_reuse(self.root / "b.txt")

        registry.keep(self.root / "a.txt")
        registry.close_if_unused()

        self.assertEqual(workspace.paths(), [self.root / "a.txt"])

    def test_calling_with_none_cleans_up(self) -> None:
        workspace = Workspace()
        registry = TemporaryFileRegistry(workspace)
        buffer = registry(self.root / "a.txt")
        self.assertIsNotNone(buffer)
        self.assertIsNone(registry(None))
        self.assertEqual(workspace.paths(), [])

    def test_missing_file_raises_oserror_and_is_not_tracked(self) -> None:
        registry = TemporaryFileRegistry(Workspace())
        with self.assertRaises(OSError):
            registry.open_or_reuse(self.root / "missing.txt")
        self.assertEqual(registry.temporary_paths, [])


class ResolveSelectionTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        (self.root / "a.txt").write_text("l1\nl2\n  hello world\n", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_reported_column_converts_to_zero_based(self) -> None:
        registry = TemporaryFileRegistry(Workspace())
        jump = mock.Mock()

        position = resolve_selection(_candidate("a.txt", 3, 5), registry, jump, root=self.root)

        assert position is not None
        self.assertEqual(position.path, self.root / "a.txt")
        self.assertEqual((position.line, position.column), (3, 4))
        self.assertEqual(position.offset, len("l1\nl2\n") + 4)
        jump.assert_called_once_with(position)

    def test_first_column_maps_to_zero(self) -> None:
        registry = TemporaryFileRegistry(Workspace())
        position = resolve_selection(_candidate("a.txt", 1, 1), registry, lambda _position: None, root=self.root)
        assert position is not None
        self.assertEqual(position.column, 0)
        self.assertEqual(position.offset, 0)

    def test_no_candidate_runs_cleanup_once_and_skips_jump(self) -> None:
        open_file = mock.Mock()
        jump = mock.Mock()

        self.assertIsNone(resolve_selection(None, open_file, jump))

        open_file.assert_called_once_with(None)
        jump.assert_not_called()

    def test_unreadable_file_raises_navigation_error(self) -> None:
        registry = TemporaryFileRegistry(Workspace())
        jump = mock.Mock()
        with self.assertRaises(NavigationError) as ctx:
            resolve_selection(_candidate("gone.txt", 1, 1), registry, jump, root=self.root)
        self.assertEqual(ctx.exception.path, self.root / "gone.txt")
        self.assertIn("gone.txt", str(ctx.exception))
        jump.assert_not_called()


if __name__ == "__main__":
    unittest.main()
