"""Tests for root logger configuration."""

from __future__ import annotations

import logging
import tempfile
import unittest
from pathlib import Path

from lazygrep.logging_utils import configure_logging


class ConfigureLoggingTests(unittest.TestCase):
    def setUp(self) -> None:
        root = logging.getLogger()
        self._saved_handlers = list(root.handlers)
        self._saved_level = root.level

    def tearDown(self) -> None:
        root = logging.getLogger()
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = self._saved_handlers
        root.setLevel(self._saved_level)

    def test_installs_single_file_handler(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "logs" / "lazygrep.log"
            root = configure_logging("debug", log_file)
            configure_logging("DEBUG", log_file)

            self.assertEqual(len(root.handlers), 1)
            self.assertIsInstance(root.handlers[0], logging.FileHandler)
            self.assertEqual(root.level, logging.DEBUG)

            logging.getLogger("lazygrep.test").debug("hello %s", "file")
            root.handlers[0].flush()
            content = log_file.read_text(encoding="utf-8")
            self.assertIn("[DEBUG] [lazygrep.test] hello file", content)
            root.handlers[0].close()

    def test_unknown_level_name_defaults_to_warning(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = configure_logging("chatty", Path(tmp) / "x.log")
            self.assertEqual(root.level, logging.WARNING)
            root.handlers[0].close()

    def test_unwritable_log_path_discards_records(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "blocker"
            blocker.write_text("", encoding="utf-8")
            root = configure_logging(logging.INFO, blocker / "nested" / "x.log")
            self.assertEqual(len(root.handlers), 1)
            self.assertIsInstance(root.handlers[0], logging.NullHandler)


if __name__ == "__main__":
    unittest.main()
