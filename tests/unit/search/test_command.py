"""Tests for search command construction.

Covers flag splitting, argv layout, and the unsatisfiable fallback used
when a query word fails to compile.
"""

from __future__ import annotations

import unittest

from lazygrep.regexp import DIALECT_EXTENDED
from lazygrep.search.command import (
    UNSATISFIABLE_PATTERN,
    SearchSettings,
    build_search_command,
    make_command_builder,
    split_command_args,
)


class SplitCommandArgsTests(unittest.TestCase):
    def test_query_without_separator_has_no_flags(self) -> None:
        self.assertEqual(split_command_args("foo bar"), ("foo bar", []))

    def test_flags_after_separator_are_shell_split(self) -> None:
        pattern, flags = split_command_args("foo bar -- -w --file-search-regex 'a b'")
        self.assertEqual(pattern, "foo bar")
        self.assertEqual(flags, ["-w", "--file-search-regex", "a b"])

    def test_trailing_separator_yields_empty_flags(self) -> None:
        self.assertEqual(split_command_args("foo --"), ("foo", []))

    def test_double_dash_inside_word_is_not_a_separator(self) -> None:
        self.assertEqual(split_command_args("a--b"), ("a--b", []))

    def test_unbalanced_quotes_drop_flags(self) -> None:
        self.assertEqual(split_command_args("foo -- -G 'oops"), ("foo", []))


class BuildSearchCommandTests(unittest.TestCase):
    def test_single_word_argv_layout(self) -> None:
        command = build_search_command("hello", (".",))
        assert command is not None
        self.assertEqual(
            command.argv,
            ("stdbuf", "-oL", "ag", "--vimgrep", "--", "hello", "."),
        )
        self.assertEqual(command.tool, "ag")
        self.assertEqual(command.prefix_length, 2)
        self.assertIsNone(command.compile_error)

    def test_multiple_words_join_as_lookaheads(self) -> None:
        command = build_search_command("foo bar", ["src"])
        assert command is not None
        self.assertEqual(command.pattern, "^(?=.*foo)(?=.*bar)")
        self.assertEqual(command.argv[-2:], ("^(?=.*foo)(?=.*bar)", "src"))

    def test_extra_flags_go_before_pattern(self) -> None:
        command = build_search_command("foo -- -w --hidden", (".",))
        assert command is not None
        self.assertEqual(command.argv[4:], ("-w", "--hidden", "--", "foo", "."))

    def test_paths_are_always_a_suffix(self) -> None:
        paths = ("a.txt", "dir/b", "-odd name")
        for query in ("x", "x y", "x -- -i", "bad(", "\\d+ [a-z]"):
            command = build_search_command(query, paths)
            assert command is not None
            self.assertEqual(command.argv[-len(paths) :], paths, query)
            self.assertEqual(command.paths, paths)

    def test_compile_failure_yields_unsatisfiable_pattern(self) -> None:
        command = build_search_command("foo(", (".",))
        assert command is not None
        self.assertEqual(command.pattern, UNSATISFIABLE_PATTERN)
        self.assertEqual(command.argv[-2:], (UNSATISFIABLE_PATTERN, "."))
        self.assertIsNone(command.highlighter)
        self.assertIn("foo(", command.compile_error or "")

    def test_blank_pattern_builds_nothing(self) -> None:
        self.assertIsNone(build_search_command("", (".",)))
        self.assertIsNone(build_search_command("   ", (".",)))
        self.assertIsNone(build_search_command("  -- -w", (".",)))

    def test_custom_settings_replace_program_and_prefix(self) -> None:
        settings = SearchSettings(program=("/opt/ag",), base_args=("--vimgrep", "-U"), line_buffer_prefix=())
        command = build_search_command("x", (".",), settings)
        assert command is not None
        self.assertEqual(command.argv, ("/opt/ag", "--vimgrep", "-U", "--", "x", "."))
        self.assertEqual(command.prefix_length, 0)
        self.assertIs(command.without_prefix(), command)

    def test_without_prefix_drops_line_buffer_wrapper(self) -> None:
        command = build_search_command("x", (".",))
        assert command is not None
        bare = command.without_prefix()
        self.assertEqual(bare.argv, ("ag", "--vimgrep", "--", "x", "."))
        self.assertEqual(bare.prefix_length, 0)

    def test_extended_dialect_converts_word_classes(self) -> None:
        settings = SearchSettings(dialect=DIALECT_EXTENDED)
        command = build_search_command("\\d+", (".",), settings)
        assert command is not None
        self.assertEqual(command.pattern, "[0-9]+")

    def test_highlighter_follows_smart_case_and_flags(self) -> None:
        command = build_search_command("foo", (".",))
        assert command is not None and command.highlighter is not None
        self.assertEqual(command.highlighter("a FOO b"), [(2, 5)])

        sensitive = build_search_command("foo -- -s", (".",))
        assert sensitive is not None and sensitive.highlighter is not None
        self.assertEqual(sensitive.highlighter("a FOO b"), [])


class CommandBuilderTests(unittest.TestCase):
    def test_builder_binds_paths(self) -> None:
        build = make_command_builder(["one", "two"])
        first = build("abc")
        second = build("def")
        assert first is not None and second is not None
        self.assertEqual(first.argv[-2:], ("one", "two"))
        self.assertEqual(second.argv[-3:], ("def", "one", "two"))
        self.assertIsNone(build(""))


if __name__ == "__main__":
    unittest.main()
