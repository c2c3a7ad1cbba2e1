"""
Tests for the Pattern Matcher.

Requires Python 3.11+.
"""

import re

import pytest

from pylens.watcher.patterns import PathFilter, compile_pattern, matches, to_posix


class TestCompilePattern:
    """Test cases for compile_pattern."""

    def test_glob_matches_within_directory(self):
        """Test a glob matches a file directly under the literal prefix."""
        matcher = compile_pattern("src/*.js")
        assert matches(matcher, "src/a.js")
        assert not matches(matcher, "lib/a.ts")

    def test_glob_star_crosses_slashes(self):
        """Test that * becomes .* and is not limited to one segment."""
        matcher = compile_pattern("src/*.js")
        assert matches(matcher, "src/sub/x.js")

    def test_glob_is_unanchored(self):
        """Test that a glob matches anywhere in the path."""
        assert matches(compile_pattern("*.pyc"), "pkg/__pycache__/mod.cpython-311.pyc")
        assert matches(compile_pattern("src/*.js"), "packages/web/src/index.js")

    def test_glob_escapes_other_metacharacters(self):
        """Test that dots and other metacharacters in a glob are literal."""
        matcher = compile_pattern("*.py")
        assert matches(matcher, "main.py")
        assert not matches(matcher, "mainpy")
        assert matches(compile_pattern("a+b*"), "a+b.txt")
        assert not matches(compile_pattern("a+b*"), "aab.txt")

    def test_plain_string_is_regex(self):
        """Test that strings without * are compiled as regular expressions."""
        matcher = compile_pattern(r"^src/.+\.py$")
        assert matches(matcher, "src/app.py")
        assert not matches(matcher, "tests/src/app.py")

    def test_invalid_regex_falls_back_to_literal(self):
        """Test that an uncompilable pattern matches literally."""
        matcher = compile_pattern("data[1")
        assert matches(matcher, "out/data[1.csv")
        assert not matches(matcher, "out/data1.csv")

    @pytest.mark.parametrize("pattern", ["", "   "])
    def test_blank_matches_nothing(self, pattern: str):
        """Test that blank patterns never match."""
        matcher = compile_pattern(pattern)
        assert not matches(matcher, "")
        assert not matches(matcher, "anything.py")

    def test_precompiled_pattern_passes_through(self):
        """Test that compiled regexes are used as-is."""
        regex = re.compile(r"\.toml$")
        assert compile_pattern(regex) is regex


class TestPathFilter:
    """Test cases for PathFilter."""

    def test_all_accepts_everything_not_ignored(self):
        """Test the 'all' watch spec."""
        path_filter = PathFilter("all", ["node_modules"])
        assert path_filter.accepts("src/app.py")
        assert path_filter.accepts("README.md")
        assert not path_filter.accepts("node_modules/pkg/index.js")

    def test_watch_list_rejects_unmatched(self):
        """Test that a path matching no watch pattern is rejected."""
        path_filter = PathFilter(["*.py"], [])
        assert path_filter.accepts("app.py")
        assert not path_filter.accepts("styles.css")

    def test_ignore_wins_over_watch(self):
        """Test that a path matching both lists is rejected."""
        path_filter = PathFilter(["*.py"], ["build"])
        assert path_filter.is_watched("build/gen.py")
        assert not path_filter.accepts("build/gen.py")

    def test_single_watch_pattern(self):
        """Test a bare pattern string in place of a list."""
        path_filter = PathFilter("src", [])
        assert path_filter.accepts("src/a.py")
        assert not path_filter.accepts("docs/a.md")

    def test_empty_path_rejected(self):
        """Test that the root itself is never accepted."""
        assert not PathFilter("all", []).accepts("")


def test_to_posix():
    """Test separator normalization."""
    assert to_posix("src\\pkg\\mod.py") == "src/pkg/mod.py"
    assert to_posix("src/pkg") == "src/pkg"
