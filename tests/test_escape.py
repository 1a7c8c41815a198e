"""Tests for prowl.routing.escape."""

import re

from prowl.routing.escape import escape_string_regexp


class TestEscapeStringRegexp:
    """escape_string_regexp — literal values spliced into patterns."""

    def test_plain_value_unchanged(self) -> None:
        assert escape_string_regexp("abc123") == "abc123"

    def test_escapes_dot_and_hyphen(self) -> None:
        assert escape_string_regexp("nl-NL.v2") == r"nl\-NL\.v2"

    def test_escapes_all_operators(self) -> None:
        escaped = escape_string_regexp("|\\{}()[]^$+*?.-")
        assert escaped == r"\|\\\{\}\(\)\[\]\^\$\+\*\?\.\-"

    def test_leaves_slash_alone(self) -> None:
        assert escape_string_regexp("a/b") == "a/b"

    def test_escaped_value_matches_only_itself(self) -> None:
        value = "build.(1)+x"
        pattern = re.compile(escape_string_regexp(value))
        assert pattern.fullmatch(value)
        assert not pattern.fullmatch("buildX(1)+x")
        assert not pattern.fullmatch("build.1x")
