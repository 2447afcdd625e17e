"""
Tests for the raw log parser — timestamps, groups, commands, row numbers
"""

from logscope.core.parser import parse_log, parse_line
from tests.factories import SAMPLE_LOG, bk_line, numbered_log


class TestParseLine:
    """Single-line parsing."""

    def test_timestamp_extracted(self):
        """Leading Buildkite marker becomes the timestamp."""
        entry = parse_line(0, bk_line(1700000000123, "hello"))
        assert entry.timestamp == 1700000000123
        assert entry.content == "hello"
        assert entry.has_time

    def test_no_timestamp(self):
        entry = parse_line(3, "hello")
        assert entry.timestamp is None
        assert not entry.has_time
        assert entry.row_number == 3

    def test_group_header_opens_group(self):
        """"--- ", "+++ " and "~~~ " headers set the group label."""
        for prefix in ("--- ", "+++ ", "~~~ "):
            entry = parse_line(0, f"{prefix}Build step", group="previous")
            assert entry.group == "Build step"

    def test_group_inherited(self):
        """Ordinary lines keep the currently open group."""
        entry = parse_line(1, "compiling", group="Build")
        assert entry.group == "Build"

    def test_group_header_with_colour(self):
        """Header detection looks at visible text, not raw markup."""
        entry = parse_line(0, "\x1b[1m--- \x1b[0mDeploy")
        assert entry.group == "Deploy"

    def test_command_detected(self):
        assert parse_line(0, "$ make test").is_command
        assert not parse_line(0, "make test").is_command

    def test_content_keeps_markup(self):
        """Only the timestamp marker is removed; colours stay in content."""
        entry = parse_line(0, bk_line(1, "\x1b[32mok\x1b[0m"))
        assert entry.content == "\x1b[32mok\x1b[0m"


class TestParseLog:
    """Whole-log parsing."""

    def test_row_numbers_gapless(self):
        """Rows are numbered 0..n-1."""
        entries = list(parse_log(numbered_log(25)))
        assert [e.row_number for e in entries] == list(range(25))

    def test_trailing_newline_no_empty_row(self):
        assert len(list(parse_log("a\nb\n"))) == 2

    def test_without_trailing_newline(self):
        assert len(list(parse_log("a\nb"))) == 2

    def test_blank_lines_kept(self):
        """Blank lines in the middle are real rows."""
        entries = list(parse_log("a\n\nb\n"))
        assert [e.content for e in entries] == ["a", "", "b"]

    def test_empty_text(self):
        assert list(parse_log("")) == []

    def test_sample_groups_and_commands(self):
        entries = list(parse_log(SAMPLE_LOG))
        assert len(entries) == 6
        assert [e.group for e in entries] == ["Setup", "Setup", "Setup", "Test", "Test", "Test"]
        assert [e.is_command for e in entries] == [False, True, False, False, False, False]
        assert entries[0].timestamp == 1700000000000
        assert entries[5].timestamp == 1700000000500
