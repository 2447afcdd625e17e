"""
Tests for the sanitizer — terminal markup removal
"""

import pytest

from logscope.presentation.sanitize import sanitize, strip_escapes, collapse_carriage_returns


SAMPLES = [
    "plain text",
    "\x1b[31mred\x1b[0m and \x1b[1;32mbold green\x1b[m",
    "\x1b_bk;t=1700000000000\x07with timestamp",
    "\x1b]8;;https://example.com\x07link\x1b]8;;\x07",
    "progress 10%\rprogress 50%\rprogress 100%",
    "bell\x07 and backspace\x08 and nul\x00",
    "stray escape \x1b at end \x1b",
    "tab\tstays",
    "crlf line\r",
    "\x1b[2K\x1b[1Gredrawn",
    "",
]


class TestSanitize:
    """Markup removal."""

    def test_plain_text_unchanged(self):
        """Text without markup passes through."""
        assert sanitize("hello world") == "hello world"

    def test_strips_colour_codes(self):
        """SGR colour sequences are removed."""
        assert sanitize("\x1b[31mred\x1b[0m text") == "red text"

    def test_strips_buildkite_timestamp(self):
        """Buildkite APC timestamp markers are removed."""
        assert sanitize("\x1b_bk;t=1700000000000\x07hello") == "hello"

    def test_strips_hyperlinks(self):
        """OSC 8 hyperlinks keep their text only."""
        assert sanitize("\x1b]8;;https://example.com\x07link\x1b]8;;\x07") == "link"

    def test_carriage_return_keeps_final_segment(self):
        """Progress bars collapse to what the terminal shows last."""
        assert sanitize("10%\r50%\r100%") == "100%"

    def test_trailing_carriage_return_keeps_line(self):
        """CRLF endings do not blank the line."""
        assert sanitize("done\r") == "done"

    def test_removes_control_characters(self):
        """Control characters other than tab vanish."""
        assert sanitize("a\x07b\x08c\x00d\te") == "abcd\te"

    def test_empty_input(self):
        assert sanitize("") == ""

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        """A second pass changes nothing."""
        once = sanitize(text)
        assert sanitize(once) == once

    @pytest.mark.parametrize("text", SAMPLES)
    def test_output_has_no_escape_or_cr(self, text):
        """Output never contains ESC or CR."""
        cleaned = sanitize(text)
        assert "\x1b" not in cleaned
        assert "\r" not in cleaned


class TestHelpers:
    """Building blocks used by sanitize()."""

    def test_strip_escapes_leaves_carriage_returns(self):
        assert strip_escapes("\x1b[1ma\x1b[0m\rb") == "a\rb"

    def test_collapse_without_cr_is_identity(self):
        text = "no carriage returns here"
        assert collapse_carriage_returns(text) is text

    def test_collapse_per_line(self):
        """Each newline-separated line collapses on its own."""
        assert collapse_carriage_returns("a\rb\nc\rd") == "b\nd"
