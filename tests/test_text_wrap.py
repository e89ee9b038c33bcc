"""
Unit tests for greedy text wrapping.
"""

import pytest

from structurescan.reporting.text_wrap import (
    FONT_REGULAR,
    ReportLabMetrics,
    measure,
    wrap_text,
)


SAMPLE = (
    "Find and fix the water problem FIRST: look for leaks, bad drainage, or humidity "
    "before repainting any of the affected walls on the north side of the building"
)


class TestWrapText:
    """Tests for wrap_text."""

    def test_empty_text_yields_no_lines(self):
        """Empty input produces an empty sequence."""
        assert wrap_text("", len, 10) == []

    def test_short_text_is_one_line(self):
        assert wrap_text("small crack", len, 40) == ["small crack"]

    def test_greedy_fill(self):
        """Lines are filled word by word until the next word does not fit."""
        assert wrap_text("aa bb cc dd", len, 5) == ["aa bb", "cc dd"]

    def test_exact_fit_stays_on_line(self):
        """A candidate exactly as wide as the budget is not broken."""
        assert wrap_text("abc def", len, 7) == ["abc def"]

    @pytest.mark.parametrize("max_width", [10, 25, 60, 200])
    def test_lines_never_exceed_width(self, max_width):
        """Every multi-word line fits within the budget."""
        for line in wrap_text(SAMPLE, len, max_width):
            if " " in line:
                assert len(line) <= max_width

    @pytest.mark.parametrize("max_width", [1, 10, 25, 60, 200])
    def test_wrapping_is_lossless(self, max_width):
        """Joining the lines reconstructs the input, word for word."""
        lines = wrap_text(SAMPLE, len, max_width)
        assert " ".join(lines) == SAMPLE

    def test_overlong_word_gets_its_own_line(self):
        """A word wider than the budget is emitted unsplit."""
        lines = wrap_text("see https://example.com/a/very/long/path now", len, 10)
        assert lines == ["see", "https://example.com/a/very/long/path", "now"]

    def test_overlong_first_word(self):
        assert wrap_text("Supercalifragilistic ok", len, 5) == ["Supercalifragilistic", "ok"]

    def test_is_restartable(self):
        """Repeated calls on the same input give the same lines."""
        first = wrap_text(SAMPLE, len, 30)
        second = wrap_text(SAMPLE, len, 30)
        assert first == second


class TestReportLabMetrics:
    """Tests for wrapping with real glyph metrics."""

    def test_wider_font_size_gives_more_lines(self):
        metrics = ReportLabMetrics()
        small = wrap_text(SAMPLE, measure(metrics, FONT_REGULAR, 8), 200)
        large = wrap_text(SAMPLE, measure(metrics, FONT_REGULAR, 16), 200)
        assert len(large) > len(small)

    def test_lines_fit_measured_width(self):
        metrics = ReportLabMetrics()
        width_fn = measure(metrics, FONT_REGULAR, 10)
        for line in wrap_text(SAMPLE, width_fn, 150):
            if " " in line:
                assert width_fn(line) <= 150

    def test_proportional_glyphs(self):
        """Helvetica 'W' is wider than 'i'."""
        metrics = ReportLabMetrics()
        assert metrics.width("W", FONT_REGULAR, 12) > metrics.width("i", FONT_REGULAR, 12)
