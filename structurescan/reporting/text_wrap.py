"""
Greedy text wrapping against real glyph metrics.
"""

from typing import Callable, List, Protocol

from reportlab.pdfbase.pdfmetrics import stringWidth


FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


class GlyphMetrics(Protocol):
    """Reports rendered text width in layout units."""

    def width(self, text: str, font_name: str, font_size: float) -> float:
        ...


class ReportLabMetrics:
    """Glyph metrics of the standard PDF fonts, as measured by ReportLab."""

    def width(self, text: str, font_name: str, font_size: float) -> float:
        return stringWidth(text, font_name, font_size)


def wrap_text(text: str, width_fn: Callable[[str], float], max_width: float) -> List[str]:
    """
    Reflow text into lines no wider than max_width.

    Words are split on single spaces. A word wider than max_width on its own
    is not split and becomes an overflowing line.

    Args:
        text: Text to wrap
        width_fn: Returns the rendered width of a string
        max_width: Width budget per line

    Returns:
        Wrapped lines (empty list for empty text)
    """
    if not text:
        return []

    lines = []
    current = ""
    for word in text.split(" "):
        candidate = f"{current} {word}" if current else word
        if width_fn(candidate) > max_width and current:
            lines.append(current)
            current = word
        else:
            current = candidate

    if current:
        lines.append(current)
    return lines


def measure(metrics: GlyphMetrics, font_name: str, font_size: float) -> Callable[[str], float]:
    """Bind a metrics provider to one font for use with wrap_text."""
    return lambda s: metrics.width(s, font_name, font_size)
