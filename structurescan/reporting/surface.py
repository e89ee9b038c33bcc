"""
Render targets for the page layout engine.

Coordinates are layout units measured from the top-left corner of the page.
Text runs are positioned by their baseline, as the cursor is.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union

from PIL import Image
from reportlab.lib.colors import Color

from structurescan.errors import PageFinalizedError
from structurescan.reporting.text_wrap import GlyphMetrics


# ============================================================================
# PAGE GEOMETRY (ISO A4 at 72 units/inch)
# ============================================================================

PAGE_WIDTH = 595
PAGE_HEIGHT = 842
MARGIN = 40
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN


# ============================================================================
# DRAW COMMANDS
# ============================================================================

@dataclass(frozen=True)
class TextRun:
    x: float
    y: float
    text: str
    font_name: str
    font_size: float
    color: Color


@dataclass(frozen=True)
class FilledRect:
    x: float
    y: float
    width: float
    height: float
    color: Color
    radius: float = 0


@dataclass(frozen=True)
class ImageBlit:
    x: float
    y: float
    width: float
    height: float
    image: Image.Image = field(compare=False, repr=False)


DrawCommand = Union[TextRun, FilledRect, ImageBlit]


# ============================================================================
# SURFACE / PAGE / DOCUMENT
# ============================================================================

class Surface:
    """Fixed-size page that records draw commands until finalized."""

    def __init__(
        self,
        metrics: GlyphMetrics,
        width: int = PAGE_WIDTH,
        height: int = PAGE_HEIGHT,
    ):
        self.metrics = metrics
        self.width = width
        self.height = height
        self.commands: List[DrawCommand] = []
        self.finalized = False

    def _emit(self, command: DrawCommand):
        if self.finalized:
            raise PageFinalizedError("Page is finalized and accepts no further commands")
        self.commands.append(command)

    def text_width(self, text: str, font_name: str, font_size: float) -> float:
        return self.metrics.width(text, font_name, font_size)

    def draw_text(self, text: str, x: float, y: float, font_name: str, font_size: float, color: Color):
        self._emit(TextRun(x, y, text, font_name, font_size, color))

    def fill_rect(self, x: float, y: float, width: float, height: float, color: Color, radius: float = 0):
        self._emit(FilledRect(x, y, width, height, color, radius))

    def draw_image(self, image: Image.Image, x: float, y: float, width: float, height: float):
        self._emit(ImageBlit(x, y, width, height, image))

    def finalize(self):
        self.finalized = True

    @property
    def texts(self) -> List[str]:
        """Text of every text run, in drawing order."""
        return [c.text for c in self.commands if isinstance(c, TextRun)]


@dataclass(frozen=True)
class BreakCheck:
    """Outcome of one break-check, kept for verifying pagination afterwards."""
    block: str
    page_index: int
    cursor: int
    estimate: int
    limit: int
    new_page: bool

    @property
    def fits(self) -> bool:
        return self.cursor + self.estimate <= self.limit


@dataclass
class Document:
    """Ordered pages produced by one generation call."""
    pages: List[Surface] = field(default_factory=list)
    break_checks: List[BreakCheck] = field(default_factory=list)
    content_page_count: Optional[int] = None

    @property
    def page_count(self) -> int:
        return len(self.pages)
