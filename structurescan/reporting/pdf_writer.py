"""
PDF encoding of a laid-out document.
"""

import io
from typing import Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from structurescan.reporting.surface import Document, FilledRect, ImageBlit, MARGIN, Surface, TextRun
from structurescan.reporting.text_wrap import FONT_REGULAR
from structurescan.utils.config import config, get_log_file
from structurescan.utils.logger import setup_logger

logger = setup_logger(__name__, level=config.log_level, log_file=get_log_file(), component="PDF")

FOOTER_GRAY = HexColor("#666666")


class NumberedCanvas(canvas.Canvas):
    """Canvas that stamps "Page k of n" once the page count is known."""

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        num_pages = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_page_number(num_pages)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def draw_page_number(self, page_count):
        """Draw page number inside the bottom margin."""
        self.saveState()
        self.setFont(FONT_REGULAR, 8)
        self.setFillColor(FOOTER_GRAY)
        width, _ = self._pagesize
        self.drawRightString(width - MARGIN, MARGIN / 2, f"Page {self._pageNumber} of {page_count}")
        self.restoreState()


def _draw_page(c: canvas.Canvas, page: Surface):
    """Replay a page's draw commands; layout y runs down, PDF y runs up."""
    height = page.height
    for command in page.commands:
        if isinstance(command, TextRun):
            c.setFont(command.font_name, command.font_size)
            c.setFillColor(command.color)
            c.drawString(command.x, height - command.y, command.text)
        elif isinstance(command, FilledRect):
            c.setFillColor(command.color)
            y = height - command.y - command.height
            if command.radius:
                c.roundRect(command.x, y, command.width, command.height, command.radius, stroke=0, fill=1)
            else:
                c.rect(command.x, y, command.width, command.height, stroke=0, fill=1)
        elif isinstance(command, ImageBlit):
            c.drawImage(
                ImageReader(command.image),
                command.x,
                height - command.y - command.height,
                width=command.width,
                height=command.height,
            )


def encode_document(
    document: Document,
    title: Optional[str] = None,
    page_numbers: Optional[bool] = None
) -> bytes:
    """
    Encode a finished document as PDF bytes.

    Args:
        document: Laid-out document
        title: PDF metadata title
        page_numbers: Stamp "Page k of n" footers (defaults to config)

    Returns:
        PDF file contents
    """
    if page_numbers is None:
        page_numbers = config.page_numbers

    first = document.pages[0]
    buffer = io.BytesIO()
    canvas_class = NumberedCanvas if page_numbers else canvas.Canvas
    c = canvas_class(buffer, pagesize=(first.width, first.height))
    if title:
        c.setTitle(title)
    c.setCreator("StructureScan")

    for page in document.pages:
        c.setPageSize((page.width, page.height))
        _draw_page(c, page)
        c.showPage()
    c.save()

    data = buffer.getvalue()
    logger.debug(f"Encoded {document.page_count} pages ({len(data)} bytes)")
    return data
