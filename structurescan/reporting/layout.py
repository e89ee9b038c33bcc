"""
Page flow for the assessment report template.

The controller owns the document, the current page and the cursor. Before
every block it runs a break-check against a height estimate and starts a new
page when the block would cross the bottom margin. Sections that grow with
their content are placed as a short opener followed by measured sub-blocks.
Layout is a single forward pass; the same report always yields the same page
breaks.
"""

import threading
from enum import Enum
from functools import partial
from typing import Callable, Optional

from PIL import Image

from structurescan.errors import DocumentClosedError, GenerationCancelled, LayoutStateError
from structurescan.reporting import blocks
from structurescan.reporting.recommendations import RecommendationCatalog, build_recommendations
from structurescan.reporting.surface import BreakCheck, Document, MARGIN, PAGE_HEIGHT, PAGE_WIDTH, Surface
from structurescan.reporting.text_wrap import GlyphMetrics
from structurescan.schemas.models import AssessmentReport
from structurescan.utils.config import config, get_log_file
from structurescan.utils.image_utils import ImageDecoder
from structurescan.utils.logger import setup_logger

logger = setup_logger(__name__, level=config.log_level, log_file=get_log_file(), component="LAYOUT")

Renderer = Callable[[Surface, int], int]


# ============================================================================
# BLOCK HEIGHT ESTIMATES
# ============================================================================

HEADER_ESTIMATE = 60
RISK_BADGE_ESTIMATE = 40
SUMMARY_ESTIMATE = 60
LOCATION_INFO_ESTIMATE = 120
BUILDING_INFO_ESTIMATE = 150
AREA_SUMMARY_ESTIMATE = 150
DETECTION_SUMMARY_ESTIMATE = 150
RECOMMENDATIONS_ESTIMATE = 200

# Vertical gap after each block
HEADER_SPACING = 20
RISK_BADGE_SPACING = 30
SUMMARY_SPACING = 40
SECTION_SPACING = 25


class FlowState(str, Enum):
    ON_PAGE = "ON_PAGE"
    PAGE_FULL = "PAGE_FULL"
    DOCUMENT_CLOSED = "DOCUMENT_CLOSED"


class PageFlowController:
    """Sequences block renderers onto pages."""

    def __init__(
        self,
        metrics: GlyphMetrics,
        decoder: ImageDecoder,
        catalog: Optional[RecommendationCatalog] = None,
        logo: Optional[Image.Image] = None,
        cancel_event: Optional[threading.Event] = None,
        image_oversample: Optional[float] = None,
        page_width: int = PAGE_WIDTH,
        page_height: int = PAGE_HEIGHT,
        top_margin: int = MARGIN,
        bottom_margin: int = MARGIN,
    ):
        self.metrics = metrics
        self.decoder = decoder
        self.catalog = catalog or RecommendationCatalog()
        self.logo = logo
        self.cancel_event = cancel_event
        self.image_oversample = image_oversample
        self.page_width = page_width
        self.page_height = page_height
        self.top_margin = top_margin
        self.bottom_margin = bottom_margin
        self.logger = logger

        self.document = Document()
        self.page: Optional[Surface] = None
        self.cursor = top_margin
        self.state = FlowState.PAGE_FULL
        self._start_page()

    # ------------------------------------------------------------------
    # Page state
    # ------------------------------------------------------------------

    @property
    def limit(self) -> int:
        """Lowest cursor position a block may reach."""
        return self.page_height - self.bottom_margin

    def _ensure_open(self):
        if self.state == FlowState.DOCUMENT_CLOSED:
            raise DocumentClosedError("Document is closed; no further blocks may be added")

    def _check_cancelled(self):
        if self.cancel_event is not None and self.cancel_event.is_set():
            self.logger.warning(
                f"Generation cancelled after {self.document.page_count} pages; discarding document"
            )
            self.document = Document()
            self.page = None
            self.state = FlowState.DOCUMENT_CLOSED
            raise GenerationCancelled("Report generation was cancelled")

    def _start_page(self):
        self.page = Surface(self.metrics, self.page_width, self.page_height)
        self.cursor = self.top_margin
        self.state = FlowState.ON_PAGE

    def _finalize_page(self):
        self.page.finalize()
        self.document.pages.append(self.page)
        self.logger.debug(f"Finalized page {self.document.page_count}")
        self.page = None
        self.state = FlowState.PAGE_FULL

    # ------------------------------------------------------------------
    # Block placement
    # ------------------------------------------------------------------

    def break_check(self, block: str, estimate: int) -> bool:
        """
        Start a new page if a block of the estimated height does not fit.

        A page that has nothing on it yet is never broken, so an oversized
        block starts at the top of a fresh page instead of leaving it empty.

        Returns:
            True if a new page was started
        """
        self._ensure_open()
        self._check_cancelled()

        new_page = False
        if self.page is None:
            self._start_page()
            new_page = True
        elif self.cursor + estimate > self.limit and self.page.commands:
            self.logger.debug(
                f"Break before {block}: cursor {self.cursor} + {estimate} > {self.limit}"
            )
            self._finalize_page()
            self._start_page()
            new_page = True

        check = BreakCheck(
            block=block,
            page_index=self.document.page_count,
            cursor=self.cursor,
            estimate=estimate,
            limit=self.limit,
            new_page=new_page,
        )
        if not check.fits:
            self.logger.warning(
                f"Block {block} ({estimate}) is taller than the free space of an empty page"
            )
        self.document.break_checks.append(check)
        return new_page

    def place(self, block: str, estimate: int, render: Renderer, spacing: int = 0) -> int:
        """Break-check, render the block at the cursor and advance past it."""
        self.break_check(block, estimate)

        cursor = render(self.page, self.cursor)
        if cursor < self.cursor:
            raise LayoutStateError(f"Block {block} moved the cursor up ({self.cursor} -> {cursor})")

        self.cursor = cursor + spacing
        return self.cursor

    def add_image_page(self, block: str, render: Renderer):
        """Render a block alone on a fresh page and finalize that page."""
        self._ensure_open()
        self._check_cancelled()

        if self.page is not None:
            self._finalize_page()
        if self.document.content_page_count is None:
            self.document.content_page_count = self.document.page_count

        self._start_page()
        self.document.break_checks.append(BreakCheck(
            block=block,
            page_index=self.document.page_count,
            cursor=self.cursor,
            estimate=0,
            limit=self.limit,
            new_page=True,
        ))
        self.cursor = render(self.page, self.cursor)
        self._finalize_page()

    def close(self) -> Document:
        """Finalize the current page and hand over the finished document."""
        self._ensure_open()
        if self.page is not None:
            self._finalize_page()
        if self.document.content_page_count is None:
            self.document.content_page_count = self.document.page_count
        self.state = FlowState.DOCUMENT_CLOSED
        return self.document

    # ------------------------------------------------------------------
    # Template
    # ------------------------------------------------------------------

    def render(self, report: AssessmentReport) -> Document:
        """
        Lay out the full report template.

        Header -> risk badge -> summary -> [location] -> [building] -> [areas]
        -> detection summary -> recommendations -> one page per image.
        """
        self.logger.info(f"Laying out report: {report.assessment_name}")

        self.place("header", HEADER_ESTIMATE,
                   partial(blocks.render_header, report=report, logo=self.logo),
                   spacing=HEADER_SPACING)
        self.place("risk_badge", RISK_BADGE_ESTIMATE,
                   partial(blocks.render_risk_badge, risk=report.overall_risk),
                   spacing=RISK_BADGE_SPACING)
        self.place("summary", SUMMARY_ESTIMATE,
                   partial(blocks.render_summary, report=report),
                   spacing=SUMMARY_SPACING)

        if report.has_location_info:
            location_height = blocks.location_info_height(report, self.metrics)
            self.place("location_info", max(LOCATION_INFO_ESTIMATE, location_height),
                       partial(blocks.render_location_info, report=report),
                       spacing=SECTION_SPACING)

        if report.has_building_info:
            self._place_building_info(report)

        if report.areas:
            self._place_areas(report)

        self.place("detection_summary", DETECTION_SUMMARY_ESTIMATE,
                   partial(blocks.render_detection_summary, report=report),
                   spacing=SECTION_SPACING)

        self._place_recommendations(report)

        images = report.present_images
        for index, image in enumerate(images, start=1):
            self.add_image_page(
                f"image:{index}",
                partial(
                    blocks.render_image_page,
                    image=image,
                    index=index,
                    total=len(images),
                    decoder=self.decoder,
                    oversample=self.image_oversample,
                ),
            )

        document = self.close()
        self.logger.info(
            f"Layout complete: {document.page_count} pages "
            f"({document.content_page_count} content, {len(images)} image)"
        )
        return document

    def _place_recommendations(self, report: AssessmentReport):
        entries = build_recommendations(report)
        heights = [
            blocks.recommendation_entry_height(entry, self.metrics, self.catalog)
            for entry in entries
        ]

        # Keep the section title on the same page as its first entry
        first = heights[0] if heights else blocks.NO_ISSUES_HEIGHT
        opener = max(RECOMMENDATIONS_ESTIMATE, blocks.recommendations_header_height() + first)
        self.place("recommendations", opener, blocks.render_recommendations_header)

        if not entries:
            self.place("recommendations:none", blocks.NO_ISSUES_HEIGHT, blocks.render_no_issues)
            return

        for entry, height in zip(entries, heights):
            self.place(
                f"recommendation:{entry.label}",
                height,
                partial(blocks.render_recommendation_entry, entry=entry, catalog=self.catalog),
            )

    def _place_building_info(self, report: AssessmentReport):
        chunks = [
            (label if n == 0 else None, lines)
            for label, text in blocks.building_text_blocks(report)
            for n, lines in enumerate(blocks.text_chunks(text, self.metrics))
        ]

        # Keep the rows together with the first free-text chunk
        first = blocks.text_chunk_height(chunks[0][1], chunks[0][0]) if chunks else 0
        opener = max(BUILDING_INFO_ESTIMATE, blocks.building_rows_height(report) + first)
        self.place("building_info", opener, partial(blocks.render_building_rows, report=report))

        for index, (label, lines) in enumerate(chunks, start=1):
            self.place(
                f"building_info:text:{index}",
                blocks.text_chunk_height(lines, label),
                partial(blocks.render_text_chunk, lines=lines, label=label),
            )
        self.cursor += SECTION_SPACING

    def _place_areas(self, report: AssessmentReport):
        heights = [blocks.area_height(area, self.metrics) for area in report.areas]

        opener = max(AREA_SUMMARY_ESTIMATE, blocks.SECTION_HEADER_HEIGHT + heights[0])
        self.place("area_summary", opener, blocks.render_area_summary_header)

        for index, (area, height) in enumerate(zip(report.areas, heights), start=1):
            self.place(f"area:{index}", height, partial(blocks.render_area, area=area))
        self.cursor += SECTION_SPACING
