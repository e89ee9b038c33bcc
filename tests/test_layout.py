"""
Unit tests for page flow and pagination.
"""

import threading

import pytest
from PIL import Image
from reportlab.lib.colors import black

from structurescan.errors import (
    DocumentClosedError,
    GenerationCancelled,
    LayoutStateError,
    PageFinalizedError,
)
from structurescan.reporting import blocks
from structurescan.reporting.layout import FlowState, PageFlowController
from structurescan.reporting.surface import TextRun
from structurescan.schemas.models import AreaSummary, AssessmentReport

from tests.conftest import FixedWidthMetrics, StubDecoder


def draw_line(surface, cursor):
    surface.draw_text("line", 40, cursor, "Helvetica", 10, black)
    return cursor + 10


@pytest.fixture
def controller(metrics, decoder):
    return PageFlowController(metrics=metrics, decoder=decoder)


@pytest.fixture
def heavy_report():
    """Every category present, several areas and two photos."""
    return AssessmentReport(
        assessment_name="Harbour Block C",
        date="April 9, 2025",
        overall_risk="Moderate Risk",
        total_issues=15,
        crack_high=3,
        crack_moderate=3,
        crack_low=3,
        paint=3,
        algae=3,
        building_type="Residential",
        floors="5",
        material="Brick",
        address="7 Quay Street",
        areas=[
            AreaSummary(area_name=f"Area {i}", avg_risk_points=i * 0.8, image_count=i)
            for i in range(1, 4)
        ],
        images=["https://example.com/wall.jpg", "content://media/external/images/1"],
    )


class TestBreakCheck:
    """Tests for single block placement."""

    def test_block_that_fits_stays_on_page(self, controller):
        controller.place("a", 10, draw_line)
        controller.place("b", 10, draw_line)

        checks = controller.document.break_checks
        assert [c.new_page for c in checks] == [False, False]
        assert [c.page_index for c in checks] == [0, 0]
        assert controller.cursor == 60

    def test_block_past_bottom_margin_starts_new_page(self, controller):
        controller.place("a", 10, draw_line, spacing=780)
        controller.place("b", 10, draw_line)

        check = controller.document.break_checks[-1]
        assert check.new_page
        assert check.page_index == 1
        assert check.cursor == 40
        assert controller.document.page_count == 1

    def test_empty_page_is_never_broken(self, controller):
        """An oversized block goes on the fresh page rather than leaving it blank."""
        controller.place("big", 1000, draw_line)

        check = controller.document.break_checks[0]
        assert not check.new_page
        assert not check.fits
        assert check.page_index == 0

    def test_oversized_block_after_content(self, controller):
        controller.place("a", 10, draw_line)
        controller.place("big", 1000, draw_line)

        check = controller.document.break_checks[-1]
        assert check.new_page
        assert check.page_index == 1

    def test_cursor_moving_up_is_rejected(self, controller):
        with pytest.raises(LayoutStateError):
            controller.place("bad", 10, lambda surface, cursor: cursor - 5)

    def test_limit_is_bottom_margin(self, controller):
        assert controller.limit == 842 - 40


class TestDocumentLifecycle:
    """Tests for closing and finalized pages."""

    def test_closed_document_rejects_blocks(self, controller):
        controller.place("a", 10, draw_line)
        controller.close()

        assert controller.state == FlowState.DOCUMENT_CLOSED
        with pytest.raises(DocumentClosedError):
            controller.place("b", 10, draw_line)
        with pytest.raises(DocumentClosedError):
            controller.close()

    def test_finalized_page_rejects_commands(self, controller):
        controller.place("a", 10, draw_line)
        document = controller.close()

        page = document.pages[0]
        assert page.finalized
        with pytest.raises(PageFinalizedError):
            page.draw_text("late", 40, 100, "Helvetica", 10, black)

    def test_image_page_is_alone(self, controller):
        controller.place("a", 10, draw_line)
        controller.add_image_page("image:1", draw_line)
        document = controller.close()

        assert document.page_count == 2
        assert document.content_page_count == 1
        assert document.pages[1].texts == ["line"]


class TestRenderReport:
    """Tests for the full report template."""

    def test_clean_report_is_one_page(self, controller, clean_report):
        document = controller.render(clean_report)

        assert document.page_count == 1
        assert document.content_page_count == 1
        texts = document.pages[0].texts
        assert blocks.NO_ISSUES_SUMMARY in texts
        assert blocks.NO_DAMAGE_DETECTED in texts
        assert blocks.NO_ISSUES_RECOMMENDATION in texts

    def test_block_order(self, controller, damaged_report):
        document = controller.render(damaged_report)

        names = [c.block for c in document.break_checks]
        assert names == [
            "header",
            "risk_badge",
            "summary",
            "building_info",
            "building_info:text:1",
            "detection_summary",
            "recommendations",
            "recommendation:Serious Concrete Damage",
            "recommendation:Small Hairline Crack/s",
            "recommendation:Algae/Moss Growth",
            "image:1",
            "image:2",
        ]

    def test_optional_sections(self, controller, heavy_report):
        document = controller.render(heavy_report)
        names = [c.block for c in document.break_checks]
        assert "location_info" in names
        assert "area_summary" in names
        assert [n for n in names if n.startswith("area:")] == ["area:1", "area:2", "area:3"]

    def test_every_block_fits_its_page(self, controller, heavy_report):
        """Each non-image block was placed where its estimate fit."""
        document = controller.render(heavy_report)

        for check in document.break_checks:
            if not check.block.startswith("image:"):
                assert check.fits, check

    def test_recommendations_span_pages(self, controller, heavy_report):
        document = controller.render(heavy_report)

        assert document.content_page_count >= 2
        pages = {c.page_index for c in document.break_checks if c.block.startswith("recommendation:")}
        assert len(pages) >= 2

    def test_recommendations_title_kept_with_first_entry(self, controller, heavy_report):
        document = controller.render(heavy_report)

        checks = document.break_checks
        title = next(i for i, c in enumerate(checks) if c.block == "recommendations")
        assert checks[title].page_index == checks[title + 1].page_index

    def test_one_page_per_present_image(self, controller, damaged_report):
        """Empty references are skipped; every other one gets exactly one page."""
        document = controller.render(damaged_report)

        assert document.page_count - document.content_page_count == 2
        image_pages = document.pages[document.content_page_count:]
        assert image_pages[0].texts[0] == "Image 1 of 2"
        assert image_pages[1].texts[0] == "Image 2 of 2"

    def test_images_decoded_in_order(self, controller, decoder, damaged_report):
        controller.render(damaged_report)
        assert decoder.calls == [
            "https://example.com/wall.jpg",
            "content://media/external/images/1",
        ]

    def test_failed_image_still_gets_page(self, metrics):
        report = AssessmentReport(
            assessment_name="A", date="d",
            images=["https://example.com/gone.jpg", "gs://bucket/a.jpg"],
        )
        controller = PageFlowController(metrics=metrics, decoder=StubDecoder())

        document = controller.render(report)

        assert document.page_count - document.content_page_count == 2
        for page in document.pages[document.content_page_count:]:
            assert blocks.IMAGE_LOAD_FAILED in page.texts

    def test_layout_is_deterministic(self, decoder, heavy_report):
        first = PageFlowController(FixedWidthMetrics(), decoder).render(heavy_report)
        second = PageFlowController(FixedWidthMetrics(), decoder).render(heavy_report)

        assert first.break_checks == second.break_checks
        assert [p.texts for p in first.pages] == [p.texts for p in second.pages]
        assert [p.commands for p in first.pages] == [p.commands for p in second.pages]


class TestLongSections:
    """Sections that grow with their content break across pages instead of overflowing."""

    def content_runs(self, document):
        for page in document.pages[:document.content_page_count]:
            for command in page.commands:
                if isinstance(command, TextRun):
                    yield command

    def assert_within_margin(self, controller, document):
        for run in self.content_runs(document):
            assert run.y <= controller.limit, run
        for check in document.break_checks:
            if not check.block.startswith("image:"):
                assert check.fits, check

    def test_many_areas(self, controller):
        report = AssessmentReport(
            assessment_name="Campus",
            date="d",
            areas=[
                AreaSummary(structural_analysis_enabled=True, detected_issues=["crack"])
                for _ in range(20)
            ],
        )

        document = controller.render(report)

        assert document.content_page_count >= 2
        area_pages = {c.page_index for c in document.break_checks if c.block.startswith("area:")}
        assert len(area_pages) >= 2
        self.assert_within_margin(controller, document)

    def test_long_notes(self, controller):
        notes = " ".join(["word"] * 3000)
        report = AssessmentReport(assessment_name="A", date="d", floors="2", notes=notes)

        document = controller.render(report)

        assert document.content_page_count >= 2
        self.assert_within_margin(controller, document)
        texts = [run.text for run in self.content_runs(document)]
        assert sum(line.count("word") for line in texts) == 3000

    def test_building_header_kept_with_first_text(self, controller):
        report = AssessmentReport(
            assessment_name="A", date="d", floors="2", notes=" ".join(["word"] * 3000),
        )

        document = controller.render(report)

        checks = document.break_checks
        opener = next(i for i, c in enumerate(checks) if c.block == "building_info")
        assert checks[opener + 1].block == "building_info:text:1"
        assert checks[opener].page_index == checks[opener + 1].page_index


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancel_before_start(self, metrics, decoder, damaged_report):
        event = threading.Event()
        event.set()
        controller = PageFlowController(metrics, decoder, cancel_event=event)

        with pytest.raises(GenerationCancelled):
            controller.render(damaged_report)
        assert controller.state == FlowState.DOCUMENT_CLOSED
        assert controller.document.page_count == 0

    def test_cancel_between_image_pages(self, metrics, damaged_report):
        event = threading.Event()

        class CancellingDecoder:
            calls = 0

            def decode(self, reference):
                self.calls += 1
                event.set()
                return Image.new("RGB", (40, 30))

        decoder = CancellingDecoder()
        controller = PageFlowController(metrics, decoder, cancel_event=event)

        with pytest.raises(GenerationCancelled):
            controller.render(damaged_report)
        assert decoder.calls == 1
        assert controller.document.page_count == 0
        with pytest.raises(DocumentClosedError):
            controller.place("late", 10, draw_line)
