"""
Assessment report PDF generation.
Lays out an assessment, renders photographs and encodes the result as PDF.
"""

import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from PIL import Image

from structurescan.errors import GenerationCancelled, ReportGenerationError
from structurescan.reporting.blocks import LOGO_SIZE
from structurescan.reporting.layout import PageFlowController
from structurescan.reporting.pdf_writer import encode_document
from structurescan.reporting.recommendations import RecommendationCatalog, load_catalog
from structurescan.reporting.text_wrap import GlyphMetrics, ReportLabMetrics
from structurescan.schemas.models import AssessmentReport
from structurescan.utils.config import config, get_log_file
from structurescan.utils.image_utils import ImageDecoder, ReferenceImageDecoder, prepare_for_embedding
from structurescan.utils.logger import setup_logger, set_request_id, clear_request_id

logger = setup_logger(__name__, level=config.log_level, log_file=get_log_file(), component="REPORTS")


def load_logo(path: Optional[Path] = None) -> Optional[Image.Image]:
    """Load the configured header logo; a broken logo is left out, not fatal."""
    path = path or config.logo_file
    if path is None:
        return None
    try:
        with Image.open(path) as img:
            img.load()
            logo = img.copy()
        ratio = logo.height / logo.width
        return prepare_for_embedding(logo, LOGO_SIZE, int(LOGO_SIZE * ratio))
    except (OSError, ValueError, ZeroDivisionError) as e:
        logger.warning(f"Failed to load logo {path}: {e}")
        return None


def generate_report(
    report: AssessmentReport,
    decoder: Optional[ImageDecoder] = None,
    metrics: Optional[GlyphMetrics] = None,
    catalog: Optional[RecommendationCatalog] = None,
    logo: Optional[Image.Image] = None,
    cancel_event: Optional[threading.Event] = None,
    page_numbers: Optional[bool] = None,
) -> bytes:
    """
    Render an assessment report to PDF bytes.

    Images that cannot be loaded become error pages; every other failure
    aborts generation and no partial document is returned.

    Args:
        report: Assessment to render
        decoder: Image decoder (defaults to ReferenceImageDecoder)
        metrics: Glyph metrics provider (defaults to ReportLab font metrics)
        catalog: Recommendation catalog (defaults to the configured catalog)
        logo: Header logo (defaults to LOGO_PATH)
        cancel_event: Set to cancel generation between blocks
        page_numbers: Stamp page numbers (defaults to config)

    Returns:
        PDF file contents

    Raises:
        GenerationCancelled: If cancel_event was set during generation
        ReportGenerationError: If the document could not be produced
    """
    set_request_id(re.sub(r"\W+", "", report.assessment_name)[:8].lower() or "report")
    logger.info("Generating PDF report...")

    try:
        controller = PageFlowController(
            metrics=metrics or ReportLabMetrics(),
            decoder=decoder or ReferenceImageDecoder(),
            catalog=catalog or load_catalog(),
            logo=logo if logo is not None else load_logo(),
            cancel_event=cancel_event,
            image_oversample=config.image_oversample,
        )
        document = controller.render(report)
        data = encode_document(document, title=report.assessment_name, page_numbers=page_numbers)
        logger.info(f"PDF report generated: {document.page_count} pages, {len(data)} bytes")

    except GenerationCancelled:
        logger.warning("PDF generation cancelled")
        raise

    except Exception as e:
        logger.error(f"PDF generation failed: {e}")
        raise ReportGenerationError(f"PDF generation failed: {e}") from e

    finally:
        clear_request_id()

    return data


def report_filename(report: AssessmentReport, now: Optional[datetime] = None) -> str:
    """Assessment_<name>_<YYYYmmdd_HHMMSS>.pdf"""
    now = now or datetime.now()
    name = re.sub(r'[\\/:*?"<>|]', "", report.assessment_name.replace(" ", "_"))
    return f"Assessment_{name}_{now.strftime('%Y%m%d_%H%M%S')}.pdf"


def save_report(
    report: AssessmentReport,
    output_dir: Optional[Path] = None,
    **kwargs
) -> Path:
    """
    Generate a report and write it to the report directory.

    The file only appears once the whole document has been written.

    Args:
        report: Assessment to render
        output_dir: Target directory (defaults to REPORT_DIR)
        **kwargs: Passed through to generate_report

    Returns:
        Path to the written PDF
    """
    data = generate_report(report, **kwargs)

    try:
        output_dir = Path(output_dir) if output_dir else config.get_report_dir()
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / report_filename(report)
        partial_path = output_path.with_suffix(".pdf.part")
        partial_path.write_bytes(data)
        partial_path.replace(output_path)
    except OSError as e:
        logger.error(f"Failed to write report: {e}")
        raise ReportGenerationError(f"Output destination unwritable: {e}") from e

    logger.info(f"PDF report saved: {output_path}")
    return output_path
