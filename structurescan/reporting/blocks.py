"""
Block renderers for the assessment report template.

Every renderer draws onto the current page and returns the new cursor:
``render_x(surface, cursor, ...) -> cursor``. Renderers never decide page
breaks; the page flow controller does that before calling them.
"""

from typing import List, Optional, Sequence, Tuple

from PIL import Image
from reportlab.lib.colors import Color, HexColor, black, white

from structurescan.errors import ImageError
from structurescan.reporting.image_fit import fit_image
from structurescan.reporting.recommendations import RecommendationCatalog
from structurescan.reporting.surface import CONTENT_WIDTH, MARGIN, PAGE_WIDTH, Surface
from structurescan.reporting.text_wrap import FONT_BOLD, FONT_REGULAR, GlyphMetrics, measure, wrap_text
from structurescan.schemas.models import AreaSummary, AssessmentReport, ImageDetail, RecommendationEntry, Severity
from structurescan.utils.config import config, get_log_file
from structurescan.utils.image_utils import ImageDecoder, prepare_for_embedding
from structurescan.utils.logger import setup_logger

logger = setup_logger(__name__, level=config.log_level, log_file=get_log_file(), component="BLOCKS")


# ============================================================================
# COLORS
# ============================================================================

BRAND_PRIMARY = HexColor("#0288D1")  # Blue
RISK_HIGH = HexColor("#D32F2F")      # Red
RISK_MODERATE = HexColor("#F57C00")  # Orange
RISK_LOW = HexColor("#388E3C")       # Green
TEXT_GRAY = HexColor("#888888")

RISK_COLORS = {
    "High Risk": RISK_HIGH,
    "Moderate Risk": RISK_MODERATE,
}

SEVERITY_COLORS = {
    Severity.HIGH: RISK_HIGH,
    Severity.MODERATE: RISK_MODERATE,
    Severity.LOW: RISK_LOW,
}

SCORE_COLORS = {
    "HIGH": RISK_HIGH,
    "MEDIUM": RISK_MODERATE,
    "LOW": RISK_LOW,
}


# ============================================================================
# METRICS
# ============================================================================

LINE_HEIGHT = 16
SMALL_LINE_HEIGHT = 14
SECTION_HEADER_GAP = 8
SECTION_HEADER_HEIGHT = 20 + SECTION_HEADER_GAP
ENTRY_PADDING = 8
TEXT_CHUNK_LINES = 10

BADGE_WIDTH = 200
BADGE_HEIGHT = 40
BADGE_RADIUS = 8
BADGE_PADDING = 10
BADGE_FONT_SIZE = 15
BADGE_MIN_FONT_SIZE = 8

LOGO_SIZE = 60
VALUE_COLUMN = 160
LOCATION_VALUE_COLUMN = 110
BULLET_INDENT = 15
GUIDANCE_INDENT = 27
GUIDANCE_WIDTH = CONTENT_WIDTH - 30 - (GUIDANCE_INDENT - BULLET_INDENT)


# ============================================================================
# FIXED TEXT
# ============================================================================

SUMMARY_PREFIX = "Assessment Summary: "
NO_ISSUES_SUMMARY = "Assessment Summary: No significant structural issues detected."
NO_DAMAGE_DETECTED = "No structural damage detected"
NO_ISSUES_TITLE = "No Issues Detected"
NO_ISSUES_RECOMMENDATION = "Your structure is in good condition. Continue routine maintenance."
IMAGE_LOAD_FAILED = "Failed to load image"

SUMMARY_PHRASES: Tuple[Tuple[str, str], ...] = (
    ("crack_high", "serious concrete damage"),
    ("crack_moderate", "large cracks"),
    ("crack_low", "small hairline cracks"),
    ("paint", "paint damage areas"),
    ("algae", "algae/moss areas"),
)


# ============================================================================
# SHARED PIECES
# ============================================================================

def _draw_lines(
    surface: Surface,
    lines: Sequence[str],
    x: float,
    cursor: int,
    font_name: str,
    font_size: float,
    color: Color,
    line_height: int
) -> int:
    for line in lines:
        surface.draw_text(line, x, cursor, font_name, font_size, color)
        cursor += line_height
    return cursor


def _draw_label(surface: Surface, label: str, x: float, cursor: int):
    surface.draw_text(label, x, cursor, FONT_BOLD, 11, TEXT_GRAY)


def render_section_header(surface: Surface, cursor: int, title: str) -> int:
    """Section title with an underline across the content width."""
    surface.draw_text(title, MARGIN, cursor, FONT_BOLD, 16, BRAND_PRIMARY)
    surface.fill_rect(MARGIN, cursor + 5, CONTENT_WIDTH, 1.5, BRAND_PRIMARY)
    return cursor + SECTION_HEADER_HEIGHT


# ============================================================================
# HEADER / BADGE / SUMMARY
# ============================================================================

def render_header(
    surface: Surface,
    cursor: int,
    report: AssessmentReport,
    logo: Optional[Image.Image] = None
) -> int:
    """Title and report date. The logo, when given, sits top-right."""
    if logo is not None:
        logo_height = LOGO_SIZE * logo.height / logo.width
        surface.draw_image(logo, PAGE_WIDTH - MARGIN - LOGO_SIZE - 10, 25, LOGO_SIZE, logo_height)

    surface.draw_text(report.assessment_name, MARGIN, cursor, FONT_BOLD, 28, BRAND_PRIMARY)
    cursor += 35

    surface.draw_text(f"Report Date: {report.date}", MARGIN, cursor, FONT_REGULAR, 13, TEXT_GRAY)
    cursor += LINE_HEIGHT
    return cursor


def badge_color(risk: str) -> Color:
    """Badge fill for a risk level; unrecognised levels are treated as low risk."""
    return RISK_COLORS.get(risk, RISK_LOW)


def fit_badge_label(label: str, metrics: GlyphMetrics) -> Tuple[str, int]:
    """
    Font size (and text) that keeps a risk label inside the badge.

    The font shrinks one point at a time down to BADGE_MIN_FONT_SIZE; a label
    still too wide at that size is cut and ends with "...".
    """
    available = BADGE_WIDTH - 2 * BADGE_PADDING
    size = BADGE_FONT_SIZE
    while size > BADGE_MIN_FONT_SIZE and metrics.width(label, FONT_BOLD, size) > available:
        size -= 1

    if metrics.width(label, FONT_BOLD, size) <= available:
        return label, size

    text = label
    while text and metrics.width(text + "...", FONT_BOLD, size) > available:
        text = text[:-1]
    return text.rstrip() + "...", size


def render_risk_badge(surface: Surface, cursor: int, risk: str) -> int:
    label, size = fit_badge_label(risk or "Low Risk", surface.metrics)
    surface.fill_rect(MARGIN, cursor, BADGE_WIDTH, BADGE_HEIGHT, badge_color(risk), radius=BADGE_RADIUS)

    text_width = surface.text_width(label, FONT_BOLD, size)
    x = MARGIN + (BADGE_WIDTH - text_width) / 2
    surface.draw_text(label, x, cursor + 25, FONT_BOLD, size, white)
    return cursor + BADGE_HEIGHT


def build_summary_text(report: AssessmentReport) -> str:
    """
    One narrative sentence about the findings.

    The issue count is taken from ``total_issues`` as supplied; category
    clauses are appended for every non-zero category.
    """
    if report.total_issues <= 0:
        return NO_ISSUES_SUMMARY

    text = f"{SUMMARY_PREFIX}{report.total_issues} areas of concern detected."
    details = [
        f"{getattr(report, field_name)} {phrase}"
        for field_name, phrase in SUMMARY_PHRASES
        if getattr(report, field_name) > 0
    ]
    if details:
        text += " " + ", ".join(details) + "."
    return text


def render_summary(surface: Surface, cursor: int, report: AssessmentReport) -> int:
    lines = wrap_text(
        build_summary_text(report),
        measure(surface.metrics, FONT_REGULAR, 12),
        CONTENT_WIDTH,
    )
    return _draw_lines(surface, lines, MARGIN, cursor, FONT_REGULAR, 12, black, LINE_HEIGHT)


# ============================================================================
# LOCATION / BUILDING / AREAS
# ============================================================================

def _address_lines(address: str, metrics: GlyphMetrics) -> List[str]:
    return wrap_text(address, measure(metrics, FONT_REGULAR, 12), CONTENT_WIDTH - LOCATION_VALUE_COLUMN)


def _location_rows(report: AssessmentReport) -> List[Tuple[str, str]]:
    rows = [
        ("Footprint Area:", report.footprint_area),
        ("Construction Type:", report.type_of_construction),
    ]
    return [(label, value) for label, value in rows if value]


def location_info_height(report: AssessmentReport, metrics: GlyphMetrics) -> int:
    """Exact height render_location_info will emit for this report."""
    height = SECTION_HEADER_HEIGHT
    if report.address:
        height += len(_address_lines(report.address, metrics)) * LINE_HEIGHT + 5
    return height + len(_location_rows(report)) * LINE_HEIGHT


def render_location_info(surface: Surface, cursor: int, report: AssessmentReport) -> int:
    cursor = render_section_header(surface, cursor, "Location Information")
    value_x = MARGIN + LOCATION_VALUE_COLUMN

    if report.address:
        _draw_label(surface, "Address:", MARGIN, cursor)
        lines = _address_lines(report.address, surface.metrics)
        cursor = _draw_lines(surface, lines, value_x, cursor, FONT_REGULAR, 12, black, LINE_HEIGHT) + 5

    for label, value in _location_rows(report):
        _draw_label(surface, label, MARGIN, cursor)
        surface.draw_text(value, value_x, cursor, FONT_REGULAR, 12, black)
        cursor += LINE_HEIGHT

    return cursor


def building_info_rows(report: AssessmentReport) -> List[Tuple[str, str]]:
    """Label/value pairs in display order, absent fields left out."""
    rows = [
        ("Building Type", report.building_type),
        ("Primary Material", report.material),
        ("Construction Year", report.construction_year),
        ("Number of Floors", report.floors),
        ("Foundation Type", report.foundation),
        ("Environment", report.environment),
        ("Last Renovation", report.renovation_year),
        ("Occupancy Status", report.occupancy),
    ]
    return [(label, value) for label, value in rows if value]


def building_rows_height(report: AssessmentReport) -> int:
    return SECTION_HEADER_HEIGHT + len(building_info_rows(report)) * LINE_HEIGHT


def render_building_rows(surface: Surface, cursor: int, report: AssessmentReport) -> int:
    """Section header and the short label/value rows of building information."""
    cursor = render_section_header(surface, cursor, "Building Information")

    for label, value in building_info_rows(report):
        _draw_label(surface, f"{label}:", MARGIN, cursor)
        surface.draw_text(value, MARGIN + VALUE_COLUMN, cursor, FONT_REGULAR, 11, black)
        cursor += LINE_HEIGHT

    return cursor


def building_text_blocks(report: AssessmentReport) -> List[Tuple[str, str]]:
    """Free-text fields shown under the building rows, absent ones left out."""
    texts = [
        ("Previous Issues:", report.previous_issues),
        ("Environmental Risks:", report.environmental_risks),
        ("Notes:", report.notes),
    ]
    return [(label, text) for label, text in texts if text]


def text_chunks(text: str, metrics: GlyphMetrics) -> List[List[str]]:
    """
    Wrapped lines of a free-text field, grouped so each group can be placed
    on its own. Always at least one group, so the label is drawn even when
    the text wraps to nothing.
    """
    lines = wrap_text(text, measure(metrics, FONT_REGULAR, 11), CONTENT_WIDTH - 20)
    chunks = [lines[i:i + TEXT_CHUNK_LINES] for i in range(0, len(lines), TEXT_CHUNK_LINES)]
    return chunks or [[]]


def text_chunk_height(lines: Sequence[str], label: Optional[str] = None) -> int:
    height = len(lines) * LINE_HEIGHT
    if label:
        height += 5 + LINE_HEIGHT
    return height


def render_text_chunk(
    surface: Surface,
    cursor: int,
    lines: Sequence[str],
    label: Optional[str] = None
) -> int:
    """Indented free-text lines, headed by the field label on the first chunk."""
    if label:
        cursor += 5
        _draw_label(surface, label, MARGIN, cursor)
        cursor += LINE_HEIGHT
    return _draw_lines(surface, lines, MARGIN + 15, cursor, FONT_REGULAR, 11, black, LINE_HEIGHT)


def render_area_summary_header(surface: Surface, cursor: int) -> int:
    return render_section_header(surface, cursor, "Area Assessment Summary")


def _issue_lines(area: AreaSummary, metrics: GlyphMetrics) -> List[str]:
    if not area.detected_issues:
        return []
    return wrap_text(
        "Issues: " + ", ".join(area.detected_issues),
        measure(metrics, FONT_REGULAR, 10),
        CONTENT_WIDTH - 30,
    )


def area_height(area: AreaSummary, metrics: GlyphMetrics) -> int:
    """Exact height render_area will emit for this area."""
    height = LINE_HEIGHT + 3 * SMALL_LINE_HEIGHT
    if area.structural_analysis_enabled:
        height += SMALL_LINE_HEIGHT
    height += len(_issue_lines(area, metrics)) * SMALL_LINE_HEIGHT
    return height + ENTRY_PADDING


def render_area(surface: Surface, cursor: int, area: AreaSummary) -> int:
    detail_x = MARGIN + 30

    surface.draw_text(f"• {area.area_name}", MARGIN, cursor, FONT_BOLD, 11, black)
    cursor += LINE_HEIGHT

    surface.draw_text(f"Risk: {area.area_risk}", MARGIN + 15, cursor, FONT_REGULAR, 10, black)
    cursor += SMALL_LINE_HEIGHT

    score = area.risk_score_label
    score_color = SCORE_COLORS[score]
    surface.fill_rect(MARGIN + 17, cursor - 6, 6, 6, score_color, radius=3)
    surface.draw_text(
        f"Risk Score: {score} ({area.avg_risk_points:.1f}/3.0 points)",
        detail_x, cursor, FONT_BOLD, 10, score_color,
    )
    cursor += SMALL_LINE_HEIGHT

    surface.draw_text(f"Photos Analyzed: {area.image_count}", detail_x, cursor, FONT_REGULAR, 10, black)
    cursor += SMALL_LINE_HEIGHT

    if area.structural_analysis_enabled:
        if area.max_tilt_angle is not None:
            tilt = f"Worst Tilt: {area.max_tilt_angle:.1f}° ({area.max_tilt_severity or 'Unknown'})"
        else:
            tilt = "Structural Tilt: No issues detected"
        surface.draw_text(tilt, detail_x, cursor, FONT_REGULAR, 10, black)
        cursor += SMALL_LINE_HEIGHT

    lines = _issue_lines(area, surface.metrics)
    cursor = _draw_lines(surface, lines, detail_x, cursor, FONT_REGULAR, 10, black, SMALL_LINE_HEIGHT)

    return cursor + ENTRY_PADDING


# ============================================================================
# DETECTION SUMMARY
# ============================================================================

def detection_lines(report: AssessmentReport) -> List[Tuple[str, str]]:
    """(label, value) per non-zero category group; cracks share one line."""
    lines = []
    if report.crack_total > 0:
        lines.append((
            "Cracks (High / Moderate / Low):",
            f"{report.crack_high} / {report.crack_moderate} / {report.crack_low}",
        ))
    if report.paint > 0:
        lines.append(("Paint Peeling/Flaking:", f"{report.paint} locations"))
    if report.algae > 0:
        lines.append(("Algae/Moss Growth:", f"{report.algae} locations"))
    return lines


def render_detection_summary(surface: Surface, cursor: int, report: AssessmentReport) -> int:
    cursor = render_section_header(surface, cursor, "Damage Detection Summary")

    lines = detection_lines(report)
    if not lines:
        surface.draw_text(NO_DAMAGE_DETECTED, MARGIN, cursor, FONT_REGULAR, 11, black)
        return cursor + LINE_HEIGHT

    for label, value in lines:
        _draw_label(surface, label, MARGIN, cursor)
        surface.draw_text(value, MARGIN + 200, cursor, FONT_REGULAR, 11, black)
        cursor += LINE_HEIGHT
    return cursor


# ============================================================================
# RECOMMENDATIONS
# ============================================================================

def render_recommendations_header(surface: Surface, cursor: int) -> int:
    return render_section_header(surface, cursor, "Detailed Recommendations & Actions")


def recommendations_header_height() -> int:
    return SECTION_HEADER_HEIGHT


NO_ISSUES_HEIGHT = 2 * LINE_HEIGHT


def render_no_issues(surface: Surface, cursor: int) -> int:
    surface.draw_text(NO_ISSUES_TITLE, MARGIN, cursor, FONT_BOLD, 12, black)
    cursor += LINE_HEIGHT
    surface.draw_text(NO_ISSUES_RECOMMENDATION, MARGIN + 10, cursor, FONT_REGULAR, 10, black)
    return cursor + LINE_HEIGHT


def _guidance_lines(action: str, metrics: GlyphMetrics) -> List[str]:
    return wrap_text(action, measure(metrics, FONT_REGULAR, 10), GUIDANCE_WIDTH)


def recommendation_entry_height(
    entry: RecommendationEntry,
    metrics: GlyphMetrics,
    catalog: RecommendationCatalog
) -> int:
    """Exact height render_recommendation_entry will emit for this entry."""
    height = LINE_HEIGHT
    if entry.count > 1:
        height += SMALL_LINE_HEIGHT
    for action in catalog.guidance_for(entry.label):
        height += len(_guidance_lines(action, metrics)) * SMALL_LINE_HEIGHT
    return height + ENTRY_PADDING


def render_recommendation_entry(
    surface: Surface,
    cursor: int,
    entry: RecommendationEntry,
    catalog: RecommendationCatalog
) -> int:
    """Category title with severity tag, occurrence count and guidance bullets."""
    surface.draw_text(f"• {entry.label}", MARGIN, cursor, FONT_BOLD, 12, black)
    surface.draw_text(
        f"[{entry.severity.value}]", MARGIN + 200, cursor,
        FONT_BOLD, 10, SEVERITY_COLORS[entry.severity],
    )
    cursor += LINE_HEIGHT

    if entry.count > 1:
        surface.draw_text(
            f"Detected in {entry.count} locations", MARGIN + BULLET_INDENT, cursor,
            FONT_REGULAR, 10, black,
        )
        cursor += SMALL_LINE_HEIGHT

    # Hanging indent: bullet on the first line, continuation lines aligned with its text
    for action in catalog.guidance_for(entry.label):
        lines = _guidance_lines(action, surface.metrics)
        if lines:
            surface.draw_text("-", MARGIN + BULLET_INDENT, cursor, FONT_REGULAR, 10, black)
        cursor = _draw_lines(
            surface, lines, MARGIN + GUIDANCE_INDENT, cursor,
            FONT_REGULAR, 10, black, SMALL_LINE_HEIGHT,
        )

    return cursor + ENTRY_PADDING


# ============================================================================
# IMAGE PAGE
# ============================================================================

def render_image_page(
    surface: Surface,
    cursor: int,
    image: ImageDetail,
    index: int,
    total: int,
    decoder: ImageDecoder,
    oversample: Optional[float] = None
) -> int:
    """
    Caption plus the fitted photograph.

    Decoding failures are drawn as an error caption instead of the image, so
    the page is emitted either way.
    """
    surface.draw_text(f"Image {index} of {total}", MARGIN, 50, FONT_BOLD, 14, black)

    caption = " - ".join(part for part in (image.area_name, image.name) if part)
    if caption:
        surface.draw_text(caption, MARGIN, 70, FONT_BOLD, 11, BRAND_PRIMARY)

    try:
        bitmap = decoder.decode(image.url)
        placement = fit_image(bitmap.width, bitmap.height)
    except ImageError as e:
        logger.warning(f"Image {index} of {total} could not be loaded: {e}")
        surface.draw_text(IMAGE_LOAD_FAILED, MARGIN, 150, FONT_REGULAR, 14, RISK_HIGH)
        lines = wrap_text(f"Error: {e}", measure(surface.metrics, FONT_REGULAR, 14), CONTENT_WIDTH)
        return _draw_lines(surface, lines, MARGIN, 170, FONT_REGULAR, 14, RISK_HIGH, 20)

    embedded = prepare_for_embedding(bitmap, placement.width, placement.height, oversample)
    surface.draw_image(embedded, placement.left, placement.top, placement.width, placement.height)
    logger.debug(
        f"Placed image {index} of {total}: {bitmap.width}x{bitmap.height} -> "
        f"{placement.width}x{placement.height} at ({placement.left}, {placement.top})"
    )
    return max(cursor, placement.top + placement.height)
