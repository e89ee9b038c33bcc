"""
Reporting module for StructureScan.
"""

from structurescan.reporting.pdf_generator import generate_report, save_report
from structurescan.reporting.layout import PageFlowController
from structurescan.reporting.recommendations import RecommendationCatalog, build_recommendations
from structurescan.reporting.image_fit import fit_image
from structurescan.reporting.text_wrap import ReportLabMetrics, wrap_text

__all__ = [
    "generate_report",
    "save_report",
    "PageFlowController",
    "RecommendationCatalog",
    "build_recommendations",
    "fit_image",
    "ReportLabMetrics",
    "wrap_text",
]
