"""
Pydantic schemas for StructureScan reports.
"""

from structurescan.schemas.models import (
    AreaSummary,
    AssessmentReport,
    ImageDetail,
    RecommendationEntry,
    Severity,
)

__all__ = [
    "AreaSummary",
    "AssessmentReport",
    "ImageDetail",
    "RecommendationEntry",
    "Severity",
]
