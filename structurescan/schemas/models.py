"""
Pydantic schemas for assessment data.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImageDetail(BaseModel):
    """A captured photograph to render on its own page."""
    model_config = ConfigDict(frozen=True)

    url: str = Field("", description="Remote URL or local content reference")
    name: str = Field("", description="Image file name shown under the caption")
    area_name: str = Field("", description="Building area the photo was taken in")

    @property
    def is_present(self) -> bool:
        """Empty references are skipped, not rendered as blank pages."""
        return self.url != ""


class AreaSummary(BaseModel):
    """Per-area risk summary."""
    model_config = ConfigDict(frozen=True)

    area_name: str = ""
    area_risk: str = "Low Risk"
    avg_risk_points: float = Field(0.0, ge=0)
    image_count: int = Field(0, ge=0)
    structural_analysis_enabled: bool = False
    detected_issues: List[str] = Field(default_factory=list)
    max_tilt_angle: Optional[float] = None
    max_tilt_severity: Optional[str] = None

    @property
    def risk_score_label(self) -> str:
        if self.avg_risk_points < 1.0:
            return "LOW"
        if self.avg_risk_points < 2.0:
            return "MEDIUM"
        return "HIGH"


class AssessmentReport(BaseModel):
    """
    Inspection results to render.

    Built once by the caller and never mutated. ``total_issues`` is supplied
    independently of the category counts and is not checked against their sum.
    """
    model_config = ConfigDict(frozen=True)

    # Identity
    assessment_name: str = Field(..., description="Assessment title")
    date: str = Field(..., description="Pre-formatted report date")

    # Risk
    overall_risk: str = Field("Low Risk", description="High Risk, Moderate Risk or Low Risk")

    # Counts
    total_issues: int = Field(0, ge=0)
    crack_high: int = Field(0, ge=0, description="Serious concrete damage")
    crack_moderate: int = Field(0, ge=0, description="Large cracks")
    crack_low: int = Field(0, ge=0, description="Small hairline cracks")
    paint: int = Field(0, ge=0, description="Paint peeling or flaking")
    algae: int = Field(0, ge=0, description="Algae or moss growth")

    # Building metadata ("" means absent)
    building_type: str = ""
    construction_year: str = ""
    renovation_year: str = ""
    floors: str = ""
    material: str = ""
    foundation: str = ""
    environment: str = ""
    previous_issues: str = ""
    occupancy: str = ""
    environmental_risks: str = ""
    notes: str = ""

    # Location metadata
    address: str = ""
    footprint_area: str = ""
    type_of_construction: str = ""

    areas: List[AreaSummary] = Field(default_factory=list)
    images: List[ImageDetail] = Field(default_factory=list)

    @field_validator("images", mode="before")
    @classmethod
    def coerce_image_references(cls, v):
        """Accept bare reference strings alongside image detail mappings."""
        if v is None:
            return []
        return [{"url": item} if isinstance(item, str) else item for item in v]

    @property
    def crack_total(self) -> int:
        return self.crack_high + self.crack_moderate + self.crack_low

    @property
    def has_building_info(self) -> bool:
        """Check if any building metadata field is present."""
        return any([
            self.building_type,
            self.construction_year,
            self.renovation_year,
            self.floors,
            self.material,
            self.foundation,
            self.environment,
            self.previous_issues,
            self.occupancy,
            self.environmental_risks,
            self.notes,
        ])

    @property
    def has_location_info(self) -> bool:
        return any([self.address, self.footprint_area, self.type_of_construction])

    @property
    def present_images(self) -> List[ImageDetail]:
        """Images that get a page, in rendering order."""
        return [image for image in self.images if image.is_present]


class Severity(str, Enum):
    """Static severity tag of a defect category."""
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class RecommendationEntry(BaseModel):
    """A defect category to recommend actions for."""
    model_config = ConfigDict(frozen=True)

    label: str
    count: int = Field(..., ge=1)
    severity: Severity
