"""
Shared fixtures for report rendering tests.
"""

import tempfile
from pathlib import Path

import pytest
from PIL import Image

from structurescan.errors import ImageFetchError, UnsupportedReferenceError
from structurescan.reporting.surface import Surface
from structurescan.schemas.models import AssessmentReport


class FixedWidthMetrics:
    """Every glyph is half the font size wide."""

    def width(self, text, font_name, font_size):
        return len(text) * font_size * 0.5


class StubDecoder:
    """Decoder backed by a dict of reference -> image or exception."""

    def __init__(self, images=None):
        self.images = images or {}
        self.calls = []

    def decode(self, reference):
        self.calls.append(reference)
        if not reference.startswith(("http://", "https://", "content://")):
            raise UnsupportedReferenceError(f"Invalid image URL format: {reference}")
        result = self.images.get(reference)
        if result is None:
            raise ImageFetchError(f"Image not found: {reference}")
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def metrics():
    return FixedWidthMetrics()


@pytest.fixture
def surface(metrics):
    return Surface(metrics)


@pytest.fixture
def temp_dir():
    """Temporary directory removed after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def landscape_image():
    return Image.new("RGB", (400, 300), (180, 180, 180))


@pytest.fixture
def decoder(landscape_image):
    return StubDecoder({
        "https://example.com/wall.jpg": landscape_image,
        "content://media/external/images/1": Image.new("RGB", (300, 600), (90, 90, 90)),
    })


@pytest.fixture
def clean_report():
    """Assessment with nothing detected."""
    return AssessmentReport(
        assessment_name="Clean House",
        date="March 3, 2025",
        overall_risk="Low Risk",
    )


@pytest.fixture
def damaged_report():
    """Assessment with damage in several categories and full metadata."""
    return AssessmentReport(
        assessment_name="Riverside Warehouse",
        date="March 3, 2025",
        overall_risk="High Risk",
        total_issues=4,
        crack_high=2,
        crack_moderate=0,
        crack_low=1,
        paint=0,
        algae=1,
        building_type="Commercial",
        construction_year="1987",
        floors="3",
        material="Reinforced concrete",
        foundation="Slab",
        environment="Coastal",
        notes="North wall shows water staining near the downspout. Owner reports leaks after heavy rain.",
        images=[
            "https://example.com/wall.jpg",
            "",
            "content://media/external/images/1",
        ],
    )
