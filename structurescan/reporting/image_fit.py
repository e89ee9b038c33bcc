"""
Aspect-preserving placement of photographs on an image page.
"""

from dataclasses import dataclass

from structurescan.errors import InvalidImageError
from structurescan.reporting.surface import PAGE_WIDTH, PAGE_HEIGHT, CONTENT_WIDTH

IMAGE_TOP = 95
IMAGE_MAX_WIDTH = CONTENT_WIDTH
IMAGE_MAX_HEIGHT = PAGE_HEIGHT - 150


@dataclass(frozen=True)
class ImagePlacement:
    width: int
    height: int
    left: int
    top: int


def fit_image(
    source_width: int,
    source_height: int,
    bound_width: int = IMAGE_MAX_WIDTH,
    bound_height: int = IMAGE_MAX_HEIGHT,
    page_width: int = PAGE_WIDTH,
    top: int = IMAGE_TOP,
) -> ImagePlacement:
    """
    Scale an image uniformly to fit the bound and center it horizontally.

    Args:
        source_width: Decoded image width in pixels
        source_height: Decoded image height in pixels
        bound_width: Maximum placed width
        bound_height: Maximum placed height
        page_width: Width the image is centered within
        top: Fixed top offset of the image

    Returns:
        Placement with integer dimensions (rounded, never past the bound)

    Raises:
        InvalidImageError: If a source dimension is zero or negative
    """
    if source_width <= 0 or source_height <= 0:
        raise InvalidImageError(
            f"Image has invalid dimensions {source_width}x{source_height}"
        )

    scale = min(bound_width / source_width, bound_height / source_height)
    width = min(bound_width, round(source_width * scale))
    height = min(bound_height, round(source_height * scale))

    return ImagePlacement(
        width=width,
        height=height,
        left=(page_width - width) // 2,
        top=top,
    )
