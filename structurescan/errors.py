"""
Exception hierarchy for report rendering.

Per-image problems (``ImageError``) are recovered inside the document as an
error caption. Everything else propagates to the caller of ``generate_report``.
"""


class ReportError(Exception):
    """Base class for all report rendering errors."""


# ============================================================================
# INPUT PRECONDITIONS
# ============================================================================

class InputPreconditionError(ReportError, ValueError):
    """An operation received input it cannot work with."""


class InvalidImageError(InputPreconditionError):
    """Image has a zero or negative pixel dimension."""


class UnsupportedReferenceError(InputPreconditionError):
    """Image reference uses a scheme the decoder cannot resolve."""


# ============================================================================
# RESOURCES
# ============================================================================

class ResourceUnavailableError(ReportError):
    """An external resource could not be read."""


class ImageFetchError(ResourceUnavailableError):
    """Network or storage read failed (including timeouts)."""


class ImageDecodeError(ResourceUnavailableError):
    """Image bytes were read but could not be decoded."""


# ============================================================================
# FATAL
# ============================================================================

class ReportGenerationError(ReportError):
    """Generation failed as a whole; no partial document is returned."""


class GenerationCancelled(ReportError):
    """Generation was cancelled; the partial document was discarded."""


class LayoutStateError(ReportError):
    """Page flow was driven into an invalid state."""


class PageFinalizedError(LayoutStateError):
    """A draw command targeted a page that has already been finalized."""


class DocumentClosedError(LayoutStateError):
    """The page flow controller was used after the document was closed."""


# Errors recovered per image as an in-document error page
ImageError = (
    InvalidImageError,
    UnsupportedReferenceError,
    ImageFetchError,
    ImageDecodeError,
)
