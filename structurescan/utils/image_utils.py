"""
Image utilities for StructureScan reports.
Resolves image references, decodes them and prepares them for embedding.
"""

import io
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import unquote, urlparse

import requests
from PIL import Image, UnidentifiedImageError

from structurescan.errors import (
    ImageDecodeError,
    ImageFetchError,
    InvalidImageError,
    UnsupportedReferenceError,
)
from structurescan.utils.config import config, get_log_file
from structurescan.utils.logger import setup_logger

logger = setup_logger(__name__, level=config.log_level, log_file=get_log_file(), component="IMAGES")

REMOTE_SCHEMES = ("http", "https")
LOCAL_SCHEMES = ("content", "file")


class ImageDecoder(Protocol):
    """Resolves an image reference to a decoded bitmap."""

    def decode(self, reference: str) -> Image.Image:
        ...


def decode_image_bytes(data: bytes, reference: str = "<bytes>") -> Image.Image:
    """
    Decode raw image bytes.

    Raises:
        ImageDecodeError: If the bytes are not a readable image, or decode to
            more pixels than Pillow's decompression bomb limit allows
        InvalidImageError: If the decoded image has a zero dimension
    """
    try:
        img = Image.open(io.BytesIO(data))
        img.load()  # Force load to catch corrupt images
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Failed to decode bitmap from: {reference} ({e})") from e

    width, height = img.size
    if width <= 0 or height <= 0:
        raise InvalidImageError(f"Image has invalid dimensions {width}x{height}: {reference}")

    logger.debug(f"Decoded image: {reference}, size: {img.size}, mode: {img.mode}")
    return img


class ReferenceImageDecoder:
    """
    Default image decoder.

    http/https references are downloaded with requests; content:// and
    file:// references are read from below a local content root. Any other
    scheme is rejected before any I/O happens.
    """

    def __init__(
        self,
        content_root: Optional[Path] = None,
        timeout: Optional[float] = None,
        max_bytes: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.content_root = (content_root or config.get_content_root()).resolve()
        self.timeout = timeout or config.image_fetch_timeout
        self.max_bytes = max_bytes or config.image_max_bytes
        self.session = session or requests.Session()
        self.logger = logger

    def decode(self, reference: str) -> Image.Image:
        try:
            scheme = urlparse(reference).scheme.lower()
        except ValueError as e:
            raise UnsupportedReferenceError(f"Invalid image URL format: {reference}") from e
        if scheme in REMOTE_SCHEMES:
            data = self._fetch_remote(reference)
        elif scheme in LOCAL_SCHEMES:
            data = self._read_local(reference)
        else:
            raise UnsupportedReferenceError(f"Invalid image URL format: {reference}")
        return decode_image_bytes(data, reference)

    def _fetch_remote(self, url: str) -> bytes:
        self.logger.debug(f"Fetching image: {url}")
        try:
            response = self.session.get(url, timeout=self.timeout, stream=True)
        except requests.Timeout as e:
            raise ImageFetchError(f"Timed out after {self.timeout}s fetching {url}") from e
        except requests.RequestException as e:
            raise ImageFetchError(f"Failed to fetch {url}: {e}") from e

        try:
            if response.status_code != 200:
                raise ImageFetchError(f"HTTP {response.status_code} fetching {url}")

            chunks = []
            received = 0
            for chunk in response.iter_content(chunk_size=64 * 1024):
                received += len(chunk)
                if received > self.max_bytes:
                    raise ImageFetchError(f"Image exceeds {self.max_bytes} bytes: {url}")
                chunks.append(chunk)
            return b"".join(chunks)
        except requests.RequestException as e:
            raise ImageFetchError(f"Failed to read {url}: {e}") from e
        finally:
            response.close()

    def _resolve_local(self, reference: str) -> Path:
        parsed = urlparse(reference)
        relative = unquote(f"{parsed.netloc}{parsed.path}").lstrip("/")
        if "\x00" in relative:
            raise UnsupportedReferenceError(f"Invalid local image path: {reference}")
        try:
            path = (self.content_root / relative).resolve()
        except (OSError, ValueError) as e:
            raise UnsupportedReferenceError(f"Invalid local image path: {reference}") from e
        if path != self.content_root and self.content_root not in path.parents:
            raise UnsupportedReferenceError(f"Reference escapes content root: {reference}")
        return path

    def _read_local(self, reference: str) -> bytes:
        path = self._resolve_local(reference)
        if not path.is_file():
            raise ImageFetchError(f"Image not found: {reference}")
        if path.stat().st_size > self.max_bytes:
            raise ImageFetchError(f"Image exceeds {self.max_bytes} bytes: {reference}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise ImageFetchError(f"Failed to read {reference}: {e}") from e


def prepare_for_embedding(
    img: Image.Image,
    width: int,
    height: int,
    oversample: Optional[float] = None
) -> Image.Image:
    """
    Downsample an image for embedding at a placed size.

    The image keeps at most ``oversample`` pixels per layout unit and is never
    enlarged. Output is RGB.

    Args:
        img: Decoded image
        width: Placed width in layout units
        height: Placed height in layout units
        oversample: Pixels per layout unit (defaults to config)

    Returns:
        Image ready to embed
    """
    oversample = oversample or config.image_oversample

    if img.mode != "RGB":
        img = img.convert("RGB")

    target = (max(1, int(width * oversample)), max(1, int(height * oversample)))
    if img.width <= target[0] and img.height <= target[1]:
        return img

    resized = img.resize(target, Image.Resampling.LANCZOS)
    logger.debug(f"Resized image from {img.size} to {resized.size}")
    return resized
