"""
Utility modules for StructureScan reports.
"""

from structurescan.utils.config import config, get_log_file
from structurescan.utils.logger import setup_logger
from structurescan.utils.image_utils import (
    ImageDecoder,
    ReferenceImageDecoder,
    decode_image_bytes,
    prepare_for_embedding,
)

__all__ = [
    "config",
    "get_log_file",
    "setup_logger",
    "ImageDecoder",
    "ReferenceImageDecoder",
    "decode_image_bytes",
    "prepare_for_embedding",
]
