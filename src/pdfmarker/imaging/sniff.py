"""Magic-byte classification of raster image buffers."""

from enum import Enum
from typing import Optional

from ..errors import UnsupportedFormatError

PNG_SIGNATURE = b"\x89PNG"
JPEG_SIGNATURE = b"\xff\xd8\xff"


class ImageFormat(str, Enum):
    PNG = "png"
    JPEG = "jpeg"
    UNSUPPORTED = "unsupported"


def classify(data: bytes) -> ImageFormat:
    """Classify ``data`` as PNG, JPEG or unsupported from its leading bytes."""
    if data is None or len(data) < 4:
        return ImageFormat.UNSUPPORTED
    head = bytes(data[:4])
    if head == PNG_SIGNATURE:
        return ImageFormat.PNG
    if head[:3] == JPEG_SIGNATURE:
        return ImageFormat.JPEG
    return ImageFormat.UNSUPPORTED


def require_supported(data: bytes, region_id: Optional[str] = None) -> ImageFormat:
    """Like classify(), but raise UnsupportedFormatError instead of returning UNSUPPORTED."""
    fmt = classify(data)
    if fmt is ImageFormat.UNSUPPORTED:
        head = bytes(data[:4]).hex() if data else ""
        raise UnsupportedFormatError(
            f"Unsupported image format (leading bytes: {head or 'none'})",
            region_id=region_id,
        )
    return fmt
