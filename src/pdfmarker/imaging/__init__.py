"""Image sniffing, matting, decoding and source resolution."""

from .sniff import ImageFormat, classify, require_supported
from .matte import remove_near_white, DEFAULT_THRESHOLD
from .codec import ImageCodec, PyMuPdfImageCodec, DecodedImage, EmbeddedImage
from .sources import fetch_bytes, decode_data_uri, is_data_uri

__all__ = [
    "ImageFormat",
    "classify",
    "require_supported",
    "remove_near_white",
    "DEFAULT_THRESHOLD",
    "ImageCodec",
    "PyMuPdfImageCodec",
    "DecodedImage",
    "EmbeddedImage",
    "fetch_bytes",
    "decode_data_uri",
    "is_data_uri",
]
