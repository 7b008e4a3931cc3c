"""
Image codec used by the compositor.

Decoding and PNG encoding go through Pillow; embedding and placement on
a page go through PyMuPDF. The compositor only depends on the
``ImageCodec`` protocol so a host can substitute its own library.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import Protocol

import fitz  # type: ignore[import]
import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import DecodeFailureError, EncodeFailureError, InvalidArgumentError
from ..logging import get_logger
from .sniff import ImageFormat

logger = get_logger(__name__)


@dataclass(frozen=True)
class DecodedImage:
    """RGBA pixels of shape (height, width, 4)."""
    width: int
    height: int
    pixels: np.ndarray


@dataclass
class EmbeddedImage:
    """
    An image bound to one document, ready to be drawn onto its pages.

    ``xref`` is 0 until the first draw stores the image stream in the
    document.
    """
    data: bytes
    format: ImageFormat
    natural_width: int
    natural_height: int
    document: fitz.Document = field(repr=False, compare=False)
    xref: int = 0


class ImageCodec(Protocol):
    def decode_to_rgba(self, data: bytes) -> DecodedImage: ...

    def encode_png(self, width: int, height: int, pixels: np.ndarray) -> bytes: ...

    def embed_asset(self, document: fitz.Document, data: bytes, fmt: ImageFormat) -> EmbeddedImage: ...

    def draw_image(
        self,
        document: fitz.Document,
        page_index: int,
        image: EmbeddedImage,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None: ...


class PyMuPdfImageCodec:
    """Pillow for pixels, PyMuPDF for placing images on PDF pages."""

    def decode_to_rgba(self, data: bytes) -> DecodedImage:
        try:
            with Image.open(io.BytesIO(data)) as img:
                rgba = img.convert("RGBA")
        except (UnidentifiedImageError, OSError) as exc:
            raise DecodeFailureError(f"Failed to decode image: {exc}") from exc
        pixels = np.asarray(rgba, dtype=np.uint8)
        return DecodedImage(width=rgba.width, height=rgba.height, pixels=pixels)

    def encode_png(self, width: int, height: int, pixels: np.ndarray) -> bytes:
        try:
            array = np.asarray(pixels, dtype=np.uint8).reshape(height, width, 4)
            buffer = io.BytesIO()
            Image.fromarray(array).save(buffer, format="PNG")
        except (ValueError, TypeError, OSError) as exc:
            raise EncodeFailureError(f"Failed to encode PNG: {exc}") from exc
        return buffer.getvalue()

    def embed_asset(self, document: fitz.Document, data: bytes, fmt: ImageFormat) -> EmbeddedImage:
        """
        Bind ``data`` to ``document`` and read its natural size.

        The image stream is written into the document by the first
        ``draw_image`` call; later draws of the same handle reuse that
        object instead of storing the stream again.
        """
        if document.is_closed:
            raise InvalidArgumentError(f"Cannot embed {fmt.value} image into a closed document")
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
        except (UnidentifiedImageError, OSError) as exc:
            raise DecodeFailureError(f"Failed to read {fmt.value} image: {exc}") from exc
        return EmbeddedImage(
            data=data, format=fmt, natural_width=width, natural_height=height, document=document
        )

    def draw_image(
        self,
        document: fitz.Document,
        page_index: int,
        image: EmbeddedImage,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> None:
        """
        Draw ``image`` with its lower-left corner at (x, y) in page space.

        Page space has its origin at the bottom-left corner of the visible
        page, whatever the MediaBox origin is. It is mapped back onto
        PyMuPDF's top-left ``page.rect`` frame before drawing.

        Raises:
            InvalidArgumentError: If ``image`` was embedded into another document
                or the target rectangle is empty
            DecodeFailureError: If PyMuPDF cannot read the image stream
        """
        if image.document is not document:
            raise InvalidArgumentError("Image handle belongs to a different document", page_index=page_index)
        if width <= 0 or height <= 0:
            raise InvalidArgumentError(
                f"Cannot draw image into an empty {width}x{height} rectangle", page_index=page_index
            )

        page = document.load_page(page_index)
        top = page.rect.y0 + page.rect.height - y - height
        left = page.rect.x0 + x
        rect = fitz.Rect(left, top, left + width, top + height)
        try:
            if image.xref:
                page.insert_image(rect, xref=image.xref, keep_proportion=False)
            else:
                image.xref = page.insert_image(rect, stream=image.data, keep_proportion=False)
        except (RuntimeError, ValueError) as exc:
            raise DecodeFailureError(
                f"Failed to place {image.format.value} image: {exc}", page_index=page_index
            ) from exc
        logger.debug(f"Page {page_index}: drew {image.format.value} image xref={image.xref} at {rect}")
