"""
Error kinds raised by compositing, splitting and region handling.

Every error can carry the region and page it concerns so callers can
point the user at the offending annotation.
"""

from __future__ import annotations

from typing import Optional


class PdfMarkerError(Exception):
    """Base class for all pdfmarker errors."""

    def __init__(
        self,
        message: str,
        *,
        region_id: Optional[str] = None,
        page_index: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.region_id = region_id
        self.page_index = page_index

    def __str__(self) -> str:
        context = []
        if self.region_id is not None:
            context.append(f"region={self.region_id}")
        if self.page_index is not None:
            context.append(f"page={self.page_index}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class InvalidArgumentError(PdfMarkerError, ValueError):
    """Bad geometry, scale, threshold or page selection."""


class NotFoundError(PdfMarkerError, LookupError):
    """Unknown document, region or page."""


class UnsupportedFormatError(PdfMarkerError):
    """Image bytes are neither PNG nor JPEG."""


class DecodeFailureError(PdfMarkerError):
    """Image or document bytes could not be decoded."""


class EncodeFailureError(PdfMarkerError):
    """Pixel data could not be encoded back to an image."""


class FetchFailureError(PdfMarkerError):
    """Image or document bytes could not be resolved."""


class CancelledError(PdfMarkerError):
    """The caller cancelled the operation."""
