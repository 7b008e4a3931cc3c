"""
Mapping between render space and document-native space.

Render space is the zoomed on-screen frame of a page; document space is
the page's own frame in PDF points, top-left origin, y pointing down.
Page space is the PDF content-stream frame: bottom-left origin, y up.
"""

from typing import Tuple

from ..errors import InvalidArgumentError


def _check_scale(scale: float) -> None:
    if not scale > 0:
        raise InvalidArgumentError(f"scale must be > 0, got {scale}")


def to_document_space(x: float, y: float, scale: float) -> Tuple[float, float]:
    """Convert a render-space point to document space."""
    _check_scale(scale)
    return x / scale, y / scale


def to_render_space(x: float, y: float, scale: float) -> Tuple[float, float]:
    """Convert a document-space point to render space."""
    _check_scale(scale)
    return x * scale, y * scale


def rect_to_document_space(
    x: float, y: float, width: float, height: float, scale: float
) -> Tuple[float, float, float, float]:
    """Convert a render-space rectangle (origin and size) to document space."""
    _check_scale(scale)
    return x / scale, y / scale, width / scale, height / scale


def to_page_space(
    x: float, y: float, height: float, page_height: float
) -> Tuple[float, float]:
    """
    Project a top-left-origin rectangle onto a bottom-left-origin page.

    Returns the rectangle's lower-left corner. One-way: the result depends
    on the page height, so it is not an inverse of the render mapping.
    """
    return x, page_height - y - height
