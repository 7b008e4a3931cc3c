"""Coordinate-space mapping and contain-fit geometry."""

from .coordinate import to_document_space, to_render_space, to_page_space, rect_to_document_space
from .page import PageGeometry
from .fit import FittedSize, CenterOffset, ImageFit, fit_contain, center_offset, compute_image_fit

__all__ = [
    "PageGeometry",
    "to_document_space",
    "to_render_space",
    "to_page_space",
    "rect_to_document_space",
    "FittedSize",
    "CenterOffset",
    "ImageFit",
    "fit_contain",
    "center_offset",
    "compute_image_fit",
]
