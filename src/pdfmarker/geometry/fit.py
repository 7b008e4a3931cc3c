"""
Contain-fit sizing of a raster image inside a region box.

The fitted image keeps its aspect ratio, is never cropped, and touches
the box on at least one axis.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class FittedSize:
    width: float
    height: float


@dataclass(frozen=True)
class CenterOffset:
    offset_x: float
    offset_y: float


@dataclass(frozen=True)
class ImageFit:
    """Last computed fit of an attached image inside its region."""
    width: float
    height: float
    offset_x: float
    offset_y: float
    natural_width: int
    natural_height: int

    def is_stale_for(self, region) -> bool:
        """True when this fit no longer matches the box of ``region`` (anything with width and height)."""
        expected = compute_image_fit(
            self.natural_width, self.natural_height, region.width, region.height
        )
        return expected != self


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fit_contain(
    image_width: float, image_height: float, box_width: float, box_height: float
) -> FittedSize:
    """
    Largest aspect-preserving size of an image that fits inside a box.

    Any non-positive input yields a 0x0 size. The free axis is rounded to
    the nearest whole unit and never exceeds the box.
    """
    if image_width <= 0 or image_height <= 0 or box_width <= 0 or box_height <= 0:
        return FittedSize(0, 0)

    image_ratio = image_width / image_height
    box_ratio = box_width / box_height

    if image_ratio > box_ratio:
        # Relatively wider: pin width
        width = box_width
        height = min(box_height, _round_half_up(box_width / image_ratio))
    else:
        height = box_height
        width = min(box_width, _round_half_up(box_height * image_ratio))
    return FittedSize(width, height)


def center_offset(
    box_width: float, box_height: float, fit_width: float, fit_height: float
) -> CenterOffset:
    """Offsets that center a fitted image inside its box, never negative."""
    return CenterOffset(
        offset_x=max(0, (box_width - fit_width) / 2),
        offset_y=max(0, (box_height - fit_height) / 2),
    )


def compute_image_fit(
    natural_width: int, natural_height: int, box_width: float, box_height: float
) -> ImageFit:
    """Fit plus centering offsets for an image of the given natural size."""
    fitted = fit_contain(natural_width, natural_height, box_width, box_height)
    offset = center_offset(box_width, box_height, fitted.width, fitted.height)
    return ImageFit(
        width=fitted.width,
        height=fitted.height,
        offset_x=offset.offset_x,
        offset_y=offset.offset_y,
        natural_width=natural_width,
        natural_height=natural_height,
    )
