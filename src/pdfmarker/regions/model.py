"""
Region data model and pure collection operations.

Regions are immutable; every operation returns a new region or a new
collection and leaves its inputs untouched.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from ..errors import InvalidArgumentError
from ..geometry.coordinate import rect_to_document_space
from ..geometry.fit import ImageFit, compute_image_fit

DEFAULT_WIDTH = 120.0
DEFAULT_HEIGHT = 80.0


class RegionType(str, Enum):
    RECTANGLE = "rectangle"
    HIGHLIGHT = "highlight"
    TEXT = "text"


class RegionStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"


@dataclass(frozen=True)
class ImageAttachment:
    """Image attached to a region: its source locator and cached fit."""
    src: str
    fit: Optional[ImageFit] = None


@dataclass(frozen=True)
class Region:
    """
    One rectangular annotation on one page.

    Geometry is in document-native units (PDF points, top-left origin).
    ``render_scale`` records the zoom active when the region was last
    edited; it is never the region's own coordinate frame.
    """
    id: str
    page_index: int
    x: float
    y: float
    width: float = DEFAULT_WIDTH
    height: float = DEFAULT_HEIGHT
    type: RegionType = RegionType.RECTANGLE
    status: RegionStatus = RegionStatus.PENDING
    content: Optional[str] = None
    rotation: Optional[float] = None
    render_scale: float = 1.0
    image: Optional[ImageAttachment] = None

    def has_image(self) -> bool:
        return self.image is not None and bool(self.image.src)

    def is_ready_to_composite(self) -> bool:
        """Done regions with an attached image are embedded by the compositor."""
        return self.status is RegionStatus.DONE and self.has_image()


_REGION_FIELDS = frozenset(f.name for f in fields(Region))


def new_region_id() -> str:
    return str(uuid.uuid4())


def create_region(
    page_index: int,
    x: float,
    y: float,
    type: RegionType = RegionType.RECTANGLE,
    width: float = DEFAULT_WIDTH,
    height: float = DEFAULT_HEIGHT,
    status: RegionStatus = RegionStatus.PENDING,
    scale: float = 1.0,
) -> Region:
    """Create a region with a fresh id. Coordinates must already be in document space."""
    return Region(
        id=new_region_id(),
        page_index=page_index,
        x=x,
        y=y,
        width=width,
        height=height,
        type=RegionType(type),
        status=RegionStatus(status),
        render_scale=scale,
    )


def create_region_from_render(
    page_index: int,
    render_x: float,
    render_y: float,
    render_width: float,
    render_height: float,
    scale: float,
    type: RegionType = RegionType.RECTANGLE,
    status: RegionStatus = RegionStatus.PENDING,
) -> Region:
    """Create a region from a rectangle drawn in render space at ``scale``."""
    x, y, width, height = rect_to_document_space(
        render_x, render_y, render_width, render_height, scale
    )
    return create_region(page_index, x, y, type, width, height, status, scale)


def update_region(
    regions: Sequence[Region], region_id: str, partial: Mapping[str, Any]
) -> Sequence[Region]:
    """
    Return a new collection with the matching region shallow-merged with ``partial``.

    The input collection is returned as-is when no region has ``region_id``.

    Raises:
        InvalidArgumentError: If ``partial`` names unknown fields or changes the id
    """
    unknown = set(partial) - _REGION_FIELDS
    if unknown:
        raise InvalidArgumentError(f"Unknown region fields: {', '.join(sorted(unknown))}")
    if "id" in partial and partial["id"] != region_id:
        raise InvalidArgumentError("Region id is immutable", region_id=region_id)

    if not any(r.id == region_id for r in regions):
        return regions
    return [merge_region(r, partial) if r.id == region_id else r for r in regions]


def merge_region(region: Region, partial: Mapping[str, Any]) -> Region:
    changes = dict(partial)
    if "type" in changes:
        changes["type"] = RegionType(changes["type"])
    if "status" in changes:
        changes["status"] = RegionStatus(changes["status"])
    if isinstance(changes.get("image"), Mapping):
        changes["image"] = _image_from_mapping(changes["image"], region.id)
    return replace(region, **changes)


def _image_from_mapping(raw: Mapping[str, Any], region_id: str) -> ImageAttachment:
    src = raw.get("src")
    if not isinstance(src, str) or not src:
        raise InvalidArgumentError("Image attachment requires a non-empty src", region_id=region_id)
    fit = raw.get("fit")
    if isinstance(fit, Mapping):
        try:
            fit = ImageFit(**fit)
        except TypeError as exc:
            raise InvalidArgumentError(f"Invalid image fit: {exc}", region_id=region_id) from exc
    return ImageAttachment(src=src, fit=fit)


def refit_image(region: Region) -> Region:
    """Recompute a cached image fit that no longer matches the region's box."""
    if region.image is None or region.image.fit is None:
        return region
    fit = region.image.fit
    if not fit.is_stale_for(region):
        return region
    refreshed = compute_image_fit(fit.natural_width, fit.natural_height, region.width, region.height)
    return replace(region, image=replace(region.image, fit=refreshed))


def delete_region(regions: Sequence[Region], region_id: str) -> Sequence[Region]:
    """Return a new collection without ``region_id``; the input when absent."""
    if not any(r.id == region_id for r in regions):
        return regions
    return [r for r in regions if r.id != region_id]


def validate_region(region: Region) -> Optional[str]:
    """Return the first violated invariant as a message, or None when valid."""
    if not isinstance(region.id, str) or not region.id:
        return "Region ID is required and must be a non-empty string"
    if region.page_index is None or region.page_index < 0:
        return "Page index is required and must be non-negative"
    if region.x is None or region.x < 0:
        return "X coordinate is required and must be non-negative"
    if region.y is None or region.y < 0:
        return "Y coordinate is required and must be non-negative"
    if region.width is None or region.width <= 0:
        return "Width is required and must be positive"
    if region.height is None or region.height <= 0:
        return "Height is required and must be positive"
    return None
