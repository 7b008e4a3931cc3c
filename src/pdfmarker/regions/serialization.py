"""
JSON persistence for region sets.

Uses the camelCase shape a UI exports: ``pageIndex``, ``meta.imageSrc``
and ``meta.imageFit``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from ..errors import InvalidArgumentError
from ..geometry.fit import ImageFit
from ..logging import get_logger
from .model import ImageAttachment, Region, RegionStatus, RegionType

logger = get_logger(__name__)


def region_to_dict(region: Region) -> Dict[str, Any]:
    """Convert a region to its JSON-ready dictionary."""
    data: Dict[str, Any] = {
        "id": region.id,
        "pageIndex": region.page_index,
        "x": region.x,
        "y": region.y,
        "width": region.width,
        "height": region.height,
        "type": region.type.value,
        "status": region.status.value,
        "scale": region.render_scale,
    }
    if region.content is not None:
        data["content"] = region.content
    if region.rotation is not None:
        data["rotation"] = region.rotation
    if region.image is not None:
        meta: Dict[str, Any] = {"imageSrc": region.image.src}
        fit = region.image.fit
        if fit is not None:
            meta["imageFit"] = {
                "width": fit.width,
                "height": fit.height,
                "offsetX": fit.offset_x,
                "offsetY": fit.offset_y,
                "imgW": fit.natural_width,
                "imgH": fit.natural_height,
            }
        data["meta"] = meta
    return data


def region_from_dict(data: Dict[str, Any]) -> Region:
    """
    Build a region from its JSON dictionary.

    Raises:
        InvalidArgumentError: If required keys are missing or enum values are unknown
    """
    try:
        meta = data.get("meta") or {}
        image = None
        if meta.get("imageSrc"):
            fit_data = meta.get("imageFit")
            fit = None
            if fit_data:
                fit = ImageFit(
                    width=fit_data["width"],
                    height=fit_data["height"],
                    offset_x=fit_data.get("offsetX", 0),
                    offset_y=fit_data.get("offsetY", 0),
                    natural_width=fit_data.get("imgW", fit_data.get("naturalWidth", 0)),
                    natural_height=fit_data.get("imgH", fit_data.get("naturalHeight", 0)),
                )
            image = ImageAttachment(src=meta["imageSrc"], fit=fit)

        return Region(
            id=data["id"],
            page_index=int(data["pageIndex"]),
            x=data["x"],
            y=data["y"],
            width=data.get("width", 120.0),
            height=data.get("height", 80.0),
            type=RegionType(data.get("type", RegionType.RECTANGLE.value)),
            status=RegionStatus(data.get("status", RegionStatus.PENDING.value)),
            content=data.get("content"),
            rotation=data.get("rotation"),
            render_scale=data.get("scale", 1.0),
            image=image,
        )
    except KeyError as exc:
        raise InvalidArgumentError(f"Region is missing required key {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"Malformed region: {exc}") from exc


def dump_regions(regions: Iterable[Region]) -> List[Dict[str, Any]]:
    return [region_to_dict(r) for r in regions]


def write_regions_json(regions: Iterable[Region], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(dump_regions(regions), f, indent=2, ensure_ascii=False)
    logger.debug(f"Wrote regions to {path}")
    return path


def load_regions(path: Path) -> List[Region]:
    """
    Load a region list from a JSON file.

    Accepts either a bare list or an object with a ``regions`` list.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as exc:
        raise InvalidArgumentError(f"Invalid regions JSON in {path}: {exc}") from exc

    if isinstance(payload, dict):
        payload = payload.get("regions", [])
    if not isinstance(payload, list):
        raise InvalidArgumentError(f"Expected a list of regions in {path}")

    regions = [region_from_dict(item) for item in payload]
    logger.info(f"Loaded {len(regions)} regions from {path}")
    return regions
