"""Region data model, collection operations and JSON persistence."""

from .model import (
    Region,
    RegionType,
    RegionStatus,
    ImageAttachment,
    create_region,
    create_region_from_render,
    update_region,
    delete_region,
    validate_region,
)
from .serialization import load_regions, dump_regions, write_regions_json, region_from_dict, region_to_dict

__all__ = [
    "Region",
    "RegionType",
    "RegionStatus",
    "ImageAttachment",
    "create_region",
    "create_region_from_render",
    "update_region",
    "delete_region",
    "validate_region",
    "load_regions",
    "dump_regions",
    "write_regions_json",
    "region_from_dict",
    "region_to_dict",
]
